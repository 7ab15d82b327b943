import logging
from typing import Any, Dict, Optional

from ..exceptions import ConfigurationError
from .base import PacingPolicy, register_pacing_policy
from .configuration import ConsumerConfiguration

logger = logging.getLogger("ndncc.consumer")


class RatePacing(PacingPolicy):
    """
    Sends interests at a fixed frequency.

    The first interest goes out immediately, each following one `1 /
    frequency` seconds after the previous send. The frequency adjustment
    hooks do nothing; subclasses override them to adapt the rate.
    """

    def __init__(self, *, configuration: ConsumerConfiguration) -> None:
        if configuration.frequency <= 0:
            raise ConfigurationError(
                "Frequency must be positive, got %r" % configuration.frequency
            )
        self.frequency = configuration.frequency
        self._first_time = True

    def next_send_delay(
        self, *, now: float, rto: float, send_pending: bool
    ) -> Optional[float]:
        if self._first_time:
            self._first_time = False
            return 0.0
        elif send_pending:
            return None
        return 1.0 / self.frequency

    def on_content_object(
        self, *, seq: int, now: float, sent_time: Optional[float]
    ) -> None:
        logger.debug("Current frequency: %s", self.frequency)

    def on_nack(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        logger.debug("Current frequency: %s", self.frequency)

    def on_timeout(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        logger.debug("Current frequency: %s", self.frequency)

    def get_log_data(self) -> Dict[str, Any]:
        return {"frequency": self.frequency}


register_pacing_policy("rate", RatePacing)
