import abc
from typing import Any, Dict, Optional, Protocol

from ..exceptions import ConfigurationError
from .configuration import ConsumerConfiguration

K_LOSS_REDUCTION_FACTOR = 0.5
K_MINIMUM_WINDOW = 1


class PacingPolicy(abc.ABC):
    """
    Base class for consumer pacing policies.

    A pacing policy decides when the consumer may send its next interest. It
    is told about every transmission and about every reply, NACK and timeout,
    along with the time the concerned interest was last sent, when known.
    """

    @abc.abstractmethod
    def next_send_delay(
        self, *, now: float, rto: float, send_pending: bool
    ) -> Optional[float]:
        """
        Return the delay after which the next interest should be sent, or
        `None` to leave the current schedule untouched.
        """

    def on_content_object(
        self, *, seq: int, now: float, sent_time: Optional[float]
    ) -> None:
        pass

    def on_interest_sent(self, *, seq: int, now: float) -> None:
        pass

    def on_nack(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        pass

    def on_timeout(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        pass

    def get_log_data(self) -> Dict[str, Any]:
        return {}


class PacingPolicyFactory(Protocol):
    def __call__(self, *, configuration: ConsumerConfiguration) -> PacingPolicy: ...


_factories: Dict[str, PacingPolicyFactory] = {}


def create_pacing_policy(
    name: str, *, configuration: ConsumerConfiguration
) -> PacingPolicy:
    """
    Create an instance of the `name` pacing policy.
    """
    try:
        factory = _factories[name]
    except KeyError:
        raise ConfigurationError(f"Unknown pacing policy: {name}")
    return factory(configuration=configuration)


def register_pacing_policy(name: str, factory: PacingPolicyFactory) -> None:
    """
    Register a pacing policy named `name`.
    """
    _factories[name] = factory
