from typing import Any, Dict, Optional

from .base import (
    K_LOSS_REDUCTION_FACTOR,
    K_MINIMUM_WINDOW,
    PacingPolicy,
    register_pacing_policy,
)
from .configuration import ConsumerConfiguration

K_ZERO_WINDOW_RETRY = 0.5  # seconds


class WindowPacing(PacingPolicy):
    """
    Window-based pacing: keep at most `window` interests in flight.

    The window grows by one interest per reply and shrinks by one per NACK.
    """

    def __init__(self, *, configuration: ConsumerConfiguration) -> None:
        self.in_flight = 0
        self.initial_window = configuration.window
        self.set_initial_window_on_timeout = (
            configuration.set_initial_window_on_timeout
        )
        self.window: float = configuration.window

    def next_send_delay(
        self, *, now: float, rto: float, send_pending: bool
    ) -> Optional[float]:
        if self.window < 1:
            if send_pending:
                return None
            return min(K_ZERO_WINDOW_RETRY, rto)
        elif self.in_flight >= int(self.window):
            # the next reply will reschedule
            return None
        return 0.0

    def on_content_object(
        self, *, seq: int, now: float, sent_time: Optional[float]
    ) -> None:
        self._decrease_in_flight()
        self.window += 1

    def on_interest_sent(self, *, seq: int, now: float) -> None:
        self.in_flight += 1

    def on_nack(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        self._decrease_in_flight()
        if self.window > 0:
            self.window -= 1

    def on_timeout(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        self._decrease_in_flight()
        if self.set_initial_window_on_timeout:
            self.window = self.initial_window

    def get_log_data(self) -> Dict[str, Any]:
        return {"window": self.window, "in_flight": self.in_flight}

    def _decrease_in_flight(self) -> None:
        if self.in_flight > 0:
            self.in_flight -= 1


class AimdPacing(WindowPacing):
    """
    Additive-increase, multiplicative-decrease window pacing.

    Slow start doubles the window every round trip until the first congestion
    signal; afterwards the window grows by one interest per window of replies.
    A NACK or a timeout halves the window, at most once per recovery period.
    """

    def __init__(self, *, configuration: ConsumerConfiguration) -> None:
        super().__init__(configuration=configuration)
        self.ssthresh: Optional[float] = None
        self._congestion_recovery_start_time = float("-inf")

    def on_content_object(
        self, *, seq: int, now: float, sent_time: Optional[float]
    ) -> None:
        self._decrease_in_flight()

        # don't increase window in congestion recovery
        if sent_time is not None and sent_time <= self._congestion_recovery_start_time:
            return

        if self.ssthresh is None or self.window < self.ssthresh:
            # slow start
            self.window += 1
        else:
            # congestion avoidance
            self.window += 1 / self.window

    def on_nack(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        self._decrease_in_flight()
        self._on_congestion(now=now, sent_time=sent_time)

    def on_timeout(self, *, seq: int, now: float, sent_time: Optional[float]) -> None:
        self._decrease_in_flight()
        self._on_congestion(now=now, sent_time=sent_time)

    def get_log_data(self) -> Dict[str, Any]:
        data = super().get_log_data()
        if self.ssthresh is not None:
            data["ssthresh"] = self.ssthresh
        return data

    def _on_congestion(self, *, now: float, sent_time: Optional[float]) -> None:
        # start a new congestion event if the interest was sent after the
        # start of the previous congestion recovery period.
        if sent_time is None or sent_time > self._congestion_recovery_start_time:
            self._congestion_recovery_start_time = now
            self.window = max(self.window * K_LOSS_REDUCTION_FACTOR, K_MINIMUM_WINDOW)
            self.ssthresh = self.window


register_pacing_policy("window", WindowPacing)
register_pacing_policy("aimd", AimdPacing)
