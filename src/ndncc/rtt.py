from dataclasses import dataclass
from typing import Dict, Optional

K_GRANULARITY = 0.001  # seconds
K_RTT_GAIN = 0.1
K_INITIAL_RTT = 1.0
K_MIN_RTO = 0.2


@dataclass
class RttHistory:
    sent_time: float
    rtt_eligible: bool


class RttEstimator:
    """
    Round-trip time estimator using the mean and mean deviation of samples.

    Each sample moves the estimate and the deviation towards the measured
    value by ``gain``. Only the first transmission of a sequence number yields
    a sample: once a sequence is retransmitted, or explicitly marked as not
    eligible, its acknowledgement is ignored for RTT purposes.
    """

    def __init__(
        self,
        *,
        gain: float = K_RTT_GAIN,
        initial_rtt: float = K_INITIAL_RTT,
        min_rto: float = K_MIN_RTO,
    ) -> None:
        self.gain = gain
        self.min_rto = min_rto

        self._history: Dict[int, RttHistory] = {}
        self._rtt_estimate = initial_rtt
        self._rtt_initialized = False
        self._rtt_latest: Optional[float] = None
        self._rtt_variance = 0.0
        self.sample_count = 0

    @property
    def latest_rtt(self) -> Optional[float]:
        return self._rtt_latest

    @property
    def smoothed_rtt(self) -> float:
        return self._rtt_estimate

    @property
    def rtt_variance(self) -> float:
        return self._rtt_variance

    def current_timeout(self) -> float:
        if not self._rtt_initialized:
            return max(self._rtt_estimate, self.min_rto)
        return max(
            self.min_rto,
            self._rtt_estimate + max(K_GRANULARITY, 4 * self._rtt_variance),
        )

    def on_acked(self, seq: int, *, now: float) -> Optional[float]:
        """
        Record the acknowledgement of `seq` and return the RTT sample it
        produced, if any.
        """
        history = self._history.pop(seq, None)
        if history is None or not history.rtt_eligible:
            return None

        sample = now - history.sent_time
        self._update(sample)
        return sample

    def on_sent(self, seq: int, *, now: float, rtt_eligible: bool = True) -> None:
        history = self._history.get(seq)
        if history is None:
            self._history[seq] = RttHistory(sent_time=now, rtt_eligible=rtt_eligible)
        else:
            # retransmission, the reply can no longer be matched to a send
            history.sent_time = now
            history.rtt_eligible = False

    def _update(self, sample: float) -> None:
        self._rtt_latest = sample
        self.sample_count += 1

        if not self._rtt_initialized:
            self._rtt_initialized = True
            self._rtt_estimate = sample
            self._rtt_variance = sample / 2
        else:
            error = sample - self._rtt_estimate
            self._rtt_estimate += self.gain * error
            self._rtt_variance += self.gain * (abs(error) - self._rtt_variance)
