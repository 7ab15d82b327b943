from collections import OrderedDict
from dataclasses import dataclass
from typing import Dict, Iterator, Optional

from .rtt import RttEstimator


@dataclass
class RequestDelays:
    seq: int
    last_delay: Optional[float]
    full_delay: Optional[float]
    retx_count: int
    rtt_sample: Optional[float]


class PendingRequestTracker:
    """
    Bookkeeping for the requests a consumer has outstanding.

    The timeout-eligible entries are kept in send-time order, oldest first, so
    that expired requests can be found by scanning from the front and stopping
    at the first one which has not expired.
    """

    def __init__(self, *, rtt: RttEstimator) -> None:
        self._rtt = rtt
        self._first_sent: Dict[int, float] = {}
        self._last_sent: Dict[int, float] = {}
        self._retx_counts: Dict[int, int] = {}
        self._timeouts: "OrderedDict[int, float]" = OrderedDict()

    def __contains__(self, seq: int) -> bool:
        return seq in self._timeouts

    def __len__(self) -> int:
        return len(self._timeouts)

    def acknowledge(self, seq: int, *, now: float) -> RequestDelays:
        """
        Clear the bookkeeping for `seq` after a reply was received.
        """
        last_sent = self._last_sent.get(seq)
        first_sent = self._first_sent.get(seq)
        delays = RequestDelays(
            seq=seq,
            last_delay=None if last_sent is None else now - last_sent,
            full_delay=None if first_sent is None else now - first_sent,
            retx_count=self._retx_counts.get(seq, 0),
            rtt_sample=None,
        )
        self.remove(seq)
        delays.rtt_sample = self._rtt.on_acked(seq, now=now)
        return delays

    def discard(self, seq: int) -> None:
        """
        Stop watching `seq` for timeouts, keeping its delay bookkeeping.
        """
        self._timeouts.pop(seq, None)

    def get_retx_count(self, seq: int) -> int:
        return self._retx_counts.get(seq, 0)

    def last_sent_time(self, seq: int) -> Optional[float]:
        return self._last_sent.get(seq)

    def mark_not_rtt_eligible(self, seq: int, *, now: float) -> None:
        self._rtt.on_sent(seq, now=now, rtt_eligible=False)

    def record(self, seq: int, *, now: float) -> None:
        """
        Register a transmission (or retransmission) of `seq` at `now`.
        """
        first_transmission = seq not in self._first_sent

        self._timeouts.pop(seq, None)
        self._timeouts[seq] = now
        self._first_sent.setdefault(seq, now)
        self._last_sent[seq] = now
        self._retx_counts[seq] = self._retx_counts.get(seq, 0) + 1

        self._rtt.on_sent(seq, now=now, rtt_eligible=first_transmission)

    def remove(self, seq: int) -> None:
        self._first_sent.pop(seq, None)
        self._last_sent.pop(seq, None)
        self._retx_counts.pop(seq, None)
        self._timeouts.pop(seq, None)

    def scan_expired(self, *, now: float, rto: float) -> Iterator[int]:
        """
        Yield the sequence numbers sent at least `rto` ago, oldest first,
        removing each one as it is yielded.
        """
        while self._timeouts:
            seq, sent_time = next(iter(self._timeouts.items()))
            if sent_time + rto > now:
                break
            del self._timeouts[seq]
            yield seq
