from typing import Optional

from ..face import Face
from ..packet import IN_VAIN_NACK_CODES, Interest, NackCode
from .fib import FibEntry
from .pit import PitEntry
from .strategy import ForwardingStrategy, register_forwarding_strategy


class CongestionAwareStrategy(ForwardingStrategy):
    """
    Multipath forwarding weighted by per-path congestion windows.

    Each interest is sent on a single path picked at random with a
    probability proportional to the path's congestion window. A path's window
    grows when it brings data back, and shrinks when sending on it fails,
    when it answers with a congestion or give-up NACK, or when an interest
    sent on it expires.

    A NACK is only propagated upstream once every path an interest was sent
    on has answered in vain.
    """

    def select_path(self, fib_entry: FibEntry) -> Optional[int]:
        """
        Pick the index of a path of `fib_entry`, weighted by congestion window.
        """
        total = fib_entry.total_cwnd
        if not total:
            return None

        threshold = self._rng.random() * total
        cumulative = 0
        for index, path in enumerate(fib_entry.paths):
            cumulative += path.cwnd
            if threshold <= cumulative:
                return index
        return None

    def do_propagate_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> bool:
        fib_entry = self.route_for(entry)
        index = self.select_path(fib_entry)
        if index is None:
            return False

        if self.try_send_out_interest(in_face, index, interest, entry):
            return True

        # a single attempt per call, the caller decides what happens next
        self._decrease_cwnd(fib_entry, index)
        return False

    def did_receive_valid_nack(
        self, in_face: Face, index: int, nack: Interest, entry: PitEntry
    ) -> None:
        self._logger.debug("Received %s for %s", nack.nack.name, nack.name)

        if nack.nack in (NackCode.NACK_CONGESTION, NackCode.NACK_GIVEUP_PIT):
            self._decrease_cwnd(self.route_for(entry), index)

        # the downstream node already dropped its own PIT entry
        if nack.nack == NackCode.NACK_GIVEUP_PIT:
            entry.remove_incoming(in_face)

        if nack.nack in IN_VAIN_NACK_CODES:
            entry.set_waiting_in_vain(index)
            if not entry.are_all_outgoing_in_vain():
                # still expecting data on another path
                self._log_nack_suppressed(in_face, nack)
                return

            self.did_exhaust_forwarding_options(in_face, nack.without_nack(), entry)

    def will_erase_timed_out_pending_interest(self, entry: PitEntry) -> None:
        fib_entry = self.route_for(entry)
        for index in entry.outgoing:
            self._decrease_cwnd(fib_entry, index)
        super().will_erase_timed_out_pending_interest(entry)

    def will_satisfy_pending_interest(self, in_face: Face, entry: PitEntry) -> None:
        fib_entry = self.route_for(entry)
        index = fib_entry.index_of(in_face)
        if index is not None:
            self._increase_cwnd(fib_entry, index)
        super().will_satisfy_pending_interest(in_face, entry)

    def _decrease_cwnd(self, fib_entry: FibEntry, index: int) -> None:
        fib_entry.decrease_cwnd(index)
        self._log_cwnd_updated(fib_entry, index)

    def _increase_cwnd(self, fib_entry: FibEntry, index: int) -> None:
        fib_entry.increase_cwnd(index)
        self._log_cwnd_updated(fib_entry, index)

    def _log_cwnd_updated(self, fib_entry: FibEntry, index: int) -> None:
        path = fib_entry.paths[index]
        self._logger.debug(
            "cwnd of %s towards %s: %d", path.face, fib_entry.prefix, path.cwnd
        )
        if self._trace is not None:
            self._trace.log_event(
                category="fw",
                event="cwnd_updated",
                data={
                    "cwnd": path.cwnd,
                    "face": path.face.name,
                    "route": str(fib_entry.prefix),
                },
            )


register_forwarding_strategy("congestion-aware", CongestionAwareStrategy)
