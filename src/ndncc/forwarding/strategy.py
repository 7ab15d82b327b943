import abc
import logging
import random
from typing import Any, Dict, Optional, Protocol, Tuple

from ..exceptions import ConfigurationError
from ..face import Face
from ..logger import SimulationLoggerTrace
from ..packet import IN_VAIN_NACK_CODES, ContentObject, Interest, NackCode
from ..scheduler import Scheduler
from .configuration import ForwardingConfiguration
from .fib import Fib, FibEntry
from .pit import Pit, PitEntry

logger = logging.getLogger("ndncc.forwarding")


class ForwardingLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg: str, kwargs: Any) -> Tuple[str, Any]:
        return "[%s] %s" % (self.extra["id"], msg), kwargs


class ForwardingStrategy(abc.ABC):
    """
    Base class for forwarding strategies.

    A strategy is the forwarding layer of one node: it owns the node's FIB
    and PIT, aggregates interests, forwards data back along the incoming
    faces, and sends and handles NACKs. Subclasses decide which paths an
    interest is sent on by implementing :meth:`do_propagate_interest`.
    """

    def __init__(
        self,
        *,
        configuration: ForwardingConfiguration,
        scheduler: Scheduler,
        name: str,
        rng: Optional[random.Random] = None,
        trace: Optional[SimulationLoggerTrace] = None,
    ) -> None:
        self.configuration = configuration
        self.fib = Fib(
            initial_cwnd=configuration.initial_cwnd,
            cwnd_step=configuration.cwnd_step,
        )
        self.pit = Pit(
            scheduler=scheduler,
            on_timeout=self.will_erase_timed_out_pending_interest,
        )

        self._logger = ForwardingLoggerAdapter(logger, {"id": name})
        self._rng = rng if rng is not None else random.Random()
        self._scheduler = scheduler
        self._trace = trace

    @abc.abstractmethod
    def do_propagate_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> bool:
        """
        Send `interest` on one or more paths of the entry's route, returning
        `False` if it could not be sent anywhere.
        """

    def on_data(self, in_face: Face, data: ContentObject) -> None:
        entry = self.pit.lookup(data.name)
        if entry is None:
            self._logger.debug("Dropping unsolicited data %s", data.name)
            return

        self.will_satisfy_pending_interest(in_face, entry)

        for face in entry.incoming:
            if face is not in_face:
                face.send_data(data)

        entry.clear_incoming()
        entry.clear_outgoing()
        self.pit.erase(entry)

    def on_interest(self, in_face: Face, interest: Interest) -> None:
        if interest.is_nack:
            self.on_nack(in_face, interest)
            return

        fib_entry = self.fib.longest_prefix_match(interest.name)
        if fib_entry is None:
            self._logger.debug("No route for %s", interest.name)
            return

        entry = self.pit.lookup(interest.name)
        created = entry is None
        if entry is None:
            entry = self.pit.create(interest, route=fib_entry.prefix)

        if not entry.add_nonce(interest.nonce):
            self.did_receive_duplicate_interest(in_face, interest, entry)
            return

        if not created and self.should_suppress_incoming_interest(
            in_face, interest, entry
        ):
            self._logger.debug("Aggregating interest %s", interest.name)
            entry.add_incoming(in_face, now=self._scheduler.now())
            self.pit.update_lifetime(entry, interest.lifetime)
            return

        self.propagate_interest(in_face, interest, entry)

    def on_nack(self, in_face: Face, nack: Interest) -> None:
        if not self.configuration.enable_nacks:
            self._logger.debug("Dropping NACK %s, NACKs are disabled", nack.name)
            return

        entry = self.pit.lookup(nack.name)
        if entry is None:
            self._logger.debug("Dropping NACK %s without PIT entry", nack.name)
            return

        index = entry.outgoing_index_of(in_face)
        if index is None:
            self._logger.debug("Dropping NACK %s from unused face", nack.name)
            return

        self.did_receive_valid_nack(in_face, index, nack, entry)

    def propagate_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> None:
        entry.add_incoming(in_face, now=self._scheduler.now())
        self.pit.update_lifetime(entry, interest.lifetime)

        if not self.do_propagate_interest(in_face, interest, entry):
            self.did_exhaust_forwarding_options(in_face, interest, entry)

    def should_suppress_incoming_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> bool:
        """
        Return `True` if `interest` only needs to be aggregated into `entry`.

        Interests are propagated again when nothing is outstanding for the
        entry or when they are retransmitted by a face which already sent
        them.
        """
        if not entry.outgoing:
            return False
        return in_face not in entry.incoming

    def try_send_out_interest(
        self, in_face: Face, index: int, interest: Interest, entry: PitEntry
    ) -> bool:
        """
        Send `interest` on the path at `index` of the entry's route.
        """
        out_face = self.route_for(entry).paths[index].face
        if out_face is in_face:
            return False

        # only resend on a path when the interest was retransmitted
        record = entry.outgoing.get(index)
        if record is not None and record.retx_count >= entry.max_retx_count:
            return False

        if not out_face.send_interest(interest):
            self._logger.debug("Face %s refused interest %s", out_face, interest.name)
            return False

        entry.add_outgoing(index, out_face, now=self._scheduler.now())
        return True

    def did_exhaust_forwarding_options(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> None:
        if self.configuration.enable_nacks:
            nack = interest.with_nack(NackCode.NACK_GIVEUP_PIT)
            for face in list(entry.incoming):
                self._logger.debug("Sending NACK_GIVEUP_PIT to %s", face)
                face.send_interest(nack)
                self._log_nack_sent(face, nack)
            entry.clear_outgoing()

        if entry.are_all_outgoing_in_vain():
            self._logger.debug("Giving up on %s", interest.name)
            entry.clear_incoming()
            entry.clear_outgoing()
            self.pit.erase(entry)

    def did_receive_duplicate_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> None:
        entry.add_incoming(in_face, now=self._scheduler.now())
        if self.configuration.enable_nacks:
            nack = interest.with_nack(NackCode.NACK_LOOP)
            in_face.send_interest(nack)
            self._log_nack_sent(in_face, nack)

    def did_receive_valid_nack(
        self, in_face: Face, index: int, nack: Interest, entry: PitEntry
    ) -> None:
        # the downstream node already dropped its own PIT entry
        if nack.nack == NackCode.NACK_GIVEUP_PIT:
            entry.remove_incoming(in_face)

        if nack.nack in IN_VAIN_NACK_CODES:
            entry.set_waiting_in_vain(index)
            if not entry.are_all_outgoing_in_vain():
                self._log_nack_suppressed(in_face, nack)
                return

            interest = nack.without_nack()
            if not self.do_propagate_interest(in_face, interest, entry):
                self.did_exhaust_forwarding_options(in_face, interest, entry)

    def will_erase_timed_out_pending_interest(self, entry: PitEntry) -> None:
        self._logger.debug("PIT entry %s timed out", entry.name)

    def will_satisfy_pending_interest(self, in_face: Face, entry: PitEntry) -> None:
        pass

    def route_for(self, entry: PitEntry) -> FibEntry:
        return self.fib[entry.route]

    def _log_nack_sent(self, face: Face, nack: Interest) -> None:
        if self._trace is not None:
            self._trace.log_event(
                category="fw",
                event="nack_sent",
                data={
                    "face": face.name,
                    "name": str(nack.name),
                    "nack": nack.nack.name,
                },
            )

    def _log_nack_suppressed(self, face: Face, nack: Interest) -> None:
        self._logger.debug("Suppressing %s for %s", nack.nack.name, nack.name)
        if self._trace is not None:
            self._trace.log_event(
                category="fw",
                event="nack_suppressed",
                data={
                    "face": face.name,
                    "name": str(nack.name),
                    "nack": nack.nack.name,
                },
            )


class BestRouteStrategy(ForwardingStrategy):
    """
    Sends each interest on the cheapest path which accepts it.
    """

    def do_propagate_interest(
        self, in_face: Face, interest: Interest, entry: PitEntry
    ) -> bool:
        paths = self.route_for(entry).paths
        for index in sorted(range(len(paths)), key=lambda i: paths[i].cost):
            if self.try_send_out_interest(in_face, index, interest, entry):
                return True
        return False


class ForwardingStrategyFactory(Protocol):
    def __call__(
        self,
        *,
        configuration: ForwardingConfiguration,
        scheduler: Scheduler,
        name: str,
        rng: Optional[random.Random] = None,
        trace: Optional[SimulationLoggerTrace] = None,
    ) -> ForwardingStrategy: ...


_factories: Dict[str, ForwardingStrategyFactory] = {}


def create_forwarding_strategy(
    name: str,
    *,
    configuration: ForwardingConfiguration,
    scheduler: Scheduler,
    node_name: str,
    rng: Optional[random.Random] = None,
    trace: Optional[SimulationLoggerTrace] = None,
) -> ForwardingStrategy:
    """
    Create an instance of the `name` forwarding strategy for a node.
    """
    try:
        factory = _factories[name]
    except KeyError:
        raise ConfigurationError(f"Unknown forwarding strategy: {name}")
    return factory(
        configuration=configuration,
        scheduler=scheduler,
        name=node_name,
        rng=rng,
        trace=trace,
    )


def register_forwarding_strategy(
    name: str, factory: ForwardingStrategyFactory
) -> None:
    """
    Register a forwarding strategy named `name`.
    """
    _factories[name] = factory


register_forwarding_strategy("best-route", BestRouteStrategy)
