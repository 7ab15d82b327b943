import logging
import random
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Any, Deque, List, Optional, Tuple, Union

from .app import App
from .exceptions import ConfigurationError
from .face import Face
from .forwarding import (
    FibEntry,
    ForwardingConfiguration,
    ForwardingStrategy,
    create_forwarding_strategy,
)
from .logger import SimulationLoggerTrace
from .name import Name
from .packet import ContentObject, Interest, NackCode, increment_hop_count
from .scheduler import Scheduler, TimerHandle

logger = logging.getLogger("ndncc.network")

# bytes on the wire besides the payload
K_DATA_OVERHEAD = 40
K_INTEREST_SIZE = 40


class NetworkLoggerAdapter(logging.LoggerAdapter):
    def process(self, msg: str, kwargs: Any) -> Tuple[str, Any]:
        return "[%s] %s" % (self.extra["id"], msg), kwargs


class ShaperMode(Enum):
    NONE = "None"
    DROPTAIL = "DropTail"


@dataclass
class ShaperConfiguration:
    """
    An interest shaper configuration.
    """

    mode: ShaperMode = ShaperMode.NONE
    """
    The queueing discipline for outgoing interests.
    """

    max_interest: int = 60
    """
    The maximum number of interests waiting in the shaper queue.
    """

    headroom: float = 0.97
    """
    The share of the reverse link capacity which the returning data may use.
    """

    expected_data_size: int = 1000
    """
    The expected size of the data answering each interest, in bytes.
    """


class AppFace(Face):
    """
    Connects an application to the forwarding layer of a node.

    Packets are handed over in a separate event, never synchronously.
    """

    def __init__(self, *, app: App, name: str, scheduler: Scheduler) -> None:
        super().__init__(name=name)
        self.app = app
        self._scheduler = scheduler
        app.attach(_AppTransport(self, scheduler))

    def _send_data(self, data: ContentObject) -> bool:
        self._scheduler.schedule(0, self.app.on_content_object, data)
        return True

    def _send_interest(self, interest: Interest) -> bool:
        if interest.is_nack:
            self._scheduler.schedule(0, self.app.on_nack, interest)
        else:
            self._scheduler.schedule(0, self.app.on_interest, interest)
        return True


class _AppTransport:
    def __init__(self, face: AppFace, scheduler: Scheduler) -> None:
        self._face = face
        self._scheduler = scheduler

    def send_data(self, data: ContentObject) -> bool:
        self._scheduler.schedule(0, self._face.receive_data, data)
        return True

    def send_interest(self, interest: Interest) -> bool:
        self._scheduler.schedule(0, self._face.receive_interest, interest)
        return True


class NetDeviceFace(Face):
    """
    One end of a point-to-point :class:`Link`.

    Packets are transmitted one after the other at the link's data rate and
    reach the other end after the link's propagation delay. The hop count of
    every packet is incremented on reception.
    """

    def __init__(
        self, *, name: str, link: "Link", node: "Node", scheduler: Scheduler
    ) -> None:
        super().__init__(name=name)
        self.link = link
        self.node = node
        self.peer: Optional["NetDeviceFace"] = None
        self.shaper: Optional["DropTailShaper"] = None
        self._busy_until = 0.0
        self._scheduler = scheduler

    def transmit_interest(self, interest: Interest) -> None:
        self._transmit(K_INTEREST_SIZE, self.peer._receive_interest, interest)

    def _receive_data(self, data: ContentObject) -> None:
        self.receive_data(data.with_hop_count(increment_hop_count(data.hop_count)))

    def _receive_interest(self, interest: Interest) -> None:
        self.receive_interest(
            interest.with_hop_count(increment_hop_count(interest.hop_count))
        )

    def _send_data(self, data: ContentObject) -> bool:
        self._transmit(
            data.payload_size + K_DATA_OVERHEAD, self.peer._receive_data, data
        )
        return True

    def _send_interest(self, interest: Interest) -> bool:
        if self.shaper is not None and not interest.is_nack:
            return self.shaper.enqueue(interest)
        self.transmit_interest(interest)
        return True

    def _transmit(self, size: int, deliver: Any, packet: Any) -> None:
        now = self._scheduler.now()
        self._busy_until = max(now, self._busy_until) + size * 8 / self.link.data_rate
        self._scheduler.schedule(
            self._busy_until + self.link.delay - now, deliver, packet
        )


class DropTailShaper:
    """
    Paces the interests sent on a face so that the data they bring back fits
    in the reverse direction of the link.

    Interests are released one per `expected_data_size * 8 / (data_rate *
    headroom)` seconds. An interest arriving while `max_interest` interests
    are already waiting is dropped and, if NACKs are enabled, answered with a
    congestion NACK as if it had come from the face.
    """

    def __init__(
        self,
        *,
        configuration: ShaperConfiguration,
        face: NetDeviceFace,
        scheduler: Scheduler,
    ) -> None:
        self.interval = (
            configuration.expected_data_size
            * 8
            / (face.link.data_rate * configuration.headroom)
        )
        self.max_interest = configuration.max_interest
        self.queue: Deque[Interest] = deque()

        self._face = face
        self._next_release = 0.0
        self._release_handle: Optional[TimerHandle] = None
        self._scheduler = scheduler

    def enqueue(self, interest: Interest) -> bool:
        now = self._scheduler.now()
        if not self.queue and now >= self._next_release:
            self._release(interest, now=now)
            return True

        if len(self.queue) >= self.max_interest:
            self._face.counters.dropped_interests += 1
            if not self._face.node.strategy.configuration.enable_nacks:
                return False
            self._scheduler.schedule(
                0,
                self._face.receive_interest,
                interest.with_nack(NackCode.NACK_CONGESTION),
            )
            return True

        self.queue.append(interest)
        if self._release_handle is None:
            self._release_handle = self._scheduler.schedule(
                self._next_release - now, self._on_release
            )
        return True

    def _on_release(self) -> None:
        self._release_handle = None
        now = self._scheduler.now()
        self._release(self.queue.popleft(), now=now)
        if self.queue:
            self._release_handle = self._scheduler.schedule(
                self.interval, self._on_release
            )

    def _release(self, interest: Interest, *, now: float) -> None:
        self._next_release = now + self.interval
        self._face.transmit_interest(interest)


def create_shaper(
    configuration: ShaperConfiguration, *, face: NetDeviceFace, scheduler: Scheduler
) -> Optional[DropTailShaper]:
    try:
        mode = ShaperMode(configuration.mode)
    except ValueError:
        raise ConfigurationError(f"Unknown shaper mode: {configuration.mode}")

    if mode == ShaperMode.DROPTAIL:
        return DropTailShaper(
            configuration=configuration, face=face, scheduler=scheduler
        )
    return None


class Node:
    """
    A network node: a forwarding strategy and the faces it forwards between.
    """

    def __init__(
        self,
        name: str,
        *,
        scheduler: Scheduler,
        forwarding: Optional[ForwardingConfiguration] = None,
        rng: Optional[random.Random] = None,
        trace: Optional[SimulationLoggerTrace] = None,
    ) -> None:
        if forwarding is None:
            forwarding = ForwardingConfiguration()

        self.apps: List[App] = []
        self.faces: List[Face] = []
        self.name = name
        self.scheduler = scheduler
        self.strategy: ForwardingStrategy = create_forwarding_strategy(
            forwarding.strategy,
            configuration=forwarding,
            scheduler=scheduler,
            node_name=name,
            rng=rng,
            trace=trace,
        )
        self._logger = NetworkLoggerAdapter(logger, {"id": name})

    def __repr__(self) -> str:
        return "<Node %s>" % self.name

    def add_app(self, app: App) -> AppFace:
        face = AppFace(
            app=app,
            name="%s/app%d" % (self.name, len(self.apps)),
            scheduler=self.scheduler,
        )
        self.add_face(face)
        self.apps.append(app)
        return face

    def add_face(self, face: Face) -> None:
        face.register_protocol_handler(self.strategy)
        self.faces.append(face)

    def add_route(
        self, prefix: Union[Name, str], face: Face, cost: int = 1
    ) -> FibEntry:
        if isinstance(prefix, str):
            prefix = Name.parse(prefix)
        self._logger.debug("Route %s via %s, cost %d", prefix, face, cost)
        return self.strategy.fib.add_route(prefix, face, cost)


class Link:
    """
    A point-to-point link between two nodes.

    `data_rate` is in bits per second and `delay` in seconds.
    """

    def __init__(
        self,
        node_a: Node,
        node_b: Node,
        *,
        scheduler: Scheduler,
        data_rate: float,
        delay: float,
        shaper: Optional[ShaperConfiguration] = None,
    ) -> None:
        self.data_rate = data_rate
        self.delay = delay

        self.face_a = NetDeviceFace(
            name="%s->%s" % (node_a.name, node_b.name),
            link=self,
            node=node_a,
            scheduler=scheduler,
        )
        self.face_b = NetDeviceFace(
            name="%s->%s" % (node_b.name, node_a.name),
            link=self,
            node=node_b,
            scheduler=scheduler,
        )
        self.face_a.peer = self.face_b
        self.face_b.peer = self.face_a

        if shaper is not None:
            for face in (self.face_a, self.face_b):
                face.shaper = create_shaper(shaper, face=face, scheduler=scheduler)

        node_a.add_face(self.face_a)
        node_b.add_face(self.face_b)

    def face_of(self, node: Node) -> NetDeviceFace:
        if node is self.face_a.node:
            return self.face_a
        elif node is self.face_b.node:
            return self.face_b
        raise ValueError("%r is not an end of this link" % node)


class Producer(App):
    """
    Answers every interest under its prefix with a fixed-size content object.
    """

    def __init__(self, prefix: str, *, payload_size: int = 1000) -> None:
        super().__init__(name=prefix)
        self.payload_size = payload_size
        self.prefix = Name.parse(prefix)

    def on_interest(self, interest: Interest) -> None:
        if not self._active:
            return

        if not self.prefix.is_prefix_of(interest.name):
            self._logger.warning("Dropping interest %s", interest.name)
            return

        self._logger.debug("< Interest for %s", interest.name)
        self._face.send_data(
            ContentObject(
                name=interest.name, payload_size=self.payload_size, hop_count=0
            )
        )
