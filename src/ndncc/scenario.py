import logging
import random
from typing import Dict, List, Optional, Tuple, Union

from .consumer import Consumer, ConsumerConfiguration
from .exceptions import ConfigurationError
from .forwarding import ForwardingConfiguration
from .logger import AggregateTracer, SimulationLogger, SimulationLoggerTrace
from .network import Link, Node, Producer, ShaperConfiguration, ShaperMode
from .scheduler import Scheduler

logger = logging.getLogger("ndncc.network")

ACCESS_LINK = (100e6, 0.001)
BOTTLENECK_DELAY = 0.010
CONSUMER_LIFETIME = 5.0
DEFAULT_DURATION = 70.1
PAYLOAD_SIZE = 1000


class MultipathBalanceScenario:
    """
    Three consumers sharing two bottlenecks.

    ::

        c1 (0) --+                 +-- 12 Mbps -- (2) -- p1 (4)
        c2 (6) --+-- (1) ----------+
        c3 (7) --+                 +-- 18 Mbps -- (3) -- p2 (5)

    `/prefix2` is only served through node 2 and `/prefix3` only through
    node 3, while `/prefix1` can be fetched over both bottlenecks. The
    consumers of `/prefix2` and `/prefix3` start within the first five
    seconds, the consumer of `/prefix1` joins at 40 seconds.
    """

    def __init__(
        self,
        *,
        consumer: str = "window",
        shaper: Union[ShaperMode, str] = ShaperMode.DROPTAIL,
        strategy: str = "congestion-aware",
        seed: Optional[int] = None,
        simulation_logger: Optional[SimulationLogger] = None,
        aggregate_period: float = 1.0,
    ) -> None:
        self.rng = random.Random(seed)
        self.scheduler = Scheduler()
        self.simulation_logger = simulation_logger
        self._traces: List[SimulationLoggerTrace] = []

        # without shaping there is nothing to send NACKs, use plain best-route
        try:
            shaper_configuration = ShaperConfiguration(mode=ShaperMode(shaper))
        except ValueError:
            raise ConfigurationError(f"Unknown shaper mode: {shaper}")
        if shaper_configuration.mode == ShaperMode.NONE:
            forwarding = ForwardingConfiguration(
                strategy="best-route", enable_nacks=False
            )
            link_shaper = None
        else:
            forwarding = ForwardingConfiguration(strategy=strategy, enable_nacks=True)
            link_shaper = shaper_configuration

        self.nodes = [
            Node(
                "node%d" % i,
                scheduler=self.scheduler,
                forwarding=forwarding,
                rng=random.Random(self.rng.getrandbits(64)),
                trace=self._start_trace("node%d" % i, "forwarder"),
            )
            for i in range(8)
        ]

        self.links: Dict[Tuple[int, int], Link] = {}
        for a, b in [(0, 1), (6, 1), (7, 1), (2, 4), (3, 5)]:
            self._connect(a, b, ACCESS_LINK, link_shaper)
        self._connect(1, 2, (12e6, BOTTLENECK_DELAY), link_shaper)
        self._connect(1, 3, (18e6, BOTTLENECK_DELAY), link_shaper)

        # producers
        self.producers: List[Producer] = []
        for node, prefix in [
            (4, "/prefix1"),
            (4, "/prefix2"),
            (5, "/prefix1"),
            (5, "/prefix3"),
        ]:
            producer = Producer(prefix, payload_size=PAYLOAD_SIZE)
            face = self.nodes[node].add_app(producer)
            self.nodes[node].add_route(prefix, face)
            self.producers.append(producer)

        # consumers
        self.consumers: List[Consumer] = []
        self.start_times: List[float] = []
        for node, prefix, start_time in [
            (0, "/prefix1", 40.0),
            (6, "/prefix2", self.rng.uniform(0.0, 5.0)),
            (7, "/prefix3", self.rng.uniform(0.0, 5.0)),
        ]:
            app = Consumer(
                ConsumerConfiguration(
                    prefix=prefix, lifetime=CONSUMER_LIFETIME, pacing_algorithm=consumer
                ),
                scheduler=self.scheduler,
                rng=random.Random(self.rng.getrandbits(64)),
                trace=self._start_trace("consumer%s" % prefix, "consumer"),
            )
            self.nodes[node].add_app(app)
            self.consumers.append(app)
            self.start_times.append(start_time)

        # static multipath routes
        for a, b, prefix in [
            (0, 1, "/prefix1"),
            (1, 2, "/prefix1"),
            (1, 3, "/prefix1"),
            (2, 4, "/prefix1"),
            (3, 5, "/prefix1"),
            (6, 1, "/prefix2"),
            (1, 2, "/prefix2"),
            (2, 4, "/prefix2"),
            (7, 1, "/prefix3"),
            (1, 3, "/prefix3"),
            (3, 5, "/prefix3"),
        ]:
            self.add_route(a, b, prefix)

        self.aggregate_tracer: Optional[AggregateTracer] = None
        aggregate_trace = self._start_trace("aggregate", "network")
        if aggregate_trace is not None:
            self.aggregate_tracer = AggregateTracer(
                faces=[face for node in self.nodes for face in node.faces],
                period=aggregate_period,
                scheduler=self.scheduler,
                trace=aggregate_trace,
            )

    def add_route(self, a: int, b: int, prefix: str, cost: int = 1) -> None:
        """
        Route `prefix` from node `a` towards its neighbour `b`.
        """
        link = self.links[(a, b)] if (a, b) in self.links else self.links[(b, a)]
        self.nodes[a].add_route(prefix, link.face_of(self.nodes[a]), cost)

    def run(self, duration: float = DEFAULT_DURATION) -> None:
        for app, start_time in zip(self.consumers, self.start_times):
            self.scheduler.schedule(start_time, app.start)
        for producer in self.producers:
            producer.start()
        if self.aggregate_tracer is not None:
            self.aggregate_tracer.start()

        logger.info("Running scenario for %.1f seconds", duration)
        self.scheduler.run(until=duration)

        if self.aggregate_tracer is not None:
            self.aggregate_tracer.stop()
        for app in self.consumers:
            if app.active:
                app.stop()
        if self.simulation_logger is not None:
            for trace in self._traces:
                self.simulation_logger.end_trace(trace)

    def _connect(
        self,
        a: int,
        b: int,
        link: Tuple[float, float],
        shaper: Optional[ShaperConfiguration],
    ) -> None:
        data_rate, delay = link
        self.links[(a, b)] = Link(
            self.nodes[a],
            self.nodes[b],
            scheduler=self.scheduler,
            data_rate=data_rate,
            delay=delay,
            shaper=shaper,
        )

    def _start_trace(self, name: str, kind: str) -> Optional[SimulationLoggerTrace]:
        if self.simulation_logger is None:
            return None
        trace = self.simulation_logger.start_trace(
            name=name, kind=kind, clock=self.scheduler.now
        )
        self._traces.append(trace)
        return trace
