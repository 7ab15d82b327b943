from .configuration import ForwardingConfiguration
from .congestion_aware import CongestionAwareStrategy
from .fib import Fib, FibEntry, PathCandidate
from .pit import OutgoingRecord, Pit, PitEntry
from .strategy import (
    BestRouteStrategy,
    ForwardingStrategy,
    create_forwarding_strategy,
    register_forwarding_strategy,
)

__all__ = [
    "BestRouteStrategy",
    "CongestionAwareStrategy",
    "Fib",
    "FibEntry",
    "ForwardingConfiguration",
    "ForwardingStrategy",
    "OutgoingRecord",
    "PathCandidate",
    "Pit",
    "PitEntry",
    "create_forwarding_strategy",
    "register_forwarding_strategy",
]
