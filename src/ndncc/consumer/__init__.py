from .base import PacingPolicy, create_pacing_policy, register_pacing_policy
from .configuration import ConsumerConfiguration, RequestMode
from .consumer import Consumer, ConsumerState
from .rate import RatePacing
from .window import AimdPacing, WindowPacing

__all__ = [
    "AimdPacing",
    "Consumer",
    "ConsumerConfiguration",
    "ConsumerState",
    "PacingPolicy",
    "RatePacing",
    "RequestMode",
    "WindowPacing",
    "create_pacing_policy",
    "register_pacing_policy",
]
