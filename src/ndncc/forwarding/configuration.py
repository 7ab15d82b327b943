from dataclasses import dataclass

from .fib import K_INITIAL_CWND


@dataclass
class ForwardingConfiguration:
    """
    A forwarding node configuration.
    """

    strategy: str = "congestion-aware"
    """
    The name of the forwarding strategy, as registered with
    :func:`register_forwarding_strategy`.
    """

    enable_nacks: bool = True
    """
    Whether the node sends NACKs upstream and acts upon received ones.
    """

    initial_cwnd: int = K_INITIAL_CWND
    """
    The congestion window given to a path when it is added to the FIB.
    """

    cwnd_step: int = 1
    """
    The amount by which a path's congestion window grows or shrinks.
    """
