from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..rtt import K_INITIAL_RTT, K_MIN_RTO, K_RTT_GAIN


class RequestMode(Enum):
    SEQUENTIAL = "sequential"
    ZIPF_MANDELBROT = "zipf-mandelbrot"


@dataclass
class ConsumerConfiguration:
    """
    A consumer configuration.
    """

    prefix: str = "/"
    """
    The name prefix under which numbered requests are issued.
    """

    start_seq: int = 0
    """
    The first sequence number issued in sequential mode.
    """

    max_seq: Optional[int] = None
    """
    The sequence counter value at which no new requests are issued.

    `None` means the consumer never stops on its own.
    """

    request_mode: RequestMode = RequestMode.SEQUENTIAL
    """
    Whether sequence numbers are issued in order or sampled from a
    Zipf-Mandelbrot popularity distribution.
    """

    number_of_contents: int = 1000
    """
    The catalog size, only used in Zipf-Mandelbrot mode.
    """

    q: float = 0.0
    """
    The Zipf-Mandelbrot rank offset, only used in Zipf-Mandelbrot mode.
    """

    s: float = 0.75
    """
    The Zipf-Mandelbrot exponent, only used in Zipf-Mandelbrot mode.
    """

    lifetime: float = 2.0
    """
    The lifetime in seconds carried by each interest.
    """

    retx_timer: float = 0.05
    """
    How often in seconds outstanding requests are checked for timeouts.
    """

    rand_component_len_max: int = 0
    """
    The maximum length of a random component inserted before the sequence
    number. `0` disables the random component.
    """

    pacing_algorithm: str = "window"
    """
    The name of the pacing policy to use.

    Currently supported policies: `"window"`, `"aimd"`, `"rate"`.
    """

    frequency: float = 10.0
    """
    The sending frequency in interests per second, used by the `"rate"`
    policy.
    """

    window: int = 1
    """
    The initial window in interests, used by the window policies.
    """

    set_initial_window_on_timeout: bool = True
    """
    Whether the `"window"` policy resets its window to `window` on a timeout.
    """

    initial_rtt: float = K_INITIAL_RTT
    """
    The RTT estimate in seconds used before the first sample is taken.
    """

    min_rto: float = K_MIN_RTO
    """
    The lower bound of the retransmission timeout in seconds.
    """

    rtt_gain: float = K_RTT_GAIN
    """
    The weight of each new sample in the smoothed RTT and its deviation.
    """
