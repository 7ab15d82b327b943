import random
import string
from enum import Enum
from typing import Optional, Set

import numpy as np

from ..app import App
from ..exceptions import CatalogExhaustedError, ConfigurationError
from ..logger import SimulationLoggerTrace
from ..name import Name
from ..packet import ContentObject, Interest
from ..popularity import ZipfMandelbrotSampler
from ..rtt import RttEstimator
from ..scheduler import Scheduler, TimerHandle
from ..tracker import PendingRequestTracker
from . import rate, window  # noqa
from .base import PacingPolicy, create_pacing_policy
from .configuration import ConsumerConfiguration, RequestMode


class ConsumerState(Enum):
    IDLE = 0
    ACTIVE = 1
    FINISHED = 2
    STOPPED = 3


class Consumer(App):
    """
    Issues numbered interests under a prefix and retransmits those which are
    NACKed or time out.

    When interests are sent is decided by the pacing policy named in the
    configuration; everything else (sequencing, bookkeeping, reply, NACK and
    timeout handling) is common to all policies.
    """

    def __init__(
        self,
        configuration: ConsumerConfiguration,
        *,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
        trace: Optional[SimulationLoggerTrace] = None,
    ) -> None:
        super().__init__(name=configuration.prefix)
        self._configuration = configuration
        self._prefix = Name.parse(configuration.prefix)
        self._rng = rng if rng is not None else random.Random()
        self._scheduler = scheduler
        self._trace = trace

        try:
            self._request_mode = RequestMode(configuration.request_mode)
        except ValueError:
            raise ConfigurationError(
                f"Unknown request mode: {configuration.request_mode}"
            )

        self._pacing: PacingPolicy = create_pacing_policy(
            configuration.pacing_algorithm, configuration=configuration
        )
        self._rtt = RttEstimator(
            gain=configuration.rtt_gain,
            initial_rtt=configuration.initial_rtt,
            min_rto=configuration.min_rto,
        )
        self._tracker = PendingRequestTracker(rtt=self._rtt)

        self._sampler: Optional[ZipfMandelbrotSampler] = None
        if self._request_mode == RequestMode.ZIPF_MANDELBROT:
            self._sampler = ZipfMandelbrotSampler(
                n=configuration.number_of_contents,
                q=configuration.q,
                s=configuration.s,
                rng=np.random.default_rng(self._rng.getrandbits(64)),
            )

        # sequencing
        self._rand_component = ""
        self._retx_seqs: Set[int] = set()
        self._seq = configuration.start_seq
        self._seq_max = configuration.max_seq

        # timers
        self._retx_handle: Optional[TimerHandle] = None
        self._retx_timer = configuration.retx_timer
        self._send_handle: Optional[TimerHandle] = None
        self._stopped = False

    @property
    def pacing(self) -> PacingPolicy:
        return self._pacing

    @property
    def retransmit_queue(self) -> Set[int]:
        return self._retx_seqs

    @property
    def rtt(self) -> RttEstimator:
        return self._rtt

    @property
    def sampler(self) -> Optional[ZipfMandelbrotSampler]:
        return self._sampler

    @property
    def state(self) -> ConsumerState:
        if self._stopped:
            return ConsumerState.STOPPED
        elif not self._active:
            return ConsumerState.IDLE
        elif self._exhausted() and not self._retx_seqs:
            return ConsumerState.FINISHED
        return ConsumerState.ACTIVE

    @property
    def tracker(self) -> PendingRequestTracker:
        return self._tracker

    def start(self) -> None:
        super().start()
        self._stopped = False
        self.set_retx_timer(self._retx_timer)
        self.schedule_next_packet()

    def stop(self) -> None:
        self._scheduler.cancel(self._send_handle)
        self._scheduler.cancel(self._retx_handle)
        self._send_handle = None
        self._retx_handle = None
        self._stopped = True
        super().stop()

    def set_retx_timer(self, retx_timer: float) -> None:
        """
        Change how often outstanding requests are checked for timeouts.
        """
        self._retx_timer = retx_timer
        self._scheduler.cancel(self._retx_handle)
        self._retx_handle = self._scheduler.schedule(
            self._retx_timer, self.check_retx_timeout
        )

    def check_retx_timeout(self) -> None:
        now = self._scheduler.now()
        rto = self._rtt.current_timeout()

        for seq in self._tracker.scan_expired(now=now, rto=rto):
            self.on_timeout(seq)

        self._retx_handle = self._scheduler.schedule(
            self._retx_timer, self.check_retx_timeout
        )

    def schedule_next_packet(self) -> None:
        if not self._active:
            return

        send_pending = self._send_handle is not None and self._send_handle.pending
        delay = self._pacing.next_send_delay(
            now=self._scheduler.now(),
            rto=self._rtt.current_timeout(),
            send_pending=send_pending,
        )
        if delay is None:
            return

        self._scheduler.cancel(self._send_handle)
        self._send_handle = self._scheduler.schedule(delay, self.send_packet)

    def send_packet(self) -> None:
        if not self._active:
            return

        if self._retx_seqs:
            seq = min(self._retx_seqs)
            self._retx_seqs.remove(seq)
        else:
            if self._exhausted():
                # we are totally done
                self._logger.info("All %d requests issued", self._seq)
                return

            if self._sampler is None:
                seq = self._seq
            else:
                seq = self._next_sampled_seq()
            self._seq += 1

        now = self._scheduler.now()
        interest = Interest(
            name=self._request_name(seq),
            nonce=self._rng.getrandbits(32),
            lifetime=self._configuration.lifetime,
            hop_count=0,
        )
        self._logger.debug("> Interest for %d", seq)

        self._tracker.record(seq, now=now)
        self._pacing.on_interest_sent(seq=seq, now=now)
        if self._trace is not None:
            self._trace.log_event(
                category="app",
                event="interest_sent",
                data={
                    "retx_count": self._tracker.get_retx_count(seq),
                    "seq": seq,
                    **self._pacing.get_log_data(),
                },
            )

        self._face.send_interest(interest)
        self.schedule_next_packet()

    def on_content_object(self, data: ContentObject) -> None:
        if not self._active:
            return

        seq = self._parse_seq(data.name)
        if seq is None:
            return
        self._logger.debug("< DATA for %d is %d bytes", seq, data.payload_size)

        hop_count = data.hop_count if data.hop_count is not None else -1
        now = self._scheduler.now()
        sent_time = self._tracker.last_sent_time(seq)

        delays = self._tracker.acknowledge(seq, now=now)
        self._retx_seqs.discard(seq)

        if self._trace is not None:
            if delays.last_delay is not None:
                self._trace.log_event(
                    category="app",
                    event="last_delay",
                    data={
                        "delay": self._trace.encode_time(delays.last_delay),
                        "hop_count": hop_count,
                        "seq": seq,
                    },
                )
            if delays.full_delay is not None:
                self._trace.log_event(
                    category="app",
                    event="full_delay",
                    data={
                        "delay": self._trace.encode_time(delays.full_delay),
                        "hop_count": hop_count,
                        "retx_count": delays.retx_count,
                        "seq": seq,
                    },
                )

        self._pacing.on_content_object(seq=seq, now=now, sent_time=sent_time)
        self.schedule_next_packet()

    def on_nack(self, interest: Interest) -> None:
        if not self._active:
            return

        seq = self._parse_seq(interest.name)
        if seq is None:
            return
        self._logger.debug("< NACK for %d (%s)", seq, interest.nack.name)

        now = self._scheduler.now()
        self._pacing.on_nack(
            seq=seq, now=now, sent_time=self._tracker.last_sent_time(seq)
        )

        # retry immediately rather than wait for the timeout
        self._retx_seqs.add(seq)
        self._tracker.discard(seq)
        self._tracker.mark_not_rtt_eligible(seq, now=now)

        if self._trace is not None:
            self._trace.log_event(
                category="app",
                event="nack_received",
                data={"nack": interest.nack.name, "seq": seq},
            )

        self.schedule_next_packet()

    def on_timeout(self, seq: int) -> None:
        now = self._scheduler.now()
        self._logger.debug(
            "Timeout for %d, RTO %.3fs", seq, self._rtt.current_timeout()
        )

        self._pacing.on_timeout(
            seq=seq, now=now, sent_time=self._tracker.last_sent_time(seq)
        )

        # a timeout is not a valid RTT measurement
        self._tracker.mark_not_rtt_eligible(seq, now=now)
        self._retx_seqs.add(seq)

        if self._trace is not None:
            self._trace.log_event(category="app", event="timeout", data={"seq": seq})

        self.schedule_next_packet()

    def _exhausted(self) -> bool:
        return self._seq_max is not None and self._seq >= self._seq_max

    def _next_sampled_seq(self) -> int:
        if len(self._tracker) >= self._sampler.n:
            raise CatalogExhaustedError(
                catalog_size=self._sampler.n, outstanding=len(self._tracker)
            )

        # do not send duplicate interests
        seq = self._sampler.draw()
        while seq in self._tracker:
            seq = self._sampler.draw()
        return seq

    def _parse_seq(self, name: Name) -> Optional[int]:
        try:
            return int(name[-1])
        except (IndexError, ValueError):
            self._logger.warning("Dropping packet without sequence number %s", name)
            return None

    def _request_name(self, seq: int) -> Name:
        name = self._prefix
        max_length = self._configuration.rand_component_len_max
        if max_length:
            if max_length >= len(self._rand_component):
                self._rand_component = "".join(
                    self._rng.choice(string.ascii_lowercase)
                    for _ in range(max_length + 1)
                )
            name = name.append(self._rand_component[: self._rng.randint(1, max_length)])
        return name.append(seq)
