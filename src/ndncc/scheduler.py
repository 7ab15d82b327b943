from typing import Any, Callable, Optional

import simpy


class TimerHandle:
    """
    A callback scheduled on a :class:`Scheduler`.
    """

    def __init__(
        self, *, when: float, callback: Callable[..., None], args: tuple
    ) -> None:
        self.when = when
        self._args = args
        self._callback: Optional[Callable[..., None]] = callback

    @property
    def pending(self) -> bool:
        return self._callback is not None

    def cancel(self) -> None:
        self._callback = None

    def _fire(self, event: simpy.Event) -> None:
        callback = self._callback
        if callback is not None:
            self._callback = None
            callback(*self._args)


class Scheduler:
    """
    Single-threaded discrete event scheduler backed by a simpy environment.

    Callbacks run in simulated time order; callbacks due at the same time run
    in the order they were scheduled.
    """

    def __init__(self, env: Optional[simpy.Environment] = None) -> None:
        self._env = env if env is not None else simpy.Environment()

    @property
    def env(self) -> simpy.Environment:
        return self._env

    def cancel(self, handle: Optional[TimerHandle]) -> None:
        if handle is not None:
            handle.cancel()

    def now(self) -> float:
        return self._env.now

    def run(self, until: Optional[float] = None) -> None:
        self._env.run(until=until)

    def schedule(
        self, delay: float, callback: Callable[..., None], *args: Any
    ) -> TimerHandle:
        handle = TimerHandle(when=self._env.now + delay, callback=callback, args=args)
        self._env.timeout(delay).callbacks.append(handle._fire)
        return handle
