import json
import os
import re
from collections import deque
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional

from .scheduler import Scheduler, TimerHandle

TRACE_FORMAT_VERSION = "0.1"


class SimulationLoggerTrace:
    """
    A trace of the events observed by one simulated entity, such as a
    consumer or a forwarding node.

    Event times are simulated times, expressed in milliseconds.
    """

    def __init__(self, *, name: str, kind: str, clock: Callable[[], float]) -> None:
        self._clock = clock
        self._events: Deque[Dict[str, Any]] = deque()
        self._vantage_point = {"name": name, "type": kind}

    @property
    def name(self) -> str:
        return self._vantage_point["name"]

    def encode_time(self, seconds: float) -> float:
        """
        Convert a time to milliseconds.
        """
        return seconds * 1000

    def log_event(self, *, category: str, event: str, data: Dict) -> None:
        self._events.append(
            {
                "data": data,
                "name": category + ":" + event,
                "time": self.encode_time(self._clock()),
            }
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the trace as a dictionary which can be written as JSON.
        """
        return {
            "events": list(self._events),
            "vantage_point": self._vantage_point,
        }


class SimulationLogger:
    """
    A simulation event logger which stores traces in memory.
    """

    def __init__(self) -> None:
        self._traces: List[SimulationLoggerTrace] = []

    def start_trace(
        self, *, name: str, kind: str, clock: Callable[[], float]
    ) -> SimulationLoggerTrace:
        trace = SimulationLoggerTrace(name=name, kind=kind, clock=clock)
        self._traces.append(trace)
        return trace

    def end_trace(self, trace: SimulationLoggerTrace) -> None:
        assert trace in self._traces, (
            "SimulationLoggerTrace does not belong to SimulationLogger"
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the traces as a dictionary which can be written as JSON.
        """
        return {
            "trace_format": "JSON",
            "trace_version": TRACE_FORMAT_VERSION,
            "traces": [trace.to_dict() for trace in self._traces],
        }


class SimulationFileLogger(SimulationLogger):
    """
    A simulation event logger which writes one trace per file.
    """

    def __init__(self, path: str) -> None:
        if not os.path.isdir(path):
            raise ValueError("Trace output directory '%s' does not exist" % path)
        self.path = path
        super().__init__()

    def end_trace(self, trace: SimulationLoggerTrace) -> None:
        trace_dict = trace.to_dict()
        file_name = re.sub(r"[^A-Za-z0-9_.-]", "_", trace.name).strip("_") or "root"
        trace_path = os.path.join(self.path, file_name + ".json")
        with open(trace_path, "w") as logger_fp:
            json.dump(
                {
                    "trace_format": "JSON",
                    "trace_version": TRACE_FORMAT_VERSION,
                    "traces": [trace_dict],
                },
                logger_fp,
            )
        self._traces.remove(trace)


class AggregateTracer:
    """
    Periodically logs and resets the packet counters of a set of faces.

    Each face must expose a `name` and a `counters` object with `to_dict()`
    and `reset()` methods.
    """

    def __init__(
        self,
        *,
        faces: Iterable[Any],
        period: float,
        scheduler: Scheduler,
        trace: SimulationLoggerTrace,
    ) -> None:
        self.period = period
        self._faces = list(faces)
        self._handle: Optional[TimerHandle] = None
        self._scheduler = scheduler
        self._trace = trace

    def start(self) -> None:
        self._scheduler.cancel(self._handle)
        self._handle = self._scheduler.schedule(self.period, self._on_period)

    def stop(self) -> None:
        self._scheduler.cancel(self._handle)
        self._handle = None

    def _on_period(self) -> None:
        for face in self._faces:
            data = face.counters.to_dict()
            data["face"] = face.name
            data["period"] = self._trace.encode_time(self.period)
            self._trace.log_event(category="l3", event="aggregate", data=data)
            face.counters.reset()
        self._handle = self._scheduler.schedule(self.period, self._on_period)
