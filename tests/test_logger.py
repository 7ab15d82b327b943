import json
import os
import tempfile
from unittest import TestCase

from ndncc.logger import AggregateTracer, SimulationFileLogger, SimulationLogger
from ndncc.name import Name
from ndncc.packet import Interest
from ndncc.scheduler import Scheduler

from .utils import RecordingFace

SINGLE_TRACE = {
    "trace_format": "JSON",
    "trace_version": "0.1",
    "traces": [
        {
            "events": [
                {
                    "data": {"seq": 7},
                    "name": "app:timeout",
                    "time": 1500.0,
                }
            ],
            "vantage_point": {"name": "consumer/prefix1", "type": "consumer"},
        }
    ],
}


def clock():
    return 1.5


class SimulationLoggerTest(TestCase):
    def test_empty(self):
        logger = SimulationLogger()
        self.assertEqual(
            logger.to_dict(),
            {"trace_format": "JSON", "trace_version": "0.1", "traces": []},
        )

    def test_single_trace(self):
        logger = SimulationLogger()
        trace = logger.start_trace(
            name="consumer/prefix1", kind="consumer", clock=clock
        )
        self.assertEqual(trace.name, "consumer/prefix1")
        trace.log_event(category="app", event="timeout", data={"seq": 7})
        logger.end_trace(trace)
        self.assertEqual(logger.to_dict(), SINGLE_TRACE)

    def test_encode_time(self):
        trace = SimulationLogger().start_trace(name="a", kind="b", clock=clock)
        self.assertEqual(trace.encode_time(0.25), 250.0)


class SimulationFileLoggerTest(TestCase):
    def test_invalid_path(self):
        with self.assertRaises(ValueError) as cm:
            SimulationFileLogger("this_path_should_not_exist")
        self.assertEqual(
            str(cm.exception),
            "Trace output directory 'this_path_should_not_exist' does not exist",
        )

    def test_single_trace(self):
        with tempfile.TemporaryDirectory() as dirpath:
            logger = SimulationFileLogger(dirpath)
            trace = logger.start_trace(
                name="consumer/prefix1", kind="consumer", clock=clock
            )
            trace.log_event(category="app", event="timeout", data={"seq": 7})
            logger.end_trace(trace)

            filepath = os.path.join(dirpath, "consumer_prefix1.json")
            self.assertTrue(os.path.exists(filepath))

            with open(filepath, "r") as fp:
                data = json.load(fp)
            self.assertEqual(data, SINGLE_TRACE)
            self.assertEqual(logger.to_dict()["traces"], [])


class AggregateTracerTest(TestCase):
    def test_period(self):
        scheduler = Scheduler()
        trace = SimulationLogger().start_trace(
            name="aggregate", kind="network", clock=scheduler.now
        )
        face = RecordingFace("node0->node1")
        tracer = AggregateTracer(
            faces=[face], period=1.0, scheduler=scheduler, trace=trace
        )
        tracer.start()

        interest = Interest(name=Name.parse("/a/1"), nonce=1, lifetime=1.0)
        face.send_interest(interest)
        face.send_interest(interest)
        scheduler.run(until=1.5)
        self.assertEqual(face.counters.out_interests, 0)

        face.receive_interest(interest)
        scheduler.run(until=2.5)
        tracer.stop()
        scheduler.run(until=5.0)

        events = trace.to_dict()["events"]
        self.assertEqual(len(events), 2)
        self.assertEqual(events[0]["name"], "l3:aggregate")
        self.assertEqual(events[0]["time"], 1000.0)
        self.assertEqual(events[0]["data"]["face"], "node0->node1")
        self.assertEqual(events[0]["data"]["out_interests"], 2)
        self.assertEqual(events[0]["data"]["period"], 1000.0)
        self.assertEqual(events[1]["data"]["out_interests"], 0)
        self.assertEqual(events[1]["data"]["in_interests"], 1)
