from unittest import TestCase

from ndncc.tracker import PendingRequestTracker

from .utils import RecordingRttEstimator


class PendingRequestTrackerTest(TestCase):
    def setUp(self):
        self.rtt = RecordingRttEstimator()
        self.tracker = PendingRequestTracker(rtt=self.rtt)

    def test_round_trip(self):
        self.tracker.record(7, now=1.0)
        self.assertIn(7, self.tracker)
        self.assertEqual(len(self.tracker), 1)
        self.assertEqual(self.tracker.get_retx_count(7), 1)
        self.assertEqual(self.tracker.last_sent_time(7), 1.0)

        delays = self.tracker.acknowledge(7, now=1.25)
        self.assertEqual(delays.seq, 7)
        self.assertEqual(delays.last_delay, 0.25)
        self.assertEqual(delays.full_delay, 0.25)
        self.assertEqual(delays.retx_count, 1)
        self.assertEqual(delays.rtt_sample, 0.25)

        self.assertNotIn(7, self.tracker)
        self.assertEqual(len(self.tracker), 0)
        self.assertEqual(self.tracker.get_retx_count(7), 0)
        self.assertEqual(self.rtt.sent, [(7, 1.0, True)])
        self.assertEqual(self.rtt.acked, [(7, 1.25)])

    def test_timeout_then_retransmit(self):
        self.tracker.record(3, now=0.0)
        self.assertEqual(list(self.tracker.scan_expired(now=0.5, rto=1.0)), [])
        self.assertEqual(list(self.tracker.scan_expired(now=1.0, rto=1.0)), [3])
        self.assertNotIn(3, self.tracker)

        self.tracker.mark_not_rtt_eligible(3, now=1.0)
        self.tracker.record(3, now=1.0)
        self.assertIn(3, self.tracker)
        self.assertEqual(self.tracker.get_retx_count(3), 2)

        delays = self.tracker.acknowledge(3, now=1.5)
        self.assertEqual(delays.last_delay, 0.5)
        self.assertEqual(delays.full_delay, 1.5)
        self.assertEqual(delays.retx_count, 2)
        self.assertIsNone(delays.rtt_sample)
        self.assertEqual(self.rtt.sample_count, 0)
        self.assertEqual(
            self.rtt.sent, [(3, 0.0, True), (3, 1.0, False), (3, 1.0, False)]
        )

    def test_timeout_yielded_once(self):
        self.tracker.record(3, now=0.0)
        self.assertEqual(list(self.tracker.scan_expired(now=0.2, rto=0.1)), [3])

        # not yielded again until it is sent again
        self.assertEqual(list(self.tracker.scan_expired(now=0.3, rto=0.1)), [])
        self.assertEqual(list(self.tracker.scan_expired(now=5.0, rto=0.1)), [])

        self.tracker.record(3, now=5.0)
        self.assertEqual(list(self.tracker.scan_expired(now=5.2, rto=0.1)), [3])

    def test_scan_order(self):
        self.tracker.record(5, now=0.0)
        self.tracker.record(1, now=0.1)
        self.tracker.record(9, now=0.2)
        # a retransmission moves to the back
        self.tracker.record(5, now=0.3)
        self.tracker.record(4, now=2.0)

        self.assertEqual(list(self.tracker.scan_expired(now=1.25, rto=1.0)), [1, 9, 5])
        self.assertEqual(len(self.tracker), 1)
        self.assertIn(4, self.tracker)

    def test_scan_stops_at_first_unexpired(self):
        self.tracker.record(1, now=0.0)
        self.tracker.record(2, now=0.9)
        expired = self.tracker.scan_expired(now=1.0, rto=1.0)
        self.assertEqual(next(expired), 1)
        self.assertEqual(list(expired), [])
        self.assertIn(2, self.tracker)

    def test_no_duplicates(self):
        for now in (0.0, 0.5, 1.0):
            self.tracker.record(1, now=now)
        self.assertEqual(len(self.tracker), 1)
        self.assertEqual(self.tracker.get_retx_count(1), 3)

    def test_discard(self):
        self.tracker.record(2, now=0.0)
        self.tracker.discard(2)
        self.assertNotIn(2, self.tracker)
        self.assertEqual(list(self.tracker.scan_expired(now=10.0, rto=1.0)), [])

        # delay bookkeeping is kept for the reply to the retransmission
        self.tracker.record(2, now=1.0)
        delays = self.tracker.acknowledge(2, now=1.5)
        self.assertEqual(delays.full_delay, 1.5)
        self.assertEqual(delays.retx_count, 2)

    def test_remove(self):
        self.tracker.record(2, now=0.0)
        self.tracker.remove(2)
        self.assertNotIn(2, self.tracker)
        self.assertIsNone(self.tracker.last_sent_time(2))
        self.assertEqual(self.rtt.acked, [])

    def test_acknowledge_unknown(self):
        delays = self.tracker.acknowledge(42, now=1.0)
        self.assertIsNone(delays.last_delay)
        self.assertIsNone(delays.full_delay)
        self.assertEqual(delays.retx_count, 0)
        self.assertIsNone(delays.rtt_sample)
