from unittest import TestCase

from ndncc.rtt import K_GRANULARITY, RttEstimator


class RttEstimatorTest(TestCase):
    def setUp(self):
        self.rtt = RttEstimator(gain=0.1, initial_rtt=1.0, min_rto=0.2)

    def test_initial_timeout(self):
        self.assertEqual(self.rtt.current_timeout(), 1.0)
        self.assertEqual(RttEstimator(initial_rtt=0.05).current_timeout(), 0.2)

    def test_first_sample(self):
        self.rtt.on_sent(0, now=0.0)
        self.assertEqual(self.rtt.on_acked(0, now=0.4), 0.4)
        self.assertEqual(self.rtt.sample_count, 1)
        self.assertEqual(self.rtt.latest_rtt, 0.4)
        self.assertEqual(self.rtt.smoothed_rtt, 0.4)
        self.assertEqual(self.rtt.rtt_variance, 0.2)
        self.assertAlmostEqual(self.rtt.current_timeout(), 1.2)

    def test_smoothing(self):
        self.rtt.on_sent(0, now=0.0)
        self.rtt.on_acked(0, now=0.4)
        self.rtt.on_sent(1, now=1.0)
        self.rtt.on_acked(1, now=1.5)

        # error = 0.1
        self.assertAlmostEqual(self.rtt.smoothed_rtt, 0.41)
        self.assertAlmostEqual(self.rtt.rtt_variance, 0.19)
        self.assertAlmostEqual(self.rtt.current_timeout(), 0.41 + 4 * 0.19)

    def test_timeout_floor(self):
        for seq in range(50):
            self.rtt.on_sent(seq, now=float(seq))
            self.rtt.on_acked(seq, now=seq + 0.01)
        self.assertEqual(self.rtt.current_timeout(), 0.2)
        self.assertGreater(K_GRANULARITY, 0)

    def test_retransmission_not_sampled(self):
        self.rtt.on_sent(0, now=0.0)
        self.rtt.on_sent(0, now=1.0)
        self.assertIsNone(self.rtt.on_acked(0, now=1.1))
        self.assertEqual(self.rtt.sample_count, 0)
        self.assertEqual(self.rtt.current_timeout(), 1.0)

    def test_not_eligible(self):
        self.rtt.on_sent(0, now=0.0, rtt_eligible=False)
        self.assertIsNone(self.rtt.on_acked(0, now=0.1))
        self.assertEqual(self.rtt.sample_count, 0)

    def test_unknown_ack(self):
        self.assertIsNone(self.rtt.on_acked(5, now=1.0))
        self.assertEqual(self.rtt.sample_count, 0)
