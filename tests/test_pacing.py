from unittest import TestCase

from ndncc.consumer import (
    AimdPacing,
    ConsumerConfiguration,
    RatePacing,
    WindowPacing,
    create_pacing_policy,
)
from ndncc.exceptions import ConfigurationError


def next_delay(pacing, send_pending=False):
    return pacing.next_send_delay(now=0.0, rto=1.0, send_pending=send_pending)


class PacingPolicyRegistryTest(TestCase):
    def test_create(self):
        configuration = ConsumerConfiguration()
        self.assertIsInstance(
            create_pacing_policy("window", configuration=configuration), WindowPacing
        )
        self.assertIsInstance(
            create_pacing_policy("aimd", configuration=configuration), AimdPacing
        )
        self.assertIsInstance(
            create_pacing_policy("rate", configuration=configuration), RatePacing
        )

    def test_create_unknown(self):
        with self.assertRaises(ConfigurationError) as cm:
            create_pacing_policy("bogus", configuration=ConsumerConfiguration())
        self.assertEqual(str(cm.exception), "Unknown pacing policy: bogus")


class WindowPacingTest(TestCase):
    def setUp(self):
        self.pacing = WindowPacing(configuration=ConsumerConfiguration(window=2))

    def test_send_while_window_open(self):
        self.assertEqual(next_delay(self.pacing), 0.0)
        self.pacing.on_interest_sent(seq=0, now=0.0)
        self.assertEqual(next_delay(self.pacing), 0.0)
        self.pacing.on_interest_sent(seq=1, now=0.0)

        # window full
        self.assertIsNone(next_delay(self.pacing))
        self.assertEqual(self.pacing.get_log_data(), {"window": 2, "in_flight": 2})

    def test_content_object(self):
        self.pacing.on_interest_sent(seq=0, now=0.0)
        self.pacing.on_content_object(seq=0, now=0.1, sent_time=0.0)
        self.assertEqual(self.pacing.window, 3)
        self.assertEqual(self.pacing.in_flight, 0)

    def test_nack_and_zero_window(self):
        self.pacing.on_interest_sent(seq=0, now=0.0)
        self.pacing.on_nack(seq=0, now=0.1, sent_time=0.0)
        self.pacing.on_nack(seq=0, now=0.2, sent_time=0.0)
        self.pacing.on_nack(seq=0, now=0.3, sent_time=0.0)
        self.assertEqual(self.pacing.window, 0)
        self.assertEqual(self.pacing.in_flight, 0)

        # retry later, bounded by the retransmission timeout
        self.assertEqual(
            self.pacing.next_send_delay(now=0.3, rto=1.0, send_pending=False), 0.5
        )
        self.assertEqual(
            self.pacing.next_send_delay(now=0.3, rto=0.2, send_pending=False), 0.2
        )
        self.assertIsNone(
            self.pacing.next_send_delay(now=0.3, rto=1.0, send_pending=True)
        )

    def test_timeout_resets_window(self):
        self.pacing.window = 10
        self.pacing.on_interest_sent(seq=0, now=0.0)
        self.pacing.on_timeout(seq=0, now=1.0, sent_time=0.0)
        self.assertEqual(self.pacing.window, 2)
        self.assertEqual(self.pacing.in_flight, 0)

    def test_timeout_keeps_window(self):
        pacing = WindowPacing(
            configuration=ConsumerConfiguration(
                window=2, set_initial_window_on_timeout=False
            )
        )
        pacing.window = 10
        pacing.on_timeout(seq=0, now=1.0, sent_time=0.0)
        self.assertEqual(pacing.window, 10)


class AimdPacingTest(TestCase):
    def setUp(self):
        self.pacing = AimdPacing(configuration=ConsumerConfiguration(window=1))

    def test_slow_start(self):
        for seq in range(4):
            self.pacing.on_interest_sent(seq=seq, now=0.0)
            self.pacing.on_content_object(seq=seq, now=0.1, sent_time=0.0)
        self.assertEqual(self.pacing.window, 5)
        self.assertIsNone(self.pacing.ssthresh)

    def test_multiplicative_decrease(self):
        self.pacing.window = 16
        self.pacing.on_nack(seq=0, now=1.0, sent_time=0.5)
        self.assertEqual(self.pacing.window, 8)
        self.assertEqual(self.pacing.ssthresh, 8)

        # same recovery period
        self.pacing.on_timeout(seq=1, now=1.1, sent_time=0.6)
        self.assertEqual(self.pacing.window, 8)

        # replies to interests sent before the decrease do not grow the window
        self.pacing.on_content_object(seq=2, now=1.2, sent_time=0.7)
        self.assertEqual(self.pacing.window, 8)

        # congestion avoidance
        self.pacing.on_content_object(seq=3, now=1.3, sent_time=1.05)
        self.assertEqual(self.pacing.window, 8.125)

        # new recovery period
        self.pacing.on_timeout(seq=4, now=2.0, sent_time=1.5)
        self.assertEqual(self.pacing.window, 4.0625)
        self.assertEqual(
            self.pacing.get_log_data(),
            {"window": 4.0625, "in_flight": 0, "ssthresh": 4.0625},
        )

    def test_minimum_window(self):
        self.pacing.on_nack(seq=0, now=1.0, sent_time=0.5)
        self.assertEqual(self.pacing.window, 1)


class RatePacingTest(TestCase):
    def test_schedule(self):
        pacing = RatePacing(configuration=ConsumerConfiguration(frequency=4.0))
        self.assertEqual(next_delay(pacing), 0.0)
        self.assertEqual(next_delay(pacing), 0.25)
        self.assertIsNone(next_delay(pacing, send_pending=True))

        # hooks do not change the rate
        pacing.on_nack(seq=0, now=0.1, sent_time=0.0)
        pacing.on_timeout(seq=0, now=0.1, sent_time=0.0)
        pacing.on_content_object(seq=0, now=0.1, sent_time=0.0)
        self.assertEqual(pacing.get_log_data(), {"frequency": 4.0})

    def test_invalid_frequency(self):
        with self.assertRaises(ConfigurationError):
            RatePacing(configuration=ConsumerConfiguration(frequency=0))
