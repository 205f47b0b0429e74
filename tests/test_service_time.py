import unittest
from unittest import mock

from barge_dispatch import config, service_time
from barge_dispatch.models import Delivery, RechargeVisit

from tests.fixtures import MGO, START, VLSFO, hours, make_barge, make_state


class TestDurations(unittest.TestCase):
    def test_delivery_duration(self):
        self.assertAlmostEqual(service_time.delivery_duration_hours(300), 4.5)
        self.assertAlmostEqual(service_time.delivery_duration_hours(200), 1.5 + 200 / 300 + 2.0)

    def test_recharge_duration(self):
        self.assertAlmostEqual(service_time.recharge_duration_hours(800, 50), 5.375)
        # Full tank still pays both buffers
        self.assertAlmostEqual(service_time.recharge_duration_hours(800, 800), 3.5)

    def test_durations_follow_config(self):
        with mock.patch.object(config, "PUMP_RATE_PER_HOUR", 600.0):
            self.assertAlmostEqual(service_time.delivery_duration_hours(300), 4.0)

    def test_event_end(self):
        delivery = Delivery("r1", "MV R1", "b", MGO, 300, START, "loc-a")
        recharge = RechargeVisit("b", MGO, START, "loc-term", refill_volume=750)
        self.assertEqual(service_time.event_end(delivery), hours(4.5))
        self.assertEqual(service_time.event_end(recharge), hours(5.375))


class TestTerminalRelease(unittest.TestCase):
    def test_single_tank(self):
        barge = make_barge("b", MGO=800)
        state = make_state("b", MGO=50)
        self.assertEqual(service_time.terminal_release_time(barge, state, START), hours(3.875))

    def test_hybrid_waits_for_slowest_tank(self):
        barge = make_barge("c", VLSFO=1000, MGO=400)
        state = make_state("c", VLSFO=600, MGO=0)
        # VLSFO needs 1.0 h, MGO needs 1.0 h; both plus the final buffer
        self.assertAlmostEqual(service_time.pier_occupied_hours(barge, state), 3.0)

        state = make_state("c", VLSFO=200, MGO=400)
        self.assertAlmostEqual(service_time.pier_occupied_hours(barge, state), 4.0)

    def test_full_barge_only_pays_final_buffer(self):
        barge = make_barge("a", VLSFO=2000)
        state = make_state("a", VLSFO=2000)
        self.assertEqual(service_time.terminal_release_time(barge, state, START), hours(2.0))


if __name__ == "__main__":
    unittest.main()
