import unittest
from datetime import timezone

from barge_dispatch.errors import ConfigurationError, InputValidationError
from barge_dispatch.models import Barge, BargeState, Location, PriorityRuleSet, ProductTank
from barge_dispatch.validation import validate_input

from tests.fixtures import (
    ANCHORAGE_A,
    MGO,
    TERMINAL,
    VLSFO,
    make_barge,
    make_request,
    make_snapshot,
    make_state,
)


def valid_snapshot(**overrides):
    parts = {
        "barges": [make_barge("c", VLSFO=1000, MGO=400)],
        "states": [make_state("c", ANCHORAGE_A, VLSFO=750, MGO=300)],
        "requests": [make_request("r1", {"VLSFO": 100, "MGO": 50})],
    }
    parts.update(overrides)
    return make_snapshot(parts["barges"], parts["states"], parts["requests"])


class TestValidateInput(unittest.TestCase):
    def test_valid_snapshot_passes(self):
        validate_input(valid_snapshot())

    def test_missing_terminal(self):
        snapshot = valid_snapshot()
        del snapshot.locations[TERMINAL.location_id]
        with self.assertRaises(InputValidationError):
            validate_input(snapshot)

    def test_bad_coordinates_are_configuration_errors(self):
        snapshot = valid_snapshot()
        snapshot.locations["loc-x"] = Location("loc-x", "Bad", 95.0, 0.0)
        with self.assertRaises(ConfigurationError):
            validate_input(snapshot)

    def test_non_positive_speed(self):
        barge = Barge("c", "C", 0, (ProductTank(VLSFO, 1000), ProductTank(MGO, 400)))
        with self.assertRaises(ConfigurationError):
            validate_input(valid_snapshot(barges=[barge]))

    def test_duplicate_tank(self):
        barge = Barge("c", "C", 10, (ProductTank(VLSFO, 1000), ProductTank(VLSFO, 400)))
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(barges=[barge], states=[make_state("c", ANCHORAGE_A, VLSFO=100)]))

    def test_volume_above_capacity(self):
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(states=[make_state("c", ANCHORAGE_A, VLSFO=1200, MGO=300)]))

    def test_negative_volume(self):
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(states=[make_state("c", ANCHORAGE_A, VLSFO=-1, MGO=300)]))

    def test_missing_state(self):
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(states=[]))

    def test_state_for_unknown_barge(self):
        states = [make_state("c", ANCHORAGE_A, VLSFO=1, MGO=1), make_state("ghost", ANCHORAGE_A, MGO=1)]
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(states=states))

    def test_barge_at_unknown_location(self):
        state = BargeState("c", {VLSFO: 100.0}, "loc-missing")
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(states=[state]))

    def test_non_positive_quantity(self):
        for quantity in (0, -10):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InputValidationError):
                    validate_input(valid_snapshot(requests=[make_request("r1", {"MGO": quantity})]))

    def test_inverted_window(self):
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(requests=[make_request("r1", {"MGO": 50}, window=(10, 5))]))

    def test_request_at_unknown_location(self):
        ghost = Location("loc-ghost", "Ghost", 1.0, 1.0)
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(requests=[make_request("r1", {"MGO": 50}, location=ghost)]))

    def test_request_at_terminal(self):
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(requests=[make_request("r1", {"MGO": 50}, location=TERMINAL)]))

    def test_duplicate_request_ids(self):
        requests = [make_request("r1", {"MGO": 50}), make_request("r1", {"VLSFO": 50})]
        with self.assertRaises(InputValidationError):
            validate_input(valid_snapshot(requests=requests))

    def test_mixed_timezones(self):
        request = make_request("r1", {"MGO": 50})
        snapshot = valid_snapshot(requests=[request])
        snapshot.start_time = snapshot.start_time.replace(tzinfo=timezone.utc)
        with self.assertRaises(InputValidationError):
            validate_input(snapshot)

    def test_unknown_priority_rule(self):
        snapshot = valid_snapshot()
        snapshot.priorities = PriorityRuleSet(rules=("shortest_hose",))
        with self.assertRaises(InputValidationError):
            validate_input(snapshot)

    def test_configuration_error_is_an_input_error(self):
        self.assertTrue(issubclass(ConfigurationError, InputValidationError))
        self.assertTrue(issubclass(InputValidationError, ValueError))


if __name__ == "__main__":
    unittest.main()
