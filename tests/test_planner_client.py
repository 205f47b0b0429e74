import unittest
from unittest import mock

import requests

from barge_dispatch.errors import PlannerUnavailableError, ScheduleIntegrityError
from barge_dispatch.models import Delivery, RechargeVisit
from barge_dispatch.planner_client import RemotePlanner, records_to_events

from tests.fixtures import (
    ANCHORAGE_A,
    MGO,
    TERMINAL,
    hours,
    make_barge,
    make_request,
    make_snapshot,
    make_state,
)


def low_barge_snapshot():
    return make_snapshot(
        [make_barge("b", MGO=800)],
        [make_state("b", TERMINAL, MGO=50)],
        [make_request("r1", {"MGO": 200}, window=(3, 24))],
    )


GOOD_RECORDS = [
    {"ship_name": "TERMINAL", "barge_id": "b", "scheduled_time": "2025-03-01T11:52:30",
     "product": "MGO", "quantity": 0, "location_id": "TERMINAL"},
    {"ship_name": "MV R1", "barge_name": "B", "scheduled_time": "2025-03-01T20:15",
     "product": "MGO", "quantity": 200, "location_id": "loc-a"},
]


def session_returning(payload=None, side_effect=None):
    session = mock.Mock(spec=requests.Session)
    response = mock.Mock()
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    session.post.return_value = response
    if side_effect is not None:
        session.post.side_effect = side_effect
    return session


class TestRecordsToEvents(unittest.TestCase):
    def test_converts_records(self):
        recharge, served = records_to_events(GOOD_RECORDS, low_barge_snapshot())

        self.assertIsInstance(recharge, RechargeVisit)
        self.assertEqual(recharge.location_id, TERMINAL.location_id)
        self.assertIsInstance(served, Delivery)
        self.assertEqual((served.request_id, served.barge_id, served.quantity), ("r1", "b", 200))
        self.assertEqual(served.location_id, ANCHORAGE_A.location_id)

    def test_unknown_request(self):
        records = [dict(GOOD_RECORDS[1], ship_name="MV Nobody")]
        with self.assertRaises(PlannerUnavailableError):
            records_to_events(records, low_barge_snapshot())

    def test_malformed_record(self):
        records = [{"ship_name": "MV R1", "barge_id": "b", "product": "MGO"}]
        with self.assertRaises(PlannerUnavailableError):
            records_to_events(records, low_barge_snapshot())


class TestRemotePlanner(unittest.TestCase):
    def test_valid_response(self):
        session = session_returning({"schedule": GOOD_RECORDS})
        planner = RemotePlanner(url="http://planner.test/schedule", timeout=5, session=session)

        result = planner.plan(low_barge_snapshot())

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], "http://planner.test/schedule")
        self.assertEqual(kwargs["timeout"], 5)
        self.assertEqual(kwargs["json"]["requests"][0]["id"], "r1")

        self.assertEqual(len(result.events), 2)
        self.assertEqual(result.recharges[0].refill_volume, 750)
        self.assertEqual(result.deliveries[0].scheduled_start, hours(12.25))
        self.assertEqual(result.unscheduled, [])

    def test_timeout_is_retryable(self):
        planner = RemotePlanner(session=session_returning(side_effect=requests.exceptions.Timeout()))
        with self.assertRaises(PlannerUnavailableError) as ctx:
            planner.plan(low_barge_snapshot())
        self.assertTrue(ctx.exception.retryable)

    def test_http_error(self):
        session = session_returning({})
        session.post.return_value.raise_for_status.side_effect = requests.exceptions.HTTPError("503")
        with self.assertRaises(PlannerUnavailableError):
            RemotePlanner(session=session).plan(low_barge_snapshot())

    def test_invalid_json(self):
        session = session_returning()
        session.post.return_value.json.side_effect = ValueError("Expecting value")
        with self.assertRaises(PlannerUnavailableError):
            RemotePlanner(session=session).plan(low_barge_snapshot())

    def test_non_object_record(self):
        session = session_returning({"schedule": ["oops"]})
        with self.assertRaises(PlannerUnavailableError) as ctx:
            RemotePlanner(session=session).plan(low_barge_snapshot())
        self.assertTrue(ctx.exception.retryable)

    def test_missing_schedule(self):
        with self.assertRaises(PlannerUnavailableError):
            RemotePlanner(session=session_returning({"status": "ok"})).plan(low_barge_snapshot())

    def test_invalid_remote_schedule_is_rejected(self):
        records = [dict(GOOD_RECORDS[1], scheduled_time="2025-03-01T09:00")]
        with self.assertRaises(ScheduleIntegrityError):
            RemotePlanner(session=session_returning({"schedule": records})).plan(low_barge_snapshot())

    def test_unserved_requests_reported(self):
        result = RemotePlanner(session=session_returning({"schedule": []})).plan(low_barge_snapshot())
        self.assertEqual(result.events, [])
        self.assertEqual(result.unscheduled, ["r1"])

    def test_nothing_to_plan_skips_network(self):
        session = session_returning({"schedule": []})
        RemotePlanner(session=session).plan(make_snapshot([], [], []))
        session.post.assert_not_called()


if __name__ == "__main__":
    unittest.main()
