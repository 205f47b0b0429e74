# barge-dispatch/barge_dispatch/planner_client.py
"""
Client for an optional remote planning service.

The remote service receives the full scenario and answers with a list of
schedule records in the same shape emitter.to_records() produces:

    {"schedule": [{"ship_name": ..., "barge_id": ..., "scheduled_time": ...,
                   "product": ..., "quantity": ..., "location_id": ...}]}

Transport failures and unusable payloads raise PlannerUnavailableError,
which callers may retry; the returned schedule is validated with the same
checks as the local engine's output before it is accepted.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from . import config
from .emitter import emit
from .errors import InputValidationError, PlannerUnavailableError
from .loaders import parse_product, scenario_to_dict
from .models import (
    Delivery,
    RechargeVisit,
    ScheduleEvent,
    ScheduleResult,
    SchedulingInput,
)
from .utils import parse_timestamp
from .validation import validate_input

logger = logging.getLogger(__name__)


def records_to_events(records: List[Dict[str, Any]], snapshot: SchedulingInput) -> List[ScheduleEvent]:
    """
    Convert remote schedule records into schedule events.

    Barges may be referenced by id or by name. Deliveries are matched to the
    confirmed request of the same ship that asks for the same product.

    Raises:
        PlannerUnavailableError: If a record is malformed or unmatched
    """
    barges = {b.barge_id: b for b in snapshot.barges}
    barges.update({b.name: b for b in snapshot.barges})
    terminal = snapshot.terminal

    events: List[ScheduleEvent] = []
    for record in records:
        if not isinstance(record, dict):
            raise PlannerUnavailableError(f"Schedule record is not an object: {record!r}")
        try:
            barge = barges[record.get("barge_id") or record["barge_name"]]
            product = parse_product(record["product"])
            start = parse_timestamp(record["scheduled_time"], "scheduled_time")
            ship_name = str(record["ship_name"])
        except (KeyError, TypeError, InputValidationError) as e:
            raise PlannerUnavailableError(f"Malformed schedule record {record!r}: {e}")

        if ship_name.upper() == config.TERMINAL_NAME:
            events.append(RechargeVisit(
                barge_id=barge.barge_id,
                product=product,
                scheduled_start=start,
                location_id=terminal.location_id,
            ))
            continue

        request = next(
            (r for r in snapshot.confirmed_requests
             if r.ship_name == ship_name and product in r.product_types),
            None,
        )
        if request is None:
            raise PlannerUnavailableError(f"Schedule record for unknown request: {record!r}")
        quantity = next(p.quantity for p in request.products if p.product == product)

        events.append(Delivery(
            request_id=request.request_id,
            ship_name=ship_name,
            barge_id=barge.barge_id,
            product=product,
            quantity=quantity,
            scheduled_start=start,
            location_id=request.location_id,
        ))
    return events


class RemotePlanner:
    """
    Delegates schedule computation to a remote service.

    Attributes:
        url: Planner endpoint
        timeout: Request timeout in seconds
    """

    def __init__(self, url: Optional[str] = None, timeout: Optional[float] = None,
                 session: Optional[requests.Session] = None) -> None:
        self.url = url or config.PLANNER_URL
        self.timeout = timeout if timeout is not None else config.PLANNER_TIMEOUT_SECONDS
        self.session = session or requests.Session()

    def plan(self, snapshot: SchedulingInput) -> ScheduleResult:
        """
        Ask the remote planner for a schedule.

        Raises:
            InputValidationError: If the snapshot is malformed (not retryable)
            PlannerUnavailableError: On timeout, HTTP/transport errors or an
                unusable response (retryable)
            ScheduleIntegrityError: If the returned schedule breaks an invariant
        """
        if not snapshot.barges or not snapshot.confirmed_requests:
            return ScheduleResult()

        validate_input(snapshot)

        try:
            response = self.session.post(self.url, json=scenario_to_dict(snapshot), timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.Timeout:
            logger.warning("Remote planner request timed out")
            raise PlannerUnavailableError(f"Remote planner timed out after {self.timeout}s")
        except requests.exceptions.RequestException as e:
            logger.warning(f"Remote planner request failed: {e}")
            raise PlannerUnavailableError(f"Remote planner request failed: {e}")
        except ValueError as e:
            logger.warning(f"Remote planner response parsing failed: {e}")
            raise PlannerUnavailableError(f"Remote planner returned invalid JSON: {e}")

        records = data.get("schedule") if isinstance(data, dict) else None
        if not isinstance(records, list):
            raise PlannerUnavailableError("Remote planner response has no 'schedule' list")

        events = emit(records_to_events(records, snapshot), snapshot)
        served = {e.request_id for e in events if isinstance(e, Delivery)}
        unscheduled = [r.request_id for r in snapshot.confirmed_requests if r.request_id not in served]
        return ScheduleResult(events=events, unscheduled=unscheduled)
