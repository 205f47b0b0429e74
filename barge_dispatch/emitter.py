# barge-dispatch/barge_dispatch/emitter.py
"""
Schedule emitter: validation, serialization and commit.

- emit(): replays a schedule against the snapshot, checks every scheduling
  invariant and returns the events sorted by scheduled start
- to_records() / schedule_to_dataframe(): caller-facing serialization
- commit_schedule(): applies an accepted schedule to the caller-owned barge
  states and operation history, all-or-nothing
"""

from __future__ import annotations

import copy
import dataclasses
import logging
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from . import config, service_time, utils
from .errors import CommitError, ScheduleIntegrityError
from .models import (
    Barge,
    BargeState,
    Delivery,
    HistoryRecord,
    RechargeVisit,
    ScheduleEvent,
    SchedulingInput,
)

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M"


def sort_events(events: Iterable[ScheduleEvent]) -> List[ScheduleEvent]:
    """Stable sort by scheduled start; ties keep emission order."""
    return sorted(events, key=lambda e: e.scheduled_start)


def validate_schedule(events: Iterable[ScheduleEvent], snapshot: SchedulingInput) -> List[ScheduleEvent]:
    """
    Replay a schedule against its snapshot and check every invariant.

    Checks:
    - Per barge: each event starts no earlier than the previous one's end
      plus the travel time between their locations (first event: from the
      barge's initial location once it is released)
    - Per barge and product: volumes stay within [0, capacity]
    - Per ship: deliveries never overlap
    - Per delivery: scheduled start inside the request's window

    Returns:
        The sorted events, with recharge refill volumes taken from the replay

    Raises:
        ScheduleIntegrityError: On the first violation found
    """
    ordered = sort_events(events)
    fleet: Dict[str, Barge] = {b.barge_id: b for b in snapshot.barges}
    requests = {r.request_id: r for r in snapshot.requests}

    by_barge: Dict[str, List[int]] = defaultdict(list)
    for index, event in enumerate(ordered):
        if event.barge_id not in fleet:
            raise ScheduleIntegrityError(f"Event {event!r} references unknown barge")
        if event.location_id not in snapshot.locations:
            raise ScheduleIntegrityError(f"Event {event!r} references unknown location")
        by_barge[event.barge_id].append(index)

    for barge_id, indices in by_barge.items():
        barge = fleet[barge_id]
        state = snapshot.states[barge_id]
        volumes = {tank.product: state.volume(tank.product) for tank in barge.tanks}
        here = snapshot.locations[state.location_id]
        free_at = snapshot.start_time
        if here.is_terminal:
            free_at = service_time.terminal_release_time(barge, state, snapshot.start_time)

        for index in indices:
            event = ordered[index]
            if not barge.carries(event.product):
                raise ScheduleIntegrityError(f"Barge {barge_id} does not carry {event.product.value}")

            there = snapshot.locations[event.location_id]
            earliest = utils.add_hours(free_at, utils.get_travel_hours(here, there, barge.speed_knots))
            if event.scheduled_start < earliest:
                raise ScheduleIntegrityError(
                    f"Barge {barge_id} cannot start {event!r} before {earliest.isoformat()}"
                )

            capacity = barge.capacity(event.product)
            if isinstance(event, RechargeVisit):
                if not there.is_terminal:
                    raise ScheduleIntegrityError(f"Recharge away from the TERMINAL: {event!r}")
                duration = service_time.recharge_duration_hours(capacity, volumes[event.product])
                ordered[index] = dataclasses.replace(event, refill_volume=capacity - volumes[event.product])
                volumes[event.product] = capacity
            else:
                if volumes[event.product] < event.quantity:
                    raise ScheduleIntegrityError(
                        f"Barge {barge_id} has {volumes[event.product]:g} {event.product.value}, "
                        f"cannot deliver {event.quantity:g}"
                    )
                duration = service_time.delivery_duration_hours(event.quantity)
                volumes[event.product] -= event.quantity

            if not 0 <= volumes[event.product] <= capacity:
                raise ScheduleIntegrityError(f"Barge {barge_id} {event.product.value} volume out of bounds")

            free_at = utils.add_hours(event.scheduled_start, duration)
            here = there

    ship_free_at: Dict[str, datetime] = {}
    for event in ordered:
        if not isinstance(event, Delivery):
            continue
        request = requests.get(event.request_id)
        if request is None:
            raise ScheduleIntegrityError(f"Delivery {event!r} references unknown request")
        if not request.window_start <= event.scheduled_start <= request.window_end:
            raise ScheduleIntegrityError(f"Delivery {event!r} starts outside its window")

        previous_end = ship_free_at.get(event.ship_name)
        if previous_end is not None and event.scheduled_start < previous_end:
            raise ScheduleIntegrityError(f"Ship {event.ship_name} double-booked at {event.scheduled_start}")
        ship_free_at[event.ship_name] = service_time.event_end(event)

    return ordered


def emit(events: Iterable[ScheduleEvent], snapshot: SchedulingInput) -> List[ScheduleEvent]:
    """Validate and sort a schedule before handing it to the caller."""
    ordered = validate_schedule(events, snapshot)
    logger.debug("Emitting %d validated events", len(ordered))
    return ordered


def to_record(event: ScheduleEvent, snapshot: Optional[SchedulingInput] = None) -> Dict[str, Any]:
    """
    Serialize one event for the caller.

    Recharge visits use the TERMINAL sentinel as ship and location and a
    quantity of 0.
    """
    barge_name = event.barge_id
    if snapshot is not None:
        barge_name = next((b.name for b in snapshot.barges if b.barge_id == event.barge_id), event.barge_id)

    if isinstance(event, RechargeVisit):
        ship_name = config.TERMINAL_NAME
        location_id = config.TERMINAL_NAME
        quantity = 0
    else:
        ship_name = event.ship_name
        location_id = event.location_id
        quantity = event.quantity

    return {
        "ship_name": ship_name,
        "barge_id": event.barge_id,
        "barge_name": barge_name,
        "scheduled_time": event.scheduled_start.strftime(TIMESTAMP_FORMAT),
        "product": event.product.value,
        "quantity": quantity,
        "location_id": location_id,
    }


def to_records(events: Iterable[ScheduleEvent], snapshot: Optional[SchedulingInput] = None) -> List[Dict[str, Any]]:
    return [to_record(e, snapshot) for e in events]


def schedule_to_dataframe(events: Iterable[ScheduleEvent], snapshot: Optional[SchedulingInput] = None) -> pd.DataFrame:
    """
    Tabulate a schedule, one row per event, with end times and durations.
    """
    rows = []
    for event in events:
        row = to_record(event, snapshot)
        duration = service_time.event_duration_hours(event)
        row["duration_h"] = round(duration, 2)
        row["end_time"] = service_time.event_end(event).strftime(TIMESTAMP_FORMAT)
        if snapshot is not None and event.location_id in snapshot.locations:
            row["location"] = snapshot.locations[event.location_id].name
        rows.append(row)

    columns = ["scheduled_time", "end_time", "barge_name", "ship_name", "product",
               "quantity", "duration_h", "location_id", "location", "barge_id"]
    df = pd.DataFrame(rows)
    if df.empty:
        return pd.DataFrame(columns=columns)
    return df.reindex(columns=[c for c in columns if c in df.columns])


def commit_schedule(
    events: Iterable[ScheduleEvent],
    barges: Iterable[Barge],
    states: Dict[str, BargeState],
    history: List[HistoryRecord],
) -> List[HistoryRecord]:
    """
    Apply an accepted schedule to the caller-owned state store.

    Deliveries decrement the barge volume (clamped at 0) and move the barge
    to the ship's location; recharge visits refill the tank and move it to
    the TERMINAL. Each delivery appends a history record. The history is
    kept newest-first.

    All changes are staged on a copy first, so either every event is applied
    or nothing is. Committing the same schedule twice applies it twice.

    Returns:
        The history records appended

    Raises:
        CommitError: If an event references an unknown barge, state or product
    """
    fleet = {b.barge_id: b for b in barges}
    staged = copy.deepcopy(states)
    new_records: List[HistoryRecord] = []

    ordered = sort_events(events)
    for event in ordered:
        barge = fleet.get(event.barge_id)
        state = staged.get(event.barge_id)
        if barge is None or state is None:
            raise CommitError(f"Unknown barge '{event.barge_id}' in schedule")
        if not barge.carries(event.product):
            raise CommitError(f"Barge {barge.barge_id} does not carry {event.product.value}")

        if isinstance(event, RechargeVisit):
            state.volumes[event.product] = barge.capacity(event.product)
        else:
            state.volumes[event.product] = max(0.0, state.volume(event.product) - event.quantity)
            new_records.append(HistoryRecord(
                ship_name=event.ship_name,
                barge_id=event.barge_id,
                product=event.product,
                quantity=event.quantity,
                completion_time=event.scheduled_start,
            ))
        state.location_id = event.location_id

    for barge_id, staged_state in staged.items():
        states[barge_id].volumes = staged_state.volumes
        states[barge_id].location_id = staged_state.location_id
    history.extend(new_records)
    history.sort(key=lambda r: r.completion_time, reverse=True)

    logger.info("Committed %d events, %d history records", len(ordered), len(new_records))
    return new_records
