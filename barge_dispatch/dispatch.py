# barge-dispatch/barge_dispatch/dispatch.py
"""
Dispatch Engine for barge refueling operations.

This module implements a greedy, priority-ordered constructive planner that
turns a snapshot of fleet state and refueling requests into a time-ordered
schedule of deliveries and terminal recharges.

Main loop (repeated while requests are pending):

1. **Rank**: Re-rank the pending requests and take the top one.

2. **Hybrid-preferred assignment**: Look for one barge carrying every product
   the ship needs with enough volume on board for each. Each candidate is
   simulated forward (travel, wait for the window) and the barge whose
   delivery can start earliest wins.

3. **Split fallback**: For multi-product requests no loaded barge can serve
   alone, plan each product on its own barge, recharging at the TERMINAL
   where a tank is short. The second product may only start once the first
   one's final buffer has ended at the ship.

4. **Recharge-first assignment**: Single-product requests, and multi-product
   requests the split cannot serve, retry step 2 allowing the barge to
   recharge before sailing.

5. **Unscheduled**: If nothing works inside the window, the request is left
   out of the schedule. This is not an error.

The planner guarantees constraint satisfaction and a deterministic,
explainable ordering. It does not minimize total idle time.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from datetime import datetime
from itertools import permutations
from typing import Dict, List, Optional, Sequence, Tuple

from . import service_time, utils
from .emitter import emit
from .ledger import CapacityLedger
from .models import (
    Barge,
    BargeStatus,
    Delivery,
    Location,
    ProductQuantity,
    RechargeVisit,
    RefuelingRequest,
    ScheduleEvent,
    ScheduleResult,
    SchedulingInput,
)
from .priority import PriorityRanker
from .validation import validate_input

logger = logging.getLogger(__name__)


@dataclass
class BargeTimeline:
    """
    Working state of one barge while the engine builds its schedule.

    Attributes:
        barge: The (immutable) barge
        fleet_index: Position in the fleet roster, the last tie-breaker
        location: Where the barge is when it becomes available
        available_at: When the barge can start its next leg
        transitions: (time, status) changes recorded so far
    """
    barge: Barge
    fleet_index: int
    location: Location
    available_at: datetime
    transitions: List[Tuple[datetime, BargeStatus]] = field(default_factory=list)


@dataclass
class Visit:
    """
    A tentative plan for one barge to serve some products of one request.

    Includes any recharge visits the barge needs first.
    """
    timeline: BargeTimeline
    events: List[ScheduleEvent]
    transitions: List[Tuple[datetime, BargeStatus]]
    arrival: datetime
    start: datetime
    end: datetime
    destination: Location

    @property
    def idle_hours(self) -> float:
        """Time spent waiting alongside before the first delivery starts."""
        return utils.hours_between(self.arrival, self.start)

    @property
    def recharge_count(self) -> int:
        return sum(1 for e in self.events if isinstance(e, RechargeVisit))


class PlanningState:
    """
    The engine's private working copy for one run.

    Holds the per-barge timelines, the capacity ledger, the time each ship is
    next free and the events emitted so far. Deep-copied to try out split
    assignments without touching the committed plan.
    """

    def __init__(self, snapshot: SchedulingInput, terminal: Location) -> None:
        self.terminal = terminal
        self.locations: Dict[str, Location] = dict(snapshot.locations)
        self.ledger = CapacityLedger(snapshot.barges, snapshot.states)
        self.timelines: List[BargeTimeline] = []
        self.ship_free_at: Dict[str, datetime] = {}
        self.events: List[ScheduleEvent] = []

        for index, barge in enumerate(snapshot.barges):
            state = snapshot.states[barge.barge_id]
            location = self.locations[state.location_id]
            timeline = BargeTimeline(
                barge=barge,
                fleet_index=index,
                location=location,
                available_at=snapshot.start_time,
            )
            if location.is_terminal:
                # Already mid-loading at the pier: sails once loading and the final buffer end
                release = service_time.terminal_release_time(barge, state, snapshot.start_time)
                timeline.transitions.append((snapshot.start_time, BargeStatus.LOADING_AT_TERMINAL))
                timeline.available_at = release
                logger.debug("Barge %s loading at TERMINAL until %s", barge.barge_id, release.isoformat())
            timeline.transitions.append((timeline.available_at, BargeStatus.AVAILABLE))
            self.timelines.append(timeline)

    def ship_ready(self, ship_name: str, default: datetime) -> datetime:
        return self.ship_free_at.get(ship_name, default)

    def apply(self, visit: Visit) -> None:
        """Commit a tentative visit to the working copy."""
        timeline = self._timeline(visit.timeline.barge.barge_id)
        for event in visit.events:
            if isinstance(event, RechargeVisit):
                self.ledger.recharge(event.barge_id, event.product)
            else:
                self.ledger.deliver(event.barge_id, event.product, event.quantity)
                current = self.ship_free_at.get(event.ship_name)
                end = service_time.event_end(event)
                if current is None or end > current:
                    self.ship_free_at[event.ship_name] = end
            self.events.append(event)

        timeline.location = visit.destination
        timeline.available_at = visit.end
        timeline.transitions.extend(visit.transitions)

    def _timeline(self, barge_id: str) -> BargeTimeline:
        for timeline in self.timelines:
            if timeline.barge.barge_id == barge_id:
                return timeline
        raise KeyError(barge_id)


class DispatchEngine:
    """
    Builds one complete schedule from a snapshot.

    The engine never mutates its input. Independent runs (e.g. what-if
    comparisons) can execute concurrently since each keeps its own
    PlanningState.
    """

    def plan(self, snapshot: SchedulingInput) -> ScheduleResult:
        """
        Compute the schedule for a snapshot.

        Args:
            snapshot: Fleet, states, locations, requests, priorities and start instant

        Returns:
            ScheduleResult with events sorted by scheduled start

        Raises:
            InputValidationError: If the snapshot is malformed
        """
        confirmed = snapshot.confirmed_requests
        if not snapshot.barges or not confirmed:
            logger.info("Nothing to schedule (%d barges, %d confirmed requests)",
                        len(snapshot.barges), len(confirmed))
            return ScheduleResult()

        validate_input(snapshot)

        state = PlanningState(snapshot, snapshot.terminal)
        ranker = PriorityRanker(snapshot.priorities, confirmed)
        pending: List[RefuelingRequest] = list(confirmed)
        unscheduled: List[str] = []

        self._refresh_bars(state, pending)

        while pending:
            request = ranker.top(pending)
            pending.remove(request)

            served = self._assign_hybrid(state, request, allow_recharge=False)
            if not served and len(request.products) > 1:
                new_state = self._assign_split(state, request)
                if new_state is not None:
                    state = new_state
                    served = True
            if not served:
                served = self._assign_hybrid(state, request, allow_recharge=True)

            if not served:
                logger.info("Request %s (%s) cannot be served within its window",
                            request.request_id, request.ship_name)
                unscheduled.append(request.request_id)

            self._refresh_bars(state, pending)

        events = emit(state.events, snapshot)
        logger.info("Planned %d events, %d requests unscheduled", len(events), len(unscheduled))

        return ScheduleResult(
            events=events,
            unscheduled=unscheduled,
            transitions={t.barge.barge_id: list(t.transitions) for t in state.timelines},
        )

    # -------------------------------------------------------------------------
    # Assignment strategies
    # -------------------------------------------------------------------------

    @staticmethod
    def _refresh_bars(state: PlanningState, pending: List[RefuelingRequest]) -> None:
        for barge_id, product in state.ledger.refresh_mandatory_recharges(pending):
            logger.info("Barge %s must recharge %s before its next %s delivery",
                        barge_id, product.value, product.value)

    def _assign_hybrid(self, state: PlanningState, request: RefuelingRequest, allow_recharge: bool) -> bool:
        """
        Serve every product of the request with a single barge.

        Without `allow_recharge` only barges with enough volume on board for
        every product are candidates.

        Selection: earliest delivery start, then lowest idle time, then fleet order.
        """
        not_before = state.ship_ready(request.ship_name, request.window_start)
        candidates: List[Visit] = []
        for timeline in state.timelines:
            visit = self._plan_visit(state, timeline, request, request.products, not_before,
                                     allow_recharge=allow_recharge)
            if visit is not None:
                candidates.append(visit)

        if not candidates:
            return False

        best = min(candidates, key=lambda v: (v.start, v.idle_hours, v.timeline.fleet_index))
        state.apply(best)
        logger.info(
            "Request %s (%s) -> barge %s at %s%s",
            request.request_id, request.ship_name, best.timeline.barge.barge_id,
            best.start.isoformat(),
            f" after {best.recharge_count} recharge(s)" if best.recharge_count else "",
        )
        return True

    def _assign_split(self, state: PlanningState, request: RefuelingRequest) -> Optional[PlanningState]:
        """
        Serve each product of the request with its own best barge.

        Both product orders are tried on copies of the working state; the one
        whose last delivery ends earliest is kept (ties keep the request's
        own product order). All-or-nothing: if any product cannot be served,
        the request is not scheduled at all.

        Returns:
            The updated working state, or None if no combination is feasible
        """
        best_state: Optional[PlanningState] = None
        best_end: Optional[datetime] = None

        for ordering in permutations(request.products):
            trial = copy.deepcopy(state)
            not_before = trial.ship_ready(request.ship_name, request.window_start)
            last_end: Optional[datetime] = None

            for item in ordering:
                visit = self._best_single_product_visit(trial, request, item, not_before)
                if visit is None:
                    last_end = None
                    break
                trial.apply(visit)
                not_before = visit.end
                last_end = visit.end

            if last_end is not None and (best_end is None or last_end < best_end):
                best_state, best_end = trial, last_end

        if best_state is not None:
            barges = sorted({e.barge_id for e in best_state.events[len(state.events):]
                             if isinstance(e, Delivery)})
            logger.info("Request %s (%s) split across barges %s",
                        request.request_id, request.ship_name, ", ".join(barges))
        return best_state

    def _best_single_product_visit(
        self,
        state: PlanningState,
        request: RefuelingRequest,
        item: ProductQuantity,
        not_before: datetime,
    ) -> Optional[Visit]:
        """Earliest-completing barge for one product, then lowest idle time, then fleet order."""
        candidates: List[Visit] = []
        for timeline in state.timelines:
            visit = self._plan_visit(state, timeline, request, (item,), not_before)
            if visit is not None:
                candidates.append(visit)
        if not candidates:
            return None
        return min(candidates, key=lambda v: (v.end, v.idle_hours, v.timeline.fleet_index))

    # -------------------------------------------------------------------------
    # Feasibility
    # -------------------------------------------------------------------------

    def _plan_visit(
        self,
        state: PlanningState,
        timeline: BargeTimeline,
        request: RefuelingRequest,
        items: Sequence[ProductQuantity],
        not_before: datetime,
        allow_recharge: bool = True,
    ) -> Optional[Visit]:
        """
        Simulate one barge serving `items` of `request` without committing.

        Capacity, window and ship-overlap violations are rejected before any
        travel time is computed.

        Returns:
            The tentative Visit, or None if infeasible
        """
        barge = timeline.barge
        ledger = state.ledger

        # Capacity: must carry every product and a full tank must cover the quantity
        for item in items:
            if not barge.carries(item.product):
                return None
            if not ledger.could_ever_deliver(barge.barge_id, item.product, item.quantity):
                return None
            if not allow_recharge and ledger.needs_recharge(barge.barge_id, item.product, item.quantity):
                return None

        # Window and ship overlap: travel can only push the start later
        if timeline.available_at > request.window_end or not_before > request.window_end:
            return None

        events: List[ScheduleEvent] = []
        transitions: List[Tuple[datetime, BargeStatus]] = []
        clock = timeline.available_at
        here = timeline.location

        to_recharge = [item.product for item in items
                       if ledger.needs_recharge(barge.barge_id, item.product, item.quantity)]
        if to_recharge:
            leg = utils.get_travel_hours(here, state.terminal, barge.speed_knots)
            if leg > 0:
                transitions.append((clock, BargeStatus.EN_ROUTE_TO_TERMINAL))
            clock = utils.add_hours(clock, leg)
            here = state.terminal

            for product in to_recharge:
                capacity = ledger.capacity(barge.barge_id, product)
                volume = ledger.volume(barge.barge_id, product)
                events.append(RechargeVisit(
                    barge_id=barge.barge_id,
                    product=product,
                    scheduled_start=clock,
                    location_id=state.terminal.location_id,
                    refill_volume=capacity - volume,
                ))
                transitions.append((clock, BargeStatus.RECHARGING))
                clock = utils.add_hours(clock, service_time.recharge_duration_hours(capacity, volume))

            if clock > request.window_end:
                return None

        destination = state.locations[request.location_id]
        leg = utils.get_travel_hours(here, destination, barge.speed_knots)
        if leg > 0:
            transitions.append((clock, BargeStatus.EN_ROUTE))
        arrival = utils.add_hours(clock, leg)
        start = max(arrival, request.window_start, not_before)

        cursor = start
        for item in items:
            if cursor > request.window_end:
                return None
            events.append(Delivery(
                request_id=request.request_id,
                ship_name=request.ship_name,
                barge_id=barge.barge_id,
                product=item.product,
                quantity=item.quantity,
                scheduled_start=cursor,
                location_id=destination.location_id,
            ))
            transitions.append((cursor, BargeStatus.SERVICING))
            cursor = utils.add_hours(cursor, service_time.delivery_duration_hours(item.quantity))
        transitions.append((cursor, BargeStatus.AVAILABLE))

        return Visit(
            timeline=timeline,
            events=events,
            transitions=transitions,
            arrival=arrival,
            start=start,
            end=cursor,
            destination=destination,
        )


def generate_schedule(snapshot: SchedulingInput) -> ScheduleResult:
    """Convenience wrapper: plan a snapshot with a fresh engine."""
    return DispatchEngine().plan(snapshot)
