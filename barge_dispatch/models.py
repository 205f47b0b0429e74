# barge-dispatch/barge_dispatch/models.py
"""
Core domain models for the barge refueling dispatch engine.

This module defines the fundamental data structures used by the planner:
- Location: A named point in the port (the TERMINAL pier or an anchorage)
- Barge / ProductTank: A refueling barge and its per-product tanks
- BargeState: The current volumes and position of a barge
- RefuelingRequest: A ship asking for one or two products within a window
- Delivery / RechargeVisit: The two kinds of schedule events
- HistoryRecord: An entry of the append-only operation history
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from . import config


class ProductType(Enum):
    """Marine fuels carried by the fleet."""
    VLSFO = "VLSFO"
    MGO = "MGO"


class RequestStatus(Enum):
    """Lifecycle states of a refueling request."""
    CONFIRMED = "CONFIRMED"      # Awaiting a slot, eligible for scheduling
    IN_PROGRESS = "IN_PROGRESS"  # Already being served, ignored by the planner


class BargeStatus(Enum):
    """
    States of a barge while the engine builds its timeline.

    The barge state machine:
    - LOADING_AT_TERMINAL: Initial state for barges that start at the pier
    - AVAILABLE: Free to sail to the next job
    - EN_ROUTE / SERVICING: Sailing to a ship / pumping alongside it
    - EN_ROUTE_TO_TERMINAL / RECHARGING: Returning to the pier / loading a tank
    """
    LOADING_AT_TERMINAL = "LOADING_AT_TERMINAL"
    AVAILABLE = "AVAILABLE"
    EN_ROUTE = "EN_ROUTE"
    SERVICING = "SERVICING"
    EN_ROUTE_TO_TERMINAL = "EN_ROUTE_TO_TERMINAL"
    RECHARGING = "RECHARGING"


@dataclass(frozen=True)
class Location:
    """
    A named point in the port.

    Attributes:
        location_id: Unique identifier
        name: Display name ('TERMINAL' for the loading pier)
        latitude/longitude: Coordinates in decimal degrees
    """
    location_id: str
    name: str
    latitude: float
    longitude: float

    @property
    def is_terminal(self) -> bool:
        return self.name.upper() == config.TERMINAL_NAME


@dataclass(frozen=True)
class ProductTank:
    product: ProductType
    capacity: float


@dataclass(frozen=True)
class Barge:
    """
    A refueling barge. Immutable during one scheduling run.

    Attributes:
        barge_id: Unique identifier
        name: Display name
        speed_knots: Sailing speed
        tanks: One tank per product type carried
    """
    barge_id: str
    name: str
    speed_knots: float
    tanks: Tuple[ProductTank, ...]

    @property
    def products(self) -> List[ProductType]:
        return [t.product for t in self.tanks]

    @property
    def is_hybrid(self) -> bool:
        """A hybrid barge carries more than one product in separate tanks."""
        return len(self.tanks) > 1

    def carries(self, product: ProductType) -> bool:
        return any(t.product == product for t in self.tanks)

    def capacity(self, product: ProductType) -> float:
        for tank in self.tanks:
            if tank.product == product:
                return tank.capacity
        return 0.0

    def __repr__(self) -> str:
        tanks = ", ".join(f"{t.product.value}:{t.capacity:g}" for t in self.tanks)
        return f"Barge({self.barge_id}, {self.name}, [{tanks}])"


@dataclass
class BargeState:
    """
    Current volumes and position of a barge.

    Only the commit step mutates these; the engine works on private copies.
    """
    barge_id: str
    volumes: Dict[ProductType, float]
    location_id: str

    def volume(self, product: ProductType) -> float:
        return self.volumes.get(product, 0.0)


@dataclass(frozen=True)
class ProductQuantity:
    product: ProductType
    quantity: float


@dataclass(frozen=True)
class RefuelingRequest:
    """
    A ship's refueling request. Immutable input.

    Attributes:
        request_id: Unique identifier
        ship_name: Ship to be served
        location_id: Where the ship waits
        products: One or two (product, quantity) entries
        window_start/window_end: Interval in which service must begin
        contractual_date: Date agreed with the ship owner
        status: Only CONFIRMED requests are scheduled
    """
    request_id: str
    ship_name: str
    location_id: str
    products: Tuple[ProductQuantity, ...]
    window_start: datetime
    window_end: datetime
    contractual_date: datetime
    status: RequestStatus = RequestStatus.CONFIRMED

    @property
    def total_quantity(self) -> float:
        return sum(p.quantity for p in self.products)

    @property
    def product_types(self) -> List[ProductType]:
        return [p.product for p in self.products]

    def __repr__(self) -> str:
        return f"Request({self.request_id}, {self.ship_name}, {self.status.value})"


@dataclass(frozen=True)
class Delivery:
    """A barge pumping one product into a ship."""
    request_id: str
    ship_name: str
    barge_id: str
    product: ProductType
    quantity: float
    scheduled_start: datetime
    location_id: str

    def __repr__(self) -> str:
        return (f"Delivery({self.barge_id}->{self.ship_name}, {self.product.value} "
                f"{self.quantity:g} @ {self.scheduled_start.isoformat()})")


@dataclass(frozen=True)
class RechargeVisit:
    """
    A barge topping up one product tank at the TERMINAL.

    Attributes:
        refill_volume: Volume loaded (capacity minus volume on arrival).
            Serialized quantity is always 0.
    """
    barge_id: str
    product: ProductType
    scheduled_start: datetime
    location_id: str
    refill_volume: float = 0.0

    def __repr__(self) -> str:
        return (f"RechargeVisit({self.barge_id}, {self.product.value} "
                f"@ {self.scheduled_start.isoformat()})")


ScheduleEvent = Union[Delivery, RechargeVisit]


@dataclass(frozen=True)
class HistoryRecord:
    """An immutable entry of the operation history, written on commit."""
    ship_name: str
    barge_id: str
    product: ProductType
    quantity: float
    completion_time: datetime
    record_id: str = field(default_factory=lambda: str(uuid.uuid4()))


@dataclass(frozen=True)
class PriorityRuleSet:
    """Ordered comparator rule names; later rules break ties left by earlier ones."""
    rules: Tuple[str, ...] = tuple(config.DEFAULT_PRIORITY_RULES)


@dataclass
class SchedulingInput:
    """
    Immutable snapshot handed to the engine for one run.

    Attributes:
        barges: Fleet roster
        states: Current BargeState keyed by barge id
        locations: All known locations keyed by id (TERMINAL included)
        requests: Refueling requests (non-confirmed ones are ignored)
        priorities: Ordered comparator rules
        start_time: Origin of all time arithmetic
    """
    barges: List[Barge]
    states: Dict[str, BargeState]
    locations: Dict[str, Location]
    requests: List[RefuelingRequest]
    start_time: datetime
    priorities: PriorityRuleSet = field(default_factory=PriorityRuleSet)

    @property
    def terminal(self) -> Optional[Location]:
        for location in self.locations.values():
            if location.is_terminal:
                return location
        return None

    @property
    def confirmed_requests(self) -> List[RefuelingRequest]:
        return [r for r in self.requests if r.status == RequestStatus.CONFIRMED]


@dataclass
class ScheduleResult:
    """
    Output of one planning run.

    Attributes:
        events: Schedule events sorted by scheduled start
        unscheduled: Ids of confirmed requests no barge could serve
        transitions: Per barge, the (time, status) changes recorded while planning
    """
    events: List[ScheduleEvent] = field(default_factory=list)
    unscheduled: List[str] = field(default_factory=list)
    transitions: Dict[str, List[Tuple[datetime, BargeStatus]]] = field(default_factory=dict)

    @property
    def deliveries(self) -> List[Delivery]:
        return [e for e in self.events if isinstance(e, Delivery)]

    @property
    def recharges(self) -> List[RechargeVisit]:
        return [e for e in self.events if isinstance(e, RechargeVisit)]

    def __repr__(self) -> str:
        return (f"ScheduleResult(deliveries={len(self.deliveries)}, "
                f"recharges={len(self.recharges)}, unscheduled={len(self.unscheduled)})")
