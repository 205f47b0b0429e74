"""Shared builders for the test suite.

Locations sit on the equator so travel times are easy to reason about:
TERMINAL (0, 0) -> ANCHORAGE_A (0.5, 0) is ~30.02 nm (3.0 h at 10 kn),
TERMINAL -> ANCHORAGE_B (0, 0.25) is ~15.01 nm (1.5 h at 10 kn).
"""

import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from barge_dispatch.models import (
    Barge,
    BargeState,
    Location,
    PriorityRuleSet,
    ProductQuantity,
    ProductTank,
    ProductType,
    RefuelingRequest,
    RequestStatus,
    SchedulingInput,
)

VLSFO = ProductType.VLSFO
MGO = ProductType.MGO

START = datetime(2025, 3, 1, 8, 0)

TERMINAL = Location("loc-term", "TERMINAL", 0.0, 0.0)
ANCHORAGE_A = Location("loc-a", "Anchorage A", 0.5, 0.0)
ANCHORAGE_B = Location("loc-b", "Anchorage B", 0.0, 0.25)
LOCATIONS = {loc.location_id: loc for loc in (TERMINAL, ANCHORAGE_A, ANCHORAGE_B)}


def hours(h: float) -> datetime:
    return START + timedelta(hours=h)


def make_barge(barge_id: str, speed: float = 10.0, **capacities: float) -> Barge:
    tanks = tuple(ProductTank(ProductType[name], cap) for name, cap in capacities.items())
    return Barge(barge_id=barge_id, name=barge_id.title(), speed_knots=speed, tanks=tanks)


def make_state(barge_id: str, location: Location = TERMINAL, **volumes: float) -> BargeState:
    return BargeState(
        barge_id=barge_id,
        volumes={ProductType[name]: vol for name, vol in volumes.items()},
        location_id=location.location_id,
    )


def make_request(
    request_id: str,
    products: Dict[str, float],
    location: Location = ANCHORAGE_A,
    window: Sequence[float] = (0, 24),
    ship_name: Optional[str] = None,
    contractual_day: int = 1,
    status: RequestStatus = RequestStatus.CONFIRMED,
) -> RefuelingRequest:
    return RefuelingRequest(
        request_id=request_id,
        ship_name=ship_name or f"MV {request_id.upper()}",
        location_id=location.location_id,
        products=tuple(ProductQuantity(ProductType[name], q) for name, q in products.items()),
        window_start=hours(window[0]),
        window_end=hours(window[1]),
        contractual_date=datetime(2025, 3, contractual_day),
        status=status,
    )


def make_snapshot(
    barges: List[Barge],
    states: List[BargeState],
    requests: List[RefuelingRequest],
    locations: Optional[Dict[str, Location]] = None,
    rules: Optional[Sequence[str]] = None,
) -> SchedulingInput:
    snapshot = SchedulingInput(
        barges=barges,
        states={s.barge_id: s for s in states},
        locations=dict(locations if locations is not None else LOCATIONS),
        requests=requests,
        start_time=START,
    )
    if rules is not None:
        snapshot.priorities = PriorityRuleSet(rules=tuple(rules))
    return snapshot


def random_snapshot(seed: int) -> SchedulingInput:
    """A random but valid port scenario."""
    rng = random.Random(seed)
    locations = {TERMINAL.location_id: TERMINAL}
    for i in range(4):
        loc = Location(f"loc-{i}", f"Anchorage {i}", rng.uniform(-0.6, 0.6), rng.uniform(-0.6, 0.6))
        locations[loc.location_id] = loc
    anchorages = [l for l in locations.values() if not l.is_terminal]

    barges, states = [], []
    for i in range(rng.randint(2, 4)):
        kind = rng.choice(["VLSFO", "MGO", "HYBRID"])
        if kind == "HYBRID":
            caps = {"VLSFO": rng.choice([800, 1000, 1500]), "MGO": rng.choice([300, 400])}
        else:
            caps = {kind: rng.choice([600, 800, 2000])}
        barge = make_barge(f"b{i}", speed=rng.choice([8, 10, 12]), **caps)
        start_loc = rng.choice([TERMINAL] + anchorages)
        vols = {name: rng.uniform(0, cap) for name, cap in caps.items()}
        barges.append(barge)
        states.append(make_state(barge.barge_id, start_loc, **vols))

    requests = []
    for i in range(rng.randint(4, 9)):
        names = rng.choice([["VLSFO"], ["MGO"], ["VLSFO", "MGO"]])
        products = {name: float(rng.choice([50, 100, 200, 350, 500])) for name in names}
        open_at = rng.uniform(0, 36)
        requests.append(make_request(
            f"r{i}",
            products,
            location=rng.choice(anchorages),
            window=(open_at, open_at + rng.uniform(2, 30)),
            ship_name=f"MV Ship {rng.randint(0, 5)}",
            contractual_day=rng.randint(1, 3),
        ))
    return make_snapshot(barges, states, requests, locations=locations)
