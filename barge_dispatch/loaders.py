# barge-dispatch/barge_dispatch/loaders.py
"""
Scenario loading and serialization.

A scenario file is a JSON document holding everything one scheduling run
needs:

    {
      "start_time": "2025-03-01T08:00",
      "priorities": ["contractual_date", "window_end", "total_quantity"],
      "locations": [{"id": "loc-term", "name": "TERMINAL", "latitude": ..., "longitude": ...}],
      "barges": [{"id": "b1", "name": "Poseidon", "speed": 10,
                  "products": [{"product_type": "VLSFO", "capacity": 2000}]}],
      "barge_states": [{"barge_id": "b1", "location_id": "loc-term",
                        "volumes": [{"product_type": "VLSFO", "volume": 1500}]}],
      "requests": [{"id": "r1", "ship_name": "...", "location_id": "...",
                    "products": [{"product_type": "MGO", "quantity": 200}],
                    "window_start": "...", "window_end": "...",
                    "contractual_date": "2025-03-01", "status": "CONFIRMED"}]
    }
"""

from __future__ import annotations

import json
import os
from typing import Any, Dict, List

from . import config
from .errors import InputValidationError
from .models import (
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
from .utils import parse_timestamp

# Status labels accepted on input, including those exported by the legacy tool
STATUS_ALIASES: Dict[str, RequestStatus] = {
    "CONFIRMED": RequestStatus.CONFIRMED,
    "A CONFIRMAR": RequestStatus.CONFIRMED,
    "IN_PROGRESS": RequestStatus.IN_PROGRESS,
    "EM ATENDIMENTO": RequestStatus.IN_PROGRESS,
}


def parse_product(value: Any) -> ProductType:
    try:
        return ProductType(str(value).strip().upper())
    except ValueError:
        raise InputValidationError(f"Unknown product '{value}'")


def parse_status(value: Any) -> RequestStatus:
    status = STATUS_ALIASES.get(str(value).strip().upper())
    if status is None:
        raise InputValidationError(f"Unknown request status '{value}'")
    return status


def scenario_from_dict(data: Dict[str, Any]) -> SchedulingInput:
    """
    Build a SchedulingInput from a decoded scenario document.

    Raises:
        InputValidationError: If a field is missing or malformed
    """
    if not isinstance(data, dict):
        raise InputValidationError(f"Scenario must be a JSON object, got {type(data).__name__}")
    try:
        locations: Dict[str, Location] = {}
        for row in data.get("locations", []):
            location = Location(
                location_id=str(row["id"]),
                name=str(row["name"]),
                latitude=float(row["latitude"]),
                longitude=float(row["longitude"]),
            )
            locations[location.location_id] = location

        barges: List[Barge] = []
        for row in data.get("barges", []):
            barges.append(Barge(
                barge_id=str(row["id"]),
                name=str(row["name"]),
                speed_knots=float(row["speed"]),
                tanks=tuple(
                    ProductTank(product=parse_product(p["product_type"]), capacity=float(p["capacity"]))
                    for p in row["products"]
                ),
            ))

        states: Dict[str, BargeState] = {}
        for row in data.get("barge_states", []):
            states[str(row["barge_id"])] = BargeState(
                barge_id=str(row["barge_id"]),
                location_id=str(row["location_id"]),
                volumes={parse_product(v["product_type"]): float(v["volume"]) for v in row["volumes"]},
            )

        requests: List[RefuelingRequest] = []
        for row in data.get("requests", []):
            requests.append(RefuelingRequest(
                request_id=str(row["id"]),
                ship_name=str(row["ship_name"]),
                location_id=str(row["location_id"]),
                products=tuple(
                    ProductQuantity(product=parse_product(p["product_type"]), quantity=float(p["quantity"]))
                    for p in row["products"]
                ),
                window_start=parse_timestamp(row["window_start"], "window_start"),
                window_end=parse_timestamp(row["window_end"], "window_end"),
                contractual_date=parse_timestamp(row["contractual_date"], "contractual_date"),
                status=parse_status(row.get("status", RequestStatus.CONFIRMED.value)),
            ))

        priorities = PriorityRuleSet(rules=tuple(data.get("priorities", config.DEFAULT_PRIORITY_RULES)))
        start_time = parse_timestamp(data["start_time"], "start_time")
    except (KeyError, ValueError, TypeError) as e:
        if isinstance(e, InputValidationError):
            raise
        raise InputValidationError(f"Invalid scenario data: {e!r}")

    return SchedulingInput(
        barges=barges,
        states=states,
        locations=locations,
        requests=requests,
        start_time=start_time,
        priorities=priorities,
    )


def load_scenario(path: str) -> SchedulingInput:
    """
    Load a scenario from a JSON file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        InputValidationError: If the file format is invalid
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Scenario file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise InputValidationError(f"Invalid JSON in {path}: {e}")
    return scenario_from_dict(data)


def scenario_to_dict(snapshot: SchedulingInput) -> Dict[str, Any]:
    """Inverse of scenario_from_dict, used as the remote planner payload."""
    return {
        "start_time": snapshot.start_time.isoformat(),
        "priorities": list(snapshot.priorities.rules),
        "locations": [
            {"id": l.location_id, "name": l.name, "latitude": l.latitude, "longitude": l.longitude}
            for l in snapshot.locations.values()
        ],
        "barges": [
            {
                "id": b.barge_id,
                "name": b.name,
                "speed": b.speed_knots,
                "products": [{"product_type": t.product.value, "capacity": t.capacity} for t in b.tanks],
            }
            for b in snapshot.barges
        ],
        "barge_states": [
            {
                "barge_id": s.barge_id,
                "location_id": s.location_id,
                "volumes": [{"product_type": p.value, "volume": v} for p, v in s.volumes.items()],
            }
            for s in snapshot.states.values()
        ],
        "requests": [
            {
                "id": r.request_id,
                "ship_name": r.ship_name,
                "location_id": r.location_id,
                "products": [{"product_type": p.product.value, "quantity": p.quantity} for p in r.products],
                "window_start": r.window_start.isoformat(),
                "window_end": r.window_end.isoformat(),
                "contractual_date": r.contractual_date.isoformat(),
                "status": r.status.value,
            }
            for r in snapshot.requests
        ],
    }
