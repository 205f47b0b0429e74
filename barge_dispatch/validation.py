# barge-dispatch/barge_dispatch/validation.py
"""
Input validation for a scheduling run.

Every check here runs before any planning. A failure rejects the whole run
with an InputValidationError (or ConfigurationError for bad coordinates and
speeds) so the caller never receives a partial schedule built from bad data.
"""

from __future__ import annotations

from datetime import datetime
from typing import Set

from . import utils
from .errors import ConfigurationError, InputValidationError
from .models import Barge, ProductType, RefuelingRequest, RequestStatus, SchedulingInput
from .priority import build_rule_set

MAX_PRODUCTS_PER_REQUEST = 2


def _validate_barge(barge: Barge) -> None:
    if not barge.tanks:
        raise InputValidationError(f"Barge {barge.barge_id} has no product tanks")
    if not isinstance(barge.speed_knots, (int, float)) or barge.speed_knots <= 0:
        raise ConfigurationError(f"Barge {barge.barge_id} speed must be positive, got {barge.speed_knots!r}")

    seen: Set[ProductType] = set()
    for tank in barge.tanks:
        if not isinstance(tank.product, ProductType):
            raise InputValidationError(f"Barge {barge.barge_id} has unknown product {tank.product!r}")
        if tank.product in seen:
            raise InputValidationError(f"Barge {barge.barge_id} has two {tank.product.value} tanks")
        if tank.capacity <= 0:
            raise InputValidationError(
                f"Barge {barge.barge_id} {tank.product.value} capacity must be positive"
            )
        seen.add(tank.product)


def _validate_request(request: RefuelingRequest, snapshot: SchedulingInput) -> None:
    rid = request.request_id
    if not isinstance(request.status, RequestStatus):
        raise InputValidationError(f"Request {rid} has unknown status {request.status!r}")
    for field_name in ("window_start", "window_end", "contractual_date"):
        if not isinstance(getattr(request, field_name), datetime):
            raise InputValidationError(f"Request {rid} {field_name} is not a timestamp")
    if request.window_start > request.window_end:
        raise InputValidationError(f"Request {rid} window starts after it ends")

    if request.location_id not in snapshot.locations:
        raise InputValidationError(f"Request {rid} references unknown location '{request.location_id}'")
    if snapshot.locations[request.location_id].is_terminal:
        raise InputValidationError(f"Request {rid} cannot be served at the TERMINAL")

    if not 1 <= len(request.products) <= MAX_PRODUCTS_PER_REQUEST:
        raise InputValidationError(
            f"Request {rid} must ask for 1 to {MAX_PRODUCTS_PER_REQUEST} products"
        )
    seen: Set[ProductType] = set()
    for item in request.products:
        if not isinstance(item.product, ProductType):
            raise InputValidationError(f"Request {rid} has unknown product {item.product!r}")
        if item.product in seen:
            raise InputValidationError(f"Request {rid} lists {item.product.value} twice")
        if not isinstance(item.quantity, (int, float)) or item.quantity <= 0:
            raise InputValidationError(
                f"Request {rid} {item.product.value} quantity must be positive, got {item.quantity!r}"
            )
        seen.add(item.product)


def validate_input(snapshot: SchedulingInput) -> None:
    """
    Validate a scheduling snapshot.

    Checks:
    - Start instant is a timestamp and a TERMINAL location exists
    - Location coordinates are valid
    - Barges have positive speeds and unique, positive-capacity tanks
    - Every barge has a state with known location and volumes in [0, capacity]
    - Requests reference known locations and products with positive quantities
    - Priority rules are known

    Raises:
        InputValidationError: On the first problem found
    """
    if not isinstance(snapshot.start_time, datetime):
        raise InputValidationError(f"Invalid start time: {snapshot.start_time!r}")

    for location_id, location in snapshot.locations.items():
        if location_id != location.location_id:
            raise InputValidationError(f"Location key '{location_id}' does not match its id")
        utils.validate_coordinates(location.latitude, location.longitude)
    if snapshot.terminal is None:
        raise InputValidationError("A TERMINAL location is required")

    barge_ids: Set[str] = set()
    for barge in snapshot.barges:
        if barge.barge_id in barge_ids:
            raise InputValidationError(f"Duplicate barge id '{barge.barge_id}'")
        barge_ids.add(barge.barge_id)
        _validate_barge(barge)

        state = snapshot.states.get(barge.barge_id)
        if state is None:
            raise InputValidationError(f"Barge {barge.barge_id} has no current state")
        if state.location_id not in snapshot.locations:
            raise InputValidationError(
                f"Barge {barge.barge_id} is at unknown location '{state.location_id}'"
            )
        for product, volume in state.volumes.items():
            if not barge.carries(product):
                raise InputValidationError(
                    f"Barge {barge.barge_id} state has volume for {product} it does not carry"
                )
            if volume < 0 or volume > barge.capacity(product):
                raise InputValidationError(
                    f"Barge {barge.barge_id} {product.value} volume {volume} outside [0, {barge.capacity(product)}]"
                )

    unknown_states = set(snapshot.states) - barge_ids
    if unknown_states:
        raise InputValidationError(f"States reference unknown barges: {sorted(unknown_states)}")

    request_ids: Set[str] = set()
    aware = snapshot.start_time.tzinfo is not None
    for request in snapshot.requests:
        if request.request_id in request_ids:
            raise InputValidationError(f"Duplicate request id '{request.request_id}'")
        request_ids.add(request.request_id)
        _validate_request(request, snapshot)
        if any((t.tzinfo is not None) != aware
               for t in (request.window_start, request.window_end, request.contractual_date)):
            raise InputValidationError(
                f"Request {request.request_id} mixes timezone-aware and naive timestamps"
            )

    build_rule_set(snapshot.priorities.rules)
