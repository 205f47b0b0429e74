# barge-dispatch/barge_dispatch/service_time.py
"""
Service-time model for ship deliveries and terminal recharges.

Every operation is bracketed by a fixed initial buffer (mooring, hose
connection) and a fixed final buffer (disconnection, paperwork). The middle
phase depends on the volume pumped:

    delivery: INITIAL + quantity / PUMP_RATE + FINAL
    recharge: INITIAL + (capacity - volume) / LOADING_RATE + FINAL

The scheduled time of an event is always the start of its initial buffer.
"""

from __future__ import annotations

from datetime import datetime

from . import config, utils
from .models import Barge, BargeState, Delivery, RechargeVisit, ScheduleEvent


def delivery_duration_hours(quantity: float) -> float:
    """
    Total time a barge is alongside a ship to pump `quantity`.

    Example:
        >>> delivery_duration_hours(300)  # 1.5 + 1.0 + 2.0
        4.5
    """
    return config.INITIAL_BUFFER_HOURS + quantity / config.PUMP_RATE_PER_HOUR + config.FINAL_BUFFER_HOURS


def recharge_duration_hours(capacity: float, current_volume: float) -> float:
    """
    Total time at the pier to top a tank up from `current_volume` to `capacity`.

    Example:
        >>> recharge_duration_hours(800, 50)  # 1.5 + 750/400 + 2.0
        5.375
    """
    refill = max(0.0, capacity - current_volume)
    return config.INITIAL_BUFFER_HOURS + refill / config.TERMINAL_LOADING_RATE_PER_HOUR + config.FINAL_BUFFER_HOURS


def event_duration_hours(event: ScheduleEvent) -> float:
    """Duration of an emitted event, from scheduled start to end of final buffer."""
    if isinstance(event, Delivery):
        return delivery_duration_hours(event.quantity)
    if isinstance(event, RechargeVisit):
        return (config.INITIAL_BUFFER_HOURS
                + event.refill_volume / config.TERMINAL_LOADING_RATE_PER_HOUR
                + config.FINAL_BUFFER_HOURS)
    raise TypeError(f"Unknown schedule event: {event!r}")


def event_end(event: ScheduleEvent) -> datetime:
    return utils.add_hours(event.scheduled_start, event_duration_hours(event))


def pier_occupied_hours(barge: Barge, state: BargeState) -> float:
    """
    Remaining pier time of a barge that starts the run mid-loading at TERMINAL.

    Loading is already underway, so only the final buffer applies on top of
    the slowest tank's remaining loading time.
    """
    remaining = max(
        (max(0.0, tank.capacity - state.volume(tank.product)) / config.TERMINAL_LOADING_RATE_PER_HOUR
         for tank in barge.tanks),
        default=0.0,
    )
    return remaining + config.FINAL_BUFFER_HOURS


def terminal_release_time(barge: Barge, state: BargeState, start_time: datetime) -> datetime:
    """When a barge loading at the pier at `start_time` can sail."""
    return utils.add_hours(start_time, pier_occupied_hours(barge, state))
