# barge-dispatch/barge_dispatch/config.py
"""
Configuration parameters for the barge refueling dispatch engine.

This module centralizes all tunable parameters:
- Service-time model (buffers and pumping/loading rates)
- Travel-time estimation (Earth radius, rounding step)
- Default scheduling priorities
- Remote planner connection settings

The engine reads these values at call time, so they can be overridden
per run (tests patch them directly).
"""

from typing import Final, List

# =============================================================================
# SERVICE-TIME MODEL
# =============================================================================

INITIAL_BUFFER_HOURS: float = 1.5
"""Mooring and hose connection time before pumping starts."""

FINAL_BUFFER_HOURS: float = 2.0
"""Disconnection, paperwork and unmooring time after pumping ends."""

PUMP_RATE_PER_HOUR: float = 300.0
"""Ship-side delivery rate (tons/hour)."""

TERMINAL_LOADING_RATE_PER_HOUR: float = 400.0
"""Terminal loading rate when a barge recharges a tank (tons/hour)."""

# =============================================================================
# TRAVEL-TIME ESTIMATION
# =============================================================================

EARTH_RADIUS_NM: Final[float] = 3440.065
"""Mean Earth radius in nautical miles, used by the Haversine formula."""

TRAVEL_TIME_STEP_HOURS: float = 0.5
"""
Travel times are rounded to the nearest multiple of this step.
Ties round up (2.25h -> 2.5h).
"""

# =============================================================================
# RESERVED NAMES
# =============================================================================

TERMINAL_NAME: Final[str] = "TERMINAL"
"""
Name of the reserved loading-pier location. Also used as the ship and
location sentinel when recharge visits are serialized for the caller.
"""

# =============================================================================
# PRIORITIES
# =============================================================================

DEFAULT_PRIORITY_RULES: List[str] = [
    "contractual_date",
    "window_end",
    "total_quantity",
]
"""
Default ordered comparator rules (see priority.RULES).
1. Earlier contractual date first
2. Then earlier window end (urgency)
3. Then larger total requested quantity
Any remaining tie keeps the original request order.
"""

# =============================================================================
# REMOTE PLANNER
# =============================================================================

PLANNER_URL: str = "http://localhost:8080/schedule"
"""Endpoint of an optional remote planning service."""

PLANNER_TIMEOUT_SECONDS: float = 30.0
"""Timeout for remote planner requests. Failures are reported as retryable."""
