# barge-dispatch/barge_dispatch/errors.py
"""
Error taxonomy for the dispatch engine.

- Input validation errors fail the whole run before planning starts.
- Infeasible requests are NOT errors; they are reported in
  ScheduleResult.unscheduled.
- Remote planner failures are transient and may be retried by the caller.
"""


class SchedulingError(Exception):
    """Base class for all engine errors."""
    retryable: bool = False


class InputValidationError(SchedulingError, ValueError):
    """Malformed timestamps, non-positive quantities or unknown references."""


class ConfigurationError(InputValidationError):
    """Invalid coordinates or speeds in the fleet/location configuration."""


class PlannerUnavailableError(SchedulingError):
    """The remote planner could not produce a schedule. Safe to retry."""
    retryable = True


class ScheduleIntegrityError(SchedulingError):
    """A produced schedule violates a scheduling invariant."""


class CommitError(SchedulingError):
    """A schedule cannot be applied to the barge state store."""
