# barge-dispatch/barge_dispatch/__init__.py

from .models import (
    Location,
    ProductType,
    ProductTank,
    ProductQuantity,
    Barge,
    BargeState,
    BargeStatus,
    RefuelingRequest,
    RequestStatus,
    Delivery,
    RechargeVisit,
    HistoryRecord,
    PriorityRuleSet,
    SchedulingInput,
    ScheduleResult,
)
from .errors import (
    SchedulingError,
    InputValidationError,
    ConfigurationError,
    PlannerUnavailableError,
    ScheduleIntegrityError,
    CommitError,
)
from .dispatch import DispatchEngine, generate_schedule
from .emitter import commit_schedule, schedule_to_dataframe, to_records
from .loaders import load_scenario
from .planner_client import RemotePlanner

__version__ = "1.0.0"

__all__ = [
    # Models
    "Location",
    "ProductType",
    "ProductTank",
    "ProductQuantity",
    "Barge",
    "BargeState",
    "BargeStatus",
    "RefuelingRequest",
    "RequestStatus",
    "Delivery",
    "RechargeVisit",
    "HistoryRecord",
    "PriorityRuleSet",
    "SchedulingInput",
    "ScheduleResult",
    # Errors
    "SchedulingError",
    "InputValidationError",
    "ConfigurationError",
    "PlannerUnavailableError",
    "ScheduleIntegrityError",
    "CommitError",
    # Core
    "DispatchEngine",
    "RemotePlanner",
    # Functions
    "generate_schedule",
    "commit_schedule",
    "schedule_to_dataframe",
    "to_records",
    "load_scenario",
]
