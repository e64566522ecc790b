from .executor import ActionExecutor, ExecutionBlockedError
from .models import (
    Action,
    ActionKind,
    ActionStatus,
    ActionTransitionError,
    AuthorizationContext,
    ExecutionReport,
    PositionState,
)
from .planner import ActionPlanner, PlanValidationError, plan_actions, validate_plan
from .report import ReportBuilder, render_report
from .state_reader import PositionStateReader, StateReadError

__all__ = [
    "Action",
    "ActionExecutor",
    "ActionKind",
    "ActionPlanner",
    "ActionStatus",
    "ActionTransitionError",
    "AuthorizationContext",
    "ExecutionBlockedError",
    "ExecutionReport",
    "PlanValidationError",
    "PositionState",
    "PositionStateReader",
    "ReportBuilder",
    "StateReadError",
    "plan_actions",
    "render_report",
    "validate_plan",
]
