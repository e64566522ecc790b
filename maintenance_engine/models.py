"""Domain models for the position maintenance engine."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple


class ActionKind(Enum):
    REBALANCE = "rebalance"
    COLLECT_FEES = "collectFees"
    CLAIM_EMISSIONS = "claimEmissions"


class ActionStatus(Enum):
    NOT_ATTEMPTED = "NOT_ATTEMPTED"
    SUBMITTED = "SUBMITTED"
    CONFIRMED = "CONFIRMED"
    FAILED = "FAILED"


_WIRE_STATUS: Dict[ActionStatus, str] = {
    ActionStatus.CONFIRMED: "success",
    ActionStatus.FAILED: "failed",
}


class ActionTransitionError(RuntimeError):
    """Raised when an action is moved through an illegal status transition."""


@dataclass
class Action:
    """A planned maintenance call and its lifecycle within one run.

    Transitions are NOT_ATTEMPTED -> SUBMITTED -> (CONFIRMED | FAILED) and
    nothing else. Once frozen by the report builder no field can change.
    """

    kind: ActionKind
    status: ActionStatus = ActionStatus.NOT_ATTEMPTED
    tx_reference: Optional[str] = None
    error_detail: Optional[str] = None
    _frozen: bool = field(default=False, init=False, repr=False, compare=False)

    def __setattr__(self, name: str, value: object) -> None:
        if getattr(self, "_frozen", False):
            raise ActionTransitionError(f"{self.kind.value} is frozen.")
        super().__setattr__(name, value)

    @property
    def terminal(self) -> bool:
        return self.status in (ActionStatus.CONFIRMED, ActionStatus.FAILED)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def mark_submitted(self) -> None:
        self._transition(ActionStatus.NOT_ATTEMPTED, ActionStatus.SUBMITTED)

    def mark_confirmed(self, tx_reference: str) -> None:
        self._transition(ActionStatus.SUBMITTED, ActionStatus.CONFIRMED)
        self.tx_reference = tx_reference

    def mark_failed(self, error_detail: str, tx_reference: Optional[str] = None) -> None:
        self._transition(ActionStatus.SUBMITTED, ActionStatus.FAILED)
        self.error_detail = error_detail
        self.tx_reference = tx_reference

    def freeze(self) -> None:
        self._frozen = True

    def to_dict(self) -> Dict[str, str]:
        if self.status not in _WIRE_STATUS:
            raise ActionTransitionError(f"{self.kind.value} has no outcome yet ({self.status.value}).")
        entry = {"action": self.kind.value, "status": _WIRE_STATUS[self.status]}
        if self.tx_reference:
            entry["txHash"] = self.tx_reference
        if self.error_detail:
            entry["error"] = self.error_detail
        return entry

    def _transition(self, expected: ActionStatus, target: ActionStatus) -> None:
        if self._frozen:
            raise ActionTransitionError(f"{self.kind.value} is frozen.")
        if self.status != expected:
            raise ActionTransitionError(
                f"{self.kind.value} cannot move from {self.status.value} to {target.value}."
            )
        self.status = target


@dataclass(frozen=True)
class PositionState:
    is_staked: bool
    has_open_position: bool
    position_id: int = 0


@dataclass(frozen=True)
class AuthorizationContext:
    signer_identity: str
    required_role_id: str
    granted: bool


@dataclass(frozen=True)
class ExecutionReport:
    triggered_at: datetime
    actions: Tuple[Action, ...]

    @property
    def failed_count(self) -> int:
        return sum(1 for action in self.actions if action.status == ActionStatus.FAILED)

    def to_dict(self) -> Dict[str, object]:
        executed: List[Dict[str, str]] = [action.to_dict() for action in self.actions]
        return {
            "timestamp": format_timestamp(self.triggered_at),
            "executed": executed,
        }


def format_timestamp(value: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    utc_value = value.astimezone(timezone.utc)
    return utc_value.isoformat(timespec="milliseconds").replace("+00:00", "Z")
