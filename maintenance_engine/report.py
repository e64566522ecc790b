"""Assemble the per-run execution report."""

from datetime import datetime
import json
from typing import Iterable

from .models import Action, ActionTransitionError, ExecutionReport


class ReportBuilder:
    def build(self, triggered_at: datetime, actions: Iterable[Action]) -> ExecutionReport:
        ordered = tuple(actions)
        for action in ordered:
            if not action.terminal:
                raise ActionTransitionError(
                    f"{action.kind.value} has not finished ({action.status.value})."
                )
        for action in ordered:
            action.freeze()
        return ExecutionReport(triggered_at=triggered_at, actions=ordered)


def render_report(report: ExecutionReport) -> str:
    return json.dumps(report.to_dict(), indent=2)
