"""Deterministic maintenance plan builder with validation."""

import logging
from typing import Tuple

from .models import Action, ActionKind, ActionStatus, PositionState

logger = logging.getLogger(__name__)

_REWARD_ACTIONS = (ActionKind.CLAIM_EMISSIONS, ActionKind.COLLECT_FEES)


class PlanValidationError(ValueError):
    """Raised when a maintenance plan violates hard validation rules."""


class ActionPlanner:
    """Maps a position snapshot to the ordered actions worth attempting."""

    def plan(self, state: PositionState) -> Tuple[Action, ...]:
        kinds = [ActionKind.REBALANCE]

        if state.is_staked:
            kinds.append(ActionKind.CLAIM_EMISSIONS)
        elif state.has_open_position:
            kinds.append(ActionKind.COLLECT_FEES)

        actions = tuple(Action(kind=kind) for kind in kinds)
        validate_plan(actions, state)
        logger.info(
            "Planned %s for staked=%s open_position=%s",
            [action.kind.value for action in actions],
            state.is_staked,
            state.has_open_position,
        )
        return actions


def plan_actions(state: PositionState) -> Tuple[Action, ...]:
    return ActionPlanner().plan(state)


def expected_length(state: PositionState) -> int:
    if state.is_staked or state.has_open_position:
        return 2
    return 1


def validate_plan(actions: Tuple[Action, ...], state: PositionState) -> None:
    if not actions:
        raise PlanValidationError("Plan must include at least one action.")
    if actions[0].kind != ActionKind.REBALANCE:
        raise PlanValidationError("Rebalance must be the first action.")
    if len(actions) != expected_length(state):
        raise PlanValidationError("Plan length does not match the position state.")

    kinds = [action.kind for action in actions]
    if len(set(kinds)) != len(kinds):
        raise PlanValidationError("Plan must not repeat an action.")

    rewards = [kind for kind in kinds if kind in _REWARD_ACTIONS]
    if len(rewards) > 1:
        raise PlanValidationError("Claiming emissions and collecting fees are exclusive.")
    if ActionKind.CLAIM_EMISSIONS in rewards and not state.is_staked:
        raise PlanValidationError("Emissions can only be claimed while staked.")
    if ActionKind.COLLECT_FEES in rewards and (state.is_staked or not state.has_open_position):
        raise PlanValidationError("Fees can only be collected from an open, unstaked position.")

    for action in actions:
        if action.status != ActionStatus.NOT_ATTEMPTED:
            raise PlanValidationError("Planned actions must not have been attempted.")
