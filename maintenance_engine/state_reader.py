"""Read the position snapshot that maintenance planning depends on."""

import logging

from chain_adapter.client import ChainCallError, ChainClient

from .models import PositionState

logger = logging.getLogger(__name__)


class StateReadError(RuntimeError):
    """Raised when the position state cannot be read in full."""


class PositionStateReader:
    """Fetches a fresh snapshot per run; nothing is cached across runs."""

    def __init__(self, client: ChainClient) -> None:
        self._client = client

    def read(self) -> PositionState:
        try:
            is_staked = self._client.is_staked()
        except ChainCallError as exc:
            raise StateReadError(f"Unable to read staking flag: {exc}") from exc

        try:
            position_id = self._client.current_position_id()
        except ChainCallError as exc:
            raise StateReadError(f"Unable to read current position id: {exc}") from exc

        if isinstance(position_id, bool) or not isinstance(position_id, int) or position_id < 0:
            raise StateReadError(f"Unexpected position id value: {position_id!r}")

        state = PositionState(
            is_staked=bool(is_staked),
            has_open_position=position_id > 0,
            position_id=position_id,
        )
        logger.info("Position state: staked=%s position_id=%d", state.is_staked, position_id)
        return state
