"""Sequential submission of planned actions with per-action failure isolation."""

import logging
import time
from typing import Callable, Iterable, Optional, Tuple

from chain_adapter.client import ChainClient, ConfirmationTimeoutError, TransactionFailedError

from .models import Action, ActionStatus, ActionTransitionError, AuthorizationContext

logger = logging.getLogger(__name__)


class ExecutionBlockedError(RuntimeError):
    """Raised when execution is attempted without a granted authorization."""


class ActionExecutor:
    """Submits actions one at a time from a single signer.

    Each transaction is awaited to confirmation before the next is built, so
    the signer's nonce sequence is never contended within a run. A failure is
    recorded on its action and the loop moves on; nothing is retried here.
    """

    def __init__(
        self,
        client: ChainClient,
        confirmation_timeout: float = 120.0,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        self._client = client
        self._confirmation_timeout = confirmation_timeout
        self._clock = clock or time.monotonic

    def execute(
        self,
        actions: Iterable[Action],
        authorization: AuthorizationContext,
        deadline: Optional[float] = None,
    ) -> Tuple[Action, ...]:
        if not authorization.granted:
            raise ExecutionBlockedError(
                f"Signer {authorization.signer_identity} lacks role {authorization.required_role_id}."
            )

        executed = tuple(actions)
        for action in executed:
            if action.status != ActionStatus.NOT_ATTEMPTED:
                raise ActionTransitionError(f"{action.kind.value} was already attempted in this run.")

        for action in executed:
            self._execute_one(action, deadline)
        return executed

    def _execute_one(self, action: Action, deadline: Optional[float]) -> None:
        name = action.kind.value
        timeout = self._timeout_for(deadline)
        action.mark_submitted()

        if timeout <= 0:
            action.mark_failed("Run deadline exceeded before submission.")
            logger.warning("Skipped submitting %s: run deadline exceeded", name)
            return

        try:
            receipt = self._client.send_transaction(name, timeout=timeout)
        except ConfirmationTimeoutError as exc:
            action.mark_failed(f"Confirmation timed out: {exc}", tx_reference=exc.tx_hash)
            logger.warning("%s timed out waiting for confirmation (%s)", name, exc.tx_hash)
        except TransactionFailedError as exc:
            action.mark_failed(str(exc), tx_reference=exc.tx_hash)
            logger.warning("%s failed: %s", name, exc)
        except Exception as exc:
            action.mark_failed(f"Unexpected error: {exc}")
            logger.exception("%s failed with an unexpected error", name)
        else:
            action.mark_confirmed(receipt.tx_hash)
            logger.info("%s confirmed in block %d (%s)", name, receipt.block_number, receipt.tx_hash)

    def _timeout_for(self, deadline: Optional[float]) -> float:
        if deadline is None:
            return self._confirmation_timeout
        return min(self._confirmation_timeout, deadline - self._clock())
