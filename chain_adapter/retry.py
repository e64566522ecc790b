"""Bounded retry with exponential backoff for idempotent chain reads."""

from dataclasses import dataclass, field
import logging
import time
from typing import Callable, Tuple, Type, TypeVar

from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    base_delay: float = 0.2
    max_delay: float = 2.0
    jitter: float = 0.2
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1.")

    def call(
        self,
        operation: Callable[[], T],
        retry_on: Tuple[Type[BaseException], ...],
        description: str = "operation",
        give_up_on: Tuple[Type[BaseException], ...] = (),
    ) -> T:
        """Run ``operation``, retrying on ``retry_on`` until attempts run out.

        Errors in ``give_up_on`` are raised on first occurrence even when they
        also match ``retry_on``. The last exception is re-raised unchanged.
        Only use this for calls that are safe to repeat.
        """
        retry = retry_if_exception_type(retry_on)
        if give_up_on:
            retry = retry & retry_if_not_exception_type(give_up_on)

        def log_retry(state: RetryCallState) -> None:
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.2fs: %s",
                description,
                state.attempt_number,
                self.max_attempts,
                state.next_action.sleep if state.next_action else 0.0,
                state.outcome.exception() if state.outcome else None,
            )

        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay) + wait_random(0, self.jitter),
            retry=retry,
            sleep=self.sleep,
            before_sleep=log_retry,
            reraise=True,
        )
        try:
            return retrying(operation)
        except retry_on as exc:
            logger.error("%s failed: %s", description, exc)
            raise
