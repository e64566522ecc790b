"""Per-signer mutual exclusion for maintenance runs."""

from contextlib import contextmanager
import logging
import threading
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class ConcurrencyError(RuntimeError):
    """Raised when another run already holds the signer's lock."""


class SignerLockRegistry:
    """Hands out one lock per signer identity, created on first use."""

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, threading.Lock] = {}

    def _lock_for(self, signer: str) -> threading.Lock:
        key = signer.lower()
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._locks[key] = lock
            return lock

    def is_held(self, signer: str) -> bool:
        return self._lock_for(signer).locked()

    @contextmanager
    def hold(self, signer: str, timeout: float) -> Iterator[None]:
        lock = self._lock_for(signer)
        if not lock.acquire(timeout=timeout):
            logger.warning("Run already in progress for %s", signer)
            raise ConcurrencyError(f"Run already in progress for signer {signer}.")
        try:
            yield
        finally:
            lock.release()
