"""Trigger authentication and on-chain role checks."""

import hmac
import logging
from typing import Optional

from chain_adapter.client import ChainCallError, ChainClient
from maintenance_engine.models import AuthorizationContext

logger = logging.getLogger(__name__)


class AuthenticationError(PermissionError):
    """Raised when the trigger's credential does not match the shared secret."""


class AuthorizationError(PermissionError):
    """Raised when the signer does not hold the executor role."""


class RoleCheckError(RuntimeError):
    """Raised when the role check itself cannot be completed."""


def authenticate_trigger(authorization_header: Optional[str], secret: str) -> None:
    if not secret:
        logger.error("Trigger rejected: no shared secret is configured")
        raise AuthenticationError("Unauthorized")
    expected = f"Bearer {secret}".encode("utf-8")
    presented = (authorization_header or "").encode("utf-8")
    if not hmac.compare_digest(presented, expected):
        logger.warning("Trigger rejected: credential mismatch")
        raise AuthenticationError("Unauthorized")


class AuthorizationGuard:
    """Reads the executor role and whether the signer holds it. No side effects."""

    def __init__(self, client: ChainClient) -> None:
        self._client = client

    def check(self) -> AuthorizationContext:
        signer = self._client.signer_address
        try:
            role = self._client.executor_role()
            granted = bool(self._client.has_role(role, signer))
        except ChainCallError as exc:
            raise RoleCheckError(f"Unable to verify executor role: {exc}") from exc

        context = AuthorizationContext(
            signer_identity=signer,
            required_role_id="0x" + bytes(role).hex(),
            granted=granted,
        )
        logger.info("Role check for %s: granted=%s", signer, granted)
        return context
