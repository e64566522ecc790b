from .coordinator import RunCoordinator, RunState, build_chain_client, build_coordinator
from .guard import (
    AuthenticationError,
    AuthorizationError,
    AuthorizationGuard,
    RoleCheckError,
    authenticate_trigger,
)
from .locks import ConcurrencyError, SignerLockRegistry
from .settings import ExecutorSettings, SettingsError, configure_logging

__all__ = [
    "AuthenticationError",
    "AuthorizationError",
    "AuthorizationGuard",
    "ConcurrencyError",
    "ExecutorSettings",
    "RoleCheckError",
    "RunCoordinator",
    "RunState",
    "SettingsError",
    "SignerLockRegistry",
    "authenticate_trigger",
    "build_chain_client",
    "build_coordinator",
    "configure_logging",
]
