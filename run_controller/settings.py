"""Environment-driven settings and logging setup for the executor."""

from dataclasses import dataclass
import logging
import os
from typing import Mapping, Optional

DEFAULT_RPC_URL = "https://rpc.soniclabs.com"

_LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_HANDLER_NAME = "maintenance-executor"


class SettingsError(ValueError):
    """Raised when required settings are missing or malformed."""


@dataclass(frozen=True)
class ExecutorSettings:
    cron_secret: str = ""
    rpc_url: str = DEFAULT_RPC_URL
    private_key: Optional[str] = None
    contract_address: Optional[str] = None
    chain_id: Optional[int] = None
    rpc_timeout: float = 30.0
    confirmation_timeout: float = 120.0
    run_deadline: float = 270.0
    lock_timeout: float = 1.0
    read_retry_attempts: int = 3
    log_level: str = "INFO"

    def __repr__(self) -> str:
        return (
            f"ExecutorSettings(rpc_url={self.rpc_url!r}, contract_address={self.contract_address!r}, "
            f"chain_id={self.chain_id!r}, cron_secret={'set' if self.cron_secret else 'unset'}, "
            f"private_key={'set' if self.private_key else 'unset'})"
        )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ExecutorSettings":
        env = os.environ if environ is None else environ
        settings = cls(
            cron_secret=env.get("CRON_SECRET", ""),
            rpc_url=env.get("RPC_URL") or DEFAULT_RPC_URL,
            private_key=env.get("EXECUTOR_PRIVATE_KEY") or None,
            contract_address=env.get("ALM_CONTRACT_ADDRESS") or None,
            chain_id=_optional_int(env, "CHAIN_ID"),
            rpc_timeout=_positive_float(env, "RPC_TIMEOUT_SECONDS", 30.0),
            confirmation_timeout=_positive_float(env, "CONFIRMATION_TIMEOUT_SECONDS", 120.0),
            run_deadline=_positive_float(env, "RUN_DEADLINE_SECONDS", 270.0),
            lock_timeout=_non_negative_float(env, "LOCK_TIMEOUT_SECONDS", 1.0),
            read_retry_attempts=_positive_int(env, "READ_RETRY_ATTEMPTS", 3),
            log_level=env.get("LOG_LEVEL", "INFO").upper(),
        )
        if logging.getLevelName(settings.log_level) == f"Level {settings.log_level}":
            raise SettingsError(f"Unknown LOG_LEVEL: {settings.log_level}")
        return settings

    def require_chain_access(self) -> None:
        missing = [
            name
            for name, value in (
                ("EXECUTOR_PRIVATE_KEY", self.private_key),
                ("ALM_CONTRACT_ADDRESS", self.contract_address),
            )
            if not value
        ]
        if missing:
            raise SettingsError("Missing required settings: " + ", ".join(missing))


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    root.setLevel(level)
    if any(handler.get_name() == _HANDLER_NAME for handler in root.handlers):
        return
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(handler)


def _optional_int(env: Mapping[str, str], name: str) -> Optional[int]:
    raw = env.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be an integer.") from exc


def _positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = _optional_int(env, name)
    if value is None:
        return default
    if value < 1:
        raise SettingsError(f"{name} must be at least 1.")
    return value


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw in (None, ""):
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise SettingsError(f"{name} must be a number.") from exc


def _positive_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _float(env, name, default)
    if value <= 0:
        raise SettingsError(f"{name} must be positive.")
    return value


def _non_negative_float(env: Mapping[str, str], name: str, default: float) -> float:
    value = _float(env, name, default)
    if value < 0:
        raise SettingsError(f"{name} must not be negative.")
    return value
