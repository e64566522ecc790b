"""HTTP trigger for the scheduled position maintenance run."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional, Type

from fastapi import FastAPI, Header, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from maintenance_engine.state_reader import StateReadError
from run_controller.coordinator import RunCoordinator, build_coordinator
from run_controller.guard import AuthenticationError, AuthorizationError, RoleCheckError, authenticate_trigger
from run_controller.locks import ConcurrencyError
from run_controller.settings import ExecutorSettings, SettingsError, configure_logging

logger = logging.getLogger(__name__)

app = FastAPI(title="Position Maintenance Executor", description="Scheduled maintenance trigger")

_SETTINGS: Optional[ExecutorSettings] = None
_COORDINATOR: Optional[RunCoordinator] = None


class ExecutedAction(BaseModel):
    action: str
    status: str
    txHash: Optional[str] = None
    error: Optional[str] = None


class RunResponse(BaseModel):
    timestamp: str
    executed: List[ExecutedAction]


_STATUS_BY_ERROR: Dict[Type[Exception], int] = {
    AuthenticationError: 401,
    AuthorizationError: 403,
    RoleCheckError: 500,
    StateReadError: 500,
    ConcurrencyError: 500,
    SettingsError: 500,
}
_RUN_ERRORS = tuple(_STATUS_BY_ERROR)


async def _handle_run_error(request: Request, exc: Exception):
    status_code = _STATUS_BY_ERROR.get(type(exc), 500)
    return JSONResponse({"error": str(exc)}, status_code=status_code)


for _exc_class in _STATUS_BY_ERROR:
    app.add_exception_handler(_exc_class, _handle_run_error)


@app.api_route(
    "/api/cron/executor",
    methods=["GET", "POST"],
    response_model=RunResponse,
    response_model_exclude_none=True,
)
async def run_executor(authorization: Optional[str] = Header(None)):
    try:
        settings = _get_settings()
        authenticate_trigger(authorization, settings.cron_secret)
        coordinator = _get_coordinator(settings)
        report = await asyncio.to_thread(coordinator.handle_trigger, authorization)
    except _RUN_ERRORS:
        raise
    except Exception as exc:
        logger.exception("Executor error")
        return JSONResponse({"error": "Executor failed", "message": str(exc)}, status_code=500)
    return report.to_dict()


def _get_settings() -> ExecutorSettings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = ExecutorSettings.from_env()
        configure_logging(_SETTINGS.log_level)
    return _SETTINGS


def _get_coordinator(settings: ExecutorSettings) -> RunCoordinator:
    global _COORDINATOR
    if _COORDINATOR is None:
        _COORDINATOR = build_coordinator(settings)
        logger.info("Executor configured: %r", settings)
    return _COORDINATOR


def _set_coordinator(coordinator: Optional[RunCoordinator]) -> None:
    global _COORDINATOR
    _COORDINATOR = coordinator


def _reset_state() -> None:
    global _SETTINGS
    _SETTINGS = None
    _set_coordinator(None)
