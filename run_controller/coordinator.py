"""Orchestrates one maintenance run from trigger to report."""

from datetime import datetime, timezone
from enum import Enum
import logging
import time
from typing import Callable, Optional

from chain_adapter.client import ChainClient, Web3ChainClient
from chain_adapter.retry import RetryPolicy
from maintenance_engine.executor import ActionExecutor
from maintenance_engine.models import ExecutionReport
from maintenance_engine.planner import ActionPlanner
from maintenance_engine.report import ReportBuilder, render_report
from maintenance_engine.state_reader import PositionStateReader

from .guard import AuthenticationError, AuthorizationError, AuthorizationGuard, authenticate_trigger
from .locks import SignerLockRegistry
from .settings import ExecutorSettings

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "IDLE"
    AUTHENTICATING = "AUTHENTICATING"
    CHECKING_ROLE = "CHECKING_ROLE"
    READING_STATE = "READING_STATE"
    PLANNING = "PLANNING"
    EXECUTING = "EXECUTING"
    REPORTING = "REPORTING"


class RunCoordinator:
    """Runs authenticate -> role check -> read -> plan -> execute -> report.

    Run-level failures (authentication, authorization, role check, state
    read, lock contention) raise and produce no report. Action failures are
    recorded inside the report and never abort the run.

    The signer lock is taken before the role check and released on every
    exit path, so state is read and acted on by one run at a time.
    """

    def __init__(
        self,
        client: ChainClient,
        cron_secret: str,
        locks: Optional[SignerLockRegistry] = None,
        lock_timeout: float = 1.0,
        run_deadline: float = 270.0,
        confirmation_timeout: float = 120.0,
        clock: Optional[Callable[[], float]] = None,
        now: Optional[Callable[[], datetime]] = None,
        on_transition: Optional[Callable[[RunState], None]] = None,
    ) -> None:
        self._client = client
        self._cron_secret = cron_secret
        self._locks = locks or SignerLockRegistry()
        self._lock_timeout = lock_timeout
        self._run_deadline = run_deadline
        self._clock = clock or time.monotonic
        self._now = now or _utc_now
        self._on_transition = on_transition
        self._guard = AuthorizationGuard(client)
        self._reader = PositionStateReader(client)
        self._planner = ActionPlanner()
        self._executor = ActionExecutor(client, confirmation_timeout=confirmation_timeout, clock=self._clock)
        self._reports = ReportBuilder()

    @property
    def signer(self) -> str:
        return self._client.signer_address

    def handle_trigger(self, authorization_header: Optional[str]) -> ExecutionReport:
        self._enter(RunState.AUTHENTICATING)
        try:
            authenticate_trigger(authorization_header, self._cron_secret)
        except AuthenticationError:
            self._enter(RunState.IDLE)
            raise
        return self.execute_run()

    def execute_run(self) -> ExecutionReport:
        triggered_at = self._now()
        deadline = self._clock() + self._run_deadline
        signer = self.signer
        logger.info("Maintenance run started for %s", signer)

        try:
            with self._locks.hold(signer, timeout=self._lock_timeout):
                self._enter(RunState.CHECKING_ROLE)
                authorization = self._guard.check()
                if not authorization.granted:
                    raise AuthorizationError("Signer does not have executor role")

                self._enter(RunState.READING_STATE)
                state = self._reader.read()

                self._enter(RunState.PLANNING)
                actions = self._planner.plan(state)

                self._enter(RunState.EXECUTING)
                executed = self._executor.execute(actions, authorization, deadline=deadline)

                self._enter(RunState.REPORTING)
                report = self._reports.build(triggered_at, executed)
        except Exception as exc:
            logger.error("Maintenance run aborted: %s", exc)
            raise
        finally:
            self._enter(RunState.IDLE)

        logger.info("Executor results: %s", render_report(report))
        return report

    def _enter(self, state: RunState) -> None:
        logger.debug("Run state -> %s", state.value)
        if self._on_transition is not None:
            self._on_transition(state)


def build_chain_client(settings: ExecutorSettings) -> Web3ChainClient:
    settings.require_chain_access()
    return Web3ChainClient(
        rpc_url=settings.rpc_url,
        private_key=settings.private_key,
        contract_address=settings.contract_address,
        chain_id=settings.chain_id,
        rpc_timeout=settings.rpc_timeout,
        retry_policy=RetryPolicy(max_attempts=settings.read_retry_attempts),
    )


def build_coordinator(
    settings: ExecutorSettings,
    client: Optional[ChainClient] = None,
    locks: Optional[SignerLockRegistry] = None,
) -> RunCoordinator:
    return RunCoordinator(
        client=client or build_chain_client(settings),
        cron_secret=settings.cron_secret,
        locks=locks,
        lock_timeout=settings.lock_timeout,
        run_deadline=settings.run_deadline,
        confirmation_timeout=settings.confirmation_timeout,
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)
