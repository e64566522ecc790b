"""Operator CLI for the position maintenance executor."""

from __future__ import annotations

import argparse
from dataclasses import asdict
import json
import sys
from typing import List, Mapping, Optional

from dotenv import load_dotenv

from chain_adapter.client import ChainCallError, ChainClient
from chain_adapter.simulator import simulate
from maintenance_engine.executor import ExecutionBlockedError
from maintenance_engine.models import PositionState
from maintenance_engine.planner import ActionPlanner, PlanValidationError
from maintenance_engine.report import render_report
from maintenance_engine.state_reader import PositionStateReader, StateReadError
from run_controller.coordinator import RunCoordinator, build_chain_client
from run_controller.guard import AuthorizationError, RoleCheckError
from run_controller.locks import ConcurrencyError
from run_controller.settings import ExecutorSettings, SettingsError, configure_logging


def main(
    argv: Optional[List[str]] = None,
    client: Optional[ChainClient] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    parser = argparse.ArgumentParser(prog="maintenance-executor")
    parser.add_argument("--log-level", default=None)
    subparsers = parser.add_subparsers(dest="command", required=True)

    state_parser = subparsers.add_parser("state")
    state_parser.set_defaults(func=_state_show)

    plan_parser = subparsers.add_parser("plan")
    staked_group = plan_parser.add_mutually_exclusive_group()
    staked_group.add_argument("--staked", dest="staked", action="store_true", default=None)
    staked_group.add_argument("--not-staked", dest="staked", action="store_false")
    plan_parser.add_argument("--position-id", type=int, default=None)
    plan_parser.set_defaults(func=_plan_show)

    simulate_parser = subparsers.add_parser("simulate")
    simulate_parser.set_defaults(func=_simulate_plan)

    run_parser = subparsers.add_parser("run")
    run_parser.add_argument("--yes", action="store_true")
    run_parser.set_defaults(func=_run_maintenance)

    args = parser.parse_args(argv)

    if environ is None:
        load_dotenv()

    try:
        args.settings = ExecutorSettings.from_env(environ)
        configure_logging(args.log_level or args.settings.log_level)
        args.client = client
        return args.func(args)
    except (
        ValueError,
        AuthorizationError,
        ChainCallError,
        ConcurrencyError,
        ExecutionBlockedError,
        PlanValidationError,
        RoleCheckError,
        SettingsError,
        StateReadError,
    ) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2


def _state_show(args: argparse.Namespace) -> int:
    state = PositionStateReader(_client(args)).read()
    print(json.dumps(asdict(state), indent=2))
    return 0


def _plan_show(args: argparse.Namespace) -> int:
    state = _plan_state(args)
    actions = ActionPlanner().plan(state)
    print(
        json.dumps(
            {
                "state": asdict(state),
                "actions": [action.kind.value for action in actions],
            },
            indent=2,
        )
    )
    return 0


def _simulate_plan(args: argparse.Namespace) -> int:
    client = _client(args)
    state = PositionStateReader(client).read()
    actions = ActionPlanner().plan(state)
    dry_run = simulate(client, actions)
    print(json.dumps({"state": asdict(state), "dry_run": asdict(dry_run)}, indent=2))
    return 0 if dry_run.success else 1


def _run_maintenance(args: argparse.Namespace) -> int:
    if not args.yes:
        if not _confirm("Submit maintenance transactions? [y/N]: "):
            raise ExecutionBlockedError("Run confirmation denied.")

    settings: ExecutorSettings = args.settings
    coordinator = RunCoordinator(
        client=_client(args),
        cron_secret=settings.cron_secret,
        lock_timeout=settings.lock_timeout,
        run_deadline=settings.run_deadline,
        confirmation_timeout=settings.confirmation_timeout,
    )
    report = coordinator.execute_run()
    print(render_report(report))
    return 0


def _plan_state(args: argparse.Namespace) -> PositionState:
    if args.staked is None:
        if args.position_id is not None:
            raise ValueError("--position-id requires --staked or --not-staked.")
        return PositionStateReader(_client(args)).read()

    position_id = args.position_id or 0
    if position_id < 0:
        raise ValueError("--position-id must not be negative.")
    return PositionState(
        is_staked=args.staked,
        has_open_position=position_id > 0,
        position_id=position_id,
    )


def _client(args: argparse.Namespace) -> ChainClient:
    if args.client is None:
        args.client = build_chain_client(args.settings)
    return args.client


def _confirm(prompt: str) -> bool:
    response = input(prompt).strip().lower()
    return response in ("y", "yes")


if __name__ == "__main__":
    raise SystemExit(main())
