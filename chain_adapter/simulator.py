"""Estimate gas for a maintenance plan without submitting transactions."""

from typing import Iterable

from maintenance_engine.models import Action

from .client import ChainCallError, ChainClient
from .models import DryRunResult, DryRunTxResult


def simulate(client: ChainClient, actions: Iterable[Action]) -> DryRunResult:
    tx_results = []
    total_gas = 0

    for action in actions:
        function_name = action.kind.value
        try:
            gas = client.estimate_gas(function_name)
        except ChainCallError as exc:
            tx_results.append(
                DryRunTxResult(
                    action=function_name,
                    success=False,
                    gas_estimate=0,
                    notes=(str(exc),),
                )
            )
            continue
        tx_results.append(
            DryRunTxResult(
                action=function_name,
                success=True,
                gas_estimate=gas,
                notes=("Dry-run only; no transaction submitted.",),
            )
        )
        total_gas += gas

    return DryRunResult(
        success=all(result.success for result in tx_results),
        tx_results=tuple(tx_results),
        total_gas=total_gas,
        notes=("Estimates reflect current chain state and may change before submission.",),
    )
