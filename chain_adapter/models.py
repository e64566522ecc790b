"""Chain adapter models for confirmed transactions and dry-run output."""

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class TransactionReceipt:
    tx_hash: str
    block_number: int
    gas_used: int


@dataclass(frozen=True)
class DryRunTxResult:
    action: str
    success: bool
    gas_estimate: int
    notes: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DryRunResult:
    success: bool
    tx_results: Tuple[DryRunTxResult, ...]
    total_gas: int
    notes: Tuple[str, ...] = ()
