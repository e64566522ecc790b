from .abi import ALM_ABI, WRITE_FUNCTIONS
from .client import (
    ChainCallError,
    ChainClient,
    ConfirmationTimeoutError,
    TransactionFailedError,
    Web3ChainClient,
)
from .models import DryRunResult, DryRunTxResult, TransactionReceipt
from .retry import RetryPolicy

__all__ = [
    "ALM_ABI",
    "ChainCallError",
    "ChainClient",
    "ConfirmationTimeoutError",
    "DryRunResult",
    "DryRunTxResult",
    "RetryPolicy",
    "TransactionFailedError",
    "TransactionReceipt",
    "WRITE_FUNCTIONS",
    "Web3ChainClient",
]
