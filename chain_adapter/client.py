"""Typed access to the managed position contract over JSON-RPC."""

import logging
from typing import Any, Dict, Optional, Protocol, Tuple, Type

from eth_account import Account
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception

from .abi import ALM_ABI, WRITE_FUNCTIONS
from .models import TransactionReceipt
from .retry import RetryPolicy

logger = logging.getLogger(__name__)

# requests' transport errors derive from OSError; ABI decoding issues surface as ValueError.
_TRANSPORT_ERRORS: Tuple[Type[BaseException], ...] = (Web3Exception, OSError, ValueError)
# Reverts are deterministic; repeating the call returns the same answer.
_NON_RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (ContractLogicError,)


class ChainCallError(RuntimeError):
    """Raised when a read call cannot be completed."""


class TransactionFailedError(RuntimeError):
    """Raised when a transaction is rejected, reverts, or cannot be confirmed."""

    def __init__(self, message: str, tx_hash: Optional[str] = None) -> None:
        super().__init__(message)
        self.tx_hash = tx_hash


class ConfirmationTimeoutError(TransactionFailedError):
    """Raised when a submitted transaction is not confirmed in time."""


class ChainClient(Protocol):
    @property
    def signer_address(self) -> str:
        ...

    def executor_role(self) -> bytes:
        ...

    def has_role(self, role: bytes, account: str) -> bool:
        ...

    def is_staked(self) -> bool:
        ...

    def current_position_id(self) -> int:
        ...

    def send_transaction(self, function_name: str, timeout: float) -> TransactionReceipt:
        ...

    def estimate_gas(self, function_name: str) -> int:
        ...


class Web3ChainClient:
    """Web3-backed client that signs locally with the executor key."""

    def __init__(
        self,
        rpc_url: str,
        private_key: str,
        contract_address: str,
        chain_id: Optional[int] = None,
        rpc_timeout: float = 30.0,
        retry_policy: Optional[RetryPolicy] = None,
        web3: Optional[Web3] = None,
    ) -> None:
        self._web3 = web3 or Web3(Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": rpc_timeout}))
        self._account = Account.from_key(private_key)
        self._contract = self._web3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=ALM_ABI,
        )
        self._chain_id = chain_id
        self._retry_policy = retry_policy or RetryPolicy()
        logger.debug("Chain client initialized for %s (signer %s)", rpc_url, self._account.address)

    @property
    def signer_address(self) -> str:
        return self._account.address

    def executor_role(self) -> bytes:
        return bytes(self._read("EXECUTOR_ROLE"))

    def has_role(self, role: bytes, account: str) -> bool:
        return bool(self._read("hasRole", role, Web3.to_checksum_address(account)))

    def is_staked(self) -> bool:
        return bool(self._read("isStaked"))

    def current_position_id(self) -> int:
        return int(self._read("currentPositionId"))

    def estimate_gas(self, function_name: str) -> int:
        function = self._write_function(function_name)
        try:
            return int(
                self._retry_policy.call(
                    lambda: function.estimate_gas({"from": self.signer_address}),
                    retry_on=_TRANSPORT_ERRORS,
                    description=f"estimate_gas({function_name})",
                    give_up_on=_NON_RETRYABLE_ERRORS,
                )
            )
        except _TRANSPORT_ERRORS as exc:
            raise ChainCallError(f"Gas estimation for {function_name} failed: {exc}") from exc

    def send_transaction(self, function_name: str, timeout: float) -> TransactionReceipt:
        function = self._write_function(function_name)
        try:
            tx = function.build_transaction(self._tx_options())
            signed = self._account.sign_transaction(tx)
            raw_hash = self._web3.eth.send_raw_transaction(signed.raw_transaction)
        except _TRANSPORT_ERRORS as exc:
            raise TransactionFailedError(f"{function_name} submission rejected: {exc}") from exc

        tx_hash = Web3.to_hex(raw_hash)
        logger.info("Submitted %s as %s", function_name, tx_hash)

        try:
            receipt = self._web3.eth.wait_for_transaction_receipt(raw_hash, timeout=timeout)
        except TimeExhausted as exc:
            raise ConfirmationTimeoutError(
                f"{function_name} not confirmed within {timeout:.1f}s",
                tx_hash=tx_hash,
            ) from exc
        except _TRANSPORT_ERRORS as exc:
            raise TransactionFailedError(
                f"{function_name} confirmation failed: {exc}",
                tx_hash=tx_hash,
            ) from exc

        if receipt["status"] != 1:
            raise TransactionFailedError(
                f"{function_name} reverted in block {receipt['blockNumber']}",
                tx_hash=tx_hash,
            )

        return TransactionReceipt(
            tx_hash=tx_hash,
            block_number=int(receipt["blockNumber"]),
            gas_used=int(receipt["gasUsed"]),
        )

    def _read(self, function_name: str, *args: Any) -> Any:
        function = getattr(self._contract.functions, function_name)
        try:
            return self._retry_policy.call(
                lambda: function(*args).call(),
                retry_on=_TRANSPORT_ERRORS,
                description=f"{function_name}()",
                give_up_on=_NON_RETRYABLE_ERRORS,
            )
        except _TRANSPORT_ERRORS as exc:
            raise ChainCallError(f"Read call {function_name} failed: {exc}") from exc

    def _write_function(self, function_name: str):
        if function_name not in WRITE_FUNCTIONS:
            raise ValueError(f"Unsupported write function: {function_name}")
        return getattr(self._contract.functions, function_name)()

    def _tx_options(self) -> Dict[str, Any]:
        # Pending count so a nonce is never reused while a prior tx is in the mempool.
        options: Dict[str, Any] = {
            "from": self.signer_address,
            "nonce": self._web3.eth.get_transaction_count(self.signer_address, "pending"),
        }
        if self._chain_id is not None:
            options["chainId"] = self._chain_id
        return options
