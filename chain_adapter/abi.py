"""Contract ABI for the managed liquidity position."""

from typing import Dict, List

WRITE_FUNCTIONS = ("rebalance", "collectFees", "claimEmissions")


def _function(name: str, inputs: List[Dict[str, str]], outputs: List[Dict[str, str]], mutability: str) -> Dict[str, object]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


ALM_ABI: List[Dict[str, object]] = [
    _function("rebalance", [], [], "nonpayable"),
    _function("collectFees", [], [], "nonpayable"),
    _function("claimEmissions", [], [], "nonpayable"),
    _function("isStaked", [], [{"name": "", "type": "bool"}], "view"),
    _function("currentPositionId", [], [{"name": "", "type": "uint256"}], "view"),
    _function(
        "hasRole",
        [{"name": "role", "type": "bytes32"}, {"name": "account", "type": "address"}],
        [{"name": "", "type": "bool"}],
        "view",
    ),
    _function("EXECUTOR_ROLE", [], [{"name": "", "type": "bytes32"}], "view"),
]
