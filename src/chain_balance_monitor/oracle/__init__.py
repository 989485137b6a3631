"""Balance oracle - Free balance lookups per network."""

from chain_balance_monitor.oracle.base import BalanceOracle
from chain_balance_monitor.oracle.chain import ERC20_BALANCE_OF_ABI, Web3BalanceOracle

__all__ = [
    "BalanceOracle",
    "ERC20_BALANCE_OF_ABI",
    "Web3BalanceOracle",
]
