"""Data models for the alerter module."""

from __future__ import annotations

from dataclasses import dataclass

from chain_balance_monitor.models import Network


@dataclass(frozen=True)
class LowBalanceAlert:
    """An address whose free balance fell below the threshold.

    Attributes:
        network: Network the address was checked on.
        address: Account address as listed in the address book.
        balance: Free balance in base units.
        threshold: Threshold the balance was compared against.
    """

    network: Network
    address: str
    balance: int
    threshold: int

    @property
    def shortfall(self) -> int:
        """Base units missing to reach the threshold."""
        return self.threshold - self.balance
