"""Balance oracle protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from chain_balance_monitor.models import Network


class BalanceOracle(Protocol):
    """Protocol for free balance lookups."""

    async def get_balance(self, network: Network, address: str) -> int:
        """Return the free balance of address in base units.

        Raises QueryFailure when the lookup cannot complete.
        """
        ...
