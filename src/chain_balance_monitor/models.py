"""Core data models shared across the balance monitor."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Network(Enum):
    """Known chain networks an address can be watched on."""

    MAINNET = "mainnet"
    TESTNET = "testnet"


@dataclass(frozen=True)
class NetworkEndpoint:
    """Connection details for one network.

    Attributes:
        network: Network these details belong to.
        rpc_url: JSON-RPC endpoint, possibly carrying a provider API key.
        token_address: ERC-20 contract to read balances from. When None the
            native coin balance is used.
    """

    network: Network
    rpc_url: str
    token_address: str | None = None

    @property
    def balance_kind(self) -> str:
        """Human-readable description of what balance is read."""
        if self.token_address:
            return f"token {self.token_address}"
        return "native"
