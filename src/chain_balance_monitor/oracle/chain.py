"""EVM balance oracle backed by web3.

Each query opens its own JSON-RPC session and closes it before returning.
There is no caching, retrying or failover: a failed query surfaces as a
QueryFailure and the caller decides what happens next.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Mapping
from contextlib import asynccontextmanager
from typing import Any

from web3 import AsyncWeb3
from web3.providers import AsyncHTTPProvider

from chain_balance_monitor.errors import QueryFailure
from chain_balance_monitor.models import Network, NetworkEndpoint

logger = logging.getLogger(__name__)

# ERC20 balanceOf ABI
ERC20_BALANCE_OF_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [{"name": "_owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "balance", "type": "uint256"}],
        "type": "function",
    }
]


class Web3BalanceOracle:
    """Balance oracle for EVM networks.

    Reads the native coin balance of an address, or its ERC-20 balance when
    the network endpoint names a token contract.

    Example:
        ```python
        oracle = Web3BalanceOracle(
            {
                Network.MAINNET: NetworkEndpoint(
                    network=Network.MAINNET,
                    rpc_url="https://polygon-rpc.com",
                ),
            }
        )
        balance = await oracle.get_balance(Network.MAINNET, "0x...")
        ```
    """

    def __init__(self, endpoints: Mapping[Network, NetworkEndpoint]) -> None:
        """Initialize the oracle.

        Args:
            endpoints: Connection details for each network that can be queried.
        """
        self._endpoints = dict(endpoints)

    @asynccontextmanager
    async def _session(self, endpoint: NetworkEndpoint) -> AsyncIterator[AsyncWeb3]:
        """Open a JSON-RPC session and release it on exit."""
        provider = AsyncHTTPProvider(endpoint.rpc_url)
        w3 = AsyncWeb3(provider)
        try:
            yield w3
        finally:
            await provider.disconnect()

    async def get_balance(self, network: Network, address: str) -> int:
        """Get the free balance of an address.

        Args:
            network: Network to query.
            address: Account address on that network.

        Returns:
            Balance in the smallest unit (wei, or the token's base unit).

        Raises:
            QueryFailure: If the network is not configured, the address
                cannot be decoded or the RPC call fails.
        """
        endpoint = self._endpoints.get(network)
        if endpoint is None:
            raise QueryFailure(network.value, address, "no endpoint configured")

        try:
            account = AsyncWeb3.to_checksum_address(address)
        except (ValueError, TypeError) as e:
            raise QueryFailure(network.value, address, f"invalid address: {e}") from e

        logger.debug(
            "Getting %s balance for %s on %s",
            endpoint.balance_kind,
            address,
            network.value,
        )

        try:
            async with self._session(endpoint) as w3:
                if endpoint.token_address:
                    contract = w3.eth.contract(
                        address=AsyncWeb3.to_checksum_address(endpoint.token_address),
                        abi=ERC20_BALANCE_OF_ABI,
                    )
                    balance = await contract.functions.balanceOf(account).call()
                else:
                    balance = await w3.eth.get_balance(account)
        except Exception as e:
            raise QueryFailure(network.value, address, str(e) or type(e).__name__) from e

        return int(balance)
