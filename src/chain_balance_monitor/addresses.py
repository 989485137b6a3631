"""Address book loading.

The address book is a JSON document mapping a network name to the ordered
list of addresses watched on that network:

    {
        "mainnet": ["0x742d35Cc6634C0532925a3b844Bc9e7595f5eaE2"],
        "testnet": []
    }

Document order decides the order networks are swept in, list order decides
the order addresses are checked in.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterator, Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from pydantic import TypeAdapter, ValidationError

from chain_balance_monitor.errors import ConfigError
from chain_balance_monitor.models import Network

logger = logging.getLogger(__name__)

_DOCUMENT_ADAPTER: TypeAdapter[dict[str, list[str]]] = TypeAdapter(dict[str, list[str]])


class AddressBook(Mapping[Network, tuple[str, ...]]):
    """Read-only mapping of network to the addresses watched on it."""

    def __init__(self, entries: Mapping[Network, list[str] | tuple[str, ...]]) -> None:
        self._entries: Mapping[Network, tuple[str, ...]] = MappingProxyType(
            {network: tuple(addresses) for network, addresses in entries.items()}
        )

    def __getitem__(self, network: Network) -> tuple[str, ...]:
        return self._entries[network]

    def __iter__(self) -> Iterator[Network]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        counts = ", ".join(f"{n.value}={len(a)}" for n, a in self._entries.items())
        return f"AddressBook({counts})"

    def networks(self) -> list[Network]:
        """Networks with at least one address, in document order."""
        return [network for network, addresses in self._entries.items() if addresses]

    @property
    def total_addresses(self) -> int:
        """Total number of watched addresses across networks."""
        return sum(len(addresses) for addresses in self._entries.values())

    @classmethod
    def from_document(cls, document: Any) -> AddressBook:
        """Build an address book from a decoded JSON document.

        Raises:
            ConfigError: If the document shape or a network name is invalid.
        """
        try:
            raw = _DOCUMENT_ADAPTER.validate_python(document, strict=True)
        except ValidationError as e:
            details = []
            for error in e.errors():
                location = ".".join(str(loc) for loc in error["loc"]) or "(root)"
                details.append(f"{location}: {error['msg']}")
            raise ConfigError("Address list is malformed", details) from e

        known = {network.value: network for network in Network}
        unknown = [name for name in raw if name not in known]
        if unknown:
            raise ConfigError(
                "Address list names unknown networks",
                [f"{name}: expected one of {', '.join(sorted(known))}" for name in unknown],
            )

        return cls({known[name]: addresses for name, addresses in raw.items()})


def load_address_book(path: str | Path) -> AddressBook:
    """Load the address book from a JSON file.

    Args:
        path: Location of the address list document.

    Returns:
        The loaded AddressBook.

    Raises:
        ConfigError: If the file cannot be read or parsed.
    """
    try:
        content = Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read address list {path}: {e}") from e

    try:
        document = json.loads(content)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Address list {path} is not valid JSON: {e}") from e

    book = AddressBook.from_document(document)
    logger.debug("Loaded %s from %s", book, path)
    return book
