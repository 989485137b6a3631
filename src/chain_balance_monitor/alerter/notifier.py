"""Notifier protocol."""

from __future__ import annotations

from typing import Protocol


class Notifier(Protocol):
    """Protocol for alert delivery."""

    name: str

    async def notify(self, message: str) -> None:
        """Deliver message. Raises DeliveryFailure on failure."""
        ...
