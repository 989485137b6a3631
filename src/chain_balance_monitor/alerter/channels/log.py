"""Notifier that only logs, used for dry runs."""

from __future__ import annotations

import logging

logger = logging.getLogger(__name__)


class LogNotifier:
    """Writes alerts to the log instead of delivering them."""

    def __init__(self) -> None:
        self.name = "log"

    async def notify(self, message: str) -> None:
        """Log the alert message."""
        logger.warning("[dry run] %s", message.replace("\n", " "))
