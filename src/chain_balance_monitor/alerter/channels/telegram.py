"""Telegram Bot API notifier."""

from __future__ import annotations

import logging

import httpx

from chain_balance_monitor.errors import DeliveryFailure

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org/bot{token}/sendMessage"


class TelegramNotifier:
    """Telegram Bot API notifier for sending alerts.

    Posts each message once to a fixed chat. Any response below 400 counts
    as delivered; the response body is never inspected.
    """

    def __init__(self, bot_token: str, chat_id: str) -> None:
        """Initialize Telegram notifier.

        Args:
            bot_token: Telegram bot token.
            chat_id: Target chat/channel ID.
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.name = "telegram"

        self._api_url = TELEGRAM_API_BASE.format(token=bot_token)

    async def notify(self, message: str) -> None:
        """Send a message to the Telegram chat.

        Args:
            message: Fully formatted message text.

        Raises:
            DeliveryFailure: On transport error or an HTTP status of 400 or more.
        """
        payload = {
            "chat_id": self.chat_id,
            "text": message,
        }

        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(self._api_url, json=payload)
        except httpx.HTTPError as e:
            # The exception text can contain the URL, and with it the bot token
            logger.error("Telegram API transport error: %s", type(e).__name__)
            raise DeliveryFailure(f"transport error ({type(e).__name__})") from e

        if response.status_code >= 400:
            logger.error("Telegram API returned HTTP %d", response.status_code)
            raise DeliveryFailure(
                f"Telegram API returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        logger.info("Telegram alert delivered")
