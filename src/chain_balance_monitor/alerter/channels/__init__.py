"""Notifier implementations for various destinations."""

from chain_balance_monitor.alerter.channels.log import LogNotifier
from chain_balance_monitor.alerter.channels.telegram import TelegramNotifier

__all__ = [
    "LogNotifier",
    "TelegramNotifier",
]
