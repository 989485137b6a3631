"""Alerting layer - Low balance notification delivery."""

from chain_balance_monitor.alerter.channels.log import LogNotifier
from chain_balance_monitor.alerter.channels.telegram import TelegramNotifier
from chain_balance_monitor.alerter.formatter import format_alert
from chain_balance_monitor.alerter.models import LowBalanceAlert
from chain_balance_monitor.alerter.notifier import Notifier

__all__ = [
    "LogNotifier",
    "LowBalanceAlert",
    "Notifier",
    "TelegramNotifier",
    "format_alert",
]
