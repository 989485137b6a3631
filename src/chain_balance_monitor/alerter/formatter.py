"""Alert message formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from chain_balance_monitor.alerter.models import LowBalanceAlert

MESSAGE_TEMPLATE = "account with address:\n{address}\nhas balance = {balance}"


def format_alert(alert: LowBalanceAlert) -> str:
    """Format a low balance alert as plain text.

    Args:
        alert: The alert to describe.

    Returns:
        Message naming the address and its balance.
    """
    return MESSAGE_TEMPLATE.format(address=alert.address, balance=alert.balance)
