"""Monitor loop - Periodic balance sweeps and alerting."""

from chain_balance_monitor.monitor.loop import BalanceMonitor, MonitorState, SweepResult
from chain_balance_monitor.monitor.ticker import Ticker

__all__ = [
    "BalanceMonitor",
    "MonitorState",
    "SweepResult",
    "Ticker",
]
