"""Balance monitor loop.

On every tick the monitor sweeps the address book: each network in order,
each address of that network in list order. Addresses whose free balance is
strictly below the threshold produce one alert per sweep. Nothing is
remembered between sweeps, so an address that stays low is alerted again on
every tick.

Errors are fail-fast: the first QueryFailure or DeliveryFailure ends the
sweep, moves the monitor to FAILED and propagates to the caller of
``run()``. No further addresses are checked and no further sweeps happen.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING

from chain_balance_monitor.alerter.formatter import format_alert
from chain_balance_monitor.alerter.models import LowBalanceAlert

if TYPE_CHECKING:
    from chain_balance_monitor.addresses import AddressBook
    from chain_balance_monitor.alerter.notifier import Notifier
    from chain_balance_monitor.models import Network
    from chain_balance_monitor.monitor.ticker import Ticker
    from chain_balance_monitor.oracle.base import BalanceOracle

logger = logging.getLogger(__name__)


class MonitorState(Enum):
    """Lifecycle state of the monitor."""

    IDLE = "idle"
    POLLING = "polling"
    CHECKING = "checking"
    FAILED = "failed"


@dataclass
class SweepResult:
    """Outcome of one full pass over the address book."""

    checked: int = 0
    alerts: list[LowBalanceAlert] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None

    @property
    def alert_count(self) -> int:
        """Number of alerts sent during the sweep."""
        return len(self.alerts)


class BalanceMonitor:
    """Periodically checks balances and alerts on low ones.

    Example:
        ```python
        monitor = BalanceMonitor(
            book,
            Web3BalanceOracle(settings.endpoints_for(book)),
            TelegramNotifier(token, chat_id),
            threshold=settings.balance_threshold,
            ticker=Ticker(settings.interval_mins * 60),
        )
        await monitor.run()  # returns only by raising
        ```
    """

    def __init__(
        self,
        address_book: AddressBook,
        oracle: BalanceOracle,
        notifier: Notifier,
        *,
        threshold: int,
        ticker: Ticker,
    ) -> None:
        """Initialize the monitor.

        Args:
            address_book: Addresses to watch, per network.
            oracle: Balance lookup capability.
            notifier: Alert delivery capability.
            threshold: Balances strictly below this are alerted.
            ticker: Timer driving the sweeps.
        """
        if threshold < 0:
            raise ValueError("threshold must not be negative")

        self._book = address_book
        self._oracle = oracle
        self._notifier = notifier
        self._threshold = threshold
        self._ticker = ticker

        self._state = MonitorState.IDLE
        self._last_error: Exception | None = None
        self._last_result: SweepResult | None = None
        self._sweeps_completed = 0
        self._lock = asyncio.Lock()

    @property
    def state(self) -> MonitorState:
        """Current lifecycle state."""
        return self._state

    @property
    def threshold(self) -> int:
        """Alert threshold in base units."""
        return self._threshold

    @property
    def last_error(self) -> Exception | None:
        """The error that failed the monitor, if any."""
        return self._last_error

    @property
    def last_result(self) -> SweepResult | None:
        """Result of the most recent completed sweep."""
        return self._last_result

    @property
    def sweeps_completed(self) -> int:
        """Number of sweeps that finished without error."""
        return self._sweeps_completed

    async def check_address(self, network: Network, address: str) -> LowBalanceAlert | None:
        """Check one address and alert if its balance is below threshold.

        Returns:
            The alert that was sent, or None if the balance is sufficient.
        """
        self._state = MonitorState.CHECKING
        logger.debug("Checking address %s on %s", address, network.value)

        balance = await self._oracle.get_balance(network, address)
        if balance >= self._threshold:
            logger.debug("Balance of %s is %d, not below %d", address, balance, self._threshold)
            return None

        alert = LowBalanceAlert(
            network=network,
            address=address,
            balance=balance,
            threshold=self._threshold,
        )
        logger.info(
            "Low balance on %s: %s has %d, %d short of threshold %d",
            network.value,
            address,
            balance,
            alert.shortfall,
            self._threshold,
        )
        await self._notifier.notify(format_alert(alert))
        return alert

    async def sweep(self) -> SweepResult:
        """Check every watched address once.

        Returns:
            SweepResult with the alerts that were sent.

        Raises:
            QueryFailure: If a balance lookup fails.
            DeliveryFailure: If an alert cannot be delivered.
            RuntimeError: If the monitor already failed.
        """
        async with self._lock:
            if self._state is MonitorState.FAILED:
                raise RuntimeError("Monitor has failed and must be restarted") from (
                    self._last_error
                )

            result = SweepResult()
            try:
                for network in self._book.networks():
                    self._state = MonitorState.POLLING
                    logger.debug("Polling %s", network.value)

                    for address in self._book[network]:
                        alert = await self.check_address(network, address)
                        result.checked += 1
                        if alert is not None:
                            result.alerts.append(alert)
            except Exception as e:
                self._state = MonitorState.FAILED
                self._last_error = e
                raise

            result.finished_at = datetime.now(UTC)
            self._state = MonitorState.IDLE
            self._sweeps_completed += 1
            self._last_result = result

            logger.info(
                "Sweep complete: %d address(es) checked, %d alert(s) sent",
                result.checked,
                result.alert_count,
            )
            return result

    async def run(self) -> None:
        """Sweep on every tick until an error occurs.

        The first sweep happens one interval after the call. This coroutine
        only returns by raising the error that failed the monitor.
        """
        logger.info(
            "Monitoring %d address(es) on %d network(s) every %.0fs",
            self._book.total_addresses,
            len(self._book.networks()),
            self._ticker.interval,
        )
        self._ticker.start()

        while True:
            dropped = await self._ticker.wait()
            if dropped:
                logger.warning(
                    "Previous sweep overran the interval, skipped %d tick(s), %d in total",
                    dropped,
                    self._ticker.dropped,
                )
            logger.debug("Tick %d", self._ticker.ticks)

            try:
                await self.sweep()
            except Exception as e:
                logger.error("Monitor failed: %s", e)
                raise
