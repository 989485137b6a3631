"""Signal handling for the balance monitor.

The monitor has no stop API of its own. SIGTERM and SIGINT cancel the task
running it, and the caller learns whether the run ended because of a signal.

Usage:
    ```python
    async def main():
        shutdown = GracefulShutdown()
        stopped_by_signal = await shutdown.run(monitor.run())
    ```
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Coroutine
from contextlib import suppress
from types import FrameType
from typing import Any

logger = logging.getLogger(__name__)

# Signals to trap for graceful shutdown
SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


class GracefulShutdown:
    """Cancels a running coroutine when a shutdown signal arrives.

    A second signal while the first cancellation is still unwinding forces
    the process to exit.
    """

    def __init__(self) -> None:
        self._task: asyncio.Task[Any] | None = None
        self._loop: asyncio.AbstractEventLoop | None = None
        self._received: signal.Signals | None = None
        self._original_handlers: dict[signal.Signals, Any] = {}

    def request_shutdown(self, sig: signal.Signals = signal.SIGTERM) -> None:
        """Cancel the running coroutine as if sig had been received."""
        if self._received is not None:
            logger.warning("Received %s again - forcing exit!", sig.name)
            sys.exit(128 + sig.value)

        self._received = sig
        logger.info("Received %s - stopping monitor...", sig.name)
        if self._task is not None:
            self._task.cancel()

    async def run(self, coro: Coroutine[Any, Any, Any]) -> bool:
        """Run coro with signal handlers installed.

        Args:
            coro: Coroutine to run, typically ``BalanceMonitor.run()``.

        Returns:
            True if a shutdown signal stopped the coroutine, False if it
            finished on its own.

        Raises:
            Exception: Whatever coro raised, when not stopped by a signal.
        """
        self._loop = asyncio.get_running_loop()
        self._task = asyncio.ensure_future(coro)
        self._install_handlers(self._loop)

        try:
            await self._task
        except asyncio.CancelledError:
            if self._received is None:
                raise
            return True
        finally:
            self._remove_handlers()
            self._task = None

        return False

    def _install_handlers(self, loop: asyncio.AbstractEventLoop) -> None:
        """Install handlers on the event loop, falling back to signal.signal."""
        for sig in SHUTDOWN_SIGNALS:
            try:
                loop.add_signal_handler(sig, self.request_shutdown, sig)
            except NotImplementedError:
                # Windows event loops have no add_signal_handler
                self._original_handlers[sig] = signal.signal(sig, self._handle_signal_sync)
            except (ValueError, OSError) as e:
                logger.warning("Could not install handler for %s: %s", sig.name, e)

    def _remove_handlers(self) -> None:
        """Remove installed handlers and restore originals."""
        if self._loop is not None:
            for sig in SHUTDOWN_SIGNALS:
                with suppress(ValueError, OSError, NotImplementedError):
                    self._loop.remove_signal_handler(sig)

        for sig, original in self._original_handlers.items():
            with suppress(ValueError, OSError):
                signal.signal(sig, original)
        self._original_handlers.clear()

    def _handle_signal_sync(self, sig: int, _frame: FrameType | None) -> None:
        """Forward a synchronous signal to the event loop thread."""
        if self._loop is not None:
            self._loop.call_soon_threadsafe(self.request_shutdown, signal.Signals(sig))
