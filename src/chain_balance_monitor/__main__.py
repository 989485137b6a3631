"""CLI entry point for Chain Balance Monitor.

This module provides the main entry point for running the monitor
from the command line.

Usage:
    python -m chain_balance_monitor [options]
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import logging.config
import sys
from typing import NoReturn

from chain_balance_monitor import __version__
from chain_balance_monitor.addresses import AddressBook, load_address_book
from chain_balance_monitor.alerter.channels.log import LogNotifier
from chain_balance_monitor.alerter.channels.telegram import TelegramNotifier
from chain_balance_monitor.alerter.notifier import Notifier
from chain_balance_monitor.config import Settings, clear_settings_cache, get_settings
from chain_balance_monitor.errors import BalanceMonitorError, ConfigError
from chain_balance_monitor.monitor.loop import BalanceMonitor
from chain_balance_monitor.monitor.ticker import Ticker
from chain_balance_monitor.oracle.chain import Web3BalanceOracle
from chain_balance_monitor.shutdown import GracefulShutdown

# Application info
APP_NAME = "Chain Balance Monitor"
APP_VERSION = __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2
EXIT_INTERRUPTED = 130


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser instance.
    """
    parser = argparse.ArgumentParser(
        prog="chain-balance-monitor",
        description="Alert on Telegram when watched account balances run low.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m chain_balance_monitor                          Run with .env and addresses.json
  python -m chain_balance_monitor --env-file prod.env      Use another env file
  python -m chain_balance_monitor --config-check           Validate config and exit
  python -m chain_balance_monitor --dry-run                Log alerts instead of sending
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {APP_VERSION}",
    )

    parser.add_argument(
        "--env-file",
        default=None,
        help="Env file with settings (default: .env if present)",
    )

    parser.add_argument(
        "--addresses",
        default=None,
        help="JSON address list (default: from settings)",
    )

    parser.add_argument(
        "--config-check",
        action="store_true",
        help="Validate configuration and exit without monitoring",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override logging level (default: from settings)",
    )

    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Check balances but log alerts instead of sending them",
    )

    return parser


def configure_logging(level: str) -> None:
    """Configure logging for the application.

    Args:
        level: Logging level string (DEBUG, INFO, etc.)
    """
    config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
            "detailed": {
                "format": (
                    "%(asctime)s [%(levelname)s] %(name)s (%(filename)s:%(lineno)d): %(message)s"
                ),
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "level": level,
                "formatter": "detailed" if level == "DEBUG" else "standard",
                "stream": "ext://sys.stdout",
            },
        },
        "root": {
            "level": level,
            "handlers": ["console"],
        },
        # httpx logs request URLs, which carry the bot token
        "loggers": {
            "httpx": {"level": "WARNING"},
            "httpcore": {"level": "WARNING"},
            "web3": {"level": "WARNING"},
        },
    }
    logging.config.dictConfig(config)


def print_banner() -> None:
    """Print the application startup banner."""
    banner = f"""
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║   {APP_NAME:^56}   ║
║   {"v" + APP_VERSION:^56}   ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
"""
    print(banner)


def print_config_summary(settings: Settings, book: AddressBook, dry_run: bool) -> None:
    """Print a summary of the configuration.

    Args:
        settings: Application settings.
        book: Loaded address book.
        dry_run: Whether dry-run mode is enabled.
    """
    summary = settings.redacted_summary()
    networks = settings.redacted_networks()

    print("Configuration:")
    print(f"  Threshold: {summary['balance_threshold']}")
    print(f"  Interval: {summary['interval_mins']} min")
    print(f"  Telegram chat: {summary['telegram_chat_id']}")
    for network in book:
        count = len(book[network])
        print(f"  {network.value}: {count} address(es) via {networks[network.value]}")
    print(f"  Log Level: {summary['log_level']}")
    print(f"  Dry Run: {dry_run}")
    print()


def print_config_errors(error: ConfigError) -> None:
    """Print a configuration error and its details to stderr."""
    print(f"{error}:", file=sys.stderr)
    for detail in error.details:
        print(f"  {detail}", file=sys.stderr)


def validate_config(env_file: str | None = None) -> Settings | None:
    """Validate and load configuration.

    Returns:
        Settings instance if valid, None if invalid.
    """
    try:
        # Clear cache to force reload
        clear_settings_cache()
        return get_settings(env_file)
    except ConfigError as e:
        print_config_errors(e)
        return None


def load_addresses(settings: Settings, path: str | None = None) -> AddressBook | None:
    """Load the address book and check every watched network has credentials.

    Returns:
        AddressBook if valid, None if invalid.
    """
    try:
        book = load_address_book(path or settings.addresses_file)
        settings.endpoints_for(book)
    except ConfigError as e:
        print_config_errors(e)
        return None
    return book


def build_monitor(settings: Settings, book: AddressBook, *, dry_run: bool) -> BalanceMonitor:
    """Wire the monitor from validated settings.

    Args:
        settings: Application settings.
        book: Address book to watch.
        dry_run: Log alerts instead of sending them.

    Returns:
        A monitor in the IDLE state.
    """
    notifier: Notifier
    if dry_run:
        notifier = LogNotifier()
    else:
        notifier = TelegramNotifier(
            bot_token=settings.telegram_bot_token.get_secret_value(),
            chat_id=settings.telegram_chat_id,
        )

    return BalanceMonitor(
        book,
        Web3BalanceOracle(settings.endpoints_for(book)),
        notifier,
        threshold=settings.balance_threshold,
        ticker=Ticker(settings.interval_mins * 60),
    )


def run_config_check(settings: Settings, book: AddressBook) -> int:
    """Run configuration check and exit.

    Args:
        settings: Validated settings.
        book: Validated address book.

    Returns:
        Exit code (0 for success).
    """
    print("Configuration is valid!")
    print()
    print_config_summary(settings, book, dry_run=False)

    if not book.networks():
        print("  Warning: the address list has no addresses to watch")
        print()

    print("All checks passed. Ready to run.")
    return EXIT_SUCCESS


async def run_monitor(monitor: BalanceMonitor) -> int:
    """Run the monitor until it fails or a shutdown signal arrives.

    Args:
        monitor: The monitor to run.

    Returns:
        Exit code.
    """
    logger = logging.getLogger(__name__)
    shutdown = GracefulShutdown()

    try:
        logger.info("Monitor running. Press Ctrl+C to stop.")
        if await shutdown.run(monitor.run()):
            logger.info("Shutdown signal received, monitor stopped")
        else:
            logger.warning("Monitor exited without an error")
        return EXIT_SUCCESS
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return EXIT_INTERRUPTED
    except BalanceMonitorError as e:
        logger.error("Monitor stopped: %s", e)
        return EXIT_ERROR
    except Exception as e:
        logger.exception("Monitor crashed: %s", e)
        return EXIT_ERROR


def main(argv: list[str] | None = None) -> NoReturn:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    # Validate configuration first
    settings = validate_config(args.env_file)
    if settings is None:
        sys.exit(EXIT_CONFIG_ERROR)

    book = load_addresses(settings, args.addresses)
    if book is None:
        sys.exit(EXIT_CONFIG_ERROR)

    # Determine effective log level
    log_level = args.log_level or settings.log_level
    configure_logging(log_level)

    print_banner()

    if args.config_check:
        sys.exit(run_config_check(settings, book))

    dry_run = args.dry_run or settings.dry_run
    print_config_summary(settings, book, dry_run)

    monitor = build_monitor(settings, book, dry_run=dry_run)
    exit_code = asyncio.run(run_monitor(monitor))
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
