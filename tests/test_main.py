"""Tests for the CLI entry point."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from chain_balance_monitor.__main__ import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_SUCCESS,
    build_monitor,
    configure_logging,
    create_parser,
    load_addresses,
    main,
    print_banner,
    run_config_check,
    run_monitor,
    validate_config,
)
from chain_balance_monitor.alerter.channels.log import LogNotifier
from chain_balance_monitor.alerter.channels.telegram import TelegramNotifier
from chain_balance_monitor.errors import QueryFailure
from chain_balance_monitor.monitor.loop import MonitorState

ADDRESS = "0x742d35Cc6634C0532925a3b844Bc9e7595f5eaE2"

SETTINGS_KEYS = [
    "BALANCE_THRESHOLD",
    "INTERVAL_MINS",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_CHAT_ID",
    "MAINNET_RPC_URL",
    "MAINNET_TOKEN_ADDRESS",
    "TESTNET_RPC_URL",
    "TESTNET_TOKEN_ADDRESS",
    "ADDRESSES_FILE",
    "LOG_LEVEL",
    "DRY_RUN",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Clear settings variables and work in an empty directory."""
    for key in SETTINGS_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def valid_env(clean_env, monkeypatch):
    """Provide a complete configuration with one mainnet address."""
    monkeypatch.setenv("BALANCE_THRESHOLD", "100")
    monkeypatch.setenv("INTERVAL_MINS", "5")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:ABC-DEF")
    monkeypatch.setenv("TELEGRAM_CHAT_ID", "-1001234567890")
    monkeypatch.setenv("MAINNET_RPC_URL", "https://polygon-rpc.com")
    (clean_env / "addresses.json").write_text(json.dumps({"mainnet": [ADDRESS]}))
    return clean_env


class TestCreateParser:
    """Tests for argument parser creation."""

    def test_parser_has_version(self):
        """Parser should have version flag."""
        parser = create_parser()
        with pytest.raises(SystemExit) as exc_info:
            parser.parse_args(["--version"])
        assert exc_info.value.code == 0

    def test_parser_config_check(self):
        """Parser should accept --config-check flag."""
        parser = create_parser()
        args = parser.parse_args(["--config-check"])
        assert args.config_check is True

    def test_parser_files(self):
        """Parser should accept --env-file and --addresses."""
        parser = create_parser()
        args = parser.parse_args(["--env-file", "prod.env", "--addresses", "prod.json"])
        assert args.env_file == "prod.env"
        assert args.addresses == "prod.json"

    def test_parser_log_level(self):
        """Parser should accept --log-level option."""
        parser = create_parser()
        args = parser.parse_args(["--log-level", "DEBUG"])
        assert args.log_level == "DEBUG"

    def test_parser_default_values(self):
        """Parser should have correct defaults."""
        parser = create_parser()
        args = parser.parse_args([])
        assert args.config_check is False
        assert args.log_level is None
        assert args.dry_run is False
        assert args.env_file is None
        assert args.addresses is None


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_logging_info(self):
        """Should configure logging at INFO level."""
        configure_logging("INFO")
        assert logging.getLogger().level == logging.INFO

    def test_configure_logging_debug(self):
        """Should configure logging at DEBUG level."""
        configure_logging("DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_httpx_quieted(self):
        """Should keep httpx from logging request URLs."""
        configure_logging("DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestPrintBanner:
    """Tests for banner printing."""

    def test_banner_contains_app_name(self, capsys):
        """Banner should contain application name and version."""
        print_banner()
        captured = capsys.readouterr()
        assert "Chain Balance Monitor" in captured.out
        assert "v0.1.0" in captured.out


class TestValidateConfig:
    """Tests for configuration validation."""

    def test_validate_config_success(self, valid_env):
        """Should return settings on valid config."""
        settings = validate_config()
        assert settings is not None
        assert settings.balance_threshold == 100

    def test_validate_config_failure(self, clean_env, capsys):
        """Should return None on invalid config."""
        settings = validate_config()
        assert settings is None

        captured = capsys.readouterr()
        assert "Configuration validation failed" in captured.err
        assert "TELEGRAM_BOT_TOKEN" in captured.err

    def test_validate_config_missing_env_file(self, clean_env, capsys):
        """Should return None when the named env file is missing."""
        assert validate_config("nope.env") is None
        assert "not found" in capsys.readouterr().err


class TestLoadAddresses:
    """Tests for address book loading from the CLI."""

    def test_load_addresses(self, valid_env):
        """Should load the address file named in settings."""
        settings = validate_config()
        book = load_addresses(settings)
        assert book is not None
        assert book.total_addresses == 1

    def test_missing_credentials(self, valid_env, capsys):
        """Should reject a watched network without RPC URL."""
        (valid_env / "both.json").write_text(
            json.dumps({"mainnet": [ADDRESS], "testnet": [ADDRESS]})
        )
        settings = validate_config()

        assert load_addresses(settings, "both.json") is None
        assert "TESTNET_RPC_URL" in capsys.readouterr().err

    def test_missing_file(self, valid_env, capsys):
        """Should report an unreadable address file."""
        settings = validate_config()
        assert load_addresses(settings, "missing.json") is None
        assert "Cannot read" in capsys.readouterr().err


class TestBuildMonitor:
    """Tests for wiring the monitor."""

    def test_build_monitor(self, valid_env):
        """Should wire a Telegram notifier."""
        settings = validate_config()
        book = load_addresses(settings)

        monitor = build_monitor(settings, book, dry_run=False)

        assert monitor.state is MonitorState.IDLE
        assert monitor.threshold == 100
        assert isinstance(monitor._notifier, TelegramNotifier)
        assert monitor._ticker.interval == 300

    def test_build_monitor_dry_run(self, valid_env):
        """Should log alerts instead of sending them in dry-run mode."""
        settings = validate_config()
        book = load_addresses(settings)

        monitor = build_monitor(settings, book, dry_run=True)

        assert isinstance(monitor._notifier, LogNotifier)


class TestRunConfigCheck:
    """Tests for config check mode."""

    def test_run_config_check(self, valid_env, capsys):
        """Should print summary and return success."""
        settings = validate_config()
        book = load_addresses(settings)

        assert run_config_check(settings, book) == EXIT_SUCCESS
        out = capsys.readouterr().out
        assert "Configuration is valid!" in out
        assert "mainnet: 1 address(es)" in out
        assert "ABC-DEF" not in out


class TestRunMonitor:
    """Tests for running the monitor."""

    async def test_monitor_failure_exit_code(self):
        """Should return an error exit code when the monitor fails."""
        monitor = MagicMock()
        monitor.run = AsyncMock(side_effect=QueryFailure("mainnet", ADDRESS, "unreachable"))

        assert await run_monitor(monitor) == EXIT_ERROR

    async def test_signal_stop_exit_code(self):
        """Should return success when stopped by a signal."""
        monitor = MagicMock()
        monitor.run = AsyncMock()

        with patch(
            "chain_balance_monitor.__main__.GracefulShutdown.run",
            AsyncMock(return_value=True),
        ):
            assert await run_monitor(monitor) == EXIT_SUCCESS


class TestMain:
    """Tests for the main entry point."""

    def test_main_config_check(self, valid_env):
        """Should exit successfully in config check mode."""
        with pytest.raises(SystemExit) as exc_info:
            main(["--config-check"])
        assert exc_info.value.code == EXIT_SUCCESS

    def test_main_invalid_config(self, clean_env):
        """Should exit with config error code on invalid settings."""
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_invalid_addresses(self, valid_env):
        """Should exit with config error code on a bad address list."""
        (valid_env / "addresses.json").write_text(json.dumps({"devnet": [ADDRESS]}))
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_undecodable_addresses(self, valid_env):
        """Should exit with config error code on an address list that is not UTF-8."""
        (valid_env / "addresses.json").write_bytes(b'{"mainnet": ["\xff"]}')
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_undecodable_env_file(self, valid_env):
        """Should exit with config error code on an env file that is not UTF-8."""
        (valid_env / "prod.env").write_bytes(b"TELEGRAM_CHAT_ID=\xff\n")
        with pytest.raises(SystemExit) as exc_info:
            main(["--env-file", "prod.env"])
        assert exc_info.value.code == EXIT_CONFIG_ERROR

    def test_main_runs_monitor(self, valid_env):
        """Should run the monitor and exit with its code."""
        with (
            patch(
                "chain_balance_monitor.__main__.run_monitor",
                new=MagicMock(return_value=EXIT_ERROR),
            ) as mock_run,
            patch("chain_balance_monitor.__main__.asyncio.run", side_effect=lambda code: code),
            pytest.raises(SystemExit) as exc_info,
        ):
            main(["--dry-run"])

        assert exc_info.value.code == EXIT_ERROR
        monitor = mock_run.call_args.args[0]
        assert isinstance(monitor._notifier, LogNotifier)
