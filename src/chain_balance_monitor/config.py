"""Configuration management service with Pydantic Settings.

This module loads and validates the monitor settings once at startup from
environment variables and an optional `.env` file. Validation problems are
reported as a single ConfigError before the monitor loop is ever built.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from pydantic import Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from web3 import AsyncWeb3

from chain_balance_monitor.errors import ConfigError
from chain_balance_monitor.models import Network, NetworkEndpoint

if TYPE_CHECKING:
    from chain_balance_monitor.addresses import AddressBook


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files via python-dotenv.

    Example:
        ```python
        from chain_balance_monitor.config import get_settings

        settings = get_settings(".env")
        print(settings.balance_threshold)
        print(settings.interval_mins)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Alerting
    balance_threshold: int = Field(
        alias="BALANCE_THRESHOLD",
        description="Alert when a balance is strictly below this many base units",
        ge=0,
    )
    interval_mins: int = Field(
        alias="INTERVAL_MINS",
        description="Minutes between balance sweeps",
        gt=0,
    )

    # Telegram
    telegram_bot_token: SecretStr = Field(
        alias="TELEGRAM_BOT_TOKEN",
        description="Telegram bot token",
    )
    telegram_chat_id: str = Field(
        alias="TELEGRAM_CHAT_ID",
        description="Telegram chat ID for alerts",
    )

    # Per-network credentials
    mainnet_rpc_url: SecretStr | None = Field(
        default=None,
        alias="MAINNET_RPC_URL",
        description="Mainnet JSON-RPC endpoint",
    )
    mainnet_token_address: str | None = Field(
        default=None,
        alias="MAINNET_TOKEN_ADDRESS",
        description="ERC-20 contract watched on mainnet (native balance if unset)",
    )
    testnet_rpc_url: SecretStr | None = Field(
        default=None,
        alias="TESTNET_RPC_URL",
        description="Testnet JSON-RPC endpoint",
    )
    testnet_token_address: str | None = Field(
        default=None,
        alias="TESTNET_TOKEN_ADDRESS",
        description="ERC-20 contract watched on testnet (native balance if unset)",
    )

    # Application settings
    addresses_file: str = Field(
        default="addresses.json",
        alias="ADDRESSES_FILE",
        description="Path of the JSON address list",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    dry_run: bool = Field(
        default=False,
        alias="DRY_RUN",
        description="Log alerts instead of sending them",
    )

    @field_validator("telegram_chat_id")
    @classmethod
    def validate_chat_id(cls, v: str) -> str:
        """Validate the chat ID is not blank."""
        if not v.strip():
            raise ValueError("TELEGRAM_CHAT_ID must not be empty")
        return v.strip()

    @field_validator("mainnet_rpc_url", "testnet_rpc_url")
    @classmethod
    def validate_rpc_url(cls, v: SecretStr | None) -> SecretStr | None:
        """Validate RPC URL format."""
        if v is None:
            return v
        if not v.get_secret_value().startswith(("http://", "https://")):
            raise ValueError("RPC URL must be an HTTP(S) endpoint")
        return v

    @field_validator("mainnet_token_address", "testnet_token_address")
    @classmethod
    def validate_token_address(cls, v: str | None) -> str | None:
        """Validate token contract address format."""
        if not v:
            return None
        if not AsyncWeb3.is_address(v):
            raise ValueError("Token address must be a 0x-prefixed 20-byte hex address")
        return v

    def endpoint(self, network: Network) -> NetworkEndpoint | None:
        """Get the connection details for a network.

        Returns:
            The endpoint, or None when no RPC URL is configured for it.
        """
        if network is Network.MAINNET:
            rpc_url, token_address = self.mainnet_rpc_url, self.mainnet_token_address
        else:
            rpc_url, token_address = self.testnet_rpc_url, self.testnet_token_address

        if rpc_url is None:
            return None
        return NetworkEndpoint(
            network=network,
            rpc_url=rpc_url.get_secret_value(),
            token_address=token_address,
        )

    def endpoints_for(self, book: AddressBook) -> dict[Network, NetworkEndpoint]:
        """Resolve endpoints for every network that has addresses to watch.

        Args:
            book: The loaded address book.

        Returns:
            Mapping of network to endpoint, in address book order.

        Raises:
            ConfigError: If a watched network has no RPC URL configured.
        """
        endpoints: dict[Network, NetworkEndpoint] = {}
        missing: list[str] = []

        for network in book.networks():
            endpoint = self.endpoint(network)
            if endpoint is None:
                missing.append(f"{network.value.upper()}_RPC_URL: required for {network.value}")
            else:
                endpoints[network] = endpoint

        if missing:
            raise ConfigError("Watched networks are missing credentials", missing)
        return endpoints

    def redacted_networks(self) -> dict[str, str]:
        """Describe each network endpoint with its RPC URL redacted."""
        networks: dict[str, str] = {}
        for network in Network:
            endpoint = self.endpoint(network)
            if endpoint is None:
                networks[network.value] = "(not set)"
            else:
                networks[network.value] = (
                    f"{self._redact_url(endpoint.rpc_url)} ({endpoint.balance_kind})"
                )
        return networks

    def redacted_summary(self) -> dict[str, str | dict[str, str]]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        return {
            "balance_threshold": str(self.balance_threshold),
            "interval_mins": str(self.interval_mins),
            "telegram_chat_id": self.telegram_chat_id,
            "telegram_bot_token": "(set)",
            "networks": self.redacted_networks(),
            "addresses_file": self.addresses_file,
            "log_level": self.log_level,
            "dry_run": str(self.dry_run),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Keep only scheme and host, RPC providers put API keys in the path."""
        if "://" not in url:
            return url
        protocol_end = url.index("://") + 3
        host = url[protocol_end:].split("/", 1)[0].rsplit("@", 1)[-1]
        redacted = f"{url[:protocol_end]}{host}"
        return url if redacted == url else f"{redacted}/***"


def load_settings(env_file: str | Path | None = None) -> Settings:
    """Load and validate settings.

    Args:
        env_file: Explicit env file to read. When None, `.env` in the working
            directory is read if present.

    Returns:
        The validated Settings.

    Raises:
        ConfigError: If the env file is missing or any value is invalid.
    """
    if env_file is not None and not Path(env_file).is_file():
        raise ConfigError(f"Environment file not found: {env_file}")

    try:
        if env_file is None:
            return Settings()  # type: ignore[call-arg]
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    except ValidationError as e:
        details = []
        for error in e.errors():
            field = ".".join(str(loc) for loc in error["loc"])
            details.append(f"{field}: {error['msg']}")
        raise ConfigError("Configuration validation failed", details) from e
    except UnicodeDecodeError as e:
        raise ConfigError(f"Cannot read environment file {env_file or '.env'}: {e}") from e


@lru_cache(maxsize=1)
def get_settings(env_file: str | None = None) -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ConfigError: If required values are missing or invalid.
    """
    return load_settings(env_file)


def clear_settings_cache() -> None:
    """Clear the settings cache.

    Useful for testing when you need to reload settings with
    different environment variables.
    """
    get_settings.cache_clear()
