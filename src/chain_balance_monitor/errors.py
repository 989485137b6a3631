"""Exception hierarchy for the balance monitor."""

from __future__ import annotations


class BalanceMonitorError(Exception):
    """Base exception for balance monitor errors."""


class ConfigError(BalanceMonitorError):
    """Raised when configuration or address input is missing or malformed.

    Attributes:
        details: Individual problems found, one entry per field or key.
    """

    def __init__(self, message: str, details: list[str] | None = None) -> None:
        super().__init__(message)
        self.details = details or []


class QueryFailure(BalanceMonitorError):
    """Raised when a balance lookup could not complete."""

    def __init__(self, network: str, address: str, reason: str) -> None:
        super().__init__(f"Balance query for {address} on {network} failed: {reason}")
        self.network = network
        self.address = address


class DeliveryFailure(BalanceMonitorError):
    """Raised when an alert could not be delivered."""

    def __init__(self, reason: str, status_code: int | None = None) -> None:
        super().__init__(f"Alert delivery failed: {reason}")
        self.status_code = status_code
