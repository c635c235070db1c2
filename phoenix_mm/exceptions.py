"""
Exceptions for the Phoenix market maker.
"""

from typing import Optional


class PhoenixMMError(Exception):
    """Base exception for all market maker errors."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ConfigurationError(PhoenixMMError):
    """Raised when run configuration or the signing key is missing or invalid."""


class MarketNotFoundError(PhoenixMMError):
    """Raised when the market account is missing or cannot be decoded."""

    def __init__(self, message: str, market: Optional[str] = None) -> None:
        self.market = market
        super().__init__(message)


class PriceFeedError(PhoenixMMError):
    """Raised when the spot price feed returns an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.status_code = status_code
        super().__init__(message)

    def __str__(self) -> str:
        if self.status_code is not None:
            return f"{self.message} (status={self.status_code})"
        return self.message


class TransactionError(PhoenixMMError):
    """Raised when a transaction cannot be submitted or confirmed."""

    def __init__(
        self,
        message: str,
        label: Optional[str] = None,
        signature: Optional[str] = None,
    ) -> None:
        self.label = label
        self.signature = signature
        super().__init__(message)

    def __str__(self) -> str:
        if self.label:
            return f"[{self.label}] {self.message}"
        return self.message
