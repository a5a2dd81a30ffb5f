"""
Portfolio Error Module

Business failures raised by the ledger components and the result type the
portfolio manager hands back to callers.
"""

from dataclasses import dataclass
from typing import Optional, Any


class PortfolioError(ValueError):
    """Base class for declined portfolio operations."""


class InsufficientFunds(PortfolioError):
    """Raised when a cash outflow exceeds the available balance."""

    def __init__(self, required, available):
        self.required = required
        self.available = available
        super().__init__(f"Insufficient cash. Required: {required}, Available: {available}")


class InsufficientQuantity(PortfolioError):
    """Raised when a sell exceeds the quantity held."""

    def __init__(self, symbol: str, requested, held):
        self.symbol = symbol
        self.requested = requested
        self.held = held
        super().__init__(f"Cannot sell {requested} of {symbol}. Position has {held}")


class UnknownHolding(PortfolioError):
    """Raised when an operation references a holding that does not exist."""

    def __init__(self, symbol: str, asset_class=None):
        self.symbol = symbol
        self.asset_class = asset_class
        super().__init__(f"No position found for {symbol}")


class InvalidAmount(PortfolioError):
    """Raised for non-positive or non-numeric quantities, prices and amounts."""

    def __init__(self, field_name: str, value: Any):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid {field_name}: {value!r}")


class UnknownPortfolio(PortfolioError):
    """Raised when a portfolio id is not managed."""

    def __init__(self, portfolio_id: str):
        self.portfolio_id = portfolio_id
        super().__init__(f"Unknown portfolio: {portfolio_id}")


class InvalidName(PortfolioError):
    """Raised for empty portfolio names."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Invalid name: {value!r}")


class DuplicateWatchlistItem(PortfolioError):
    """Raised when an asset is already on the watchlist."""

    def __init__(self, symbol: str, asset_class=None):
        self.symbol = symbol
        self.asset_class = asset_class
        super().__init__(f"{symbol} is already on the watchlist")


class UnknownWatchlistItem(PortfolioError):
    """Raised when an asset is not on the watchlist."""

    def __init__(self, symbol: str, asset_class=None):
        self.symbol = symbol
        self.asset_class = asset_class
        super().__init__(f"{symbol} is not on the watchlist")


class PersistenceError(Exception):
    """Raised when a persistence store cannot read or write its data."""


@dataclass(frozen=True)
class OperationResult:
    """
    Outcome of a portfolio manager command.

    Declined operations carry the error instead of raising it, so callers can
    branch on ``ok`` without try/except around every trade. ``value`` holds
    the object a command created, if any.
    """
    ok: bool
    transaction: Optional[Any] = None
    error: Optional[PortfolioError] = None
    value: Optional[Any] = None

    @classmethod
    def success(cls, transaction=None, value=None) -> 'OperationResult':
        return cls(ok=True, transaction=transaction, value=value)

    @classmethod
    def failure(cls, error: PortfolioError) -> 'OperationResult':
        return cls(ok=False, error=error)

    def __bool__(self) -> bool:
        return self.ok
