"""
Portfolio Ledger Package

Ledger and valuation engine for a simulated investment portfolio: virtual
cash, stock and crypto holdings with cost basis, an append-only transaction
log, and derived return and risk metrics under live price updates.

Key Components:
- Core: Holding store, transaction ledger and portfolio data model
- Analytics: Valuation engine and performance analyzer
- Data: Price feed interface and persistence stores
- Manager: Portfolio manager facade and revaluation scheduler
- Utils: Validation helpers

License: MIT
"""

__version__ = "1.0.0"

# Core imports
from .core.holding import AssetClass, Holding, HoldingStore
from .core.transaction import Transaction, TransactionKind, Ledger
from .core.portfolio import Portfolio, Snapshot
from .core.watchlist import WatchlistItem
from .core.exceptions import (
    PortfolioError,
    InsufficientFunds,
    InsufficientQuantity,
    UnknownHolding,
    InvalidAmount,
    UnknownPortfolio,
    InvalidName,
    DuplicateWatchlistItem,
    UnknownWatchlistItem,
    PersistenceError,
    OperationResult,
)

# Analytics imports
from .analytics.valuation import ValuationEngine
from .analytics.performance import PerformanceAnalyzer, PerformanceStats

# Data imports
from .data.price_feed import PriceFeed, StaticPriceFeed, SymbolMatch, crypto_feed_id
from .data.persistence import PersistenceStore, InMemoryPersistenceStore, JsonFilePersistenceStore

# Manager imports
from .manager.portfolio_manager import PortfolioManager
from .manager.scheduler import RevaluationScheduler

from .config import LedgerConfig

__all__ = [
    # Core
    'AssetClass',
    'Holding',
    'HoldingStore',
    'Transaction',
    'TransactionKind',
    'Ledger',
    'Portfolio',
    'Snapshot',
    'WatchlistItem',
    # Errors
    'PortfolioError',
    'InsufficientFunds',
    'InsufficientQuantity',
    'UnknownHolding',
    'InvalidAmount',
    'UnknownPortfolio',
    'InvalidName',
    'DuplicateWatchlistItem',
    'UnknownWatchlistItem',
    'PersistenceError',
    'OperationResult',
    # Analytics
    'ValuationEngine',
    'PerformanceAnalyzer',
    'PerformanceStats',
    # Data
    'PriceFeed',
    'StaticPriceFeed',
    'SymbolMatch',
    'crypto_feed_id',
    'PersistenceStore',
    'InMemoryPersistenceStore',
    'JsonFilePersistenceStore',
    # Manager
    'PortfolioManager',
    'RevaluationScheduler',
    'LedgerConfig',
]
