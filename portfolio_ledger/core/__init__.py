"""
Core Portfolio Components

Holding store, transaction ledger and portfolio data model.
"""

from .holding import AssetClass, Holding, HoldingStore
from .transaction import Transaction, TransactionKind, Ledger
from .portfolio import Portfolio, Snapshot

__all__ = ['AssetClass', 'Holding', 'HoldingStore', 'Transaction', 'TransactionKind',
           'Ledger', 'Portfolio', 'Snapshot']
