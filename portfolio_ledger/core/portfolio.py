"""
Portfolio Module

This module provides the Portfolio container that ties together cash, the
holding store, the transaction ledger and the valuation snapshot history.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Any
from dataclasses import dataclass
import copy
import uuid

from .holding import Holding, HoldingStore
from .transaction import Transaction, Ledger


@dataclass(frozen=True)
class Snapshot:
    """Portfolio-level valuation at a point in time."""
    timestamp: datetime
    total_value: Decimal
    total_invested: Decimal
    total_roi: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'timestamp': self.timestamp.isoformat(),
            'total_value': str(self.total_value),
            'total_invested': str(self.total_invested),
            'total_roi': str(self.total_roi)
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Snapshot':
        return cls(
            timestamp=datetime.fromisoformat(data['timestamp']),
            total_value=Decimal(data['total_value']),
            total_invested=Decimal(data['total_invested']),
            total_roi=Decimal(data['total_roi'])
        )

    @classmethod
    def zero(cls, timestamp: datetime = None) -> 'Snapshot':
        return cls(
            timestamp=timestamp or datetime.now(),
            total_value=Decimal('0'),
            total_invested=Decimal('0'),
            total_roi=Decimal('0')
        )


class Portfolio:
    """
    Simulated investment portfolio.

    The portfolio is a plain data container: it is mutated only by the
    portfolio manager, and its headline figures (``total_value``,
    ``total_invested``, ``total_roi``) are recomputed from scratch by the
    valuation engine rather than accumulated.
    """

    def __init__(self,
                 name: str,
                 portfolio_id: str = None,
                 created_at: datetime = None):
        """
        Initialize an empty portfolio with one zero-value snapshot.

        Args:
            name: Portfolio name
            portfolio_id: Identifier to reuse (generated when omitted)
            created_at: Creation time (defaults to now)
        """
        self.portfolio_id = portfolio_id or str(uuid.uuid4())
        self.name = name

        self.cash_balance = Decimal('0')
        self.holdings = HoldingStore()
        self.ledger = Ledger()

        self.created_at = created_at or datetime.now()
        self.last_updated = self.created_at

        self.total_value = Decimal('0')
        self.total_invested = Decimal('0')
        self.total_roi = Decimal('0')
        self.snapshots: List[Snapshot] = [Snapshot.zero(self.created_at)]

    def reset(self, timestamp: datetime = None):
        """
        Clear cash, holdings and history while keeping identity and name.

        Args:
            timestamp: Time of the reset (defaults to now)
        """
        timestamp = timestamp or datetime.now()
        self.cash_balance = Decimal('0')
        self.holdings.clear()
        self.ledger.clear()
        self.total_value = Decimal('0')
        self.total_invested = Decimal('0')
        self.total_roi = Decimal('0')
        self.snapshots = [Snapshot.zero(timestamp)]
        self.last_updated = timestamp

    def get_holding(self, asset_class, symbol: str) -> Optional[Holding]:
        """Get holding for a symbol."""
        return self.holdings.get(asset_class, symbol)

    @property
    def transactions(self) -> List[Transaction]:
        return list(self.ledger.transactions())

    @property
    def latest_snapshot(self) -> Snapshot:
        return self.snapshots[-1]

    def copy(self) -> 'Portfolio':
        """Get an independent copy for read-only consumers."""
        return copy.deepcopy(self)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the portfolio with decimals as strings."""
        return {
            'portfolio_id': self.portfolio_id,
            'name': self.name,
            'cash_balance': str(self.cash_balance),
            'total_value': str(self.total_value),
            'total_invested': str(self.total_invested),
            'total_roi': str(self.total_roi),
            'created_at': self.created_at.isoformat(),
            'last_updated': self.last_updated.isoformat(),
            'holdings': [h.to_dict() for h in self.holdings.holdings()],
            'transactions': [t.to_dict() for t in self.ledger.transactions()],
            'snapshots': [s.to_dict() for s in self.snapshots]
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Portfolio':
        """
        Create portfolio from a dictionary produced by ``to_dict``.

        Args:
            data: Serialized portfolio

        Returns:
            Portfolio instance
        """
        portfolio = cls(
            name=data['name'],
            portfolio_id=data['portfolio_id'],
            created_at=datetime.fromisoformat(data['created_at'])
        )
        portfolio.cash_balance = Decimal(data['cash_balance'])
        portfolio.total_value = Decimal(data.get('total_value', '0'))
        portfolio.total_invested = Decimal(data.get('total_invested', '0'))
        portfolio.total_roi = Decimal(data.get('total_roi', '0'))
        portfolio.last_updated = datetime.fromisoformat(data['last_updated'])

        for holding_data in data.get('holdings', []):
            portfolio.holdings._insert(Holding.from_dict(holding_data))
        portfolio.ledger._restore(Transaction.from_dict(t) for t in data.get('transactions', []))

        snapshots = [Snapshot.from_dict(s) for s in data.get('snapshots', [])]
        if snapshots:
            portfolio.snapshots = snapshots
        return portfolio

    def __str__(self) -> str:
        return f"Portfolio('{self.name}', {len(self.holdings)} holdings, ${self.total_value:,.2f})"

    def __repr__(self) -> str:
        return (f"Portfolio(id={self.portfolio_id}, name='{self.name}', "
                f"cash={self.cash_balance}, value={self.total_value})")
