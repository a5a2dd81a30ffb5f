"""
Transaction Management Module

This module provides the immutable Transaction record and the append-only
Ledger that serves as the audit trail and history of a portfolio.
"""

from datetime import datetime, date, time
from decimal import Decimal
from typing import Dict, List, Optional, Any, Iterable, Iterator, Tuple, Union
from dataclasses import dataclass, field, replace
from enum import Enum
import uuid

import pandas as pd

from .holding import AssetClass


class TransactionKind(Enum):
    """Transaction kind enumeration."""
    BUY = "buy"
    SELL = "sell"
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


TRADE_KINDS = (TransactionKind.BUY, TransactionKind.SELL)


@dataclass(frozen=True)
class Transaction:
    """
    Immutable record of one accepted portfolio operation.

    Cash movements leave the asset fields empty. ``sequence`` is assigned by
    the ledger on record and breaks ties between identical timestamps.
    """
    kind: TransactionKind
    total_amount: Decimal
    portfolio_id: str
    timestamp: datetime = field(default_factory=datetime.now)
    asset_class: Optional[AssetClass] = None
    symbol: Optional[str] = None
    name: Optional[str] = None
    quantity: Optional[Decimal] = None
    price: Optional[Decimal] = None
    transaction_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    sequence: int = -1

    @property
    def is_trade(self) -> bool:
        return self.kind in TRADE_KINDS

    @property
    def sort_key(self) -> Tuple[datetime, int]:
        return (self.timestamp, self.sequence)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the transaction with decimals as strings."""
        return {
            'transaction_id': self.transaction_id,
            'kind': self.kind.value,
            'asset_class': self.asset_class.value if self.asset_class else None,
            'symbol': self.symbol,
            'name': self.name,
            'quantity': str(self.quantity) if self.quantity is not None else None,
            'price': str(self.price) if self.price is not None else None,
            'total_amount': str(self.total_amount),
            'timestamp': self.timestamp.isoformat(),
            'portfolio_id': self.portfolio_id,
            'sequence': self.sequence
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        """
        Create transaction from a dictionary produced by ``to_dict``.

        Args:
            data: Serialized transaction

        Returns:
            Transaction instance
        """
        asset_class = data.get('asset_class')
        quantity = data.get('quantity')
        price = data.get('price')
        return cls(
            kind=TransactionKind(data['kind']),
            total_amount=Decimal(data['total_amount']),
            portfolio_id=data['portfolio_id'],
            timestamp=datetime.fromisoformat(data['timestamp']),
            asset_class=AssetClass(asset_class) if asset_class else None,
            symbol=data.get('symbol'),
            name=data.get('name'),
            quantity=Decimal(quantity) if quantity is not None else None,
            price=Decimal(price) if price is not None else None,
            transaction_id=data['transaction_id'],
            sequence=int(data.get('sequence', -1))
        )

    def __str__(self) -> str:
        if self.is_trade:
            return (f"Transaction({self.kind.value.upper()} {self.quantity} "
                    f"{self.symbol} @ ${self.price} on {self.timestamp:%Y-%m-%d})")
        return f"Transaction({self.kind.value.upper()} ${self.total_amount} on {self.timestamp:%Y-%m-%d})"


DateBound = Union[date, datetime, None]


def _as_start(bound: DateBound) -> Optional[datetime]:
    if bound is None or isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.min)


def _as_end(bound: DateBound) -> Optional[datetime]:
    if bound is None or isinstance(bound, datetime):
        return bound
    return datetime.combine(bound, time.max)


class Ledger:
    """
    Append-only sequence of transactions.

    Entries are never mutated or removed (except by a full portfolio reset).
    Every query returns transactions ordered by timestamp, then by the order
    in which they were recorded.
    """

    def __init__(self):
        self._entries: List[Transaction] = []
        self._next_sequence = 0

    def record(self, transaction: Transaction) -> Transaction:
        """
        Append a transaction.

        Validation happens before this is called, so recording always
        succeeds.

        Returns:
            The stored transaction carrying its sequence number
        """
        stored = replace(transaction, sequence=self._next_sequence)
        self._next_sequence += 1
        self._entries.append(stored)
        return stored

    def transactions(self) -> Tuple[Transaction, ...]:
        return tuple(sorted(self._entries, key=lambda t: t.sort_key))

    def filter(self,
               kind: Union[TransactionKind, Iterable[TransactionKind], None] = None,
               symbol: str = None,
               start: DateBound = None,
               end: DateBound = None,
               asset_class: AssetClass = None) -> List[Transaction]:
        """
        Get transactions matching every given criterion.

        Args:
            kind: A kind or an iterable of kinds
            symbol: Asset symbol
            start: Inclusive lower bound (a date covers the whole day)
            end: Inclusive upper bound (a date covers the whole day)
            asset_class: Asset class of the trade

        Returns:
            Matching transactions in ledger order
        """
        if isinstance(kind, TransactionKind):
            kinds = {kind}
        elif kind is not None:
            kinds = set(kind)
        else:
            kinds = None

        start_at = _as_start(start)
        end_at = _as_end(end)
        symbol = symbol.upper() if symbol else None

        return [
            t for t in self.transactions()
            if (kinds is None or t.kind in kinds)
            and (symbol is None or t.symbol == symbol)
            and (asset_class is None or t.asset_class == asset_class)
            and (start_at is None or t.timestamp >= start_at)
            and (end_at is None or t.timestamp <= end_at)
        ]

    def last_buy_before(self, transaction: Transaction) -> Optional[Transaction]:
        """
        Most recent buy of the same asset recorded before ``transaction``.

        Buys match on asset class as well as symbol, so a stock and a coin
        sharing a ticker (e.g. SOL) never classify each other's sells.
        """
        last_buy = None
        for entry in self.transactions():
            if entry.sort_key >= transaction.sort_key:
                break
            if (entry.kind == TransactionKind.BUY
                    and entry.symbol == transaction.symbol
                    and entry.asset_class == transaction.asset_class):
                last_buy = entry
        return last_buy

    def is_winning_sell(self, transaction: Transaction) -> bool:
        """
        Classify a sell against the last prior buy price of the same asset.

        Buys, cash movements and sells with no prior buy are never wins.
        """
        if transaction.kind != TransactionKind.SELL:
            return False
        last_buy = self.last_buy_before(transaction)
        if last_buy is None:
            return False
        return transaction.price > last_buy.price

    def period_roi(self, start: DateBound = None, end: DateBound = None) -> Optional[Decimal]:
        """
        Return on trading activity within a period.

        Sums buy totals and sell totals inside the period and reports
        ``(sold - bought) / bought * 100``.

        Returns:
            Percentage, or None when nothing was bought in the period
        """
        trades = self.filter(kind=TRADE_KINDS, start=start, end=end)
        invested = sum((t.total_amount for t in trades if t.kind == TransactionKind.BUY), Decimal('0'))
        proceeds = sum((t.total_amount for t in trades if t.kind == TransactionKind.SELL), Decimal('0'))
        if invested == 0:
            return None
        return (proceeds - invested) / invested * 100

    def to_frame(self) -> pd.DataFrame:
        """Get the ledger as a DataFrame for reporting."""
        columns = ['transaction_id', 'kind', 'asset_class', 'symbol', 'name',
                   'quantity', 'price', 'total_amount', 'timestamp', 'portfolio_id', 'sequence']
        rows = [t.to_dict() for t in self.transactions()]
        frame = pd.DataFrame(rows, columns=columns)
        if not frame.empty:
            frame['timestamp'] = pd.to_datetime(frame['timestamp'])
            for column in ('quantity', 'price', 'total_amount'):
                frame[column] = frame[column].map(lambda v: Decimal(v) if v is not None else None)
        return frame

    def clear(self):
        """Drop every entry. Only a portfolio reset does this."""
        self._entries.clear()
        self._next_sequence = 0

    def _restore(self, transactions: Iterable[Transaction]):
        """Load saved transactions, keeping their stored sequence numbers."""
        for transaction in transactions:
            if transaction.sequence < 0:
                transaction = replace(transaction, sequence=self._next_sequence)
            self._entries.append(transaction)
            self._next_sequence = max(self._next_sequence, transaction.sequence + 1)

    def __iter__(self) -> Iterator[Transaction]:
        return iter(self.transactions())

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Ledger({len(self._entries)} transactions)"
