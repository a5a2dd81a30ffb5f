"""
Watchlist Module

Assets a user follows without holding them.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, Any
from dataclasses import dataclass, field

from .holding import AssetClass, HoldingKey


@dataclass
class WatchlistItem:
    """Followed asset with its latest quote."""
    asset_class: AssetClass
    symbol: str
    name: str
    current_price: Decimal = Decimal('0')
    price_change: Decimal = Decimal('0')
    price_change_percent: Decimal = Decimal('0')
    added_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self):
        self.symbol = self.symbol.strip().upper()

    @property
    def key(self) -> HoldingKey:
        return (self.asset_class, self.symbol)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'asset_class': self.asset_class.value,
            'symbol': self.symbol,
            'name': self.name,
            'current_price': str(self.current_price),
            'price_change': str(self.price_change),
            'price_change_percent': str(self.price_change_percent),
            'added_at': self.added_at.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WatchlistItem':
        return cls(
            asset_class=AssetClass(data['asset_class']),
            symbol=data['symbol'],
            name=data.get('name', data['symbol']),
            current_price=Decimal(data.get('current_price', '0')),
            price_change=Decimal(data.get('price_change', '0')),
            price_change_percent=Decimal(data.get('price_change_percent', '0')),
            added_at=datetime.fromisoformat(data['added_at'])
        )
