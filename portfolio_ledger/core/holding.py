"""
Holding Management Module

This module provides the Holding record for an open position in one
symbol/asset-class pair and the HoldingStore that owns the set of open
positions with volume-weighted cost basis.
"""

from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Tuple, Iterator, Any
from dataclasses import dataclass, field
from enum import Enum
from fractions import Fraction

from .exceptions import InsufficientQuantity, InvalidAmount
from ..utils.validators import require_positive, require_non_negative, normalize_symbol


class AssetClass(Enum):
    """Asset class enumeration."""
    STOCK = "stock"
    CRYPTO = "cryptocurrency"


HoldingKey = Tuple[AssetClass, str]


def require_asset_class(value: Any) -> AssetClass:
    """
    Coerce an AssetClass or its value (e.g. ``"stock"``).

    Raises:
        InvalidAmount: If the value names no asset class
    """
    if isinstance(value, AssetClass):
        return value
    try:
        return AssetClass(value)
    except (ValueError, TypeError):
        raise InvalidAmount("asset_class", value) from None


@dataclass
class Holding:
    """
    Open position in a single asset.

    ``average_cost`` is the volume-weighted average of every buy lot and is
    never changed by a sell. ``last_price`` is the most recent market price
    known for the asset.

    The exact cost of the open units is kept as a Fraction so the average is
    produced by a single rounded division, whatever the order of the lots.
    """
    asset_class: AssetClass
    symbol: str
    name: str
    quantity: Decimal
    average_cost: Decimal
    last_price: Decimal
    last_updated: datetime = field(default_factory=datetime.now)
    _exact_cost: Fraction = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        self._exact_cost = Fraction(self.quantity) * Fraction(self.average_cost)

    def _add_lot(self, quantity: Decimal, price: Decimal):
        self._exact_cost += Fraction(quantity) * Fraction(price)
        self.quantity += quantity
        exact_average = self._exact_cost / Fraction(self.quantity)
        self.average_cost = Decimal(exact_average.numerator) / Decimal(exact_average.denominator)

    def _remove_units(self, quantity: Decimal):
        remaining = self.quantity - quantity
        # Scale the exact cost so the average per unit stays the same
        self._exact_cost = self._exact_cost * Fraction(remaining) / Fraction(self.quantity)
        self.quantity = remaining

    @property
    def key(self) -> HoldingKey:
        return (self.asset_class, self.symbol)

    @property
    def cost_basis(self) -> Decimal:
        """Total amount invested at average cost."""
        return self.quantity * self.average_cost

    @property
    def current_value(self) -> Decimal:
        return self.quantity * self.last_price

    @property
    def unrealized_pl(self) -> Decimal:
        return self.current_value - self.cost_basis

    @property
    def unrealized_pl_percent(self) -> Decimal:
        """Unrealized P&L as a percentage of cost basis (0 for zero basis)."""
        cost_basis = self.cost_basis
        if cost_basis == 0:
            return Decimal('0')
        return self.unrealized_pl / cost_basis * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'asset_class': self.asset_class.value,
            'symbol': self.symbol,
            'name': self.name,
            'quantity': str(self.quantity),
            'average_cost': str(self.average_cost),
            'last_price': str(self.last_price),
            'last_updated': self.last_updated.isoformat()
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Holding':
        return cls(
            asset_class=AssetClass(data['asset_class']),
            symbol=data['symbol'],
            name=data.get('name', data['symbol']),
            quantity=Decimal(data['quantity']),
            average_cost=Decimal(data['average_cost']),
            last_price=Decimal(data['last_price']),
            last_updated=datetime.fromisoformat(data['last_updated'])
        )

    def __str__(self) -> str:
        return (f"Holding({self.asset_class.value} {self.quantity} {self.symbol} "
                f"@ avg {self.average_cost}, last {self.last_price})")


class HoldingStore:
    """
    Owner of the open positions of a portfolio.

    Holdings are keyed by ``(asset_class, symbol)`` and kept in insertion
    order. Funds checks are the caller's responsibility; the store only
    guards quantities.
    """

    def __init__(self):
        self._holdings: Dict[HoldingKey, Holding] = {}

    def apply_buy(self,
                  asset_class: AssetClass,
                  symbol: str,
                  name: str,
                  quantity,
                  price,
                  timestamp: datetime = None) -> Holding:
        """
        Add a buy lot to the store.

        Args:
            asset_class: Asset class of the position
            symbol: Asset symbol
            name: Display name used when the holding is created
            quantity: Units bought, must be positive
            price: Price per unit, must be positive
            timestamp: Time of the buy (defaults to now)

        Returns:
            The created or updated holding
        """
        asset_class = require_asset_class(asset_class)
        symbol = normalize_symbol(symbol)
        quantity = require_positive(quantity, "quantity")
        price = require_positive(price, "price")
        timestamp = timestamp or datetime.now()

        key = (asset_class, symbol)
        holding = self._holdings.get(key)
        if holding is None:
            holding = Holding(
                asset_class=asset_class,
                symbol=symbol,
                name=name or symbol,
                quantity=quantity,
                average_cost=price,
                last_price=price,
                last_updated=timestamp
            )
            self._holdings[key] = holding
            return holding

        holding._add_lot(quantity, price)
        holding.last_updated = timestamp
        return holding

    def apply_sell(self,
                   asset_class: AssetClass,
                   symbol: str,
                   quantity,
                   timestamp: datetime = None) -> Holding:
        """
        Remove units from a holding.

        The holding is dropped once its quantity reaches exactly zero. Cost
        basis per unit is left untouched.

        Returns:
            The holding as it stands after the sell

        Raises:
            InsufficientQuantity: If the holding is absent or too small
        """
        asset_class = require_asset_class(asset_class)
        symbol = normalize_symbol(symbol)
        quantity = require_positive(quantity, "quantity")

        key = (asset_class, symbol)
        holding = self._holdings.get(key)
        if holding is None:
            raise InsufficientQuantity(symbol, quantity, Decimal('0'))
        if quantity > holding.quantity:
            raise InsufficientQuantity(symbol, quantity, holding.quantity)

        holding._remove_units(quantity)
        holding.last_updated = timestamp or datetime.now()
        if holding.quantity == 0:
            del self._holdings[key]
        return holding

    def update_price(self,
                     asset_class: AssetClass,
                     symbol: str,
                     price,
                     timestamp: datetime = None) -> bool:
        """
        Set the last known price of a holding.

        Symbols that are not held are ignored, since a feed may report
        prices for anything on a watchlist.

        Returns:
            True if a holding was updated
        """
        price = require_non_negative(price, "price")
        holding = self._holdings.get((require_asset_class(asset_class), normalize_symbol(symbol)))
        if holding is None:
            return False
        holding.last_price = price
        holding.last_updated = timestamp or datetime.now()
        return True

    def get(self, asset_class: AssetClass, symbol: str) -> Optional[Holding]:
        """Get holding for a symbol, or None."""
        return self._holdings.get((asset_class, normalize_symbol(symbol)))

    def holdings(self) -> List[Holding]:
        """Get all holdings in insertion order."""
        return list(self._holdings.values())

    def keys(self) -> List[HoldingKey]:
        return list(self._holdings.keys())

    def clear(self):
        self._holdings.clear()

    def total_current_value(self) -> Decimal:
        return sum((h.current_value for h in self._holdings.values()), Decimal('0'))

    def total_cost_basis(self) -> Decimal:
        return sum((h.cost_basis for h in self._holdings.values()), Decimal('0'))

    def _insert(self, holding: Holding):
        """Place a restored holding, used when loading saved portfolios."""
        self._holdings[holding.key] = holding

    def __contains__(self, key) -> bool:
        return key in self._holdings

    def __iter__(self) -> Iterator[Holding]:
        return iter(list(self._holdings.values()))

    def __len__(self) -> int:
        return len(self._holdings)

    def __repr__(self) -> str:
        return f"HoldingStore({len(self._holdings)} holdings)"
