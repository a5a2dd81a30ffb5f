"""
Price Feed Module

Interface through which the valuation engine reads market prices, plus an
in-memory implementation backed by cached quotes.

Feeds must answer from cached or last-known values: network refreshes happen
out of band and push their results in through the portfolio manager.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple
import threading

from ..core.holding import AssetClass
from ..utils.validators import require_non_negative


# Common crypto symbols and the ids the crypto price source uses for them
CRYPTO_FEED_IDS: Dict[str, str] = {
    'BTC': 'bitcoin',
    'ETH': 'ethereum',
    'ADA': 'cardano',
    'SOL': 'solana',
    'DOT': 'polkadot',
    'LTC': 'litecoin',
    'XRP': 'ripple',
    'DOGE': 'dogecoin',
    'SHIB': 'shiba-inu',
    'MATIC': 'matic-network'
}

COMMON_STOCKS: List[Tuple[str, str]] = [
    ('AAPL', 'Apple Inc.'),
    ('TSLA', 'Tesla Inc.'),
    ('GOOGL', 'Alphabet Inc.'),
    ('MSFT', 'Microsoft Corporation'),
    ('AMZN', 'Amazon.com Inc.'),
    ('META', 'Meta Platforms Inc.'),
    ('NVDA', 'NVIDIA Corporation'),
    ('NFLX', 'Netflix Inc.'),
    ('SWPPX', 'Schwab S&P 500 Index Fund'),
    ('VOO', 'Vanguard S&P 500 ETF'),
    ('SPY', 'SPDR S&P 500 ETF Trust'),
    ('QQQ', 'Invesco QQQ Trust'),
    ('VTI', 'Vanguard Total Stock Market ETF'),
    ('VEA', 'Vanguard FTSE Developed Markets ETF'),
    ('VWO', 'Vanguard FTSE Emerging Markets ETF')
]

COMMON_CRYPTOS: List[Tuple[str, str]] = [
    ('BTC', 'Bitcoin'),
    ('ETH', 'Ethereum'),
    ('ADA', 'Cardano'),
    ('SOL', 'Solana'),
    ('DOT', 'Polkadot'),
    ('LTC', 'Litecoin'),
    ('XRP', 'Ripple'),
    ('DOGE', 'Dogecoin'),
    ('SHIB', 'Shiba Inu'),
    ('MATIC', 'Polygon'),
    ('LINK', 'Chainlink')
]


def crypto_feed_id(symbol: str) -> str:
    """Map a crypto symbol to its feed id, defaulting to the lower-cased symbol."""
    return CRYPTO_FEED_IDS.get(symbol.upper(), symbol.lower())


@dataclass(frozen=True)
class SymbolMatch:
    """Search result for a tradable symbol."""
    symbol: str
    name: str
    asset_class: AssetClass


def fallback_search(query: str, asset_class: AssetClass) -> List[SymbolMatch]:
    """
    Search the built-in list of common assets.

    A symbol or name containing the query (case-insensitive) matches.
    """
    needle = query.strip().upper()
    if not needle:
        return []
    universe = COMMON_STOCKS if asset_class == AssetClass.STOCK else COMMON_CRYPTOS
    return [
        SymbolMatch(symbol=symbol, name=name, asset_class=asset_class)
        for symbol, name in universe
        if needle in symbol.upper() or needle in name.upper()
    ]


class PriceFeed(ABC):
    """Source of last-known market prices."""

    @abstractmethod
    def get_stock_quote(self, symbol: str) -> Optional[Decimal]:
        """Latest stock price, or None when the symbol is unknown."""

    @abstractmethod
    def get_crypto_quote(self, feed_id: str) -> Optional[Decimal]:
        """Latest crypto price for a feed id (e.g. ``bitcoin``), or None."""

    @abstractmethod
    def search_symbol(self, query: str, asset_class: AssetClass) -> List[SymbolMatch]:
        """Find tradable symbols matching a query."""

    def get_quote(self, asset_class: AssetClass, symbol: str) -> Optional[Decimal]:
        """Dispatch to the stock or crypto lookup for a held symbol."""
        if asset_class == AssetClass.CRYPTO:
            return self.get_crypto_quote(crypto_feed_id(symbol))
        return self.get_stock_quote(symbol.upper())


class StaticPriceFeed(PriceFeed):
    """
    Price feed answering from an in-memory quote cache.

    Adapters that poll real market data write into the cache with
    ``set_stock_quote`` / ``set_crypto_quote``; readers never block on I/O.
    """

    def __init__(self,
                 stock_quotes: Dict[str, object] = None,
                 crypto_quotes: Dict[str, object] = None):
        self._lock = threading.Lock()
        self._stock_quotes: Dict[str, Decimal] = {}
        self._crypto_quotes: Dict[str, Decimal] = {}
        for symbol, price in (stock_quotes or {}).items():
            self.set_stock_quote(symbol, price)
        for feed_id, price in (crypto_quotes or {}).items():
            self.set_crypto_quote(feed_id, price)

    def set_stock_quote(self, symbol: str, price):
        price = require_non_negative(price, "price")
        with self._lock:
            self._stock_quotes[symbol.upper()] = price

    def set_crypto_quote(self, feed_id: str, price):
        """Cache a crypto price. Accepts a feed id or a known symbol."""
        price = require_non_negative(price, "price")
        key = CRYPTO_FEED_IDS.get(feed_id.upper(), feed_id.lower())
        with self._lock:
            self._crypto_quotes[key] = price

    def get_stock_quote(self, symbol: str) -> Optional[Decimal]:
        with self._lock:
            return self._stock_quotes.get(symbol.upper())

    def get_crypto_quote(self, feed_id: str) -> Optional[Decimal]:
        with self._lock:
            return self._crypto_quotes.get(feed_id.lower())

    def search_symbol(self, query: str, asset_class: AssetClass) -> List[SymbolMatch]:
        return fallback_search(query, asset_class)
