"""
Portfolio Manager Module

This module provides the PortfolioManager facade that applies cash and
trading commands to portfolios. It is the single owner of portfolio state:
- Validates every command before mutating anything
- Records each accepted command in the ledger and revalues the portfolio
- Serializes all mutations, including external price ticks, on one lock
- Notifies listeners once per committed command
- Persists state write-behind on a single ordered worker
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import replace
from datetime import datetime, date
from decimal import Decimal
from typing import Callable, Dict, List, Optional

from ..analytics.performance import PerformanceAnalyzer, PerformanceStats
from ..analytics.valuation import ValuationEngine
from ..config import LedgerConfig
from ..core.exceptions import (
    DuplicateWatchlistItem,
    InsufficientFunds,
    InvalidName,
    OperationResult,
    PortfolioError,
    UnknownHolding,
    UnknownPortfolio,
    UnknownWatchlistItem,
)
from ..core.holding import AssetClass, require_asset_class
from ..core.portfolio import Portfolio, Snapshot
from ..core.transaction import Transaction, TransactionKind
from ..core.watchlist import WatchlistItem
from ..data.persistence import PersistenceStore
from ..data.price_feed import PriceFeed
from ..utils.validators import require_positive, require_non_negative, normalize_symbol, to_decimal

logger = logging.getLogger(__name__)

Listener = Callable[[], None]


class PortfolioManager:
    """
    Public facade over a set of portfolios and a watchlist.

    Commands return an OperationResult; declined commands (insufficient
    funds, unknown holdings, bad amounts) leave state untouched and carry the
    error instead of raising it. Readers get deep copies, never live state.
    """

    def __init__(self,
                 price_feed: PriceFeed = None,
                 persistence: PersistenceStore = None,
                 config: LedgerConfig = None,
                 clock: Callable[[], datetime] = None):
        """
        Initialize the manager and load saved state.

        Args:
            price_feed: Cached price source used by ``refresh_prices``
            persistence: Store for portfolios and watchlist (optional)
            config: Settings (defaults to LedgerConfig())
            clock: Time source for transactions and snapshots
        """
        self.config = config or LedgerConfig()
        self.price_feed = price_feed
        self.persistence = persistence
        self._clock = clock or datetime.now

        self._lock = threading.RLock()
        self._valuation = ValuationEngine()
        self._listeners: List[Listener] = []
        self._listeners_lock = threading.Lock()

        self._writer: Optional[ThreadPoolExecutor] = None
        self._last_write: Optional[Future] = None
        if persistence is not None:
            self._writer = ThreadPoolExecutor(max_workers=1, thread_name_prefix="portfolio-writer")

        self._portfolios: Dict[str, Portfolio] = {}
        self._current_id: Optional[str] = None
        self._watchlist: List[WatchlistItem] = []
        self._load()

    # ------------------------------------------------------------------
    # Loading and persistence

    def _load(self):
        if self.persistence is not None:
            for data in self.persistence.load_portfolios():
                try:
                    portfolio = Portfolio.from_dict(data)
                except (KeyError, ValueError, TypeError) as e:
                    logger.error(f"Skipping unreadable saved portfolio: {str(e)}")
                    continue
                self._portfolios[portfolio.portfolio_id] = portfolio
            for data in self.persistence.load_watchlist():
                try:
                    self._watchlist.append(WatchlistItem.from_dict(data))
                except (KeyError, ValueError, TypeError) as e:
                    logger.error(f"Skipping unreadable watchlist item: {str(e)}")

        if self._portfolios:
            self._current_id = next(iter(self._portfolios))
            logger.info(f"Loaded {len(self._portfolios)} portfolios")
        else:
            portfolio = Portfolio(self.config.default_portfolio_name, created_at=self._clock())
            self._portfolios[portfolio.portfolio_id] = portfolio
            self._current_id = portfolio.portfolio_id
            self._save_portfolios()

    def _submit_write(self, write: Callable[[], None], description: str):
        """Queue a write on the single writer thread, preserving order."""
        if self.persistence is None:
            return
        if self._writer is None:
            logger.warning(f"Manager is closed, {description} not saved")
            return

        def run():
            try:
                write()
            except Exception:
                logger.exception(f"Failed to save {description}")

        self._last_write = self._writer.submit(run)

    def _save_portfolios(self):
        # Serialize under the caller's lock so queued writes match commit order
        payload = [p.to_dict() for p in self._portfolios.values()]
        self._submit_write(lambda: self.persistence.save_all(payload), "portfolios")

    def _save_watchlist(self):
        payload = [item.to_dict() for item in self._watchlist]
        self._submit_write(lambda: self.persistence.save_watchlist(payload), "watchlist")

    def flush(self, timeout: float = None):
        """Wait until every queued write has reached the store."""
        with self._lock:
            last_write = self._last_write
        if last_write is not None:
            last_write.result(timeout=timeout)

    def close(self):
        """Flush pending writes and stop the writer thread."""
        if self._writer is not None:
            self.flush()
            self._writer.shutdown(wait=True)
            self._writer = None

    # ------------------------------------------------------------------
    # Notifications

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a zero-argument callback fired after every committed command.

        Listeners should re-read whatever state they need.

        Returns:
            Callable that removes the listener
        """
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify(self):
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception:
                logger.exception("Portfolio change listener failed")

    # ------------------------------------------------------------------
    # Internal helpers

    @property
    def _current(self) -> Portfolio:
        return self._portfolios[self._current_id]

    def _decline(self, operation: str, error: PortfolioError) -> OperationResult:
        logger.debug(f"{operation} declined: {error}")
        return OperationResult.failure(error)

    def _commit(self, portfolio: Portfolio, now: datetime, price_feed: PriceFeed = None) -> Snapshot:
        snapshot = self._valuation.revalue(portfolio, price_feed, now)
        self._save_portfolios()
        return snapshot

    # ------------------------------------------------------------------
    # Cash operations

    def deposit(self, amount) -> OperationResult:
        """
        Add cash to the current portfolio.

        Args:
            amount: Positive amount to deposit

        Returns:
            OperationResult carrying the deposit transaction
        """
        with self._lock:
            try:
                amount = require_positive(amount, "amount")
            except PortfolioError as e:
                return self._decline("deposit", e)

            portfolio = self._current
            now = self._clock()
            portfolio.cash_balance += amount
            transaction = portfolio.ledger.record(Transaction(
                kind=TransactionKind.DEPOSIT,
                total_amount=amount,
                portfolio_id=portfolio.portfolio_id,
                timestamp=now
            ))
            self._commit(portfolio, now)
        self._notify()
        return OperationResult.success(transaction)

    def withdraw(self, amount) -> OperationResult:
        """
        Withdraw cash from the current portfolio.

        Args:
            amount: Positive amount, at most the cash balance

        Returns:
            OperationResult carrying the withdrawal, or InsufficientFunds
        """
        with self._lock:
            portfolio = self._current
            try:
                amount = require_positive(amount, "amount")
                if amount > portfolio.cash_balance:
                    raise InsufficientFunds(amount, portfolio.cash_balance)
            except PortfolioError as e:
                return self._decline("withdraw", e)

            now = self._clock()
            portfolio.cash_balance -= amount
            transaction = portfolio.ledger.record(Transaction(
                kind=TransactionKind.WITHDRAWAL,
                total_amount=amount,
                portfolio_id=portfolio.portfolio_id,
                timestamp=now
            ))
            self._commit(portfolio, now)
        self._notify()
        return OperationResult.success(transaction)

    # ------------------------------------------------------------------
    # Trading operations

    def buy(self, asset_class: AssetClass, symbol: str, name: str, quantity, price) -> OperationResult:
        """
        Buy units of an asset with portfolio cash.

        Args:
            asset_class: Stock or crypto
            symbol: Asset symbol
            name: Display name of the asset
            quantity: Positive number of units
            price: Positive price per unit

        Returns:
            OperationResult carrying the buy, or InsufficientFunds/InvalidAmount
        """
        with self._lock:
            portfolio = self._current
            try:
                asset_class = require_asset_class(asset_class)
                symbol = normalize_symbol(symbol)
                quantity = require_positive(quantity, "quantity")
                price = require_positive(price, "price")
                cost = quantity * price
                if cost > portfolio.cash_balance:
                    raise InsufficientFunds(cost, portfolio.cash_balance)
            except PortfolioError as e:
                return self._decline("buy", e)

            now = self._clock()
            portfolio.cash_balance -= cost
            holding = portfolio.holdings.apply_buy(asset_class, symbol, name, quantity, price, now)
            transaction = portfolio.ledger.record(Transaction(
                kind=TransactionKind.BUY,
                total_amount=cost,
                portfolio_id=portfolio.portfolio_id,
                timestamp=now,
                asset_class=asset_class,
                symbol=symbol,
                name=holding.name,
                quantity=quantity,
                price=price
            ))
            self._commit(portfolio, now)
        self._notify()
        return OperationResult.success(transaction)

    def sell(self, asset_class: AssetClass, symbol: str, quantity, price) -> OperationResult:
        """
        Sell units of a held asset into cash.

        The sell price becomes the holding's last known price when units
        remain.

        Args:
            asset_class: Stock or crypto
            symbol: Asset symbol
            quantity: Positive number of units, at most the quantity held
            price: Positive price per unit

        Returns:
            OperationResult carrying the sell, or UnknownHolding,
            InsufficientQuantity or InvalidAmount
        """
        with self._lock:
            portfolio = self._current
            try:
                asset_class = require_asset_class(asset_class)
                symbol = normalize_symbol(symbol)
                quantity = require_positive(quantity, "quantity")
                price = require_positive(price, "price")
                held = portfolio.holdings.get(asset_class, symbol)
                if held is None:
                    raise UnknownHolding(symbol, asset_class)
                name = held.name
                now = self._clock()
                holding = portfolio.holdings.apply_sell(asset_class, symbol, quantity, now)
            except PortfolioError as e:
                return self._decline("sell", e)

            proceeds = quantity * price
            portfolio.cash_balance += proceeds
            if holding.quantity > 0:
                portfolio.holdings.update_price(asset_class, symbol, price, now)
            transaction = portfolio.ledger.record(Transaction(
                kind=TransactionKind.SELL,
                total_amount=proceeds,
                portfolio_id=portfolio.portfolio_id,
                timestamp=now,
                asset_class=asset_class,
                symbol=symbol,
                name=name,
                quantity=quantity,
                price=price
            ))
            self._commit(portfolio, now)
        self._notify()
        return OperationResult.success(transaction)

    # ------------------------------------------------------------------
    # Price updates

    def update_price_from_feed(self, symbol: str, asset_class: AssetClass, price) -> OperationResult:
        """
        Apply an externally fetched price to the current portfolio.

        Prices for symbols that are not held are ignored, but the portfolio
        is still revalued and listeners are still notified.
        """
        with self._lock:
            try:
                asset_class = require_asset_class(asset_class)
                symbol = normalize_symbol(symbol)
                price = require_non_negative(price, "price")
            except PortfolioError as e:
                return self._decline("price update", e)

            portfolio = self._current
            now = self._clock()
            portfolio.holdings.update_price(asset_class, symbol, price, now)
            self._commit(portfolio, now)
        self._notify()
        return OperationResult.success()

    def refresh_prices(self) -> Snapshot:
        """
        Revalue the current portfolio from the injected price feed.

        This is the periodic tick command. Without a feed the portfolio is
        revalued at its last known prices.

        Returns:
            The new snapshot
        """
        with self._lock:
            portfolio = self._current
            snapshot = self._commit(portfolio, self._clock(), self.price_feed)
        self._notify()
        return snapshot

    # ------------------------------------------------------------------
    # Portfolio lifecycle

    def create_portfolio(self, name: str) -> OperationResult:
        """
        Create an empty portfolio. The current portfolio is unchanged.

        Returns:
            OperationResult whose ``value`` is a copy of the new portfolio,
            or InvalidName for an empty name
        """
        if not isinstance(name, str) or not name.strip():
            return self._decline("create portfolio", InvalidName(name))
        with self._lock:
            portfolio = Portfolio(name.strip(), created_at=self._clock())
            self._portfolios[portfolio.portfolio_id] = portfolio
            self._save_portfolios()
            created = portfolio.copy()
        self._notify()
        return OperationResult.success(value=created)

    def switch_portfolio(self, portfolio_id: str) -> OperationResult:
        with self._lock:
            if portfolio_id not in self._portfolios:
                return self._decline("switch", UnknownPortfolio(portfolio_id))
            self._current_id = portfolio_id
        self._notify()
        return OperationResult.success()

    def delete_portfolio(self, portfolio_id: str) -> OperationResult:
        """
        Remove a portfolio entirely.

        Deleting the current portfolio switches to the first remaining one,
        or to a fresh default portfolio when none remain.
        """
        with self._lock:
            if portfolio_id not in self._portfolios:
                return self._decline("delete", UnknownPortfolio(portfolio_id))
            del self._portfolios[portfolio_id]
            if not self._portfolios:
                fresh = Portfolio(self.config.default_portfolio_name, created_at=self._clock())
                self._portfolios[fresh.portfolio_id] = fresh
            if self._current_id == portfolio_id:
                self._current_id = next(iter(self._portfolios))
            self._save_portfolios()
        self._notify()
        return OperationResult.success()

    def reset_portfolio(self, portfolio_id: str = None) -> OperationResult:
        """Clear a portfolio's cash and history, keeping its id and name."""
        with self._lock:
            portfolio_id = portfolio_id or self._current_id
            portfolio = self._portfolios.get(portfolio_id)
            if portfolio is None:
                return self._decline("reset", UnknownPortfolio(portfolio_id))
            portfolio.reset(self._clock())
            self._save_portfolios()
        self._notify()
        return OperationResult.success()

    # ------------------------------------------------------------------
    # Read access

    def current_portfolio(self) -> Portfolio:
        """Get a copy of the current portfolio."""
        with self._lock:
            return self._current.copy()

    def get_portfolio(self, portfolio_id: str) -> Optional[Portfolio]:
        with self._lock:
            portfolio = self._portfolios.get(portfolio_id)
            return portfolio.copy() if portfolio is not None else None

    def portfolios(self) -> List[Portfolio]:
        with self._lock:
            return [p.copy() for p in self._portfolios.values()]

    @property
    def cash_balance(self) -> Decimal:
        with self._lock:
            return self._current.cash_balance

    def performance_stats(self, today: date = None) -> PerformanceStats:
        """Compute performance figures for the current portfolio."""
        portfolio = self.current_portfolio()
        return PerformanceAnalyzer(portfolio, self.config.risk_free_rate).summary(today)

    # ------------------------------------------------------------------
    # Watchlist

    def watchlist(self) -> List[WatchlistItem]:
        with self._lock:
            return [WatchlistItem(**vars(item)) for item in self._watchlist]

    def add_to_watchlist(self, item: WatchlistItem) -> OperationResult:
        """
        Follow an asset.

        Returns:
            OperationResult, or DuplicateWatchlistItem if the asset is
            already followed
        """
        with self._lock:
            try:
                item = replace(item,
                               asset_class=require_asset_class(item.asset_class),
                               symbol=normalize_symbol(item.symbol))
                if any(existing.key == item.key for existing in self._watchlist):
                    raise DuplicateWatchlistItem(item.symbol, item.asset_class)
            except PortfolioError as e:
                return self._decline("watchlist add", e)
            self._watchlist.append(item)
            self._save_watchlist()
        self._notify()
        return OperationResult.success()

    def remove_from_watchlist(self, symbol: str, asset_class: AssetClass) -> OperationResult:
        with self._lock:
            try:
                key = (require_asset_class(asset_class), normalize_symbol(symbol))
                remaining = [item for item in self._watchlist if item.key != key]
                if len(remaining) == len(self._watchlist):
                    raise UnknownWatchlistItem(key[1], key[0])
            except PortfolioError as e:
                return self._decline("watchlist remove", e)
            self._watchlist = remaining
            self._save_watchlist()
        self._notify()
        return OperationResult.success()

    def update_watchlist_price(self,
                               symbol: str,
                               asset_class: AssetClass,
                               price,
                               price_change=0,
                               price_change_percent=0) -> OperationResult:
        """
        Store the latest quote of a followed asset.

        Returns:
            OperationResult, or UnknownWatchlistItem if the asset is not
            followed
        """
        with self._lock:
            try:
                key = (require_asset_class(asset_class), normalize_symbol(symbol))
                price = require_non_negative(price, "price")
                price_change = to_decimal(price_change, "price_change")
                price_change_percent = to_decimal(price_change_percent, "price_change_percent")
                item = next((w for w in self._watchlist if w.key == key), None)
                if item is None:
                    raise UnknownWatchlistItem(key[1], key[0])
            except PortfolioError as e:
                return self._decline("watchlist price update", e)
            item.current_price = price
            item.price_change = price_change
            item.price_change_percent = price_change_percent
            self._save_watchlist()
        self._notify()
        return OperationResult.success()

    def __enter__(self) -> 'PortfolioManager':
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def __repr__(self) -> str:
        return f"PortfolioManager({len(self._portfolios)} portfolios, current={self._current_id})"
