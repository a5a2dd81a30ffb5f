"""
Valuation Engine Module

Recomputes portfolio value, invested capital and ROI from the holding store
and the latest known prices, and records the result as a snapshot.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Any

from ..core.portfolio import Portfolio, Snapshot
from ..data.price_feed import PriceFeed

logger = logging.getLogger(__name__)


class ValuationEngine:
    """
    Deterministic portfolio revaluation.

    Prices are supplied by an injected feed that answers from cache; the
    engine itself performs no I/O.
    """

    def __init__(self, price_feed: PriceFeed = None):
        """
        Initialize the engine.

        Args:
            price_feed: Default feed used when ``revalue`` is given none
        """
        self.price_feed = price_feed

    def pull_prices(self, portfolio: Portfolio, price_feed: PriceFeed, now: datetime = None) -> int:
        """
        Refresh ``last_price`` of every holding from the feed.

        A miss or a feed error for one symbol keeps its stale price and does
        not stop the others.

        Returns:
            Number of holdings whose price was updated
        """
        updated = 0
        for holding in portfolio.holdings.holdings():
            try:
                price = price_feed.get_quote(holding.asset_class, holding.symbol)
            except Exception:
                logger.warning(f"Price feed failed for {holding.symbol}, keeping {holding.last_price}",
                               exc_info=True)
                continue
            if price is None:
                logger.debug(f"No quote for {holding.symbol}, keeping {holding.last_price}")
                continue
            if portfolio.holdings.update_price(holding.asset_class, holding.symbol, price, now):
                updated += 1
        return updated

    def revalue(self, portfolio: Portfolio, price_feed: PriceFeed = None, now: datetime = None) -> Snapshot:
        """
        Recompute headline figures and append a snapshot.

        Args:
            portfolio: Portfolio to revalue in place
            price_feed: Feed to pull prices from (falls back to the engine's)
            now: Valuation time (defaults to now)

        Returns:
            The appended snapshot
        """
        now = now or datetime.now()
        feed = price_feed or self.price_feed
        if feed is not None:
            self.pull_prices(portfolio, feed, now)

        total_value = portfolio.cash_balance + portfolio.holdings.total_current_value()
        total_invested = portfolio.holdings.total_cost_basis()
        if total_invested > 0:
            total_roi = (total_value - total_invested) / total_invested * 100
        else:
            total_roi = Decimal('0')

        portfolio.total_value = total_value
        portfolio.total_invested = total_invested
        portfolio.total_roi = total_roi
        portfolio.last_updated = now

        snapshot = Snapshot(
            timestamp=now,
            total_value=total_value,
            total_invested=total_invested,
            total_roi=total_roi
        )
        portfolio.snapshots.append(snapshot)
        return snapshot

    @staticmethod
    def holding_values(portfolio: Portfolio) -> List[Dict[str, Any]]:
        """Get per-holding valuation breakdown."""
        return [
            {
                'asset_class': h.asset_class.value,
                'symbol': h.symbol,
                'name': h.name,
                'quantity': h.quantity,
                'average_cost': h.average_cost,
                'last_price': h.last_price,
                'cost_basis': h.cost_basis,
                'current_value': h.current_value,
                'unrealized_pl': h.unrealized_pl,
                'unrealized_pl_percent': h.unrealized_pl_percent
            }
            for h in portfolio.holdings.holdings()
        ]

    @staticmethod
    def cash_percentage(portfolio: Portfolio) -> Decimal:
        """Share of total value held as cash (100 for an empty portfolio)."""
        if portfolio.total_value <= 0:
            return Decimal('100')
        return portfolio.cash_balance / portfolio.total_value * 100
