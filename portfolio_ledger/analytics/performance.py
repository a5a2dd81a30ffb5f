"""
Performance Analytics Module

This module derives return and risk figures from a portfolio's holdings,
valuation snapshots and transaction ledger:
- All-time and year-to-date ROI
- Max drawdown (cross-sectional, over current holdings)
- Sharpe-like volatility ratio
- Win rate and trade statistics
- Snapshot time series and historical peak-to-trough drawdown

Every metric degrades to a neutral value (0 or "N/A") on empty input.
"""

from dataclasses import dataclass, asdict
from datetime import date
from typing import Dict, Any

import numpy as np
import pandas as pd

from ..core.portfolio import Portfolio
from ..core.transaction import TransactionKind, TRADE_KINDS

NOT_AVAILABLE = "N/A"
DEFAULT_RISK_FREE_RATE = 2.0  # percent


@dataclass
class PerformanceStats:
    """Container for portfolio performance figures."""
    total_roi: float
    ytd_roi: float
    max_drawdown: float
    historical_drawdown: float
    sharpe_ratio: float
    portfolio_volatility: float
    total_trades: int
    winning_trades: int
    losing_trades: int
    win_rate: float
    average_trade_return: float
    best_performing_asset: str
    worst_performing_asset: str
    top_holding: str
    cash_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PerformanceAnalyzer:
    """
    Read-only analytics over one portfolio.

    The drawdown and ratio figures are cross-sectional proxies computed from
    the unrealized P&L percentages of the current holdings, not from a
    return time series. ``historical_drawdown`` walks the snapshot series
    for the true peak-to-trough figure.
    """

    def __init__(self, portfolio: Portfolio, risk_free_rate: float = DEFAULT_RISK_FREE_RATE):
        """
        Initialize the analyzer.

        Args:
            portfolio: Portfolio to analyse (not modified)
            risk_free_rate: Risk-free rate in percent units
        """
        self.portfolio = portfolio
        self.risk_free_rate = risk_free_rate

    def _holding_returns(self) -> np.ndarray:
        return np.array(
            [float(h.unrealized_pl_percent) for h in self.portfolio.holdings.holdings()],
            dtype=float
        )

    def total_roi(self) -> float:
        return float(self.portfolio.total_roi)

    def ytd_roi(self, today: date = None) -> float:
        """
        Year-to-date return from this year's trades.

        Falls back to the all-time ROI when nothing was bought this year.
        """
        today = today or date.today()
        roi = self.portfolio.ledger.period_roi(date(today.year, 1, 1), date(today.year, 12, 31))
        if roi is None:
            return self.total_roi()
        return float(roi)

    def max_drawdown(self) -> float:
        """Worst unrealized loss percentage across holdings (0 if none lose)."""
        returns = self._holding_returns()
        if returns.size == 0:
            return 0.0
        return float(min(returns.min(), 0.0))

    def portfolio_volatility(self) -> float:
        """Population standard deviation of holding returns."""
        returns = self._holding_returns()
        if returns.size == 0:
            return 0.0
        return float(np.std(returns, ddof=0))

    def sharpe_ratio(self, risk_free_rate: float = None) -> float:
        """
        Sharpe-like ratio ``(mean - rf) / std`` over holding returns.

        Args:
            risk_free_rate: Override of the analyzer's rate, in percent

        Returns:
            Ratio, or 0 when there are no holdings or no dispersion
        """
        rate = self.risk_free_rate if risk_free_rate is None else risk_free_rate
        returns = self._holding_returns()
        if returns.size == 0:
            return 0.0
        std_dev = float(np.std(returns, ddof=0))
        if std_dev == 0:
            return 0.0
        return (float(returns.mean()) - rate) / std_dev

    def trade_counts(self) -> Dict[str, int]:
        """Count trades and classify sells with the last-buy heuristic."""
        ledger = self.portfolio.ledger
        trades = ledger.filter(kind=TRADE_KINDS)
        winning = sum(1 for t in trades if ledger.is_winning_sell(t))
        return {
            'total_trades': len(trades),
            'winning_trades': winning,
            'losing_trades': len(trades) - winning
        }

    def win_rate(self) -> float:
        counts = self.trade_counts()
        if counts['total_trades'] == 0:
            return 0.0
        return counts['winning_trades'] / counts['total_trades'] * 100

    def average_trade_return(self) -> float:
        """Mean percentage return of sells against their last prior buy."""
        ledger = self.portfolio.ledger
        trade_returns = []
        for sell in ledger.filter(kind=TransactionKind.SELL):
            last_buy = ledger.last_buy_before(sell)
            if last_buy is None or last_buy.price == 0:
                continue
            trade_returns.append(float((sell.price - last_buy.price) / last_buy.price * 100))
        if not trade_returns:
            return 0.0
        return float(np.mean(trade_returns))

    def best_performing_asset(self) -> str:
        holdings = self.portfolio.holdings.holdings()
        if not holdings:
            return NOT_AVAILABLE
        return max(holdings, key=lambda h: h.unrealized_pl_percent).symbol

    def worst_performing_asset(self) -> str:
        holdings = self.portfolio.holdings.holdings()
        if not holdings:
            return NOT_AVAILABLE
        return min(holdings, key=lambda h: h.unrealized_pl_percent).symbol

    def top_holding(self) -> str:
        """Symbol of the holding with the largest current value."""
        holdings = self.portfolio.holdings.holdings()
        if not holdings:
            return NOT_AVAILABLE
        return max(holdings, key=lambda h: h.current_value).symbol

    def cash_percentage(self) -> float:
        if self.portfolio.total_value <= 0:
            return 100.0
        return float(self.portfolio.cash_balance / self.portfolio.total_value * 100)

    def snapshot_frame(self) -> pd.DataFrame:
        """
        Get the valuation history as a DataFrame.

        Returns:
            DataFrame indexed by timestamp with float columns total_value,
            total_invested and total_roi
        """
        records = [
            {
                'timestamp': s.timestamp,
                'total_value': float(s.total_value),
                'total_invested': float(s.total_invested),
                'total_roi': float(s.total_roi)
            }
            for s in self.portfolio.snapshots
        ]
        frame = pd.DataFrame(records, columns=['timestamp', 'total_value', 'total_invested', 'total_roi'])
        return frame.set_index('timestamp')

    def historical_drawdown(self) -> float:
        """
        Largest peak-to-trough decline of total value, as a negative percentage.

        Points before the first positive value are ignored.
        """
        values = self.snapshot_frame()['total_value']
        values = values[values.cummax() > 0]
        if len(values) < 2:
            return 0.0
        running_peak = values.cummax()
        drawdowns = (values - running_peak) / running_peak * 100
        return float(min(drawdowns.min(), 0.0))

    def summary(self, today: date = None) -> PerformanceStats:
        """Collect every metric into a PerformanceStats record."""
        counts = self.trade_counts()
        return PerformanceStats(
            total_roi=self.total_roi(),
            ytd_roi=self.ytd_roi(today),
            max_drawdown=self.max_drawdown(),
            historical_drawdown=self.historical_drawdown(),
            sharpe_ratio=self.sharpe_ratio(),
            portfolio_volatility=self.portfolio_volatility(),
            total_trades=counts['total_trades'],
            winning_trades=counts['winning_trades'],
            losing_trades=counts['losing_trades'],
            win_rate=self.win_rate(),
            average_trade_return=self.average_trade_return(),
            best_performing_asset=self.best_performing_asset(),
            worst_performing_asset=self.worst_performing_asset(),
            top_holding=self.top_holding(),
            cash_percentage=self.cash_percentage()
        )
