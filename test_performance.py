#!/usr/bin/env python3
"""
Test cases for performance analytics: drawdown, Sharpe-like ratio, win rate and period returns
"""

from datetime import datetime, date, timedelta

import pytest

from portfolio_ledger.analytics.performance import PerformanceAnalyzer, NOT_AVAILABLE
from portfolio_ledger.core.holding import AssetClass
from portfolio_ledger.core.portfolio import Portfolio
from portfolio_ledger.manager.portfolio_manager import PortfolioManager


class SteppingClock:
    """Clock that advances one minute per call"""

    def __init__(self, start=datetime(2025, 3, 3, 9, 30)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current += timedelta(minutes=1)
        return value


def make_manager():
    return PortfolioManager(clock=SteppingClock())


def test_empty_portfolio_metrics_are_neutral():
    analyzer = PerformanceAnalyzer(Portfolio("Empty"))

    assert analyzer.max_drawdown() == 0
    assert analyzer.sharpe_ratio() == 0
    assert analyzer.portfolio_volatility() == 0
    assert analyzer.win_rate() == 0
    assert analyzer.average_trade_return() == 0
    assert analyzer.historical_drawdown() == 0
    assert analyzer.best_performing_asset() == NOT_AVAILABLE
    assert analyzer.worst_performing_asset() == NOT_AVAILABLE
    assert analyzer.top_holding() == NOT_AVAILABLE
    assert analyzer.cash_percentage() == 100.0

    stats = analyzer.summary(today=date(2025, 1, 1))
    assert stats.total_trades == 0
    assert stats.ytd_roi == 0


def test_win_rate_counts_buys_as_trades_but_only_sells_as_wins():
    manager = make_manager()
    manager.deposit(1000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 1, 100)
    manager.sell(AssetClass.STOCK, "AAPL", 1, 110)

    stats = manager.performance_stats(today=date(2025, 3, 3))
    assert stats.total_trades == 2
    assert stats.winning_trades == 1
    assert stats.losing_trades == 1
    assert stats.win_rate == 50.0
    assert stats.average_trade_return == pytest.approx(10.0)


def test_drawdown_and_sharpe_over_current_holdings():
    manager = make_manager()
    manager.deposit(2000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 10, 100)
    manager.buy(AssetClass.STOCK, "MSFT", "Microsoft", 10, 100)
    manager.update_price_from_feed("AAPL", AssetClass.STOCK, 110)
    manager.update_price_from_feed("MSFT", AssetClass.STOCK, 90)

    analyzer = PerformanceAnalyzer(manager.current_portfolio())
    # Holding returns +10% and -10%: mean 0, population std 10
    assert analyzer.max_drawdown() == pytest.approx(-10.0)
    assert analyzer.portfolio_volatility() == pytest.approx(10.0)
    assert analyzer.sharpe_ratio() == pytest.approx(-0.2)
    assert analyzer.sharpe_ratio(risk_free_rate=0.0) == pytest.approx(0.0)
    assert analyzer.best_performing_asset() == "AAPL"
    assert analyzer.worst_performing_asset() == "MSFT"


def test_max_drawdown_is_zero_when_all_holdings_gain():
    manager = make_manager()
    manager.deposit(1000)
    manager.buy(AssetClass.CRYPTO, "BTC", "Bitcoin", "0.01", 50000)
    manager.update_price_from_feed("BTC", AssetClass.CRYPTO, 60000)

    analyzer = PerformanceAnalyzer(manager.current_portfolio())
    assert analyzer.max_drawdown() == 0
    # A single holding has no dispersion
    assert analyzer.sharpe_ratio() == 0


def test_ytd_roi_uses_this_years_trades_and_falls_back_to_total_roi():
    manager = make_manager()
    manager.deposit(2000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 10, 100)
    manager.sell(AssetClass.STOCK, "AAPL", 10, 120)

    analyzer = PerformanceAnalyzer(manager.current_portfolio())
    assert analyzer.ytd_roi(today=date(2025, 6, 1)) == pytest.approx(20.0)
    assert analyzer.ytd_roi(today=date(2026, 1, 15)) == analyzer.total_roi()


def test_top_holding_is_largest_by_current_value():
    manager = make_manager()
    manager.deposit(5000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 10, 100)
    manager.buy(AssetClass.STOCK, "NVDA", "NVIDIA", 1, 900)
    manager.update_price_from_feed("NVDA", AssetClass.STOCK, 1200)

    assert PerformanceAnalyzer(manager.current_portfolio()).top_holding() == "NVDA"


def test_historical_drawdown_walks_snapshot_peaks():
    manager = make_manager()
    manager.deposit(1000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 10, 100)
    manager.update_price_from_feed("AAPL", AssetClass.STOCK, 80)
    manager.update_price_from_feed("AAPL", AssetClass.STOCK, 120)

    analyzer = PerformanceAnalyzer(manager.current_portfolio())
    frame = analyzer.snapshot_frame()
    assert list(frame['total_value']) == [0.0, 1000.0, 1000.0, 800.0, 1200.0]
    assert analyzer.historical_drawdown() == pytest.approx(-20.0)


def test_summary_to_dict():
    manager = make_manager()
    manager.deposit(100)
    stats = manager.performance_stats(today=date(2025, 3, 3)).to_dict()

    assert stats['cash_percentage'] == 100.0
    assert stats['top_holding'] == NOT_AVAILABLE
    assert set(stats) >= {'total_roi', 'max_drawdown', 'sharpe_ratio', 'win_rate'}


if __name__ == "__main__":
    pytest.main([__file__])
