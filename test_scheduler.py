#!/usr/bin/env python3
"""
Test cases for the periodic revaluation scheduler
"""

import threading
import time
from decimal import Decimal

import pytest

from portfolio_ledger.core.holding import AssetClass
from portfolio_ledger.data.price_feed import StaticPriceFeed
from portfolio_ledger.manager.portfolio_manager import PortfolioManager
from portfolio_ledger.manager.scheduler import RevaluationScheduler


def wait_for(condition, timeout=5.0):
    """Helper function polling a condition until it holds or times out"""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return False


def test_ticks_revalue_from_feed_until_stopped():
    feed = StaticPriceFeed()
    manager = PortfolioManager(price_feed=feed)
    manager.deposit(1000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple", 2, 100)
    feed.set_stock_quote("AAPL", 150)

    scheduler = RevaluationScheduler(manager, interval=0.02)
    scheduler.start()
    assert scheduler.is_running
    assert wait_for(lambda: scheduler.tick_count >= 3)
    scheduler.stop()

    assert not scheduler.is_running
    assert manager.current_portfolio().total_value == Decimal('1100')

    ticks = scheduler.tick_count
    time.sleep(0.1)
    assert scheduler.tick_count == ticks


def test_failing_tick_is_logged_and_schedule_continues():
    class BrokenManager:
        def __init__(self):
            self.calls = 0

        def refresh_prices(self):
            self.calls += 1
            raise RuntimeError("feed exploded")

    manager = BrokenManager()
    with RevaluationScheduler(manager, interval=0.02):
        assert wait_for(lambda: manager.calls >= 2)


def test_ticks_notify_listeners():
    manager = PortfolioManager()
    ticked = threading.Event()
    manager.subscribe(ticked.set)

    with RevaluationScheduler(manager, interval=0.02) as scheduler:
        assert ticked.wait(5.0)
        assert wait_for(lambda: scheduler.tick_count >= 1)


def test_interval_defaults_to_config_and_must_be_positive():
    manager = PortfolioManager()
    assert RevaluationScheduler(manager).interval == manager.config.refresh_interval_seconds

    with pytest.raises(ValueError):
        RevaluationScheduler(manager, interval=0)


if __name__ == "__main__":
    pytest.main([__file__])
