#!/usr/bin/env python3
"""
Portfolio Ledger Demo

Walks through the portfolio ledger end to end:
- Cash deposits and withdrawals
- Buying and selling stocks and crypto with weighted cost basis
- Price updates and revaluation snapshots
- Declined operations that leave the portfolio untouched
- Performance statistics and the transaction ledger as a DataFrame
- Periodic revaluation from a cached price feed

Run this file to see the portfolio ledger in action.
"""

import argparse
import logging
import tempfile
import time

import pandas as pd

from portfolio_ledger import (
    AssetClass,
    JsonFilePersistenceStore,
    LedgerConfig,
    PortfolioManager,
    RevaluationScheduler,
    StaticPriceFeed,
    WatchlistItem,
)
from portfolio_ledger.analytics.valuation import ValuationEngine


def print_section(title):
    """Print a section header."""
    print(f"\n{'='*60}")
    print(f" {title}")
    print(f"{'='*60}")


def print_portfolio(manager):
    portfolio = manager.current_portfolio()
    print(f"Portfolio: {portfolio.name}")
    print(f"  Cash Balance: ${portfolio.cash_balance:,.2f}")
    print(f"  Total Value: ${portfolio.total_value:,.2f}")
    print(f"  Total Invested: ${portfolio.total_invested:,.2f}")
    print(f"  ROI: {portfolio.total_roi:.2f}%")
    for row in ValuationEngine.holding_values(portfolio):
        print(f"  {row['symbol']}: {row['quantity']} @ ${row['average_cost']:,.2f}, "
              f"Value: ${row['current_value']:,.2f}, "
              f"P&L: ${row['unrealized_pl']:,.2f} ({row['unrealized_pl_percent']:.2f}%)")


def demo_trading(manager):
    """Deposit cash and build positions."""
    print_section("1. Cash and Trading")

    manager.deposit(10000)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple Inc.", 10, 180)
    manager.buy(AssetClass.STOCK, "AAPL", "Apple Inc.", 10, 200)
    manager.buy(AssetClass.CRYPTO, "BTC", "Bitcoin", "0.05", 60000)
    manager.buy(AssetClass.STOCK, "VOO", "Vanguard S&P 500 ETF", 5, 450)
    print_portfolio(manager)


def demo_price_updates(manager, feed):
    """Apply pushed prices and a feed refresh."""
    print_section("2. Price Updates")

    manager.update_price_from_feed("AAPL", AssetClass.STOCK, 210)
    feed.set_crypto_quote("BTC", 64000)
    feed.set_stock_quote("VOO", 440)
    snapshot = manager.refresh_prices()
    print(f"Snapshot at {snapshot.timestamp:%H:%M:%S}: ${snapshot.total_value:,.2f}")
    print_portfolio(manager)


def demo_declined_operations(manager):
    """Show that invalid commands are reported, not applied."""
    print_section("3. Declined Operations")

    for label, result in [
        ("Withdraw $1,000,000", manager.withdraw(1000000)),
        ("Sell 50 AAPL", manager.sell(AssetClass.STOCK, "AAPL", 50, 210)),
        ("Sell 1 TSLA", manager.sell(AssetClass.STOCK, "TSLA", 1, 250)),
        ("Buy -3 VOO", manager.buy(AssetClass.STOCK, "VOO", "Vanguard S&P 500 ETF", -3, 440)),
    ]:
        print(f"  {label}: {'ok' if result else result.error}")


def demo_performance(manager):
    """Sell some positions and report performance."""
    print_section("4. Performance")

    manager.sell(AssetClass.STOCK, "AAPL", 5, 215)
    manager.sell(AssetClass.STOCK, "VOO", 2, 430)
    manager.withdraw(500)

    stats = manager.performance_stats()
    for key, value in stats.to_dict().items():
        print(f"  {key}: {value}")

    print("\nTransaction ledger:")
    frame = manager.current_portfolio().ledger.to_frame()
    with pd.option_context('display.width', 120, 'display.max_columns', 10):
        print(frame[['timestamp', 'kind', 'symbol', 'quantity', 'price', 'total_amount']])


def demo_watchlist(manager):
    print_section("5. Watchlist")

    manager.add_to_watchlist(WatchlistItem(asset_class=AssetClass.STOCK, symbol="NVDA", name="NVIDIA Corporation"))
    manager.add_to_watchlist(WatchlistItem(asset_class=AssetClass.CRYPTO, symbol="ETH", name="Ethereum"))
    manager.update_watchlist_price("NVDA", AssetClass.STOCK, 125, price_change=3.1, price_change_percent=2.54)
    for item in manager.watchlist():
        print(f"  {item.symbol} ({item.asset_class.value}): ${item.current_price:,.2f} "
              f"({item.price_change_percent:+}%)")


def demo_scheduler(manager, feed):
    """Let the scheduler revalue from the feed a few times."""
    print_section("6. Periodic Revaluation")

    updates = []
    unsubscribe = manager.subscribe(lambda: updates.append(manager.current_portfolio().total_value))
    with RevaluationScheduler(manager, interval=0.2):
        for price in (66000, 62000, 65000):
            feed.set_crypto_quote("bitcoin", price)
            time.sleep(0.25)
    unsubscribe()

    for value in updates:
        print(f"  Revalued: ${value:,.2f}")


def main():
    parser = argparse.ArgumentParser(description="Portfolio ledger demo")
    parser.add_argument('--config', help="Path to a JSON configuration file")
    parser.add_argument('--data-dir', help="Directory for saved portfolios (defaults to a temp dir)")
    args = parser.parse_args()

    config = LedgerConfig.load(args.config)
    logging.basicConfig(level=getattr(logging, config.log_level.upper(), logging.INFO),
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')

    data_dir = args.data_dir or config.data_directory or tempfile.mkdtemp(prefix="portfolio-ledger-")
    feed = StaticPriceFeed()

    with PortfolioManager(price_feed=feed,
                          persistence=JsonFilePersistenceStore(data_dir),
                          config=config) as manager:
        portfolio_id = manager.create_portfolio("Demo Portfolio").value.portfolio_id
        manager.switch_portfolio(portfolio_id)

        demo_trading(manager)
        demo_price_updates(manager, feed)
        demo_declined_operations(manager)
        demo_performance(manager)
        demo_watchlist(manager)
        demo_scheduler(manager, feed)

        print_section("Final Portfolio Summary")
        print_portfolio(manager)

    print(f"\nSaved portfolios to {data_dir}")


if __name__ == "__main__":
    main()
