#!/usr/bin/env python3
"""
Test cases for saving and reloading portfolios and the watchlist
"""

import json
from datetime import datetime, timedelta
from decimal import Decimal

import pytest

from portfolio_ledger.core.exceptions import PersistenceError
from portfolio_ledger.core.holding import AssetClass
from portfolio_ledger.core.portfolio import Portfolio
from portfolio_ledger.core.watchlist import WatchlistItem
from portfolio_ledger.data.persistence import InMemoryPersistenceStore, JsonFilePersistenceStore
from portfolio_ledger.manager.portfolio_manager import PortfolioManager


class SteppingClock:
    """Clock that advances one second per call"""

    def __init__(self, start=datetime(2025, 7, 1, 8, 0)):
        self.current = start

    def __call__(self):
        value = self.current
        self.current += timedelta(seconds=1)
        return value


def test_json_store_round_trip(tmp_path):
    store = JsonFilePersistenceStore(tmp_path)
    records = [{'portfolio_id': 'a', 'cash_balance': '10.50'}]

    store.save_all(records)
    store.save_watchlist([{'symbol': 'BTC'}])

    assert store.load_portfolios() == records
    assert store.load_watchlist() == [{'symbol': 'BTC'}]
    assert (tmp_path / "saved_portfolios.json").exists()
    assert not list(tmp_path.glob("*.tmp"))


def test_missing_or_corrupt_documents_load_empty(tmp_path):
    store = JsonFilePersistenceStore(tmp_path)
    assert store.load_portfolios() == []

    (tmp_path / "saved_portfolios.json").write_text("{not json")
    assert store.load_portfolios() == []

    (tmp_path / "saved_watchlist.json").write_text(json.dumps({'symbol': 'BTC'}))
    assert store.load_watchlist() == []


def test_unserializable_payload_raises_and_keeps_previous_document(tmp_path):
    store = JsonFilePersistenceStore(tmp_path)
    store.save_all([{'ok': True}])

    with pytest.raises(PersistenceError):
        store.save_all([{'bad': object()}])

    assert store.load_portfolios() == [{'ok': True}]
    assert not list(tmp_path.glob("*.tmp"))


def test_portfolio_dict_round_trip_is_exact():
    manager = PortfolioManager(clock=SteppingClock())
    manager.deposit("1000.10")
    manager.buy(AssetClass.CRYPTO, "ETH", "Ethereum", "0.123456789", "2500.01")
    manager.sell(AssetClass.CRYPTO, "ETH", "0.023456789", "2600")
    original = manager.current_portfolio()

    restored = Portfolio.from_dict(json.loads(json.dumps(original.to_dict())))

    assert restored.cash_balance == original.cash_balance
    assert restored.total_value == original.total_value
    assert restored.transactions == original.transactions
    assert restored.snapshots == original.snapshots
    holding = restored.get_holding(AssetClass.CRYPTO, "ETH")
    assert holding.quantity == Decimal('0.1')
    assert holding.average_cost == Decimal('2500.01')


def test_manager_reloads_saved_state(tmp_path):
    store = JsonFilePersistenceStore(tmp_path)
    with PortfolioManager(persistence=store, clock=SteppingClock()) as manager:
        manager.deposit(1000)
        manager.buy(AssetClass.STOCK, "AAPL", "Apple", 3, 150)
        manager.add_to_watchlist(WatchlistItem(asset_class=AssetClass.CRYPTO, symbol="SOL", name="Solana"))
        saved = manager.current_portfolio()

    reloaded = PortfolioManager(persistence=JsonFilePersistenceStore(tmp_path), clock=SteppingClock())
    portfolio = reloaded.current_portfolio()

    assert portfolio.portfolio_id == saved.portfolio_id
    assert portfolio.cash_balance == Decimal('550')
    assert portfolio.get_holding(AssetClass.STOCK, "AAPL").quantity == Decimal('3')
    assert len(portfolio.ledger) == 2
    assert len(portfolio.snapshots) == len(saved.snapshots)
    assert [w.symbol for w in reloaded.watchlist()] == ["SOL"]

    # Sequence numbers continue after reload
    result = reloaded.deposit(1)
    assert result.transaction.sequence == 2
    reloaded.close()


def test_new_manager_saves_default_portfolio():
    store = InMemoryPersistenceStore()
    manager = PortfolioManager(persistence=store, clock=SteppingClock())
    manager.flush()

    saved = store.load_portfolios()
    assert len(saved) == 1
    assert saved[0]['name'] == "My Portfolio"
    manager.close()


def test_every_commit_is_written_in_order():
    store = InMemoryPersistenceStore()
    manager = PortfolioManager(persistence=store, clock=SteppingClock())
    for amount in range(1, 6):
        manager.deposit(amount)
    manager.close()

    assert store.save_count == 6
    assert store.load_portfolios()[0]['cash_balance'] == '15'


def test_in_memory_store_returns_copies():
    store = InMemoryPersistenceStore()
    records = [{'portfolio_id': 'a'}]
    store.save_all(records)
    records[0]['portfolio_id'] = 'changed'

    loaded = store.load_portfolios()
    loaded.append({'portfolio_id': 'b'})
    assert store.load_portfolios() == [{'portfolio_id': 'a'}]


if __name__ == "__main__":
    pytest.main([__file__])
