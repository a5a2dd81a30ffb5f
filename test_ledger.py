#!/usr/bin/env python3
"""
Test cases for the transaction ledger: ordering, filtering and trade classification
"""

from datetime import datetime, date
from decimal import Decimal

import pytest

from portfolio_ledger.core.holding import AssetClass
from portfolio_ledger.core.transaction import Transaction, TransactionKind, Ledger


def make_trade(kind, symbol, price, timestamp, quantity=1, asset_class=AssetClass.STOCK):
    """Helper function to build a trade transaction"""
    price = Decimal(str(price))
    quantity = Decimal(str(quantity))
    return Transaction(
        kind=kind,
        total_amount=price * quantity,
        portfolio_id="test",
        timestamp=timestamp,
        asset_class=asset_class,
        symbol=symbol,
        name=symbol,
        quantity=quantity,
        price=price
    )


def test_record_assigns_increasing_sequence_numbers():
    ledger = Ledger()
    first = ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2025, 1, 2)))
    second = ledger.record(make_trade(TransactionKind.SELL, "AAPL", 110, datetime(2025, 1, 3)))

    assert (first.sequence, second.sequence) == (0, 1)
    assert len(ledger) == 2


def test_identical_timestamps_keep_insertion_order():
    ledger = Ledger()
    moment = datetime(2025, 2, 1, 12, 0)
    buy = ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, moment))
    sell = ledger.record(make_trade(TransactionKind.SELL, "AAPL", 110, moment))

    assert [t.transaction_id for t in ledger] == [buy.transaction_id, sell.transaction_id]
    assert ledger.is_winning_sell(sell)


def test_transactions_are_returned_in_timestamp_order():
    ledger = Ledger()
    ledger.record(make_trade(TransactionKind.BUY, "B", 1, datetime(2025, 3, 1)))
    ledger.record(make_trade(TransactionKind.BUY, "A", 1, datetime(2025, 1, 1)))

    assert [t.symbol for t in ledger.transactions()] == ["A", "B"]


def test_filter_by_kind_symbol_and_date_range():
    ledger = Ledger()
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2024, 12, 31, 23, 59)))
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 105, datetime(2025, 1, 1, 0, 0)))
    ledger.record(make_trade(TransactionKind.SELL, "AAPL", 120, datetime(2025, 6, 1)))
    ledger.record(make_trade(TransactionKind.BUY, "MSFT", 300, datetime(2025, 12, 31, 23, 0)))
    ledger.record(Transaction(kind=TransactionKind.DEPOSIT, total_amount=Decimal('500'),
                              portfolio_id="test", timestamp=datetime(2025, 3, 1)))

    in_2025 = ledger.filter(start=date(2025, 1, 1), end=date(2025, 12, 31))
    assert len(in_2025) == 4

    apple_buys = ledger.filter(kind=TransactionKind.BUY, symbol="aapl")
    assert [t.price for t in apple_buys] == [Decimal('100'), Decimal('105')]

    trades_2025 = ledger.filter(kind=[TransactionKind.BUY, TransactionKind.SELL], start=date(2025, 1, 1))
    assert [t.symbol for t in trades_2025] == ["AAPL", "AAPL", "MSFT"]


def test_win_classification_uses_most_recent_prior_buy():
    ledger = Ledger()
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 90, datetime(2025, 1, 1)))
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 130, datetime(2025, 1, 2)))
    sell = ledger.record(make_trade(TransactionKind.SELL, "AAPL", 120, datetime(2025, 1, 3)))

    # Above the first buy but below the last one
    assert ledger.last_buy_before(sell).price == Decimal('130')
    assert not ledger.is_winning_sell(sell)


def test_sell_without_prior_buy_is_not_a_win():
    ledger = Ledger()
    sell = ledger.record(make_trade(TransactionKind.SELL, "AAPL", 120, datetime(2025, 1, 3)))
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2025, 1, 4)))

    assert not ledger.is_winning_sell(sell)


def test_buy_in_other_asset_class_does_not_count_as_prior_buy():
    ledger = Ledger()
    ledger.record(make_trade(TransactionKind.BUY, "SOL", 1, datetime(2025, 1, 1), asset_class=AssetClass.STOCK))
    sell = ledger.record(make_trade(TransactionKind.SELL, "SOL", 150, datetime(2025, 1, 2),
                                    asset_class=AssetClass.CRYPTO))

    assert ledger.last_buy_before(sell) is None


def test_period_roi():
    ledger = Ledger()
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2024, 6, 1), quantity=10))
    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2025, 2, 1), quantity=10))
    ledger.record(make_trade(TransactionKind.SELL, "AAPL", 125, datetime(2025, 3, 1), quantity=10))

    assert ledger.period_roi(date(2025, 1, 1), date(2025, 12, 31)) == Decimal('25')
    assert ledger.period_roi(date(2026, 1, 1), date(2026, 12, 31)) is None


def test_transaction_is_immutable():
    transaction = make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2025, 1, 1))
    with pytest.raises(AttributeError):
        transaction.price = Decimal('1')


def test_transaction_dict_round_trip_keeps_exact_values():
    ledger = Ledger()
    original = ledger.record(make_trade(TransactionKind.BUY, "BTC", "43210.123456789", datetime(2025, 1, 1),
                                        quantity="0.00012345", asset_class=AssetClass.CRYPTO))
    restored = Transaction.from_dict(original.to_dict())

    assert restored == original


def test_to_frame():
    ledger = Ledger()
    assert ledger.to_frame().empty

    ledger.record(make_trade(TransactionKind.BUY, "AAPL", 100, datetime(2025, 1, 1)))
    frame = ledger.to_frame()
    assert list(frame['symbol']) == ["AAPL"]
    assert frame['price'].iloc[0] == Decimal('100')


if __name__ == "__main__":
    pytest.main([__file__])
