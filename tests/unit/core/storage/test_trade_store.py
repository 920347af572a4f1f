"""
TradeStore / ExchangeDataStore 테스트

중복 체결은 UNIQUE(exchange, external_id)로 건너뜀.
"""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import Deposit, Order, Trade, Withdrawal
from core.storage.exchange_data_store import ExchangeDataStore
from core.storage.trade_store import TradeRecord, TradeStore
from core.types import MarketType, OrderStatus, TradeSide, TransferStatus

TS = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_trade(trade_id: str = "28457", **overrides) -> Trade:
    values = dict(
        id=trade_id,
        exchange="binance",
        symbol="BTC/USDT",
        side=TradeSide.SELL,
        price=Decimal("42000.5"),
        quantity=Decimal("0.01"),
        fee=Decimal("0.42"),
        fee_currency=None,
        timestamp=TS,
        order_id="100234",
    )
    values.update(overrides)
    return Trade(**values)


class TestTradeRecord:

    def test_from_trade(self) -> None:
        record = TradeRecord.from_trade(make_trade(), "Binance", connection_id=1)

        assert record.external_id == "binance:spot:BTC/USDT:trade:28457"
        assert record.exchange == "Binance"
        assert record.side == "short"
        assert record.type == "spot"
        assert record.entry_price == record.exit_price == "42000.5"
        assert record.fee_currency == "USDT"
        assert record.opened_at == record.closed_at == "2024-01-15T10:30:00.000Z"
        assert record.notes == "Imported from Binance. Order ID: 100234"
        assert record.pnl == "0"

    def test_dict_round_trip_ignores_unknown_keys(self) -> None:
        record = TradeRecord.from_trade(make_trade(), "Binance")
        data = {**record.to_dict(), "unexpected": 1}

        assert TradeRecord.from_dict(data) == record


class TestTradeStore:

    @pytest.mark.asyncio
    async def test_duplicate_skipped(self, db: SQLiteAdapter) -> None:
        store = TradeStore(db)
        record = TradeRecord.from_trade(make_trade(), "Binance")

        assert await store.insert(record) is True
        assert await store.insert(record) is False
        assert await store.count() == 1

    @pytest.mark.asyncio
    async def test_market_makes_distinct_trade(self, db: SQLiteAdapter) -> None:
        store = TradeStore(db)

        await store.insert(TradeRecord.from_trade(make_trade(), "Binance"))
        await store.insert(TradeRecord.from_trade(make_trade(market=MarketType.FUTURES), "Binance"))

        assert await store.count("Binance") == 2

    @pytest.mark.asyncio
    async def test_insert_many_ignore(self, db: SQLiteAdapter) -> None:
        store = TradeStore(db)
        records = [TradeRecord.from_trade(make_trade(str(i)), "Binance") for i in range(3)]

        assert await store.insert_many_ignore(records) == 3
        assert await store.insert_many_ignore(records) == 0

    @pytest.mark.asyncio
    async def test_concurrent_rollback_keeps_batch(self, db: SQLiteAdapter) -> None:
        store = TradeStore(db)
        records = [TradeRecord.from_trade(make_trade(str(i)), "Binance") for i in range(200)]

        async def failing_transaction() -> None:
            await asyncio.sleep(0)
            with pytest.raises(RuntimeError):
                async with db.transaction() as conn:
                    await conn.execute("DELETE FROM trades")
                    raise RuntimeError("abort")

        inserted, _ = await asyncio.gather(store.insert_many_ignore(records), failing_transaction())

        assert inserted == 200
        assert await store.count("Binance") == 200


class TestExchangeDataStore:

    @pytest.mark.asyncio
    async def test_orders_insert_or_ignore(self, db: SQLiteAdapter) -> None:
        store = ExchangeDataStore(db)
        order = Order(
            id="o1",
            exchange="binance",
            symbol="BTC/USDT",
            side=TradeSide.BUY,
            type="limit",
            status=OrderStatus.CLOSED,
            price=Decimal("42000"),
            quantity=Decimal("0.1"),
            filled=Decimal("0.1"),
            timestamp=TS,
        )

        assert await store.save_orders(1, [order]) == 1
        assert await store.save_orders(1, [order]) == 0
        assert await store.save_orders(2, [order]) == 1
        assert await store.count("exchange_orders", 1) == 1

    @pytest.mark.asyncio
    async def test_transfers(self, db: SQLiteAdapter) -> None:
        store = ExchangeDataStore(db)
        deposit = Deposit("d1", "okx", "USDT", Decimal("100"), None, "tx", TransferStatus.COMPLETED, TS)
        withdrawal = Withdrawal(
            "w1", "okx", "USDT", Decimal("50"), "addr", None, TransferStatus.PENDING, TS, fee=Decimal("1"),
        )

        assert await store.save_deposits(1, [deposit]) == 1
        assert await store.save_withdrawals(1, [withdrawal, withdrawal]) == 1
        assert await store.count("exchange_deposits", 1) == 1

    @pytest.mark.asyncio
    async def test_count_unknown_table(self, db: SQLiteAdapter) -> None:
        with pytest.raises(ValueError):
            await ExchangeDataStore(db).count("trades", 1)
