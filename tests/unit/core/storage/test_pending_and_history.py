"""
PendingTradeStore / SyncHistoryStore 테스트
"""

import pytest
import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import FetchWarning
from core.storage.connection_store import ConnectionStore
from core.storage.pending_trade_store import PendingTradeStore
from core.storage.sync_history_store import SyncHistoryStore
from core.types import SyncHistoryStatus, SyncTrigger


@pytest_asyncio.fixture
async def connection_ids(db: SQLiteAdapter) -> tuple[int, int]:
    store = ConnectionStore(db)
    return await store.upsert("binance", "k", "s"), await store.upsert("bybit", "k", "s")


class TestPendingTradeStore:

    @pytest.mark.asyncio
    async def test_replace_discards_previous(self, db: SQLiteAdapter, connection_ids) -> None:
        connection_id, _ = connection_ids
        store = PendingTradeStore(db)

        await store.replace(connection_id, [{"external_id": "a"}, {"external_id": "b"}])
        await store.replace(connection_id, [{"external_id": "c"}])
        pending = await store.list_for_connection(connection_id)

        assert [p.trade_data["external_id"] for p in pending] == ["c"]
        assert pending[0].is_selected

    @pytest.mark.asyncio
    async def test_get_selected_ignores_other_connection(self, db: SQLiteAdapter, connection_ids) -> None:
        first, second = connection_ids
        store = PendingTradeStore(db)
        await store.replace(first, [{"external_id": "a"}])
        await store.replace(second, [{"external_id": "b"}])
        own = (await store.list_for_connection(first))[0].id
        other = (await store.list_for_connection(second))[0].id

        selected = await store.get_selected(first, [own, other, 9999])

        assert [p.id for p in selected] == [own]
        assert await store.get_selected(first, []) == []

    @pytest.mark.asyncio
    async def test_purge(self, db: SQLiteAdapter, connection_ids) -> None:
        connection_id, _ = connection_ids
        store = PendingTradeStore(db)
        await store.replace(connection_id, [{"n": 1}, {"n": 2}])

        assert await store.purge(connection_id) == 2
        assert await store.list_for_connection(connection_id) == []


class TestSyncHistoryStore:

    @pytest.mark.asyncio
    async def test_start_then_complete(self, db: SQLiteAdapter, connection_ids) -> None:
        connection_id, _ = connection_ids
        store = SyncHistoryStore(db)

        history_id = await store.start(connection_id, "binance", SyncTrigger.SCHEDULED)
        started = await store.get(history_id)
        assert started.status == SyncHistoryStatus.PROCESSING
        assert started.completed_at is None

        await store.complete(
            history_id,
            SyncHistoryStatus.COMPLETED,
            trades_fetched=3,
            trades_imported=2,
            trades_skipped=1,
            warnings=[FetchWarning("binance", "Invalid symbol", "spot", "BAD/USDT")],
        )
        done = await store.get(history_id)

        assert done.status == SyncHistoryStatus.COMPLETED
        assert done.sync_type == SyncTrigger.SCHEDULED
        assert (done.trades_fetched, done.trades_imported, done.trades_skipped) == (3, 2, 1)
        assert done.warnings[0]["symbol"] == "BAD/USDT"
        assert done.completed_at is not None

    @pytest.mark.asyncio
    async def test_list_newest_first(self, db: SQLiteAdapter, connection_ids) -> None:
        connection_id, _ = connection_ids
        store = SyncHistoryStore(db)
        ids = [await store.start(connection_id, "binance") for _ in range(3)]

        history = await store.list_for_connection(connection_id, limit=2)

        assert [h.id for h in history] == [ids[2], ids[1]]
        assert history[0].to_dict()["syncType"] == "manual"
