"""
sync/data_sync.py 테스트

리소스별 조회/저장, 실패 격리, 헬스 상태 기록
"""

from datetime import timedelta

import pytest

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.errors import NetworkError
from core.config.loader import SyncSettings
from core.storage.connection_store import ConnectionStore
from core.storage.exchange_data_store import ExchangeDataStore
from core.storage.sync_history_store import SyncHistoryStore
from core.storage.trade_store import TradeStore
from core.types import (
    ExchangeName,
    HealthStatus,
    ResourceType,
    SyncHistoryStatus,
    SyncStatus,
    SyncTrigger,
)
from sync.credentials import FernetCredentialCipher
from sync.data_sync import DEFAULT_SYNC_TYPES, ExchangeDataSync
from sync.errors import ConnectionNotFoundError, SyncInProgressError
from sync.registry import ExchangeRegistry
from tests.unit.sync.fakes import (
    failing_ping,
    make_adapter_class,
    make_deposit,
    make_order,
    make_trade,
    make_withdrawal,
)


def _data_sync(
    db: SQLiteAdapter,
    cipher: FernetCredentialCipher,
    settings: SyncSettings | None = None,
    **behaviour,
) -> ExchangeDataSync:
    registry = ExchangeRegistry(adapter_classes={ExchangeName.BINANCE: make_adapter_class(**behaviour)})
    return ExchangeDataSync(db, registry, cipher, settings)


FULL_ACCOUNT = {
    "trades": [make_trade("1"), make_trade("2")],
    "orders": [make_order()],
    "deposits": [make_deposit()],
    "withdrawals": [make_withdrawal()],
}


class TestDataSync:
    """정상 동기화"""

    def test_default_types(self) -> None:
        assert ResourceType.BALANCES not in DEFAULT_SYNC_TYPES
        assert ResourceType.TRADES in DEFAULT_SYNC_TYPES

    @pytest.mark.asyncio
    async def test_stores_all_resources(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        result = await _data_sync(db, cipher, **FULL_ACCOUNT).sync(connection_id)

        assert result.success is True
        assert result.fetched == {"trades": 2, "orders": 1, "deposits": 1, "withdrawals": 1}
        assert result.stored == {"trades": 2, "orders": 1, "deposits": 1, "withdrawals": 1}
        assert result.errors == {}
        assert result.health_status == HealthStatus.HEALTHY

        assert await TradeStore(db).count("Binance") == 2
        data = ExchangeDataStore(db)
        assert await data.count("exchange_orders", connection_id) == 1
        assert await data.count("exchange_deposits", connection_id) == 1
        assert await data.count("exchange_withdrawals", connection_id) == 1

    @pytest.mark.asyncio
    async def test_trade_notes(self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int) -> None:
        await _data_sync(db, cipher, trades=[make_trade()]).sync(connection_id, [ResourceType.TRADES])

        row = await db.fetchone("SELECT notes, connection_id FROM trades")
        assert row is not None
        assert row[0] == "Auto-synced from Binance"
        assert row[1] == connection_id

    @pytest.mark.asyncio
    async def test_second_run_stores_nothing_new(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        service = _data_sync(db, cipher, **FULL_ACCOUNT)

        await service.sync(connection_id)
        result = await service.sync(connection_id)

        assert result.fetched["trades"] == 2
        assert result.stored == {"trades": 0, "orders": 0, "deposits": 0, "withdrawals": 0}

    @pytest.mark.asyncio
    async def test_connection_state_updated(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        await _data_sync(db, cipher, **FULL_ACCOUNT).sync(connection_id)

        connection = await ConnectionStore(db).get(connection_id)
        assert connection is not None
        assert connection.sync_status == SyncStatus.SUCCESS
        assert connection.health_status == HealthStatus.HEALTHY
        assert connection.failed_sync_count == 0
        assert connection.last_synced_at is not None
        assert all(connection.last_sync_at[kind] is not None for kind in ("trades", "orders", "deposits", "withdrawals"))

    @pytest.mark.asyncio
    async def test_balances_fetched_not_stored(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        result = await _data_sync(db, cipher).sync(connection_id, [ResourceType.BALANCES])

        assert result.fetched == {"balances": 0}
        assert result.stored == {}

    @pytest.mark.asyncio
    async def test_history_records_trigger(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        await _data_sync(db, cipher, trades=[make_trade()]).sync(
            connection_id, [ResourceType.TRADES], trigger=SyncTrigger.SCHEDULED
        )

        history = await SyncHistoryStore(db).list_for_connection(connection_id)
        assert history[0].sync_type == SyncTrigger.SCHEDULED
        assert history[0].status == SyncHistoryStatus.COMPLETED
        assert history[0].trades_fetched == 1
        assert history[0].trades_imported == 1

    @pytest.mark.asyncio
    async def test_to_dict(self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int) -> None:
        result = await _data_sync(db, cipher, trades=[make_trade()]).sync(connection_id, [ResourceType.TRADES])

        body = result.to_dict()

        assert body["success"] is True
        assert body["results"] == {"trades": 1}
        assert body["stored"] == {"trades": 1}
        assert body["healthStatus"] == "healthy"
        assert "error" not in body


class TestDataSyncFailures:
    """실패 처리"""

    @pytest.mark.asyncio
    async def test_resource_failure_isolated(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        behaviour = {**FULL_ACCOUNT, "orders_error": NetworkError("Network error", exchange="binance")}

        result = await _data_sync(db, cipher, **behaviour).sync(connection_id)

        assert result.success is True
        assert "orders" in result.errors
        assert "orders" not in result.fetched
        assert result.stored["trades"] == 2
        assert result.to_dict()["results"]["orders_error"] == result.errors["orders"]

        connection = await ConnectionStore(db).get(connection_id)
        assert connection is not None
        assert connection.last_sync_at["orders"] is None
        assert connection.last_sync_at["trades"] is not None

        history = await SyncHistoryStore(db).list_for_connection(connection_id)
        assert history[0].error_message is not None
        assert history[0].error_message.startswith("orders:")

    @pytest.mark.asyncio
    async def test_initialization_failure(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        service = _data_sync(db, cipher, ping_error=failing_ping())

        first = await service.sync(connection_id)
        await service.sync(connection_id)

        assert first.success is False
        assert first.error == "Failed to initialize exchange connection"
        assert first.to_dict()["error"] == first.error

        connection = await ConnectionStore(db).get(connection_id)
        assert connection is not None
        assert connection.sync_status == SyncStatus.ERROR
        assert connection.health_status == HealthStatus.DOWN
        assert connection.failed_sync_count == 2

        history = await SyncHistoryStore(db).list_for_connection(connection_id)
        assert history[0].status == SyncHistoryStatus.FAILED

    @pytest.mark.asyncio
    async def test_recovery_resets_failure_count(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        await _data_sync(db, cipher, ping_error=failing_ping()).sync(connection_id)
        await _data_sync(db, cipher).sync(connection_id)

        connection = await ConnectionStore(db).get(connection_id)
        assert connection is not None
        assert connection.failed_sync_count == 0

    @pytest.mark.asyncio
    async def test_timeout_recorded_per_resource(
        self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int
    ) -> None:
        service = _data_sync(db, cipher, SyncSettings(timeout_sec=0.05), delay=1.0, orders=[make_order()])

        result = await service.sync(connection_id, [ResourceType.TRADES, ResourceType.ORDERS])

        assert result.errors["trades"] == "Sync timeout for binance after 0.05s"
        assert result.fetched == {"orders": 1}

    @pytest.mark.asyncio
    async def test_not_found(self, db: SQLiteAdapter, cipher: FernetCredentialCipher) -> None:
        with pytest.raises(ConnectionNotFoundError):
            await _data_sync(db, cipher).sync(999)

    @pytest.mark.asyncio
    async def test_in_progress(self, db: SQLiteAdapter, cipher: FernetCredentialCipher, connection_id: int) -> None:
        await ConnectionStore(db).try_acquire(connection_id, timedelta(minutes=10))

        with pytest.raises(SyncInProgressError):
            await _data_sync(db, cipher).sync(connection_id)
