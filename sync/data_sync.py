"""
거래소 데이터 동기화 (주문/입출금/잔고/체결 자동 저장)

preview/import 검토 단계 없이 trades/exchange_orders/... 에 바로 저장.
리소스 종류별로 실패를 격리하고 결과에 <type>_error로 기록.
스케줄러(SyncScheduler)와 POST /api/exchange-sync/data가 호출.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Awaitable, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.errors import ExchangeError
from adapters.interfaces import IExchangeAdapter
from adapters.models import FetchOptions, FetchWarning
from core.config.loader import SyncSettings
from core.storage.connection_store import ConnectionStore, ExchangeConnection
from core.storage.exchange_data_store import ExchangeDataStore
from core.storage.sync_history_store import SyncHistoryStore
from core.storage.trade_store import TradeRecord, TradeStore
from core.types import HealthStatus, ResourceType, SyncHistoryStatus, SyncTrigger
from core.utils.timezone import now_utc
from sync.credentials import FernetCredentialCipher, decrypt_credentials
from sync.errors import ConnectionNotFoundError, SyncError, SyncInProgressError, SyncTimeoutError
from sync.registry import ExchangeRegistry

logger = logging.getLogger(__name__)

# syncTypes 미지정 시 기본 대상
DEFAULT_SYNC_TYPES: tuple[ResourceType, ...] = (
    ResourceType.TRADES,
    ResourceType.ORDERS,
    ResourceType.DEPOSITS,
    ResourceType.WITHDRAWALS,
)


@dataclass
class DataSyncResult:
    """data sync 결과

    Attributes:
        success: 초기화 성공 여부 (리소스별 실패는 errors에만 기록)
        fetched: 리소스별 조회 건수
        stored: 리소스별 신규 저장 건수 (balances 제외)
        errors: 리소스별 실패 메시지
        health_status: 동기화 후 헬스 체크 결과
    """

    success: bool
    fetched: dict[str, int] = field(default_factory=dict)
    stored: dict[str, int] = field(default_factory=dict)
    errors: dict[str, str] = field(default_factory=dict)
    health_status: HealthStatus | None = None
    warnings: list[FetchWarning] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        results: dict[str, Any] = dict(self.fetched)
        results.update({f"{kind}_error": message for kind, message in self.errors.items()})
        data: dict[str, Any] = {
            "success": self.success,
            "results": results,
            "stored": self.stored,
            "healthStatus": self.health_status.value if self.health_status else None,
            "warnings": [w.to_dict() for w in self.warnings],
        }
        if self.error is not None:
            data["error"] = self.error
        return data


class ExchangeDataSync:
    """거래소 데이터 동기화 서비스

    Args:
        db: SQLiteAdapter (쓰기 가능)
        registry: 거래소 어댑터 레지스트리
        cipher: 자격 증명 복호화기
        settings: 동기화 설정 (기본 기간 7일, 타임아웃)
    """

    def __init__(
        self,
        db: SQLiteAdapter,
        registry: ExchangeRegistry,
        cipher: FernetCredentialCipher,
        settings: SyncSettings | None = None,
    ):
        self.registry = registry
        self.cipher = cipher
        self.settings = settings or SyncSettings()
        self.connections = ConnectionStore(db)
        self.history = SyncHistoryStore(db)
        self.trades = TradeStore(db)
        self.data = ExchangeDataStore(db)

    async def sync(
        self,
        connection_id: int,
        sync_types: Sequence[ResourceType] | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        trigger: SyncTrigger = SyncTrigger.MANUAL,
    ) -> DataSyncResult:
        """리소스 종류별 조회 + 저장

        Raises:
            ConnectionNotFoundError: 연결 없음
            SyncInProgressError: 같은 연결의 동기화 진행 중
        """
        connection = await self.connections.get(connection_id)
        if connection is None:
            raise ConnectionNotFoundError(connection_id)

        stale_after = timedelta(minutes=self.settings.stale_lock_minutes)
        if not await self.connections.try_acquire(connection.id, stale_after):
            raise SyncInProgressError(connection.id)

        history_id = await self.history.start(connection.id, connection.exchange_name, trigger)
        try:
            return await self._run(connection, tuple(sync_types or DEFAULT_SYNC_TYPES), start, end, history_id)
        except Exception as e:
            message = e.message if isinstance(e, SyncError) else str(e)
            logger.error(
                "data sync 실패",
                extra={"connection_id": connection.id, "exchange": connection.exchange_name, "error": message},
            )
            await self.connections.record_data_sync_failure(connection.id, message)
            await self.history.complete(history_id, SyncHistoryStatus.FAILED, error_message=message)
            return DataSyncResult(success=False, error=message)

    async def _run(
        self,
        connection: ExchangeConnection,
        sync_types: tuple[ResourceType, ...],
        start: datetime | None,
        end: datetime | None,
        history_id: int,
    ) -> DataSyncResult:
        exchange = connection.exchange_name
        credentials = decrypt_credentials(self.cipher, connection)
        if not await self.registry.initialize_exchange(exchange, credentials):
            raise SyncError("Failed to initialize exchange connection")

        adapter = self.registry.get_adapter(exchange)
        assert adapter is not None

        end = end or now_utc()
        start = start or end - timedelta(days=self.settings.data_sync_lookback_days)
        options = FetchOptions(start_time=start, end_time=end)

        result = DataSyncResult(success=True, warnings=options.warnings)
        for resource in sync_types:
            try:
                fetched, stored = await self._sync_resource(adapter, connection, resource, options)
            except (ExchangeError, SyncError, sqlite3.Error) as e:
                result.errors[resource.value] = str(e)
                logger.warning(
                    f"[{adapter.display_name}] {resource.value} 동기화 실패",
                    extra={"connection_id": connection.id, "resource": resource.value, "error": str(e)},
                )
                continue

            result.fetched[resource.value] = fetched
            if stored is not None:
                result.stored[resource.value] = stored
            await self.connections.touch_resource(connection.id, resource)

        health = await self.registry.health_check(exchange)
        result.health_status = health.status
        await self.connections.record_data_sync_success(connection.id, health.status)
        await self.history.complete(
            history_id,
            SyncHistoryStatus.COMPLETED,
            trades_fetched=result.fetched.get(ResourceType.TRADES.value, 0),
            trades_imported=result.stored.get(ResourceType.TRADES.value, 0),
            warnings=result.warnings,
            error_message="; ".join(f"{k}: {v}" for k, v in result.errors.items()) or None,
        )

        logger.info(
            f"[{adapter.display_name}] data sync 완료",
            extra={
                "connection_id": connection.id,
                "fetched": result.fetched,
                "errors": list(result.errors),
                "health": health.status.value,
            },
        )
        return result

    async def _with_timeout(self, exchange: str, coro: Awaitable[Any]) -> Any:
        try:
            return await asyncio.wait_for(coro, timeout=self.settings.timeout_sec)
        except asyncio.TimeoutError:
            raise SyncTimeoutError(exchange, self.settings.timeout_sec) from None

    async def _sync_resource(
        self,
        adapter: IExchangeAdapter,
        connection: ExchangeConnection,
        resource: ResourceType,
        options: FetchOptions,
    ) -> tuple[int, int | None]:
        """리소스 1종 조회 + 저장

        Returns:
            (조회 건수, 신규 저장 건수 또는 None)
        """
        exchange = adapter.name
        if resource == ResourceType.TRADES:
            trades = await self._with_timeout(exchange, adapter.fetch_trades(options))
            records = [
                TradeRecord.from_trade(
                    t,
                    adapter.display_name,
                    connection.id,
                    notes=f"Auto-synced from {adapter.display_name}",
                )
                for t in trades
            ]
            return len(trades), await self.trades.insert_many_ignore(records)

        if resource == ResourceType.ORDERS:
            orders = await self._with_timeout(exchange, adapter.fetch_orders(options))
            return len(orders), await self.data.save_orders(connection.id, orders)

        if resource == ResourceType.DEPOSITS:
            deposits = await self._with_timeout(exchange, adapter.fetch_deposits(options))
            return len(deposits), await self.data.save_deposits(connection.id, deposits)

        if resource == ResourceType.WITHDRAWALS:
            withdrawals = await self._with_timeout(exchange, adapter.fetch_withdrawals(options))
            return len(withdrawals), await self.data.save_withdrawals(connection.id, withdrawals)

        balances = await self._with_timeout(exchange, adapter.fetch_balances())
        return len(balances), None
