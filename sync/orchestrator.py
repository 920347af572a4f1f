"""
동기화 오케스트레이터 (preview / import 2단계)

preview:
    연결 잠금 → 이력 생성 → 자격 증명 복호화 → 어댑터 초기화 →
    체결 조회(타임아웃) → 일지 행 변환 → 대기 체결 교체 → pending_review
import:
    선택된 대기 체결 → trades 저장 (UNIQUE 중복은 skipped) →
    대기 체결 전체 삭제 → success

입력/상태 오류(연결 없음, 진행 중, 선택 없음)는 예외로 전달하고,
그 외 실패는 sync_status=error + 이력 failed로 기록 후 success=False 응답.
"""

import asyncio
import logging
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import FetchWarning
from core.config.loader import SyncSettings
from core.storage.connection_store import ConnectionStore, ExchangeConnection
from core.storage.pending_trade_store import PendingTradeStore
from core.storage.sync_history_store import SyncHistoryStore
from core.storage.trade_store import TradeRecord, TradeStore
from core.types import ResourceType, SyncHistoryStatus, SyncMode, SyncStatus, SyncTrigger
from core.utils.timezone import now_utc
from sync.credentials import FernetCredentialCipher, decrypt_credentials
from sync.errors import (
    ConnectionNotFoundError,
    InvalidCredentialsError,
    NoTradesSelectedError,
    SyncError,
    SyncInProgressError,
    SyncTimeoutError,
)
from sync.registry import ExchangeRegistry, SyncOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncRequest:
    """동기화 요청

    Attributes:
        connection_id: 거래소 연결 ID
        mode: preview / import
        selected_trade_ids: import할 대기 체결 ID (import 필수)
        start_date / end_date: preview 조회 기간 (없으면 최근 N일)
    """

    connection_id: int
    mode: SyncMode
    selected_trade_ids: tuple[int, ...] = ()
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass
class SyncResponse:
    """동기화 응답 (JSON 경계는 camelCase)"""

    success: bool
    trades_fetched: int | None = None
    trades_imported: int | None = None
    trades_skipped: int | None = None
    exchange_name: str | None = None
    warnings: list[FetchWarning] = field(default_factory=list)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success}
        optional = {
            "tradesFetched": self.trades_fetched,
            "tradesImported": self.trades_imported,
            "tradesSkipped": self.trades_skipped,
            "exchangeName": self.exchange_name,
            "error": self.error,
        }
        data.update({k: v for k, v in optional.items() if v is not None})
        data["warnings"] = [w.to_dict() for w in self.warnings]
        return data


class SyncOrchestrator:
    """preview / import 실행기

    Args:
        db: SQLiteAdapter (쓰기 가능)
        registry: 거래소 어댑터 레지스트리
        cipher: 자격 증명 복호화기
        settings: 동기화 설정 (기본 기간, 타임아웃, stale 잠금 기준)
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
        self.pending = PendingTradeStore(db)
        self.history = SyncHistoryStore(db)
        self.trades = TradeStore(db)

    async def run(self, request: SyncRequest) -> SyncResponse:
        """동기화 실행

        Raises:
            ConnectionNotFoundError: 연결 없음
            NoTradesSelectedError: import인데 선택된 체결 없음
            SyncInProgressError: 같은 연결의 동기화 진행 중
        """
        connection = await self.connections.get(request.connection_id)
        if connection is None:
            raise ConnectionNotFoundError(request.connection_id)

        if request.mode == SyncMode.IMPORT and not request.selected_trade_ids:
            raise NoTradesSelectedError()

        stale_after = timedelta(minutes=self.settings.stale_lock_minutes)
        if not await self.connections.try_acquire(connection.id, stale_after):
            raise SyncInProgressError(connection.id)

        history_id = await self.history.start(connection.id, connection.exchange_name, SyncTrigger.MANUAL)
        logger.info(
            "동기화 시작",
            extra={
                "connection_id": connection.id,
                "exchange": connection.exchange_name,
                "mode": request.mode.value,
                "history_id": history_id,
            },
        )

        try:
            if request.mode == SyncMode.PREVIEW:
                return await self._preview(connection, request, history_id)
            return await self._import(connection, request.selected_trade_ids, history_id)
        except Exception as e:
            message = e.message if isinstance(e, SyncError) else str(e)
            logger.error(
                "동기화 실패",
                extra={
                    "connection_id": connection.id,
                    "exchange": connection.exchange_name,
                    "mode": request.mode.value,
                    "error": message,
                    "error_type": type(e).__name__,
                },
            )
            await self.connections.set_status(connection.id, SyncStatus.ERROR, error=message)
            await self.history.complete(history_id, SyncHistoryStatus.FAILED, error_message=message)
            return SyncResponse(success=False, error=message)

    # -------------------------------------------------------------------------
    # preview
    # -------------------------------------------------------------------------

    def _preview_window(self, request: SyncRequest) -> tuple[datetime, datetime]:
        end = request.end_date or now_utc()
        start = request.start_date or end - timedelta(days=self.settings.preview_lookback_days)
        return start, end

    async def _preview(self, connection: ExchangeConnection, request: SyncRequest, history_id: int) -> SyncResponse:
        exchange = connection.exchange_name
        credentials = decrypt_credentials(self.cipher, connection)

        if not await self.registry.initialize_exchange(exchange, credentials):
            raise InvalidCredentialsError(
                "Invalid API credentials or connection failed. Please check your API key permissions."
            )

        start, end = self._preview_window(request)
        options = SyncOptions.only(ResourceType.TRADES, start_date=start, end_date=end)
        try:
            result = await asyncio.wait_for(
                self.registry.sync_exchange(exchange, options),
                timeout=self.settings.timeout_sec,
            )
        except asyncio.TimeoutError:
            raise SyncTimeoutError(exchange, self.settings.timeout_sec) from None

        if not result.success:
            raise SyncError(result.error or f"Failed to fetch trades from {exchange}")

        display_name = self.registry.display_name(exchange)
        trades = result.trades or []
        rows = [TradeRecord.from_trade(t, display_name, connection.id).to_dict() for t in trades]
        await self.pending.replace(connection.id, rows)

        await self.connections.set_status(connection.id, SyncStatus.PENDING_REVIEW)
        await self.history.complete(
            history_id,
            SyncHistoryStatus.PENDING_REVIEW,
            trades_fetched=len(trades),
            warnings=result.warnings,
        )

        logger.info(
            f"[{display_name}] preview 완료",
            extra={
                "connection_id": connection.id,
                "trades_fetched": len(trades),
                "warnings": len(result.warnings),
            },
        )
        return SyncResponse(
            success=True,
            trades_fetched=len(trades),
            exchange_name=display_name,
            warnings=result.warnings,
        )

    # -------------------------------------------------------------------------
    # import
    # -------------------------------------------------------------------------

    async def _import(
        self,
        connection: ExchangeConnection,
        selected_ids: Sequence[int],
        history_id: int,
    ) -> SyncResponse:
        staged = await self.pending.get_selected(connection.id, selected_ids)

        imported = skipped = failed = 0
        for pending in staged:
            try:
                record = TradeRecord.from_dict(pending.trade_data)
                if await self.trades.insert(record):
                    imported += 1
                else:
                    skipped += 1
            except (sqlite3.Error, TypeError) as e:
                failed += 1
                logger.error(
                    "체결 저장 실패",
                    extra={"connection_id": connection.id, "pending_id": pending.id, "error": str(e)},
                )

        await self.pending.purge(connection.id)
        await self.connections.set_status(connection.id, SyncStatus.SUCCESS, synced=True)
        await self.history.complete(
            history_id,
            SyncHistoryStatus.COMPLETED,
            trades_fetched=len(staged),
            trades_imported=imported,
            trades_skipped=skipped,
        )

        logger.info(
            "import 완료",
            extra={
                "connection_id": connection.id,
                "imported": imported,
                "skipped": skipped,
                "failed": failed,
            },
        )
        return SyncResponse(
            success=True,
            trades_imported=imported,
            trades_skipped=skipped,
            exchange_name=self.registry.display_name(connection.exchange_name),
        )
