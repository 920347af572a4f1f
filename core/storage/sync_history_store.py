"""
SyncHistoryStore - 동기화 이력 저장소

한 번 insert한 행은 완료 필드(status, 건수, 경고, 에러, completed_at)만 갱신.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.models import FetchWarning
from core.types import SyncHistoryStatus, SyncTrigger
from core.utils.timezone import format_iso, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncHistory:
    """동기화 이력 행"""

    id: int
    connection_id: int
    exchange_name: str
    sync_type: SyncTrigger
    status: SyncHistoryStatus
    trades_fetched: int
    trades_imported: int
    trades_skipped: int
    warnings: list[dict[str, Any]] = field(default_factory=list)
    error_message: str | None = None
    started_at: str | None = None
    completed_at: str | None = None

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "SyncHistory":
        return cls(
            id=row[0],
            connection_id=row[1],
            exchange_name=row[2],
            sync_type=SyncTrigger(row[3]),
            status=SyncHistoryStatus(row[4]),
            trades_fetched=row[5],
            trades_imported=row[6],
            trades_skipped=row[7],
            warnings=json.loads(row[8]) if row[8] else [],
            error_message=row[9],
            started_at=row[10],
            completed_at=row[11],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "connectionId": self.connection_id,
            "exchangeName": self.exchange_name,
            "syncType": self.sync_type.value,
            "status": self.status.value,
            "tradesFetched": self.trades_fetched,
            "tradesImported": self.trades_imported,
            "tradesSkipped": self.trades_skipped,
            "warnings": self.warnings,
            "errorMessage": self.error_message,
            "startedAt": self.started_at,
            "completedAt": self.completed_at,
        }


class SyncHistoryStore:
    """동기화 이력 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def start(
        self,
        connection_id: int,
        exchange_name: str,
        sync_type: SyncTrigger = SyncTrigger.MANUAL,
    ) -> int:
        """processing 상태로 이력 행 생성

        Returns:
            이력 ID
        """
        return await self.db.insert(
            """
            INSERT INTO exchange_sync_history (connection_id, exchange_name, sync_type, status, started_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (
                connection_id,
                exchange_name,
                sync_type.value,
                SyncHistoryStatus.PROCESSING.value,
                format_iso(now_utc()),
            ),
        )

    async def complete(
        self,
        history_id: int,
        status: SyncHistoryStatus,
        trades_fetched: int = 0,
        trades_imported: int = 0,
        trades_skipped: int = 0,
        warnings: Sequence[FetchWarning] = (),
        error_message: str | None = None,
    ) -> None:
        """완료 필드 갱신"""
        warnings_json = json.dumps([w.to_dict() for w in warnings], ensure_ascii=False) if warnings else None
        await self.db.update(
            """
            UPDATE exchange_sync_history
            SET status = ?, trades_fetched = ?, trades_imported = ?, trades_skipped = ?,
                warnings_json = ?, error_message = ?, completed_at = ?
            WHERE id = ?
            """,
            (
                status.value,
                trades_fetched,
                trades_imported,
                trades_skipped,
                warnings_json,
                error_message,
                format_iso(now_utc()),
                history_id,
            ),
        )
        logger.debug("동기화 이력 완료", extra={"history_id": history_id, "status": status.value})

    async def get(self, history_id: int) -> SyncHistory | None:
        row = await self.db.fetchone(
            """
            SELECT id, connection_id, exchange_name, sync_type, status,
                   trades_fetched, trades_imported, trades_skipped,
                   warnings_json, error_message, started_at, completed_at
            FROM exchange_sync_history
            WHERE id = ?
            """,
            (history_id,),
        )
        return SyncHistory.from_row(row) if row else None

    async def list_for_connection(self, connection_id: int, limit: int = 20) -> list[SyncHistory]:
        """최근 이력 (최신순)"""
        rows = await self.db.fetchall(
            """
            SELECT id, connection_id, exchange_name, sync_type, status,
                   trades_fetched, trades_imported, trades_skipped,
                   warnings_json, error_message, started_at, completed_at
            FROM exchange_sync_history
            WHERE connection_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (connection_id, limit),
        )
        return [SyncHistory.from_row(row) for row in rows]
