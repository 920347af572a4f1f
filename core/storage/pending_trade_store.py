"""
PendingTradeStore - preview 대기 체결 저장소

preview 결과를 exchange_pending_trades에 적재하고 import 시 선택분을 꺼냄.
trade_data는 정규화된 trades 행의 JSON.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Sequence

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.utils.timezone import format_iso, now_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PendingTrade:
    """대기 체결"""

    id: int
    connection_id: int
    trade_data: dict[str, Any]
    is_selected: bool
    created_at: str

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "PendingTrade":
        return cls(
            id=row[0],
            connection_id=row[1],
            trade_data=json.loads(row[2]),
            is_selected=bool(row[3]),
            created_at=row[4],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "connectionId": self.connection_id,
            "tradeData": self.trade_data,
            "isSelected": self.is_selected,
            "createdAt": self.created_at,
        }


class PendingTradeStore:
    """대기 체결 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def replace(self, connection_id: int, rows: Sequence[dict[str, Any]]) -> int:
        """연결의 대기 체결을 새 목록으로 교체 (단일 트랜잭션)

        Returns:
            저장한 행 수
        """
        now = format_iso(now_utc())
        async with self.db.transaction() as conn:
            await conn.execute(
                "DELETE FROM exchange_pending_trades WHERE connection_id = ?",
                (connection_id,),
            )
            await conn.executemany(
                """
                INSERT INTO exchange_pending_trades (connection_id, trade_data, is_selected, created_at)
                VALUES (?, ?, 1, ?)
                """,
                [(connection_id, json.dumps(row, ensure_ascii=False), now) for row in rows],
            )

        logger.info(
            "대기 체결 교체",
            extra={"connection_id": connection_id, "stored": len(rows)},
        )
        return len(rows)

    async def list_for_connection(self, connection_id: int) -> list[PendingTrade]:
        rows = await self.db.fetchall(
            """
            SELECT id, connection_id, trade_data, is_selected, created_at
            FROM exchange_pending_trades
            WHERE connection_id = ?
            ORDER BY id
            """,
            (connection_id,),
        )
        return [PendingTrade.from_row(row) for row in rows]

    async def get_selected(self, connection_id: int, ids: Sequence[int]) -> list[PendingTrade]:
        """선택된 ID 중 해당 연결 소속만 반환 (다른 연결의 ID는 무시)"""
        if not ids:
            return []
        placeholders = ", ".join("?" for _ in ids)
        rows = await self.db.fetchall(
            f"""
            SELECT id, connection_id, trade_data, is_selected, created_at
            FROM exchange_pending_trades
            WHERE connection_id = ? AND id IN ({placeholders})
            ORDER BY id
            """,
            (connection_id, *ids),
        )
        return [PendingTrade.from_row(row) for row in rows]

    async def purge(self, connection_id: int) -> int:
        """연결의 대기 체결 전체 삭제

        Returns:
            삭제한 행 수
        """
        return await self.db.update(
            "DELETE FROM exchange_pending_trades WHERE connection_id = ?",
            (connection_id,),
        )
