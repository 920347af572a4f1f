"""
ConnectionStore - 거래소 연결 저장소

exchange_connections 테이블 관리.
자격 증명은 암호문 그대로 저장/반환하며 복호화는 호출자(cipher) 책임.

동시 실행 방지:
    try_acquire()가 sync_status를 'syncing'으로 바꾸는 CAS UPDATE를 수행.
    이미 syncing이고 잠금이 stale 기준보다 최근이면 실패.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.types import HealthStatus, ResourceType, SyncStatus
from core.utils.timezone import format_iso, now_utc, parse_timestamp

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, exchange_name, api_key, api_secret, api_passphrase,
    is_active, sync_status, sync_error, sync_started_at, last_synced_at,
    health_status, failed_sync_count,
    last_trade_sync_at, last_order_sync_at, last_deposit_sync_at, last_withdrawal_sync_at,
    created_at
"""

# 리소스별 마지막 동기화 시각 컬럼
LAST_SYNC_COLUMNS: dict[ResourceType, str] = {
    ResourceType.TRADES: "last_trade_sync_at",
    ResourceType.ORDERS: "last_order_sync_at",
    ResourceType.DEPOSITS: "last_deposit_sync_at",
    ResourceType.WITHDRAWALS: "last_withdrawal_sync_at",
}


def _optional_ts(value: str | None) -> datetime | None:
    return parse_timestamp(value) if value else None


@dataclass(frozen=True)
class ExchangeConnection:
    """거래소 연결 (자격 증명은 암호문)

    Attributes:
        id: 연결 ID
        exchange_name: 거래소 식별자 (소문자)
        api_key / api_secret / api_passphrase: 암호화된 자격 증명
        sync_status: idle/syncing/pending_review/success/error
    """

    id: int
    exchange_name: str
    api_key: str = field(repr=False)
    api_secret: str = field(repr=False)
    api_passphrase: str | None = field(default=None, repr=False)
    is_active: bool = True
    sync_status: SyncStatus = SyncStatus.IDLE
    sync_error: str | None = None
    sync_started_at: datetime | None = None
    last_synced_at: datetime | None = None
    health_status: HealthStatus | None = None
    failed_sync_count: int = 0
    last_sync_at: dict[str, datetime | None] = field(default_factory=dict)
    created_at: str | None = None

    @classmethod
    def from_row(cls, row: tuple[Any, ...]) -> "ExchangeConnection":
        return cls(
            id=row[0],
            exchange_name=row[1],
            api_key=row[2],
            api_secret=row[3],
            api_passphrase=row[4],
            is_active=bool(row[5]),
            sync_status=SyncStatus(row[6]),
            sync_error=row[7],
            sync_started_at=_optional_ts(row[8]),
            last_synced_at=_optional_ts(row[9]),
            health_status=HealthStatus(row[10]) if row[10] else None,
            failed_sync_count=row[11] or 0,
            last_sync_at={
                ResourceType.TRADES.value: _optional_ts(row[12]),
                ResourceType.ORDERS.value: _optional_ts(row[13]),
                ResourceType.DEPOSITS.value: _optional_ts(row[14]),
                ResourceType.WITHDRAWALS.value: _optional_ts(row[15]),
            },
            created_at=row[16],
        )

    def to_public_dict(self) -> dict[str, Any]:
        """API 응답용 (자격 증명 제외)"""
        return {
            "id": self.id,
            "exchangeName": self.exchange_name,
            "isActive": self.is_active,
            "syncStatus": self.sync_status.value,
            "syncError": self.sync_error,
            "lastSyncedAt": format_iso(self.last_synced_at) if self.last_synced_at else None,
            "healthStatus": self.health_status.value if self.health_status else None,
            "failedSyncCount": self.failed_sync_count,
            "lastSyncAt": {
                kind: format_iso(ts) if ts else None
                for kind, ts in self.last_sync_at.items()
            },
        }


class ConnectionStore:
    """거래소 연결 저장소

    Args:
        db: SQLiteAdapter 인스턴스
    """

    def __init__(self, db: SQLiteAdapter):
        self.db = db

    async def get(self, connection_id: int) -> ExchangeConnection | None:
        """ID로 연결 조회"""
        row = await self.db.fetchone(
            f"SELECT {_COLUMNS} FROM exchange_connections WHERE id = ?",
            (connection_id,),
        )
        return ExchangeConnection.from_row(row) if row else None

    async def get_by_exchange(self, exchange_name: str) -> ExchangeConnection | None:
        """거래소 이름으로 연결 조회"""
        row = await self.db.fetchone(
            f"SELECT {_COLUMNS} FROM exchange_connections WHERE exchange_name = ?",
            (exchange_name.lower(),),
        )
        return ExchangeConnection.from_row(row) if row else None

    async def list_all(self, active_only: bool = False) -> list[ExchangeConnection]:
        """연결 목록 (ID 순)"""
        sql = f"SELECT {_COLUMNS} FROM exchange_connections"
        if active_only:
            sql += " WHERE is_active = 1"
        rows = await self.db.fetchall(sql + " ORDER BY id")
        return [ExchangeConnection.from_row(row) for row in rows]

    async def upsert(
        self,
        exchange_name: str,
        api_key: str,
        api_secret: str,
        api_passphrase: str | None = None,
    ) -> int:
        """연결 저장 (exchange_name 기준 upsert, 암호문 입력)

        Returns:
            연결 ID
        """
        now = format_iso(now_utc())
        await self.db.update(
            """
            INSERT INTO exchange_connections (
                exchange_name, api_key, api_secret, api_passphrase,
                is_active, sync_status, sync_error, created_at, updated_at
            ) VALUES (?, ?, ?, ?, 1, 'idle', NULL, ?, ?)
            ON CONFLICT(exchange_name) DO UPDATE SET
                api_key = excluded.api_key,
                api_secret = excluded.api_secret,
                api_passphrase = excluded.api_passphrase,
                is_active = 1,
                sync_status = 'idle',
                sync_error = NULL,
                updated_at = excluded.updated_at
            """,
            (exchange_name.lower(), api_key, api_secret, api_passphrase, now, now),
        )

        row = await self.db.fetchone(
            "SELECT id FROM exchange_connections WHERE exchange_name = ?",
            (exchange_name.lower(),),
        )
        assert row is not None
        logger.info("거래소 연결 저장", extra={"exchange": exchange_name, "connection_id": row[0]})
        return row[0]

    async def delete(self, connection_id: int) -> bool:
        """연결 삭제 (대기 체결은 FK cascade)"""
        deleted = await self.db.update(
            "DELETE FROM exchange_connections WHERE id = ?",
            (connection_id,),
        )
        return deleted > 0

    # -------------------------------------------------------------------------
    # 동기화 상태
    # -------------------------------------------------------------------------

    async def try_acquire(self, connection_id: int, stale_after: timedelta) -> bool:
        """동기화 잠금 획득 (CAS)

        sync_status != 'syncing'이거나 잠금이 stale_after보다 오래되었으면
        syncing으로 전환하고 True.
        """
        now = now_utc()
        stale_before = format_iso(now - stale_after)
        acquired = await self.db.update(
            """
            UPDATE exchange_connections
            SET sync_status = 'syncing',
                sync_error = NULL,
                sync_started_at = ?,
                updated_at = ?
            WHERE id = ?
              AND (
                  sync_status != 'syncing'
                  OR sync_started_at IS NULL
                  OR sync_started_at < ?
              )
            """,
            (format_iso(now), format_iso(now), connection_id, stale_before),
        )
        return acquired == 1

    async def set_status(
        self,
        connection_id: int,
        status: SyncStatus,
        error: str | None = None,
        synced: bool = False,
    ) -> None:
        """동기화 상태 갱신 (synced=True면 last_synced_at 기록)"""
        now = format_iso(now_utc())
        if synced:
            await self.db.update(
                """
                UPDATE exchange_connections
                SET sync_status = ?, sync_error = ?, last_synced_at = ?, updated_at = ?
                WHERE id = ?
                """,
                (status.value, error, now, now, connection_id),
            )
        else:
            await self.db.update(
                """
                UPDATE exchange_connections
                SET sync_status = ?, sync_error = ?, updated_at = ?
                WHERE id = ?
                """,
                (status.value, error, now, connection_id),
            )

    async def touch_resource(self, connection_id: int, resource: ResourceType) -> None:
        """리소스별 마지막 동기화 시각 기록 (balances는 컬럼 없음)"""
        column = LAST_SYNC_COLUMNS.get(resource)
        if column is None:
            return
        now = format_iso(now_utc())
        await self.db.update(
            f"UPDATE exchange_connections SET {column} = ?, updated_at = ? WHERE id = ?",
            (now, now, connection_id),
        )

    async def record_data_sync_success(self, connection_id: int, health: HealthStatus) -> None:
        """data sync 성공 (실패 카운트 초기화 + 헬스 상태 저장)"""
        now = format_iso(now_utc())
        await self.db.update(
            """
            UPDATE exchange_connections
            SET sync_status = 'success', sync_error = NULL, last_synced_at = ?,
                failed_sync_count = 0, health_status = ?, updated_at = ?
            WHERE id = ?
            """,
            (now, health.value, now, connection_id),
        )

    async def record_data_sync_failure(self, connection_id: int, error: str) -> None:
        """data sync 초기화 실패 (down + 실패 카운트 증가)"""
        now = format_iso(now_utc())
        await self.db.update(
            """
            UPDATE exchange_connections
            SET sync_status = 'error', sync_error = ?, health_status = 'down',
                failed_sync_count = failed_sync_count + 1, updated_at = ?
            WHERE id = ?
            """,
            (error, now, connection_id),
        )
