"""
SQLite 어댑터

aiosqlite 연결 하나를 감싸는 얇은 래퍼.
- 파일 DB는 WAL 모드 (Web과 run_sync 스크립트가 같은 파일을 동시에 사용)
- ":memory:" DB는 테스트 fixture 전용
- 스키마 버전은 PRAGMA user_version으로 기록

주의: SQLite alias로 time, count 사용 금지 (예약어)
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import aiosqlite

logger = logging.getLogger(__name__)

MEMORY_DB = ":memory:"

# 스키마 변경 시 증가 (init_schema가 user_version에 기록)
SCHEMA_VERSION = 2

# 연결 직후 적용하는 PRAGMA (파일 DB 전용 여부, 문장)
_CONNECTION_PRAGMAS: tuple[tuple[bool, str], ...] = (
    (True, "PRAGMA journal_mode=WAL"),
    (True, "PRAGMA synchronous=NORMAL"),
    (False, "PRAGMA busy_timeout=30000"),
    (False, "PRAGMA foreign_keys=ON"),
)


def _is_memory(db_path: Path | str) -> bool:
    return str(db_path) == MEMORY_DB


async def create_connection(
    db_path: Path | str,
    readonly: bool = False,
) -> aiosqlite.Connection:
    """aiosqlite 연결 생성 + PRAGMA 적용

    Args:
        db_path: DB 파일 경로 (":memory:"면 인메모리 DB)
        readonly: 읽기 전용 (파일 DB만 해당, URI mode=ro)
    """
    in_memory = _is_memory(db_path)

    if in_memory:
        conn = await aiosqlite.connect(MEMORY_DB)
    else:
        path = Path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        if readonly:
            conn = await aiosqlite.connect(f"file:{path}?mode=ro", uri=True)
        else:
            conn = await aiosqlite.connect(path)

    for file_only, pragma in _CONNECTION_PRAGMAS:
        if file_only and (in_memory or readonly):
            continue
        await conn.execute(pragma)

    logger.debug("SQLite 연결", extra={"db_path": str(db_path), "readonly": readonly})
    return conn


class SQLiteAdapter:
    """SQLite 연결 래퍼

    저장소(core.storage)는 이 클래스만 사용하며 aiosqlite를 직접 다루지 않음.
    insert/update는 문장 단위 커밋, 여러 문장을 묶어야 하면 transaction() 사용.

    사용 예시:
    ```python
    async with SQLiteAdapter(settings.db_path) as db:
        await init_schema(db)
        async with db.transaction() as conn:
            await conn.execute("DELETE FROM exchange_pending_trades WHERE connection_id = ?", (1,))
    ```
    """

    def __init__(self, db_path: Path | str, readonly: bool = False):
        self.db_path: Path | str = MEMORY_DB if _is_memory(db_path) else Path(db_path)
        self.readonly = readonly
        self._conn: aiosqlite.Connection | None = None
        self._lock = asyncio.Lock()
        self._owner: asyncio.Task[Any] | None = None

    @property
    def is_connected(self) -> bool:
        return self._conn is not None

    @property
    def conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError(f"SQLite not connected: {self.db_path}")
        return self._conn

    async def connect(self) -> None:
        if self._conn is None:
            self._conn = await create_connection(self.db_path, self.readonly)

    async def close(self) -> None:
        if self._conn is None:
            return
        conn, self._conn = self._conn, None
        await conn.close()
        logger.debug("SQLite 연결 종료", extra={"db_path": str(self.db_path)})

    # -------------------------------------------------------------------------
    # 실행
    # -------------------------------------------------------------------------

    @asynccontextmanager
    async def _exclusive(self) -> AsyncIterator[aiosqlite.Connection]:
        """연결 단독 사용 구간 (같은 태스크 안에서는 재진입 허용)

        aiosqlite 연결 하나의 트랜잭션은 모든 태스크가 공유하므로
        다른 태스크의 커밋/롤백이 끼어들지 않도록 직렬화.
        """
        task = asyncio.current_task()
        if self._owner is not None and self._owner is task:
            yield self.conn
            return

        async with self._lock:
            self._owner = task
            try:
                yield self.conn
            finally:
                self._owner = None

    async def execute(self, sql: str, parameters: tuple[Any, ...] | None = None) -> aiosqlite.Cursor:
        """단일 문장 실행 (커밋하지 않음)

        쓰기는 insert/update/transaction()을 사용. execute 후 commit을 따로
        호출하면 그 사이에 다른 태스크의 트랜잭션이 끼어들 수 있음.
        """
        async with self._exclusive() as conn:
            return await conn.execute(sql, parameters or ())

    async def executemany(self, sql: str, parameters: list[tuple[Any, ...]]) -> aiosqlite.Cursor:
        async with self._exclusive() as conn:
            return await conn.executemany(sql, parameters)

    async def _write(self, sql: str, parameters: tuple[Any, ...]) -> aiosqlite.Cursor:
        async with self._exclusive() as conn:
            try:
                cursor = await conn.execute(sql, parameters)
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()
            return cursor

    async def insert(self, sql: str, parameters: tuple[Any, ...]) -> int:
        """INSERT 후 커밋, 새 rowid 반환 (OR IGNORE로 무시되면 0)

        실패하면 롤백 후 재전파 (UNIQUE 위반 포함).
        """
        cursor = await self._write(sql, parameters)
        return int(cursor.lastrowid or 0) if cursor.rowcount else 0

    async def update(self, sql: str, parameters: tuple[Any, ...]) -> int:
        """UPDATE/DELETE/UPSERT 후 커밋, 영향받은 행 수 반환"""
        cursor = await self._write(sql, parameters)
        return cursor.rowcount

    async def fetchone(self, sql: str, parameters: tuple[Any, ...] | None = None) -> tuple[Any, ...] | None:
        async with self._exclusive() as conn:
            cursor = await conn.execute(sql, parameters or ())
            return await cursor.fetchone()

    async def fetchall(self, sql: str, parameters: tuple[Any, ...] | None = None) -> list[tuple[Any, ...]]:
        async with self._exclusive() as conn:
            cursor = await conn.execute(sql, parameters or ())
            return list(await cursor.fetchall())

    async def commit(self) -> None:
        if self._conn is not None:
            async with self._exclusive() as conn:
                await conn.commit()

    async def rollback(self) -> None:
        if self._conn is not None:
            async with self._exclusive() as conn:
                await conn.rollback()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """블록 성공 시 커밋, 예외 시 롤백 후 재전파

        블록이 끝날 때까지 다른 태스크의 문장/커밋/롤백은 대기.
        """
        async with self._exclusive() as conn:
            try:
                yield conn
            except Exception:
                await conn.rollback()
                raise
            await conn.commit()

    # -------------------------------------------------------------------------
    # 스키마 조회
    # -------------------------------------------------------------------------

    async def table_exists(self, table_name: str) -> bool:
        row = await self.fetchone(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (table_name,),
        )
        return row is not None

    async def schema_version(self) -> int:
        """PRAGMA user_version (init_schema 전이면 0)"""
        row = await self.fetchone("PRAGMA user_version")
        return int(row[0]) if row else 0

    async def __aenter__(self) -> "SQLiteAdapter":
        await self.connect()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


# -----------------------------------------------------------------------------
# 스키마
# -----------------------------------------------------------------------------

# 테이블명 → DDL (생성 순서 유지: 외래 키 대상이 먼저)
SCHEMA_TABLES: dict[str, str] = {
    # 거래소 연결 (자격 증명은 암호문으로만 저장)
    "exchange_connections": """
        CREATE TABLE IF NOT EXISTS exchange_connections (
            id                      INTEGER PRIMARY KEY AUTOINCREMENT,
            exchange_name           TEXT NOT NULL UNIQUE,

            api_key                 TEXT NOT NULL,
            api_secret              TEXT NOT NULL,
            api_passphrase          TEXT,

            is_active               INTEGER NOT NULL DEFAULT 1,
            sync_status             TEXT NOT NULL DEFAULT 'idle',
            sync_error              TEXT,
            sync_started_at         TEXT,
            last_synced_at          TEXT,

            health_status           TEXT,
            failed_sync_count       INTEGER NOT NULL DEFAULT 0,
            last_trade_sync_at      TEXT,
            last_order_sync_at      TEXT,
            last_deposit_sync_at    TEXT,
            last_withdrawal_sync_at TEXT,

            created_at              TEXT NOT NULL DEFAULT (datetime('now')),
            updated_at              TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """,
    # preview 단계 대기 체결 (import 후 삭제)
    "exchange_pending_trades": """
        CREATE TABLE IF NOT EXISTS exchange_pending_trades (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id   INTEGER NOT NULL
                            REFERENCES exchange_connections(id) ON DELETE CASCADE,
            trade_data      TEXT NOT NULL,
            is_selected     INTEGER NOT NULL DEFAULT 1,
            created_at      TEXT NOT NULL DEFAULT (datetime('now'))
        )
    """,
    # 동기화 이력 (insert 후 완료 필드만 갱신)
    "exchange_sync_history": """
        CREATE TABLE IF NOT EXISTS exchange_sync_history (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id   INTEGER NOT NULL,
            exchange_name   TEXT NOT NULL,
            sync_type       TEXT NOT NULL DEFAULT 'manual',
            status          TEXT NOT NULL DEFAULT 'processing',

            trades_fetched  INTEGER NOT NULL DEFAULT 0,
            trades_imported INTEGER NOT NULL DEFAULT 0,
            trades_skipped  INTEGER NOT NULL DEFAULT 0,
            warnings_json   TEXT,
            error_message   TEXT,

            started_at      TEXT NOT NULL,
            completed_at    TEXT
        )
    """,
    # 매매 일지 (import 결과). (exchange, external_id)로 중복 방지
    "trades": """
        CREATE TABLE IF NOT EXISTS trades (
            id              INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id   INTEGER,
            external_id     TEXT NOT NULL,
            exchange        TEXT NOT NULL,

            pair            TEXT NOT NULL,
            side            TEXT NOT NULL,
            type            TEXT NOT NULL,
            entry_price     TEXT NOT NULL,
            exit_price      TEXT NOT NULL,
            size            TEXT NOT NULL,
            pnl             TEXT NOT NULL DEFAULT '0',
            pnl_percentage  TEXT NOT NULL DEFAULT '0',
            fee             TEXT NOT NULL DEFAULT '0',
            fee_currency    TEXT NOT NULL DEFAULT 'USDT',

            opened_at       TEXT NOT NULL,
            closed_at       TEXT NOT NULL,
            notes           TEXT,
            broker_name     TEXT,

            created_at      TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(exchange, external_id)
        )
    """,
    # data sync 결과
    "exchange_orders": """
        CREATE TABLE IF NOT EXISTS exchange_orders (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id       INTEGER NOT NULL,
            exchange_order_id   TEXT NOT NULL,
            symbol              TEXT NOT NULL,
            side                TEXT NOT NULL,
            order_type          TEXT,
            status              TEXT NOT NULL,
            price               TEXT NOT NULL,
            quantity            TEXT NOT NULL,
            filled_quantity     TEXT NOT NULL,
            order_time          TEXT NOT NULL,
            created_at          TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(connection_id, exchange_order_id)
        )
    """,
    "exchange_deposits": """
        CREATE TABLE IF NOT EXISTS exchange_deposits (
            id                  INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id       INTEGER NOT NULL,
            exchange_deposit_id TEXT NOT NULL,
            currency            TEXT NOT NULL,
            amount              TEXT NOT NULL,
            address             TEXT,
            tx_id               TEXT,
            network             TEXT,
            status              TEXT NOT NULL,
            deposit_time        TEXT NOT NULL,
            created_at          TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(connection_id, exchange_deposit_id)
        )
    """,
    "exchange_withdrawals": """
        CREATE TABLE IF NOT EXISTS exchange_withdrawals (
            id                      INTEGER PRIMARY KEY AUTOINCREMENT,
            connection_id           INTEGER NOT NULL,
            exchange_withdrawal_id  TEXT NOT NULL,
            currency                TEXT NOT NULL,
            amount                  TEXT NOT NULL,
            fee                     TEXT NOT NULL DEFAULT '0',
            address                 TEXT,
            tx_id                   TEXT,
            network                 TEXT,
            status                  TEXT NOT NULL,
            withdrawal_time         TEXT NOT NULL,
            created_at              TEXT NOT NULL DEFAULT (datetime('now')),

            UNIQUE(connection_id, exchange_withdrawal_id)
        )
    """,
}

SCHEMA_INDEXES: tuple[str, ...] = (
    "CREATE INDEX IF NOT EXISTS ix_pending_trades_connection ON exchange_pending_trades(connection_id)",
    "CREATE INDEX IF NOT EXISTS ix_sync_history_connection ON exchange_sync_history(connection_id, started_at)",
    "CREATE INDEX IF NOT EXISTS ix_trades_opened_at ON trades(opened_at)",
)


async def init_schema(adapter: SQLiteAdapter) -> None:
    """테이블/인덱스 생성 후 user_version 기록 (여러 번 호출해도 안전)

    Web 시작, scripts/init_db.py, 테스트 fixture에서 호출.
    """
    previous = await adapter.schema_version()

    async with adapter.transaction() as conn:
        for ddl in SCHEMA_TABLES.values():
            await conn.execute(ddl)
        for ddl in SCHEMA_INDEXES:
            await conn.execute(ddl)
        # PRAGMA는 파라미터 바인딩 불가
        await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")

    if previous != SCHEMA_VERSION:
        logger.info(
            "스키마 초기화 완료",
            extra={"previous_version": previous, "schema_version": SCHEMA_VERSION},
        )
