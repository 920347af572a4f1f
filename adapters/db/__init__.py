"""
데이터베이스 어댑터

SQLite(aiosqlite) 연결 관리와 스키마 정의.
"""

from adapters.db.sqlite_adapter import (
    MEMORY_DB,
    SCHEMA_TABLES,
    SCHEMA_VERSION,
    SQLiteAdapter,
    init_schema,
)

__all__ = [
    "MEMORY_DB",
    "SCHEMA_TABLES",
    "SCHEMA_VERSION",
    "SQLiteAdapter",
    "init_schema",
]
