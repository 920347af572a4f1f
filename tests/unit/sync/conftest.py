"""
sync 테스트 공통 fixture
"""

import pytest_asyncio

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.connection_store import ConnectionStore
from sync.credentials import FernetCredentialCipher


@pytest_asyncio.fixture
async def connection_id(db: SQLiteAdapter, cipher: FernetCredentialCipher) -> int:
    """암호화된 자격 증명을 가진 binance 연결"""
    return await ConnectionStore(db).upsert(
        "binance",
        cipher.encrypt("test_api_key"),
        cipher.encrypt("test_api_secret"),
    )
