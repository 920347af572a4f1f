"""
거래소 연결 관리

연결 등록(자격 증명 검증 → 암호화 저장), 해제, 조회.
"""

import logging

from adapters.models import ExchangeCredentials
from adapters.db.sqlite_adapter import SQLiteAdapter
from core.storage.connection_store import ConnectionStore, ExchangeConnection
from core.storage.pending_trade_store import PendingTrade, PendingTradeStore
from core.storage.sync_history_store import SyncHistory, SyncHistoryStore
from sync.credentials import FernetCredentialCipher
from sync.errors import ConnectionNotFoundError, InvalidCredentialsError
from sync.registry import ExchangeRegistry, canonical_name, resolve_exchange

logger = logging.getLogger(__name__)


class ConnectionService:
    """거래소 연결 서비스

    Args:
        db: SQLiteAdapter (쓰기 가능)
        registry: 거래소 어댑터 레지스트리
        cipher: 자격 증명 암호화기
    """

    def __init__(self, db: SQLiteAdapter, registry: ExchangeRegistry, cipher: FernetCredentialCipher):
        self.registry = registry
        self.cipher = cipher
        self.connections = ConnectionStore(db)
        self.pending = PendingTradeStore(db)
        self.history = SyncHistoryStore(db)

    async def connect(self, exchange_name: str, credentials: ExchangeCredentials) -> ExchangeConnection:
        """연결 등록

        새 어댑터로 연결 테스트 후 암호화해 저장 (같은 거래소는 덮어씀).

        Raises:
            UnsupportedExchangeError: 지원하지 않는 거래소
            InvalidCredentialsError: passphrase 누락 또는 연결 테스트 실패
        """
        exchange = resolve_exchange(exchange_name)
        if exchange.requires_passphrase and not credentials.has_passphrase:
            label = "Customer ID" if exchange.value == "bitstamp" else "API passphrase"
            raise InvalidCredentialsError(f"{label} is required for {exchange.value}")

        adapter = self.registry.create_adapter(exchange.value, credentials)
        try:
            ok = await adapter.test_connection()
        finally:
            await adapter.close()
        if not ok:
            raise InvalidCredentialsError()

        connection_id = await self.connections.upsert(
            exchange.value,
            self.cipher.encrypt(credentials.api_key),
            self.cipher.encrypt(credentials.api_secret),
            self.cipher.encrypt(credentials.api_passphrase) if credentials.api_passphrase else None,
        )
        connection = await self.connections.get(connection_id)
        assert connection is not None
        return connection

    async def disconnect(self, connection_id: int) -> None:
        """연결 해제 (대기 체결 삭제 + 캐시된 어댑터 정리)

        Raises:
            ConnectionNotFoundError: 연결 없음
        """
        connection = await self._require(connection_id)
        await self.pending.purge(connection.id)
        await self.connections.delete(connection.id)
        await self.registry.remove(canonical_name(connection.exchange_name))
        logger.info("거래소 연결 해제", extra={"connection_id": connection.id, "exchange": connection.exchange_name})

    async def list_connections(self) -> list[ExchangeConnection]:
        return await self.connections.list_all()

    async def pending_trades(self, connection_id: int) -> list[PendingTrade]:
        await self._require(connection_id)
        return await self.pending.list_for_connection(connection_id)

    async def sync_history(self, connection_id: int, limit: int = 20) -> list[SyncHistory]:
        await self._require(connection_id)
        return await self.history.list_for_connection(connection_id, limit)

    async def _require(self, connection_id: int) -> ExchangeConnection:
        connection = await self.connections.get(connection_id)
        if connection is None:
            raise ConnectionNotFoundError(connection_id)
        return connection
