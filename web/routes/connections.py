"""
거래소 연결 라우트

연결 등록/해제/조회, 검토 대기 체결, 동기화 이력.
응답에는 자격 증명이 포함되지 않음.
"""

from typing import Any

from fastapi import APIRouter, Depends, Path, Query

from adapters.db.sqlite_adapter import SQLiteAdapter
from adapters.errors import UnsupportedExchangeError
from adapters.models import ExchangeCredentials
from sync.connections import ConnectionService
from sync.credentials import FernetCredentialCipher
from sync.errors import SyncError
from sync.registry import ExchangeRegistry
from web.dependencies import get_cipher, get_db_write, get_registry
from web.errors import to_http_exception
from web.models.requests import ConnectRequest
from web.models.responses import (
    ConnectionListResponse,
    PendingTradeListResponse,
    SyncHistoryListResponse,
)

router = APIRouter(prefix="/api", tags=["Connections"])


def get_connection_service(
    db: SQLiteAdapter = Depends(get_db_write),
    registry: ExchangeRegistry = Depends(get_registry),
    cipher: FernetCredentialCipher = Depends(get_cipher),
) -> ConnectionService:
    return ConnectionService(db, registry, cipher)


@router.post("/connections")
async def create_connection(
    request: ConnectRequest,
    service: ConnectionService = Depends(get_connection_service),
) -> dict[str, Any]:
    """거래소 연결 등록

    자격 증명으로 연결 테스트 후 암호화해 저장.
    같은 거래소가 이미 연결되어 있으면 자격 증명을 교체.

    - 400: 지원하지 않는 거래소, passphrase 누락, 연결 테스트 실패
    """
    credentials = ExchangeCredentials(
        api_key=request.api_key,
        api_secret=request.api_secret,
        api_passphrase=request.api_passphrase or None,
    )
    try:
        connection = await service.connect(request.exchange_name, credentials)
    except (SyncError, UnsupportedExchangeError) as e:
        raise to_http_exception(e) from e

    return {"success": True, "connection": connection.to_public_dict()}


@router.get("/connections", response_model=ConnectionListResponse)
async def list_connections(
    service: ConnectionService = Depends(get_connection_service),
) -> ConnectionListResponse:
    """연결 목록"""
    connections = await service.list_connections()
    return ConnectionListResponse(connections=[c.to_public_dict() for c in connections])


@router.delete("/connections/{connection_id}")
async def delete_connection(
    connection_id: int = Path(..., description="연결 ID"),
    service: ConnectionService = Depends(get_connection_service),
) -> dict[str, Any]:
    """연결 해제 (검토 대기 체결 포함 삭제)"""
    try:
        await service.disconnect(connection_id)
    except SyncError as e:
        raise to_http_exception(e) from e
    return {"success": True}


@router.get("/connections/{connection_id}/pending-trades", response_model=PendingTradeListResponse)
async def get_pending_trades(
    connection_id: int = Path(..., description="연결 ID"),
    service: ConnectionService = Depends(get_connection_service),
) -> PendingTradeListResponse:
    """preview로 저장된 검토 대기 체결"""
    try:
        trades = await service.pending_trades(connection_id)
    except SyncError as e:
        raise to_http_exception(e) from e
    return PendingTradeListResponse(connection_id=connection_id, trades=[t.to_dict() for t in trades])


@router.get("/connections/{connection_id}/sync-history", response_model=SyncHistoryListResponse)
async def get_sync_history(
    connection_id: int = Path(..., description="연결 ID"),
    limit: int = Query(default=20, ge=1, le=200, description="조회 제한"),
    service: ConnectionService = Depends(get_connection_service),
) -> SyncHistoryListResponse:
    """동기화 이력 (최신순)"""
    try:
        history = await service.sync_history(connection_id, limit)
    except SyncError as e:
        raise to_http_exception(e) from e
    return SyncHistoryListResponse(connection_id=connection_id, history=[h.to_dict() for h in history])
