"""
거래소 동기화 라우트

POST /api/exchange-sync       - preview / import
POST /api/exchange-sync/data  - 주문/입출금/잔고/체결 직접 저장
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends

from adapters.db.sqlite_adapter import SQLiteAdapter
from core.config.loader import Settings
from core.utils.timezone import ensure_utc
from sync.credentials import FernetCredentialCipher
from sync.data_sync import ExchangeDataSync
from sync.errors import SyncError
from sync.orchestrator import SyncOrchestrator, SyncRequest
from sync.registry import ExchangeRegistry
from web.dependencies import get_app_settings, get_cipher, get_db_write, get_registry
from web.errors import to_http_exception
from web.models.requests import DataSyncRequest, ExchangeSyncRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Exchange Sync"])


@router.post("/exchange-sync")
async def exchange_sync(
    request: ExchangeSyncRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    registry: ExchangeRegistry = Depends(get_registry),
    cipher: FernetCredentialCipher = Depends(get_cipher),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """preview / import 실행

    **preview**: 거래소 체결을 조회해 검토 대기 목록으로 저장
    (tradesFetched, exchangeName, warnings)

    **import**: 선택한 대기 체결을 trades에 저장
    (tradesImported, tradesSkipped: 이미 저장된 체결)

    - 404: 연결 없음
    - 409: 같은 연결의 동기화 진행 중
    - 400: import인데 selectedTradeIds 없음
    - 200 + success=false: 거래소 오류, 타임아웃 등
    """
    orchestrator = SyncOrchestrator(db, registry, cipher, settings.sync)
    sync_request = SyncRequest(
        connection_id=request.connection_id,
        mode=request.mode,
        selected_trade_ids=tuple(request.selected_trade_ids or ()),
        start_date=ensure_utc(request.start_date) if request.start_date else None,
        end_date=ensure_utc(request.end_date) if request.end_date else None,
    )

    try:
        response = await orchestrator.run(sync_request)
    except SyncError as e:
        raise to_http_exception(e) from e

    return response.to_dict()


@router.post("/exchange-sync/data")
async def exchange_data_sync(
    request: DataSyncRequest,
    db: SQLiteAdapter = Depends(get_db_write),
    registry: ExchangeRegistry = Depends(get_registry),
    cipher: FernetCredentialCipher = Depends(get_cipher),
    settings: Settings = Depends(get_app_settings),
) -> dict[str, Any]:
    """주문/입출금/잔고/체결 동기화

    검토 단계 없이 바로 저장. 리소스별 실패는 results의 <type>_error로 전달.
    """
    data_sync = ExchangeDataSync(db, registry, cipher, settings.sync)
    try:
        result = await data_sync.sync(
            request.connection_id,
            request.sync_types,
            ensure_utc(request.start_date) if request.start_date else None,
            ensure_utc(request.end_date) if request.end_date else None,
        )
    except SyncError as e:
        raise to_http_exception(e) from e

    return result.to_dict()
