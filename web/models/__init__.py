"""
Web 모델 패키지

Pydantic 스키마 정의
"""

from web.models.requests import (
    ConnectRequest,
    DataSyncRequest,
    ExchangeSyncRequest,
)
from web.models.responses import (
    ConnectionListResponse,
    ExchangeInfo,
    ExchangeListResponse,
    HealthResponse,
    PendingTradeListResponse,
    SyncHistoryListResponse,
)

__all__ = [
    # Requests
    "ConnectRequest",
    "DataSyncRequest",
    "ExchangeSyncRequest",
    # Responses
    "ConnectionListResponse",
    "ExchangeInfo",
    "ExchangeListResponse",
    "HealthResponse",
    "PendingTradeListResponse",
    "SyncHistoryListResponse",
]
