"""
응답 스키마 (Pydantic)

Web API 응답 데이터 직렬화
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """헬스 체크 응답"""

    status: str = Field(default="ok", description="서비스 상태")
    version: str = Field(..., description="API 버전")
    timestamp: datetime = Field(..., description="응답 시간 (UTC)")


class ExchangeInfo(BaseModel):
    """지원 거래소 정보"""

    name: str = Field(..., description="거래소 식별자")
    display_name: str = Field(..., serialization_alias="displayName", description="표시 이름")
    requires_passphrase: bool = Field(
        ..., serialization_alias="requiresPassphrase", description="passphrase 필요 여부"
    )


class ExchangeListResponse(BaseModel):
    """지원 거래소 목록"""

    exchanges: list[ExchangeInfo]


class ConnectionListResponse(BaseModel):
    """연결 목록 (자격 증명 제외)"""

    connections: list[dict[str, Any]]


class PendingTradeListResponse(BaseModel):
    """검토 대기 체결 목록"""

    connection_id: int = Field(..., serialization_alias="connectionId")
    trades: list[dict[str, Any]]


class SyncHistoryListResponse(BaseModel):
    """동기화 이력 목록"""

    connection_id: int = Field(..., serialization_alias="connectionId")
    history: list[dict[str, Any]]
