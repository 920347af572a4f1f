"""
요청 스키마 (Pydantic)

Web API 요청 데이터 검증 (JSON 필드는 camelCase)
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from core.types import ResourceType, SyncMode


class ExchangeSyncRequest(BaseModel):
    """preview / import 요청"""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"connectionId": 1, "mode": "preview", "startDate": "2024-01-01T00:00:00Z"},
                {"connectionId": 1, "mode": "import", "selectedTradeIds": [10, 11, 12]},
            ]
        },
    )

    connection_id: int = Field(..., alias="connectionId", description="거래소 연결 ID")
    mode: SyncMode = Field(..., description="preview / import")
    selected_trade_ids: list[int] | None = Field(
        default=None, alias="selectedTradeIds", description="import할 대기 체결 ID (import 필수)"
    )
    start_date: datetime | None = Field(default=None, alias="startDate", description="조회 시작 (UTC)")
    end_date: datetime | None = Field(default=None, alias="endDate", description="조회 종료 (UTC)")


class DataSyncRequest(BaseModel):
    """주문/입출금/잔고/체결 직접 저장 요청"""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {"connectionId": 1, "syncTypes": ["orders", "deposits", "withdrawals"]},
            ]
        },
    )

    connection_id: int = Field(..., alias="connectionId", description="거래소 연결 ID")
    sync_types: list[ResourceType] | None = Field(
        default=None, alias="syncTypes", description="동기화 대상 (없으면 trades/orders/deposits/withdrawals)"
    )
    start_date: datetime | None = Field(default=None, alias="startDate", description="조회 시작 (UTC)")
    end_date: datetime | None = Field(default=None, alias="endDate", description="조회 종료 (UTC)")


class ConnectRequest(BaseModel):
    """거래소 연결 등록 요청

    자격 증명은 연결 테스트 후 암호화되어 저장되며 응답에 포함되지 않음.
    """

    model_config = ConfigDict(populate_by_name=True)

    exchange_name: str = Field(..., alias="exchangeName", description="거래소 (binance, gate.io 등)")
    api_key: str = Field(..., alias="apiKey", min_length=1, description="API 키")
    api_secret: str = Field(..., alias="apiSecret", min_length=1, description="API 시크릿")
    api_passphrase: str | None = Field(
        default=None, alias="apiPassphrase", description="passphrase (Bitstamp는 Customer ID)"
    )
