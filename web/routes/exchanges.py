"""
지원 거래소 라우트

GET /api/exchanges - 지원 거래소 목록 + passphrase 필요 여부
"""

from fastapi import APIRouter, Depends

from sync.registry import ExchangeRegistry
from web.dependencies import get_registry
from web.models.responses import ExchangeInfo, ExchangeListResponse

router = APIRouter(prefix="/api", tags=["Exchanges"])


@router.get("/exchanges", response_model=ExchangeListResponse)
async def list_exchanges(
    registry: ExchangeRegistry = Depends(get_registry),
) -> ExchangeListResponse:
    """지원 거래소 목록"""
    return ExchangeListResponse(
        exchanges=[
            ExchangeInfo(
                name=name,
                display_name=registry.display_name(name),
                requires_passphrase=registry.requires_passphrase(name),
            )
            for name in registry.supported_exchanges()
        ]
    )
