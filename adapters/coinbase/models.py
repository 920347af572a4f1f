"""
Coinbase Advanced Trade 응답 -> 공통 모델 변환
"""

from typing import Any

from adapters.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError,
)
from adapters.exchange.normalize import (
    map_status,
    require_fields,
    split_symbol,
    to_decimal,
    to_role,
    to_side,
    to_timestamp,
)
from adapters.models import Balance, Order, Trade
from core.types import OrderStatus

EXCHANGE = "coinbase"

ORDER_STATUS: dict[str, OrderStatus] = {
    "OPEN": OrderStatus.OPEN,
    "PENDING": OrderStatus.OPEN,
    "QUEUED": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELLED": OrderStatus.CANCELLED,
    "CANCEL_QUEUED": OrderStatus.CANCELLED,
    "FAILED": OrderStatus.CANCELLED,
    "EXPIRED": OrderStatus.EXPIRED,
}

# 에러 응답: {"error": "UNAUTHENTICATED", "message": "..."}
ERROR_CODES = {
    "UNAUTHENTICATED": (AuthenticationError, "Invalid API key or JWT"),
    "PERMISSION_DENIED": (PermissionDeniedError, "API key lacks the required permission"),
    "RESOURCE_EXHAUSTED": (RateLimitError, "Rate limit exceeded"),
    "INVALID_ARGUMENT": (ValidationError, "Invalid request argument"),
}


def parse_fill(data: dict[str, Any]) -> Trade:
    """Coinbase 체결 -> Trade 모델

    Coinbase GET /api/v3/brokerage/orders/historical/fills 응답 항목 예시:
    {
        "entry_id": "22222-2222222-22222222",
        "trade_id": "1111-11111-111111",
        "order_id": "0000-000000-000000",
        "trade_time": "2021-05-31T09:59:59Z",
        "trade_type": "FILL",
        "price": "10000.00",
        "size": "0.001",
        "commission": "1.25",
        "product_id": "BTC-USD",
        "liquidity_indicator": "MAKER",
        "side": "BUY"
    }

    수수료 통화는 견적 통화 (product_id의 뒤쪽).
    """
    require_fields(
        data,
        ("entry_id", "product_id", "side", "price", "size", "trade_time"),
        EXCHANGE,
        "trade",
    )
    symbol = split_symbol(data["product_id"])
    _, _, quote = symbol.partition("/")
    return Trade(
        id=str(data["entry_id"]),
        exchange=EXCHANGE,
        symbol=symbol,
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["size"]),
        fee=to_decimal(data.get("commission")),
        fee_currency=quote or None,
        timestamp=to_timestamp(data["trade_time"], EXCHANGE),
        order_id=data.get("order_id") or None,
        role=to_role(data.get("liquidity_indicator")),
    )


def parse_account(data: dict[str, Any]) -> Balance:
    """Coinbase 계정 -> Balance 모델

    {
        "uuid": "8bfc20d7-f7c6-4422-bf07-8243ca4169fe",
        "currency": "BTC",
        "available_balance": {"value": "1.23", "currency": "BTC"},
        "hold": {"value": "0.10", "currency": "BTC"}
    }
    """
    require_fields(data, ("currency",), EXCHANGE, "account")
    return Balance(
        exchange=EXCHANGE,
        currency=data["currency"],
        free=to_decimal((data.get("available_balance") or {}).get("value")),
        locked=to_decimal((data.get("hold") or {}).get("value")),
    )


def _configured_field(configuration: Any, name: str) -> Any:
    """order_configuration 하위 설정(limit_limit_gtc 등)에서 필드 검색"""
    if not isinstance(configuration, dict):
        return None
    for value in configuration.values():
        if isinstance(value, dict) and value.get(name) is not None:
            return value[name]
    return None


def parse_order(data: dict[str, Any]) -> Order:
    """Coinbase 주문 -> Order 모델

    Coinbase GET /api/v3/brokerage/orders/historical/batch 응답 항목 예시:
    {
        "order_id": "0000-000000-000000",
        "product_id": "BTC-USD",
        "side": "BUY",
        "status": "FILLED",
        "order_type": "LIMIT",
        "created_time": "2021-05-31T09:59:59Z",
        "filled_size": "0.001",
        "average_filled_price": "50000",
        "order_configuration": {
            "limit_limit_gtc": {"base_size": "0.001", "limit_price": "50000"}
        }
    }

    주문 수량은 order_configuration.base_size, 없으면 체결 수량.
    """
    require_fields(data, ("order_id", "product_id", "side", "status", "created_time"), EXCHANGE, "order")
    configuration = data.get("order_configuration")
    filled = to_decimal(data.get("filled_size"))
    quantity = _configured_field(configuration, "base_size")
    price = _configured_field(configuration, "limit_price") or data.get("average_filled_price")
    return Order(
        id=str(data["order_id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["product_id"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("order_type", "")).lower(),
        status=map_status(ORDER_STATUS, data["status"], OrderStatus.OPEN),
        price=to_decimal(price),
        quantity=to_decimal(quantity) if quantity is not None else filled,
        filled=filled,
        timestamp=to_timestamp(data["created_time"], EXCHANGE),
    )
