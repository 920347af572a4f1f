"""
Gate.io v4 응답 -> 공통 모델 변환

에러 응답: HTTP 4xx + {"label": "INVALID_KEY", "message": "..."}
"""

from decimal import Decimal
from typing import Any

from adapters.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
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
from adapters.models import Balance, Deposit, Order, Trade, Withdrawal
from core.types import OrderStatus, TransferStatus

EXCHANGE = "gateio"

ORDER_STATUS: dict[str, OrderStatus] = {
    "OPEN": OrderStatus.OPEN,
    "CLOSED": OrderStatus.CLOSED,
    "CANCELLED": OrderStatus.CANCELLED,
}

# 입출금 상태 (DONE 완료, CANCEL/FAIL/INVALID 실패, 나머지 처리 중)
TRANSFER_STATUS: dict[str, TransferStatus] = {
    "DONE": TransferStatus.COMPLETED,
    "CANCEL": TransferStatus.FAILED,
    "FAIL": TransferStatus.FAILED,
    "INVALID": TransferStatus.FAILED,
}

ERROR_CODES = {
    "INVALID_KEY": (AuthenticationError, "Invalid API key"),
    "INVALID_SIGNATURE": (AuthenticationError, "Invalid signature"),
    "MISSING_REQUIRED_HEADER": (AuthenticationError, "Authentication header missing"),
    "REQUEST_EXPIRED": (ValidationError, "Request timestamp expired"),
    "FORBIDDEN": (PermissionDeniedError, "API key lacks the required permission"),
    "IP_FORBIDDEN": (PermissionDeniedError, "Request IP is not whitelisted"),
    "TOO_MANY_REQUESTS": (RateLimitError, "Too many requests"),
    "INVALID_PARAM_VALUE": (ValidationError, "Invalid parameter value"),
    "INVALID_CURRENCY_PAIR": (ValidationError, "Invalid currency pair"),
    "INVALID_CURRENCY": (ValidationError, "Invalid currency"),
    "SERVER_ERROR": (ServerError, "Exchange server error"),
}


def parse_trade(data: dict[str, Any]) -> Trade:
    """Gate.io 체결 -> Trade 모델

    Gate.io GET /spot/my_trades 응답 항목 예시:
    {
        "id": "1232893232",
        "create_time": "1548000000",
        "create_time_ms": "1548000000123.456",
        "currency_pair": "ETH_BTC",
        "side": "sell",
        "role": "taker",
        "amount": "0.15",
        "price": "0.03",
        "order_id": "4128442423",
        "fee": "0.0005",
        "fee_currency": "ETH"
    }
    """
    require_fields(data, ("id", "currency_pair", "side", "price", "amount"), EXCHANGE, "trade")
    return Trade(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["currency_pair"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["amount"]),
        fee=to_decimal(data.get("fee")),
        fee_currency=data.get("fee_currency") or None,
        timestamp=to_timestamp(data.get("create_time_ms") or data.get("create_time"), EXCHANGE),
        order_id=str(data["order_id"]) if data.get("order_id") else None,
        role=to_role(data.get("role")),
    )


def parse_balances(data: list[dict[str, Any]]) -> list[Balance]:
    """Gate.io 현물 계정 -> Balance 목록 (0 잔고 제외)

    Gate.io GET /spot/accounts 응답 예시:
    [{"currency": "ETH", "available": "968.8", "locked": "0"}]
    """
    balances = []
    for item in data:
        require_fields(item, ("currency",), EXCHANGE, "balance")
        balance = Balance(
            exchange=EXCHANGE,
            currency=item["currency"],
            free=to_decimal(item.get("available")),
            locked=to_decimal(item.get("locked")),
        )
        if not balance.is_zero:
            balances.append(balance)
    return balances


def parse_order(data: dict[str, Any]) -> Order:
    """Gate.io 주문 -> Order 모델

    Gate.io GET /spot/orders 응답 항목 예시:
    {
        "id": "12332324",
        "create_time_ms": "1548000000123",
        "status": "closed",
        "currency_pair": "ETH_BTC",
        "type": "limit",
        "side": "buy",
        "amount": "1",
        "price": "5.00032",
        "left": "0.5"
    }

    체결 수량 = amount - left
    """
    require_fields(data, ("id", "currency_pair", "side", "status"), EXCHANGE, "order")
    amount = to_decimal(data.get("amount"))
    left = to_decimal(data.get("left"))
    return Order(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["currency_pair"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("type", "")).lower(),
        status=map_status(ORDER_STATUS, data["status"], OrderStatus.OPEN),
        price=to_decimal(data.get("price")),
        quantity=amount,
        filled=max(amount - left, Decimal("0")),
        timestamp=to_timestamp(data.get("create_time_ms") or data.get("create_time"), EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """Gate.io 입금 -> Deposit 모델

    Gate.io GET /wallet/deposits 응답 항목 예시:
    {
        "id": "210496",
        "timestamp": "1542000000",
        "currency": "USDT",
        "address": "1HkxtBAMrA3tP5ENnYY2CZortjZvFDH5Cs",
        "txid": "128988928203223323290",
        "amount": "222.61",
        "memo": "",
        "status": "DONE",
        "chain": "TRX"
    }
    """
    require_fields(data, ("id", "currency", "amount", "timestamp"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=data["currency"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data.get("txid") or None,
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["timestamp"], EXCHANGE),
        network=data.get("chain") or None,
        memo=data.get("memo") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """Gate.io 출금 -> Withdrawal 모델

    /wallet/withdrawals 항목은 입금 항목에 fee 필드 추가.
    """
    require_fields(data, ("id", "currency", "amount", "timestamp"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=data["currency"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data.get("txid") or None,
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["timestamp"], EXCHANGE),
        fee=to_decimal(data.get("fee")),
        network=data.get("chain") or None,
        memo=data.get("memo") or None,
    )
