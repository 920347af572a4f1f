"""
MEXC Spot v3 응답 -> 공통 모델 변환

필드 구조는 Binance Spot v3와 거의 같지만 입출금 상태 코드가 다름.
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
from adapters.models import Balance, Deposit, Order, Trade, Withdrawal
from core.types import OrderStatus, TradeSide, TransferStatus

EXCHANGE = "mexc"

ORDER_STATUS: dict[str, OrderStatus] = {
    "NEW": OrderStatus.OPEN,
    "PARTIALLY_FILLED": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELED": OrderStatus.CANCELLED,
    "PARTIALLY_CANCELED": OrderStatus.CANCELLED,
}

# 입금 상태 (5:SUCCESS, 12:COMPLETED, 7:REJECTED, 8:REFUND, 10:INVALID, 그 외 진행 중)
DEPOSIT_STATUS: dict[int, TransferStatus] = {
    5: TransferStatus.COMPLETED,
    12: TransferStatus.COMPLETED,
    7: TransferStatus.FAILED,
    8: TransferStatus.FAILED,
    10: TransferStatus.FAILED,
}

# 출금 상태 (7:SUCCESS, 8:FAILED, 9:CANCEL, 그 외 진행 중)
WITHDRAW_STATUS: dict[int, TransferStatus] = {
    7: TransferStatus.COMPLETED,
    8: TransferStatus.FAILED,
    9: TransferStatus.FAILED,
}

ERROR_CODES = {
    10072: (AuthenticationError, "Invalid access key"),
    700001: (AuthenticationError, "API key format invalid"),
    700002: (AuthenticationError, "Invalid signature"),
    700003: (ValidationError, "Timestamp outside of recvWindow"),
    700004: (ValidationError, "Invalid request parameters"),
    700006: (PermissionDeniedError, "Request IP is not whitelisted"),
    700007: (PermissionDeniedError, "API key lacks the required permission"),
    730001: (ValidationError, "Trading pair not found"),
    429: (RateLimitError, "Rate limit exceeded"),
}


def _int_status(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_trade(data: dict[str, Any]) -> Trade:
    """MEXC 체결 -> Trade 모델

    MEXC GET /api/v3/myTrades 응답 항목 예시:
    {
        "symbol": "MXUSDT",
        "id": "fad2af9e942049b6adbda1a271f990c6",
        "orderId": "bb41e5663e124046bd9497a3f5692f39",
        "price": "3.1",
        "qty": "10",
        "quoteQty": "31",
        "commission": "0.0031",
        "commissionAsset": "USDT",
        "time": 1651302920000,
        "isBuyer": false,
        "isMaker": false
    }
    """
    require_fields(data, ("id", "symbol", "price", "qty", "time", "isBuyer"), EXCHANGE, "trade")
    return Trade(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=TradeSide.BUY if data["isBuyer"] else TradeSide.SELL,
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["qty"]),
        fee=to_decimal(data.get("commission")),
        fee_currency=data.get("commissionAsset") or None,
        timestamp=to_timestamp(data["time"], EXCHANGE),
        order_id=str(data["orderId"]) if data.get("orderId") is not None else None,
        role=to_role(data.get("isMaker")),
    )


def parse_balances(data: dict[str, Any]) -> list[Balance]:
    """MEXC 계정 잔고 -> Balance 목록 (0 잔고 제외)

    MEXC GET /api/v3/account 응답 예시:
    {"balances": [{"asset": "MX", "free": "3", "locked": "0"}]}
    """
    require_fields(data, ("balances",), EXCHANGE, "account")
    balances = []
    for item in data["balances"]:
        require_fields(item, ("asset",), EXCHANGE, "balance")
        balance = Balance(
            exchange=EXCHANGE,
            currency=item["asset"],
            free=to_decimal(item.get("free")),
            locked=to_decimal(item.get("locked")),
        )
        if not balance.is_zero:
            balances.append(balance)
    return balances


def parse_order(data: dict[str, Any]) -> Order:
    """MEXC 주문 -> Order 모델 (GET /api/v3/allOrders, Binance와 동일 필드)"""
    require_fields(data, ("orderId", "symbol", "side", "status", "time"), EXCHANGE, "order")
    return Order(
        id=str(data["orderId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("type", "")).lower(),
        status=map_status(ORDER_STATUS, data["status"], OrderStatus.OPEN),
        price=to_decimal(data.get("price")),
        quantity=to_decimal(data.get("origQty")),
        filled=to_decimal(data.get("executedQty")),
        timestamp=to_timestamp(data["time"], EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """MEXC 입금 -> Deposit 모델

    MEXC GET /api/v3/capital/deposit/hisrec 응답 항목 예시:
    {
        "amount": "50000",
        "coin": "EOS",
        "network": "EOS",
        "status": 5,
        "address": "0x20b7cf77db93d6ef2b6fa4a1c1bd3fd64c0c9b7c",
        "txId": "c4d6d9f2...",
        "insertTime": 1659513342000,
        "memo": "1234"
    }

    입금 ID가 없어 txId를 ID로 사용.
    """
    require_fields(data, ("txId", "coin", "amount", "insertTime"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["txId"]),
        exchange=EXCHANGE,
        currency=data["coin"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data["txId"],
        status=map_status(DEPOSIT_STATUS, _int_status(data.get("status")), TransferStatus.PENDING),
        timestamp=to_timestamp(data["insertTime"], EXCHANGE),
        network=data.get("network") or None,
        memo=data.get("memo") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """MEXC 출금 -> Withdrawal 모델

    MEXC GET /api/v3/capital/withdraw/history 응답 항목 예시:
    {
        "id": "bb17a2d452684f00a523c015d512a341",
        "txId": null,
        "coin": "EOS",
        "network": "EOS",
        "address": "zzqqqqqqqqqq",
        "amount": "10",
        "status": 7,
        "transactionFee": "0.1",
        "applyTime": 1665300874000,
        "memo": "MX10086"
    }
    """
    require_fields(data, ("id", "coin", "amount", "applyTime"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=data["coin"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data.get("txId") or None,
        status=map_status(WITHDRAW_STATUS, _int_status(data.get("status")), TransferStatus.PENDING),
        timestamp=to_timestamp(data["applyTime"], EXCHANGE),
        fee=to_decimal(data.get("transactionFee")),
        network=data.get("network") or None,
        memo=data.get("memo") or None,
    )
