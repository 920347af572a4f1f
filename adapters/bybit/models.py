"""
Bybit V5 응답 -> 공통 모델 변환

V5 통합 응답 구조: {"retCode": 0, "retMsg": "OK", "result": {...}, "time": ...}
result 안의 list/rows 항목을 변환.
"""

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
from core.types import MarketType, OrderStatus, TransferStatus

EXCHANGE = "bybit"

ORDER_STATUS: dict[str, OrderStatus] = {
    "NEW": OrderStatus.OPEN,
    "PARTIALLYFILLED": OrderStatus.OPEN,
    "UNTRIGGERED": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELLED": OrderStatus.CANCELLED,
    "PARTIALLYFILLEDCANCELED": OrderStatus.CANCELLED,
    "REJECTED": OrderStatus.CANCELLED,
    "DEACTIVATED": OrderStatus.CANCELLED,
}

# 입금 상태 (3:success, 4:failed, 10012:credited, 그 외 진행 중)
DEPOSIT_STATUS: dict[int, TransferStatus] = {
    3: TransferStatus.COMPLETED,
    10012: TransferStatus.COMPLETED,
    4: TransferStatus.FAILED,
}

WITHDRAW_STATUS: dict[str, TransferStatus] = {
    "SUCCESS": TransferStatus.COMPLETED,
    "CANCELBYUSER": TransferStatus.FAILED,
    "REJECT": TransferStatus.FAILED,
    "FAIL": TransferStatus.FAILED,
}

ERROR_CODES = {
    10001: (ValidationError, "Request parameter error"),
    10002: (ValidationError, "Request timestamp outside of recv window"),
    10003: (AuthenticationError, "Invalid API key"),
    10004: (AuthenticationError, "Invalid signature"),
    10005: (PermissionDeniedError, "API key lacks the required permission"),
    10006: (RateLimitError, "Too many visits"),
    10010: (PermissionDeniedError, "Request IP is not whitelisted"),
    10016: (ServerError, "Internal server error"),
    33004: (AuthenticationError, "API key expired"),
}


def market_category(market: MarketType) -> str:
    """MarketType → V5 category 값"""
    return "linear" if market == MarketType.FUTURES else "spot"


def parse_execution(data: dict[str, Any], market: MarketType) -> Trade:
    """Bybit 체결 -> Trade 모델

    Bybit GET /v5/execution/list 응답 항목 예시:
    {
        "symbol": "BTCUSDT",
        "orderId": "1535178318245645568",
        "side": "Buy",
        "execId": "f2c7ea4b-1b0b-5fd4-9b69-2d5b0c3a0b2e",
        "execPrice": "30000.5",
        "execQty": "0.01",
        "execFee": "0.18",
        "feeCurrency": "USDT",
        "isMaker": false,
        "execTime": "1690000000000"
    }
    """
    require_fields(
        data,
        ("execId", "symbol", "side", "execPrice", "execQty", "execTime"),
        EXCHANGE,
        "trade",
    )
    return Trade(
        id=str(data["execId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["execPrice"]),
        quantity=to_decimal(data["execQty"]),
        fee=abs(to_decimal(data.get("execFee"))),
        fee_currency=data.get("feeCurrency") or None,
        timestamp=to_timestamp(data["execTime"], EXCHANGE),
        order_id=data.get("orderId") or None,
        role=to_role(data.get("isMaker")),
        market=market,
    )


def parse_wallet_balances(result: dict[str, Any]) -> list[Balance]:
    """Bybit 통합 계정 잔고 -> Balance 목록 (0 잔고 제외)

    Bybit GET /v5/account/wallet-balance result 예시:
    {
        "list": [{
            "accountType": "UNIFIED",
            "coin": [
                {"coin": "USDT", "walletBalance": "1000", "locked": "50"}
            ]
        }]
    }

    free = walletBalance - locked
    """
    balances = []
    for account in result.get("list") or []:
        for item in account.get("coin") or []:
            require_fields(item, ("coin",), EXCHANGE, "balance")
            total = to_decimal(item.get("walletBalance"))
            locked = to_decimal(item.get("locked"))
            balance = Balance(
                exchange=EXCHANGE,
                currency=item["coin"],
                free=total - locked,
                locked=locked,
            )
            if not balance.is_zero:
                balances.append(balance)
    return balances


def parse_order(data: dict[str, Any]) -> Order:
    """Bybit 주문 -> Order 모델

    Bybit GET /v5/order/history 응답 항목 예시:
    {
        "orderId": "1321003749386327552",
        "symbol": "ETHUSDT",
        "orderType": "Limit",
        "side": "Buy",
        "price": "1800",
        "qty": "0.1",
        "cumExecQty": "0.1",
        "orderStatus": "Filled",
        "createdTime": "1684738540559"
    }
    """
    require_fields(data, ("orderId", "symbol", "side", "orderStatus", "createdTime"), EXCHANGE, "order")
    return Order(
        id=str(data["orderId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("orderType", "")).lower(),
        status=map_status(ORDER_STATUS, data["orderStatus"], OrderStatus.OPEN),
        price=to_decimal(data.get("price")),
        quantity=to_decimal(data.get("qty")),
        filled=to_decimal(data.get("cumExecQty")),
        timestamp=to_timestamp(data["createdTime"], EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """Bybit 입금 -> Deposit 모델

    Bybit GET /v5/asset/deposit/query-record rows 항목 예시:
    {
        "id": "1234",
        "coin": "USDT",
        "chain": "ETH",
        "amount": "10000",
        "txID": "0x...",
        "status": 3,
        "toAddress": "0x...",
        "tag": "",
        "successAt": "1690000000000"
    }
    """
    require_fields(data, ("coin", "amount", "successAt"), EXCHANGE, "deposit")
    try:
        status_code = int(data.get("status"))
    except (TypeError, ValueError):
        status_code = None
    return Deposit(
        id=str(data.get("id") or data.get("txID")),
        exchange=EXCHANGE,
        currency=data["coin"],
        amount=to_decimal(data["amount"]),
        address=data.get("toAddress") or None,
        tx_id=data.get("txID") or None,
        status=map_status(DEPOSIT_STATUS, status_code, TransferStatus.PENDING),
        timestamp=to_timestamp(data["successAt"], EXCHANGE),
        network=data.get("chain") or None,
        memo=data.get("tag") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """Bybit 출금 -> Withdrawal 모델

    Bybit GET /v5/asset/withdraw/query-record rows 항목 예시:
    {
        "withdrawId": "10197",
        "coin": "USDT",
        "chain": "TRX",
        "amount": "20",
        "withdrawFee": "1",
        "txID": "...",
        "status": "success",
        "toAddress": "T...",
        "tag": "",
        "createTime": "1690000000000"
    }
    """
    require_fields(data, ("withdrawId", "coin", "amount", "createTime"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["withdrawId"]),
        exchange=EXCHANGE,
        currency=data["coin"],
        amount=to_decimal(data["amount"]),
        address=data.get("toAddress") or None,
        tx_id=data.get("txID") or None,
        status=map_status(WITHDRAW_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["createTime"], EXCHANGE),
        fee=to_decimal(data.get("withdrawFee")),
        network=data.get("chain") or None,
        memo=data.get("tag") or None,
    )
