"""
BingX 응답 -> 공통 모델 변환

응답 구조: {"code": 0, "msg": "", "data": {...}}
심볼 형식: BTC-USDT
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
from core.types import MarketType, OrderStatus, TradeSide, TransferStatus

EXCHANGE = "bingx"

ORDER_STATUS: dict[str, OrderStatus] = {
    "NEW": OrderStatus.OPEN,
    "PENDING": OrderStatus.OPEN,
    "PARTIALLY_FILLED": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELED": OrderStatus.CANCELLED,
    "CANCELLED": OrderStatus.CANCELLED,
    "FAILED": OrderStatus.CANCELLED,
}

# 입금 상태 (0:진행 중, 6:체인 업로드, 1:완료)
DEPOSIT_STATUS: dict[int, TransferStatus] = {
    0: TransferStatus.PENDING,
    6: TransferStatus.PENDING,
    1: TransferStatus.COMPLETED,
}

# 출금 상태 (4:처리 중, 5:실패, 6:완료)
WITHDRAW_STATUS: dict[int, TransferStatus] = {
    4: TransferStatus.PENDING,
    5: TransferStatus.FAILED,
    6: TransferStatus.COMPLETED,
}

ERROR_CODES = {
    100001: (AuthenticationError, "Invalid signature"),
    100202: (AuthenticationError, "Invalid API key"),
    100413: (AuthenticationError, "Incorrect API key"),
    100419: (PermissionDeniedError, "Request IP is not whitelisted"),
    100400: (ValidationError, "Invalid request parameters"),
    100410: (RateLimitError, "Request frequency limit"),
    100429: (RateLimitError, "Rate limit exceeded"),
    100500: (ServerError, "Internal server error"),
}


def _int_status(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _first(data: dict[str, Any], *names: str) -> Any:
    """여러 이름 중 처음 값이 있는 필드 (엔드포인트마다 필드명이 다름)"""
    for name in names:
        value = data.get(name)
        if value is not None and value != "":
            return value
    return None


def parse_spot_trade(data: dict[str, Any]) -> Trade:
    """BingX 현물 체결 -> Trade 모델

    BingX GET /openApi/spot/v1/trade/myTrades data.fills 항목 예시:
    {
        "symbol": "BTC-USDT",
        "id": 36237072,
        "orderId": 1674069326895775744,
        "price": "30000.5",
        "qty": "0.001",
        "quoteQty": "30.0005",
        "commission": "-0.03",
        "commissionAsset": "USDT",
        "time": 1688112662412,
        "isBuyer": true,
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
        fee=abs(to_decimal(data.get("commission"))),
        fee_currency=data.get("commissionAsset") or None,
        timestamp=to_timestamp(data["time"], EXCHANGE),
        order_id=str(data["orderId"]) if data.get("orderId") is not None else None,
        role=to_role(data.get("isMaker")),
        market=MarketType.SPOT,
    )


def parse_futures_fill(data: dict[str, Any]) -> Trade:
    """BingX 무기한 선물 체결 -> Trade 모델

    allFillOrders / fillHistory 두 엔드포인트의 필드명이 달라
    후보 필드를 순서대로 확인.

    fillHistory 항목 예시:
    {
        "symbol": "BTC-USDT",
        "side": "BUY",
        "tradeId": "97244554",
        "orderId": "1732385339283357696",
        "price": "43210.5",
        "qty": "0.01",
        "commission": "-0.216",
        "commissionAsset": "USDT",
        "filledTm": "2023-12-06T12:00:00Z",
        "role": "taker"
    }
    """
    trade_id = _first(data, "tradeId", "id", "orderId")
    timestamp = _first(data, "filledTm", "filledTime", "time", "updateTime", "createTime")
    price = _first(data, "price", "avgPrice", "dealPrice")
    quantity = _first(data, "qty", "volume", "executedQty", "dealVol")
    resolved = {"tradeId": trade_id, "filledTm": timestamp, "price": price, "qty": quantity}
    require_fields(resolved, tuple(resolved), EXCHANGE, "futures fill")
    require_fields(data, ("symbol", "side"), EXCHANGE, "futures fill")

    return Trade(
        id=str(trade_id),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(price),
        quantity=abs(to_decimal(quantity)),
        fee=abs(to_decimal(_first(data, "commission", "fee"))),
        fee_currency=_first(data, "commissionAsset", "currency", "feeAsset"),
        timestamp=to_timestamp(timestamp, EXCHANGE),
        order_id=str(data["orderId"]) if data.get("orderId") is not None else None,
        role=to_role(data.get("role")),
        market=MarketType.FUTURES,
    )


def extract_fill_list(data: Any) -> list[dict[str, Any]]:
    """선물 체결 응답에서 목록 추출 (엔드포인트별 키가 다름)"""
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("fill_orders", "fill_history_orders", "orders", "fills", "list"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def parse_balances(data: dict[str, Any]) -> list[Balance]:
    """BingX 현물 잔고 -> Balance 목록 (0 잔고 제외)

    BingX GET /openApi/spot/v1/account/balance data 예시:
    {"balances": [{"asset": "USDT", "free": "100.5", "locked": "0"}]}
    """
    balances = []
    for item in data.get("balances") or []:
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
    """BingX 현물 주문 -> Order 모델

    BingX GET /openApi/spot/v1/trade/historyOrders data.orders 항목 예시:
    {
        "symbol": "BTC-USDT",
        "orderId": 1674069326895775744,
        "price": "30000",
        "origQty": "0.001",
        "executedQty": "0.001",
        "status": "FILLED",
        "type": "LIMIT",
        "side": "BUY",
        "time": 1688112662412
    }
    """
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
    """BingX 입금 -> Deposit 모델

    BingX GET /openApi/api/v3/capital/deposit/hisrec 항목 예시:
    {
        "amount": "100",
        "coin": "USDT",
        "network": "TRC20",
        "status": 1,
        "address": "T...",
        "addressTag": "",
        "txId": "abc...",
        "insertTime": 1688112662412
    }

    입금 ID가 없으면 txId 사용.
    """
    require_fields(data, ("coin", "amount", "insertTime"), EXCHANGE, "deposit")
    deposit_id = _first(data, "id", "txId")
    require_fields({"txId": deposit_id}, ("txId",), EXCHANGE, "deposit")
    return Deposit(
        id=str(deposit_id),
        exchange=EXCHANGE,
        currency=data["coin"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data.get("txId") or None,
        status=map_status(DEPOSIT_STATUS, _int_status(data.get("status")), TransferStatus.PENDING),
        timestamp=to_timestamp(data["insertTime"], EXCHANGE),
        network=data.get("network") or None,
        memo=data.get("addressTag") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """BingX 출금 -> Withdrawal 모델

    BingX GET /openApi/api/v3/capital/withdraw/history 항목 예시:
    {
        "id": "1234",
        "amount": "50",
        "transactionFee": "1",
        "coin": "USDT",
        "status": 6,
        "address": "T...",
        "txId": "abc...",
        "applyTime": "2023-06-30 08:11:02",
        "network": "TRC20"
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
        memo=data.get("addressTag") or None,
    )
