"""
Binance API 응답 -> 공통 모델 변환

Binance Spot / USDT-M Futures / Wallet(sapi) 응답을 adapters.models의
표준 모델로 변환. 모든 금액/수량은 문자열에서 Decimal로 변환.
"""

from typing import Any

from adapters.errors import AuthenticationError, PermissionDeniedError, RateLimitError, ValidationError
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

EXCHANGE = "binance"

# 주문 상태 → 정규 상태
ORDER_STATUS: dict[str, OrderStatus] = {
    "NEW": OrderStatus.OPEN,
    "PARTIALLY_FILLED": OrderStatus.OPEN,
    "PENDING_NEW": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELED": OrderStatus.CANCELLED,
    "PENDING_CANCEL": OrderStatus.CANCELLED,
    "REJECTED": OrderStatus.CANCELLED,
    "EXPIRED": OrderStatus.EXPIRED,
    "EXPIRED_IN_MATCH": OrderStatus.EXPIRED,
}

# 입금 상태 (0:pending, 6:credited, 1:success, 7:wrong deposit, 8:waiting confirm, 2:rejected)
DEPOSIT_STATUS: dict[int, TransferStatus] = {
    0: TransferStatus.PENDING,
    8: TransferStatus.PENDING,
    1: TransferStatus.COMPLETED,
    6: TransferStatus.COMPLETED,
    2: TransferStatus.FAILED,
    7: TransferStatus.FAILED,
}

# 출금 상태 (0:email sent, 1:cancelled, 2:awaiting, 3:rejected, 4:processing, 5:failure, 6:completed)
WITHDRAW_STATUS: dict[int, TransferStatus] = {
    0: TransferStatus.PENDING,
    2: TransferStatus.PENDING,
    4: TransferStatus.PENDING,
    6: TransferStatus.COMPLETED,
    1: TransferStatus.FAILED,
    3: TransferStatus.FAILED,
    5: TransferStatus.FAILED,
}

# 거래소 에러 코드 → 분류
ERROR_CODES = {
    -1002: (PermissionDeniedError, "Unauthorized request"),
    -1003: (RateLimitError, "Too many requests"),
    -1015: (RateLimitError, "Too many orders"),
    -1021: (ValidationError, "Timestamp outside of recvWindow"),
    -1022: (AuthenticationError, "Invalid signature"),
    -1100: (ValidationError, "Illegal characters in parameter"),
    -1102: (ValidationError, "Mandatory parameter missing"),
    -1121: (ValidationError, "Invalid symbol"),
    -1127: (ValidationError, "Lookup interval is too big"),
    -2014: (AuthenticationError, "API key format invalid"),
    -2015: (AuthenticationError, "Invalid API key, IP, or permissions"),
}


def _int_status(value: Any) -> int | None:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_spot_trade(data: dict[str, Any]) -> Trade:
    """Binance 현물 체결 -> Trade 모델

    Binance GET /api/v3/myTrades 응답 항목 예시:
    {
        "symbol": "BTCUSDT",
        "id": 28457,
        "orderId": 100234,
        "price": "4.00000100",
        "qty": "12.00000000",
        "quoteQty": "48.000012",
        "commission": "10.10000000",
        "commissionAsset": "BNB",
        "time": 1499865549590,
        "isBuyer": true,
        "isMaker": false,
        "isBestMatch": true
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
        fee_currency=data.get("commissionAsset"),
        timestamp=to_timestamp(data["time"], EXCHANGE),
        order_id=str(data["orderId"]) if data.get("orderId") is not None else None,
        role=to_role(data.get("isMaker")),
        market=MarketType.SPOT,
    )


def parse_futures_trade(data: dict[str, Any]) -> Trade:
    """Binance USDT-M 선물 체결 -> Trade 모델

    Binance GET /fapi/v1/userTrades 응답 항목 예시:
    {
        "symbol": "XRPUSDT",
        "id": 1234567890,
        "orderId": 8886774,
        "side": "BUY",
        "price": "0.5123",
        "qty": "100",
        "realizedPnl": "0",
        "marginAsset": "USDT",
        "quoteQty": "51.23",
        "commission": "0.02049200",
        "commissionAsset": "USDT",
        "time": 1568879465651,
        "positionSide": "LONG",
        "maker": false,
        "buyer": true
    }
    """
    require_fields(data, ("id", "symbol", "side", "price", "qty", "time"), EXCHANGE, "trade")
    return Trade(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["qty"]),
        fee=to_decimal(data.get("commission")),
        fee_currency=data.get("commissionAsset"),
        timestamp=to_timestamp(data["time"], EXCHANGE),
        order_id=str(data["orderId"]) if data.get("orderId") is not None else None,
        role=to_role(data.get("maker")),
        market=MarketType.FUTURES,
    )


def parse_balances(data: dict[str, Any]) -> list[Balance]:
    """Binance 계정 잔고 -> Balance 목록 (0 잔고 제외)

    Binance GET /api/v3/account 응답 예시:
    {
        "makerCommission": 15,
        "canTrade": true,
        "balances": [
            {"asset": "BTC", "free": "4723846.89208129", "locked": "0.00000000"},
            {"asset": "LTC", "free": "0.00000000", "locked": "0.00000000"}
        ]
    }
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
    """Binance 주문 -> Order 모델

    Binance GET /api/v3/allOrders 응답 항목 예시:
    {
        "symbol": "LTCBTC",
        "orderId": 1,
        "price": "0.1",
        "origQty": "1.0",
        "executedQty": "0.0",
        "status": "NEW",
        "type": "LIMIT",
        "side": "BUY",
        "time": 1499827319559
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
    """Binance 입금 -> Deposit 모델

    Binance GET /sapi/v1/capital/deposit/hisrec 응답 항목 예시:
    {
        "id": "769800519366885376",
        "amount": "0.001",
        "coin": "BNB",
        "network": "BNB",
        "status": 1,
        "address": "bnb136ns6lfw4zs5hg4n85vdthaad7hq5m4gtkgf23",
        "addressTag": "101764890",
        "txId": "98A3EA560C6B3336D348B6C83F0F95ECE4F1F5919E94BD006E5BF3BF264FACFC",
        "insertTime": 1661493146000
    }
    """
    require_fields(data, ("id", "coin", "amount", "insertTime"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["id"]),
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
    """Binance 출금 -> Withdrawal 모델

    Binance GET /sapi/v1/capital/withdraw/history 응답 항목 예시:
    {
        "id": "b6ae22b3aa844210a7041aee7589627c",
        "amount": "8.91000000",
        "transactionFee": "0.004",
        "coin": "USDT",
        "status": 6,
        "address": "0x94df8b352de7f46f64b01d3666bf6e936e44ce60",
        "txId": "0xb5ef8c13b968a406cc62a93a8bd80f9e9a906ef1b3fcf20a2e48573c17659268",
        "applyTime": "2019-10-12 11:12:02",
        "network": "ETH"
    }

    applyTime은 UTC 문자열 ("YYYY-MM-DD HH:MM:SS").
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
