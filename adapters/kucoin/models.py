"""
KuCoin 응답 -> 공통 모델 변환

응답 구조: {"code": "200000", "data": {...}}
페이지 응답 data: {"currentPage": 1, "pageSize": 50, "totalNum": 10, "totalPage": 1, "items": [...]}
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

EXCHANGE = "kucoin"

TRANSFER_STATUS: dict[str, TransferStatus] = {
    "SUCCESS": TransferStatus.COMPLETED,
    "FAILURE": TransferStatus.FAILED,
}

ERROR_CODES = {
    "400001": (AuthenticationError, "Missing authentication headers"),
    "400002": (ValidationError, "Request timestamp is invalid"),
    "400003": (AuthenticationError, "API key does not exist"),
    "400004": (AuthenticationError, "Invalid API passphrase"),
    "400005": (AuthenticationError, "Invalid signature"),
    "400006": (PermissionDeniedError, "Request IP is not whitelisted"),
    "400007": (PermissionDeniedError, "Access denied"),
    "411100": (PermissionDeniedError, "User account is frozen"),
    "400100": (ValidationError, "Invalid request parameters"),
    "429000": (RateLimitError, "Too many requests"),
    "500000": (ServerError, "Internal server error"),
}


def parse_fill(data: dict[str, Any]) -> Trade:
    """KuCoin 체결 -> Trade 모델

    KuCoin GET /api/v1/fills items 항목 예시:
    {
        "symbol": "BTC-USDT",
        "tradeId": "5c35c02709e4f67d5266954e",
        "orderId": "5c35c02703aa673ceec2a168",
        "side": "buy",
        "liquidity": "taker",
        "price": "0.083",
        "size": "0.8424304",
        "funds": "0.0699217232",
        "fee": "0",
        "feeCurrency": "USDT",
        "createdAt": 1547026472000
    }
    """
    require_fields(data, ("tradeId", "symbol", "side", "price", "size", "createdAt"), EXCHANGE, "trade")
    return Trade(
        id=str(data["tradeId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["size"]),
        fee=to_decimal(data.get("fee")),
        fee_currency=data.get("feeCurrency") or None,
        timestamp=to_timestamp(data["createdAt"], EXCHANGE),
        order_id=data.get("orderId") or None,
        role=to_role(data.get("liquidity")),
    )


def parse_accounts(rows: list[dict[str, Any]]) -> list[Balance]:
    """KuCoin 계정 목록 -> Balance 목록 (통화별 합산, 0 잔고 제외)

    KuCoin GET /api/v1/accounts 항목 예시:
    {"id": "5bd6e9286d99522a52e458de", "currency": "BTC", "type": "main",
     "balance": "237582.04299", "available": "237582.032", "holds": "0.01099"}

    main/trade 등 계정 유형별로 나뉘어 있어 통화 기준으로 합산.
    """
    totals: dict[str, tuple[Decimal, Decimal]] = {}
    for row in rows:
        require_fields(row, ("currency",), EXCHANGE, "account")
        free, locked = totals.get(row["currency"], (Decimal("0"), Decimal("0")))
        totals[row["currency"]] = (
            free + to_decimal(row.get("available")),
            locked + to_decimal(row.get("holds")),
        )

    balances = []
    for currency, (free, locked) in totals.items():
        balance = Balance(exchange=EXCHANGE, currency=currency, free=free, locked=locked)
        if not balance.is_zero:
            balances.append(balance)
    return balances


def _order_status(data: dict[str, Any]) -> OrderStatus:
    if data.get("isActive"):
        return OrderStatus.OPEN
    if data.get("cancelExist") and to_decimal(data.get("dealSize")) < to_decimal(data.get("size")):
        return OrderStatus.CANCELLED
    return OrderStatus.CLOSED


def parse_order(data: dict[str, Any]) -> Order:
    """KuCoin 주문 -> Order 모델

    KuCoin GET /api/v1/orders items 항목 예시:
    {
        "id": "5c35c02703aa673ceec2a168",
        "symbol": "BTC-USDT",
        "type": "limit",
        "side": "buy",
        "price": "10",
        "size": "2",
        "dealSize": "0",
        "isActive": false,
        "cancelExist": true,
        "createdAt": 1547026471000
    }

    상태 필드가 없어 isActive/cancelExist/dealSize로 판단.
    """
    require_fields(data, ("id", "symbol", "side", "createdAt"), EXCHANGE, "order")
    return Order(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["symbol"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("type", "")).lower(),
        status=_order_status(data),
        price=to_decimal(data.get("price")),
        quantity=to_decimal(data.get("size")),
        filled=to_decimal(data.get("dealSize")),
        timestamp=to_timestamp(data["createdAt"], EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """KuCoin 입금 -> Deposit 모델

    KuCoin GET /api/v1/deposits items 항목 예시:
    {
        "currency": "XRP",
        "chain": "xrp",
        "status": "SUCCESS",
        "address": "rNFugeoj3ZN8Wv6xhuLegUBBPXKCyWLRkB",
        "memo": "1919537769",
        "amount": "20.50000000",
        "fee": "0.00000000",
        "walletTxId": "2C24A6D5B3E7D5B6AA6534025B9B107AC910309A98825BF5581E25BEC94AD83B",
        "createdAt": 1666600519000
    }

    입금 ID가 없어 walletTxId를 ID로 사용.
    """
    require_fields(data, ("walletTxId", "currency", "amount", "createdAt"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["walletTxId"]),
        exchange=EXCHANGE,
        currency=data["currency"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data["walletTxId"],
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["createdAt"], EXCHANGE),
        network=data.get("chain") or None,
        memo=data.get("memo") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """KuCoin 출금 -> Withdrawal 모델

    KuCoin GET /api/v1/withdrawals items 항목 예시:
    {
        "id": "63564dbbd17bef00019371fb",
        "currency": "XRP",
        "chain": "xrp",
        "status": "SUCCESS",
        "address": "rNFugeoj3ZN8Wv6xhuLegUBBPXKCyWLRkB",
        "memo": "1919537769",
        "amount": "20.50000000",
        "fee": "0.50000000",
        "walletTxId": "2C24A6D5B3E7D5B6AA6534025B9B107AC910309A98825BF5581E25BEC94AD83B",
        "createdAt": 1666600519000
    }
    """
    require_fields(data, ("id", "currency", "amount", "createdAt"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=data["currency"],
        amount=to_decimal(data["amount"]),
        address=data.get("address") or None,
        tx_id=data.get("walletTxId") or None,
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["createdAt"], EXCHANGE),
        fee=to_decimal(data.get("fee")),
        network=data.get("chain") or None,
        memo=data.get("memo") or None,
    )
