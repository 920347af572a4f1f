"""
Bitstamp v2 응답 -> 공통 모델 변환

잔고와 거래 내역은 통화 코드가 키에 들어가는 평탄한 구조
(예: "btc_available", "btc_usd").
"""

import re
from decimal import Decimal
from typing import Any

from adapters.errors import (
    AuthenticationError,
    PermissionDeniedError,
    RateLimitError,
    ValidationError,
)
from adapters.exchange.normalize import require_fields, split_symbol, to_decimal, to_timestamp
from adapters.models import Balance, Deposit, Order, Trade, Withdrawal
from core.types import OrderStatus, TradeSide, TransferStatus

EXCHANGE = "bitstamp"

# user_transactions type
TX_DEPOSIT = "0"
TX_WITHDRAWAL = "1"
TX_TRADE = "2"

_BALANCE_KEY = re.compile(r"^([a-z0-9]+)_(available|balance|reserved)$")
_PAIR_KEY = re.compile(r"^([a-z0-9]+)_([a-z0-9]+)$")
_TX_FIELDS = frozenset({"id", "datetime", "type", "fee", "order_id"})

ERROR_CODES = {
    "API0001": (PermissionDeniedError, "Request IP is not whitelisted"),
    "API0002": (PermissionDeniedError, "API key lacks the required permission"),
    "API0003": (PermissionDeniedError, "API key lacks the required permission"),
    "API0004": (ValidationError, "Invalid nonce"),
    "API0005": (AuthenticationError, "Invalid signature"),
    "API0006": (AuthenticationError, "API key not activated"),
    "API0011": (AuthenticationError, "Invalid API key"),
    "API0012": (RateLimitError, "Too many requests"),
}


def parse_balances(data: dict[str, Any]) -> list[Balance]:
    """Bitstamp 잔고 -> Balance 목록 (0 잔고 제외)

    Bitstamp POST /api/v2/balance/ 응답 예시:
    {
        "btc_available": "0.50000000",
        "btc_balance": "0.60000000",
        "btc_reserved": "0.10000000",
        "usd_available": "1000.00",
        "btcusd_fee": "0.500"
    }

    total은 available + reserved로 재계산 (balance 필드는 사용하지 않음).
    """
    if not isinstance(data, dict):
        raise ValidationError("Malformed balance payload: expected object", exchange=EXCHANGE)

    currencies = []
    for key in data:
        match = _BALANCE_KEY.match(key)
        if match and match.group(1) not in currencies:
            currencies.append(match.group(1))

    balances = []
    for currency in currencies:
        balance = Balance(
            exchange=EXCHANGE,
            currency=currency.upper(),
            free=to_decimal(data.get(f"{currency}_available")),
            locked=to_decimal(data.get(f"{currency}_reserved")),
        )
        if not balance.is_zero:
            balances.append(balance)
    return balances


def _pair_key(data: dict[str, Any]) -> str | None:
    """거래 항목의 가격 키 (예: btc_usd)"""
    for key, value in data.items():
        if key in _TX_FIELDS or value is None:
            continue
        if _PAIR_KEY.match(key):
            return key
    return None


def _movement(data: dict[str, Any]) -> tuple[str, Decimal]:
    """입출금 항목의 (통화, 수량) - 0이 아닌 단일 통화 키"""
    for key, value in data.items():
        if key in _TX_FIELDS or "_" in key or value in (None, ""):
            continue
        try:
            amount = to_decimal(value)
        except ValidationError:
            continue
        if amount != 0:
            return key.upper(), amount
    raise ValidationError("Malformed transfer payload: no currency amount", exchange=EXCHANGE)


def is_trade(data: dict[str, Any]) -> bool:
    return str(data.get("type")) == TX_TRADE


def is_deposit(data: dict[str, Any]) -> bool:
    return str(data.get("type")) == TX_DEPOSIT


def is_withdrawal(data: dict[str, Any]) -> bool:
    return str(data.get("type")) == TX_WITHDRAWAL


def parse_trade(data: dict[str, Any]) -> Trade:
    """Bitstamp 거래 내역(type 2) -> Trade 모델

    Bitstamp POST /api/v2/user_transactions/ 응답 항목 예시:
    {
        "id": 258001,
        "datetime": "2024-01-15 10:30:00.123456",
        "type": "2",
        "fee": "1.50",
        "order_id": 1473920,
        "btc": "0.01000000",
        "usd": "-300.00",
        "btc_usd": 30000.0
    }

    기준 통화 수량이 양수면 매수. 수수료는 견적 통화로 부과.
    """
    require_fields(data, ("id", "datetime"), EXCHANGE, "trade")
    pair = _pair_key(data)
    if pair is None:
        raise ValidationError("Malformed trade payload: missing pair price", exchange=EXCHANGE)

    base, quote = pair.split("_")
    base_amount = to_decimal(data.get(base))
    return Trade(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(f"{base}/{quote}"),
        side=TradeSide.BUY if base_amount > 0 else TradeSide.SELL,
        price=to_decimal(data[pair]),
        quantity=abs(base_amount),
        fee=to_decimal(data.get("fee")),
        fee_currency=quote.upper(),
        timestamp=to_timestamp(data["datetime"], EXCHANGE),
        order_id=str(data["order_id"]) if data.get("order_id") is not None else None,
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """Bitstamp 입금 내역(type 0) -> Deposit 모델

    원장 항목이므로 상태는 항상 completed. 주소/txid는 제공되지 않음.
    """
    require_fields(data, ("id", "datetime"), EXCHANGE, "deposit")
    currency, amount = _movement(data)
    return Deposit(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=currency,
        amount=abs(amount),
        address=None,
        tx_id=None,
        status=TransferStatus.COMPLETED,
        timestamp=to_timestamp(data["datetime"], EXCHANGE),
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """Bitstamp 출금 내역(type 1) -> Withdrawal 모델 (수량은 음수로 기록됨)"""
    require_fields(data, ("id", "datetime"), EXCHANGE, "withdrawal")
    currency, amount = _movement(data)
    return Withdrawal(
        id=str(data["id"]),
        exchange=EXCHANGE,
        currency=currency,
        amount=abs(amount),
        address=None,
        tx_id=None,
        status=TransferStatus.COMPLETED,
        timestamp=to_timestamp(data["datetime"], EXCHANGE),
        fee=to_decimal(data.get("fee")),
    )


def parse_open_order(data: dict[str, Any]) -> Order:
    """Bitstamp 미체결 주문 -> Order 모델

    Bitstamp POST /api/v2/open_orders/all/ 응답 항목 예시:
    {
        "id": "1473920",
        "datetime": "2024-01-15 10:30:00",
        "type": "0",
        "price": "30000.00",
        "amount": "0.01000000",
        "amount_at_create": "0.02000000",
        "currency_pair": "BTC/USD"
    }

    type 0 매수, 1 매도. amount는 잔여 수량.
    """
    require_fields(data, ("id", "datetime", "type", "currency_pair"), EXCHANGE, "order")
    remaining = to_decimal(data.get("amount"))
    quantity = to_decimal(data.get("amount_at_create"), default=str(remaining))
    return Order(
        id=str(data["id"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["currency_pair"]),
        side=TradeSide.BUY if str(data["type"]) == "0" else TradeSide.SELL,
        type="limit",
        status=OrderStatus.OPEN,
        price=to_decimal(data.get("price")),
        quantity=quantity,
        filled=max(quantity - remaining, Decimal("0")),
        timestamp=to_timestamp(data["datetime"], EXCHANGE),
    )
