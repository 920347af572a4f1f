"""
Bitfinex v2 응답 -> 공통 모델 변환

v2 응답은 필드 이름이 없는 배열. 인덱스 상수로 접근하고
require_length로 길이를 먼저 검증.
"""

from decimal import Decimal
from typing import Any, Sequence

from adapters.errors import (
    AuthenticationError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from adapters.exchange.normalize import require_length, to_decimal, to_role, to_timestamp
from adapters.models import Balance, Deposit, Order, Trade, Withdrawal
from core.types import OrderStatus, TradeSide, TransferStatus

EXCHANGE = "bitfinex"

# Bitfinex 고유 통화 코드
_CURRENCY_ALIASES = {"UST": "USDT", "UDC": "USDC", "TSD": "TUSD", "DSH": "DASH", "IOT": "IOTA"}

# 에러 응답: ["error", 10100, "apikey: invalid"]
ERROR_CODES = {
    10020: (ValidationError, "Invalid request parameters"),
    10100: (AuthenticationError, "Invalid API key or signature"),
    10114: (AuthenticationError, "Nonce is too small"),
    11010: (RateLimitError, "Rate limit exceeded"),
    20060: (ServerError, "Exchange under maintenance"),
}

TRANSFER_STATUS: dict[str, TransferStatus] = {
    "COMPLETED": TransferStatus.COMPLETED,
    "CANCELED": TransferStatus.FAILED,
    "FAILED": TransferStatus.FAILED,
}


def normalize_currency(code: str) -> str:
    code = code.upper()
    return _CURRENCY_ALIASES.get(code, code)


def normalize_pair(pair: str) -> str:
    """Bitfinex 페어 → BASE/QUOTE

    Example:
        >>> normalize_pair("tBTCUSD")
        'BTC/USD'
        >>> normalize_pair("tTESTBTC:TESTUSD")
        'TESTBTC/TESTUSD'
    """
    text = pair[1:] if pair[:1] in ("t", "f") else pair
    if ":" in text:
        base, _, quote = text.partition(":")
    else:
        base, quote = text[:3], text[3:]
    return f"{normalize_currency(base)}/{normalize_currency(quote)}"


def join_pair(symbol: str) -> str:
    """BASE/QUOTE → Bitfinex 페어 (tBTCUSD, 4글자 이상이면 tBASE:QUOTE)"""
    reverse = {v: k for k, v in _CURRENCY_ALIASES.items()}
    base, _, quote = symbol.upper().partition("/")
    base, quote = reverse.get(base, base), reverse.get(quote, quote)
    if len(base) > 3 or len(quote) > 3:
        return f"t{base}:{quote}"
    return f"t{base}{quote}"


def parse_trade(row: Sequence[Any]) -> Trade:
    """Bitfinex 체결 -> Trade 모델

    POST /v2/auth/r/trades/hist 항목:
    [ID, PAIR, MTS, ORDER_ID, EXEC_AMOUNT, EXEC_PRICE, ORDER_TYPE,
     ORDER_PRICE, MAKER, FEE, FEE_CURRENCY, CID]

    EXEC_AMOUNT 부호가 방향 (양수 매수), MAKER 1이면 maker, -1이면 taker.
    FEE는 음수로 내려옴.
    """
    require_length(row, 11, EXCHANGE, "trade")
    amount = to_decimal(row[4])
    maker = row[8]
    return Trade(
        id=str(row[0]),
        exchange=EXCHANGE,
        symbol=normalize_pair(str(row[1])),
        side=TradeSide.BUY if amount > 0 else TradeSide.SELL,
        price=abs(to_decimal(row[5])),
        quantity=abs(amount),
        fee=abs(to_decimal(row[9])),
        fee_currency=normalize_currency(row[10]) if row[10] else None,
        timestamp=to_timestamp(row[2], EXCHANGE),
        order_id=str(row[3]) if row[3] is not None else None,
        role=to_role(maker == 1) if maker in (1, -1) else None,
    )


def parse_wallets(rows: Sequence[Sequence[Any]]) -> list[Balance]:
    """Bitfinex 지갑 -> Balance 목록 (통화별 합산, 0 잔고 제외)

    POST /v2/auth/r/wallets 항목:
    [WALLET_TYPE, CURRENCY, BALANCE, UNSETTLED_INTEREST, AVAILABLE_BALANCE, ...]

    AVAILABLE_BALANCE가 null이면 전액 사용 가능으로 간주.
    """
    totals: dict[str, tuple[Decimal, Decimal]] = {}
    for row in rows:
        require_length(row, 5, EXCHANGE, "wallet")
        currency = normalize_currency(str(row[1]))
        total = to_decimal(row[2])
        available = to_decimal(row[4]) if row[4] is not None else total
        free, locked = totals.get(currency, (Decimal("0"), Decimal("0")))
        totals[currency] = (free + available, locked + (total - available))

    balances = []
    for currency, (free, locked) in totals.items():
        balance = Balance(exchange=EXCHANGE, currency=currency, free=free, locked=locked)
        if not balance.is_zero:
            balances.append(balance)
    return balances


def _order_status(value: Any) -> OrderStatus:
    """ORDER_STATUS 문자열 ("EXECUTED @ 107.6(-0.2)", "PARTIALLY FILLED @ ...", "CANCELED")"""
    text = str(value or "").upper()
    if text.startswith("EXECUTED"):
        return OrderStatus.CLOSED
    if "CANCELED" in text:
        return OrderStatus.CANCELLED
    if text.startswith("EXPIRED"):
        return OrderStatus.EXPIRED
    return OrderStatus.OPEN


def parse_order(row: Sequence[Any]) -> Order:
    """Bitfinex 주문 -> Order 모델

    POST /v2/auth/r/orders/hist 항목:
    [ID, GID, CID, SYMBOL, MTS_CREATE, MTS_UPDATE, AMOUNT, AMOUNT_ORIG,
     ORDER_TYPE, TYPE_PREV, MTS_TIF, _, FLAGS, ORDER_STATUS, _, _,
     PRICE, PRICE_AVG, ...]

    AMOUNT는 잔여 수량, AMOUNT_ORIG 부호가 방향.
    """
    require_length(row, 18, EXCHANGE, "order")
    original = to_decimal(row[7])
    remaining = abs(to_decimal(row[6]))
    price = to_decimal(row[16])
    if price == 0:
        price = to_decimal(row[17])
    return Order(
        id=str(row[0]),
        exchange=EXCHANGE,
        symbol=normalize_pair(str(row[3])),
        side=TradeSide.BUY if original > 0 else TradeSide.SELL,
        type=str(row[8] or "").lower(),
        status=_order_status(row[13]),
        price=price,
        quantity=abs(original),
        filled=abs(original) - remaining,
        timestamp=to_timestamp(row[4], EXCHANGE),
    )


def _movement_status(value: Any) -> TransferStatus:
    return TRANSFER_STATUS.get(str(value or "").upper(), TransferStatus.PENDING)


def is_deposit(row: Sequence[Any]) -> bool:
    """입출금 내역 항목 중 입금 여부 (AMOUNT 양수)"""
    return to_decimal(row[12]) > 0


def parse_deposit(row: Sequence[Any]) -> Deposit:
    """Bitfinex 입금 -> Deposit 모델

    POST /v2/auth/r/movements/hist 항목:
    [ID, CURRENCY, CURRENCY_NAME, _, _, MTS_STARTED, MTS_UPDATED, _, _,
     STATUS, _, _, AMOUNT, FEES, _, _, DESTINATION_ADDRESS, _, _, _,
     TRANSACTION_ID, ...]
    """
    require_length(row, 21, EXCHANGE, "deposit")
    return Deposit(
        id=str(row[0]),
        exchange=EXCHANGE,
        currency=normalize_currency(str(row[1])),
        amount=abs(to_decimal(row[12])),
        address=row[16] or None,
        tx_id=row[20] or None,
        status=_movement_status(row[9]),
        timestamp=to_timestamp(row[5], EXCHANGE),
        network=row[2] or None,
    )


def parse_withdrawal(row: Sequence[Any]) -> Withdrawal:
    """Bitfinex 출금 -> Withdrawal 모델 (movements 항목, AMOUNT 음수)"""
    require_length(row, 21, EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(row[0]),
        exchange=EXCHANGE,
        currency=normalize_currency(str(row[1])),
        amount=abs(to_decimal(row[12])),
        address=row[16] or None,
        tx_id=row[20] or None,
        status=_movement_status(row[9]),
        timestamp=to_timestamp(row[5], EXCHANGE),
        fee=abs(to_decimal(row[13])),
        network=row[2] or None,
    )
