"""
Kraken 응답 -> 공통 모델 변환

Kraken은 자산 코드에 X/Z 접두사를 붙임 (XXBT, ZUSD, XETH).
XBT는 BTC, XDG는 DOGE로 정규화.
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
from core.types import OrderStatus, TransferStatus

EXCHANGE = "kraken"

_ASSET_ALIASES = {"XBT": "BTC", "XDG": "DOGE"}

# 접두사를 떼면 안 되는 4글자 자산
_PLAIN_ASSETS = {"USDT", "USDC", "DAI", "TUSD", "PYUSD", "XTZ", "ZEC", "ZRX"}

ORDER_STATUS: dict[str, OrderStatus] = {
    "PENDING": OrderStatus.OPEN,
    "OPEN": OrderStatus.OPEN,
    "CLOSED": OrderStatus.CLOSED,
    "CANCELED": OrderStatus.CANCELLED,
    "EXPIRED": OrderStatus.EXPIRED,
}

TRANSFER_STATUS: dict[str, TransferStatus] = {
    "SUCCESS": TransferStatus.COMPLETED,
    "SETTLED": TransferStatus.COMPLETED,
    "FAILURE": TransferStatus.FAILED,
}

ERROR_CODES = {
    "EAPI:Invalid key": (AuthenticationError, "Invalid API key"),
    "EAPI:Invalid signature": (AuthenticationError, "Invalid signature"),
    "EAPI:Invalid nonce": (AuthenticationError, "Invalid nonce"),
    "EGeneral:Permission denied": (PermissionDeniedError, "API key lacks the required permission"),
    "EAPI:Rate limit exceeded": (RateLimitError, "Rate limit exceeded"),
    "EGeneral:Too many requests": (RateLimitError, "Too many requests"),
    "EService:Unavailable": (ServerError, "Service unavailable"),
    "EService:Busy": (ServerError, "Service busy"),
    "EGeneral:Invalid arguments": (ValidationError, "Invalid arguments"),
    "EQuery:Unknown asset pair": (ValidationError, "Unknown asset pair"),
}


def normalize_asset(asset: str) -> str:
    """Kraken 자산 코드 → 일반 코드

    Example:
        >>> normalize_asset("XXBT")
        'BTC'
        >>> normalize_asset("ZUSD")
        'USD'
    """
    code = asset.upper()
    # 스테이킹/보유 구분 접미사 (ETH.F, DOT.S)
    code = code.split(".")[0]
    if len(code) == 4 and code[0] in "XZ" and code not in _PLAIN_ASSETS:
        code = code[1:]
    return _ASSET_ALIASES.get(code, code)


def normalize_pair(pair: str) -> str:
    """Kraken 페어 → BASE/QUOTE

    Example:
        >>> normalize_pair("XXBTZUSD")
        'BTC/USD'
        >>> normalize_pair("SOLUSD")
        'SOL/USD'
    """
    text = pair.upper()
    if len(text) == 8 and text[0] == "X" and text[4] in "XZ":
        return f"{normalize_asset(text[:4])}/{normalize_asset(text[4:])}"

    symbol = split_symbol(text)
    base, _, quote = symbol.partition("/")
    if not quote:
        return symbol
    return f"{normalize_asset(base)}/{normalize_asset(quote)}"


def parse_trade(trade_id: str, data: dict[str, Any]) -> Trade:
    """Kraken 체결 -> Trade 모델

    Kraken POST /0/private/TradesHistory result.trades 값 예시:
    "TCWJEG-FL4SZ-3FKGH6": {
        "ordertxid": "OQCLML-BW3P3-BUCMWZ",
        "pair": "XXBTZUSD",
        "time": 1688667796.3578,
        "type": "buy",
        "ordertype": "limit",
        "price": "30010.00000",
        "cost": "600.20000",
        "fee": "0.96032",
        "vol": "0.02000000",
        "maker": true
    }

    수수료는 견적 통화 기준.
    """
    require_fields(data, ("pair", "time", "type", "price", "vol"), EXCHANGE, "trade")
    symbol = normalize_pair(data["pair"])
    _, _, quote = symbol.partition("/")
    return Trade(
        id=trade_id,
        exchange=EXCHANGE,
        symbol=symbol,
        side=to_side(data["type"], EXCHANGE),
        price=to_decimal(data["price"]),
        quantity=to_decimal(data["vol"]),
        fee=to_decimal(data.get("fee")),
        fee_currency=quote or None,
        timestamp=to_timestamp(data["time"], EXCHANGE),
        order_id=data.get("ordertxid") or None,
        role=to_role(data.get("maker")),
    )


def parse_balances(result: dict[str, Any]) -> list[Balance]:
    """Kraken 확장 잔고 -> Balance 목록 (0 잔고 제외)

    Kraken POST /0/private/BalanceEx result 예시:
    {
        "XXBT": {"balance": "1.2000000000", "hold_trade": "0.2000000000"},
        "ZUSD": {"balance": "100.0000", "hold_trade": "0.0000"}
    }
    """
    balances = []
    for asset, item in result.items():
        total = to_decimal(item.get("balance"))
        locked = to_decimal(item.get("hold_trade"))
        balance = Balance(
            exchange=EXCHANGE,
            currency=normalize_asset(asset),
            free=total - locked,
            locked=locked,
        )
        if not balance.is_zero:
            balances.append(balance)
    return balances


def parse_order(order_id: str, data: dict[str, Any]) -> Order:
    """Kraken 주문 -> Order 모델

    Kraken OpenOrders/ClosedOrders 값 예시:
    "OQCLML-BW3P3-BUCMWZ": {
        "status": "closed",
        "opentm": 1688666559.8974,
        "descr": {"pair": "XBTUSD", "type": "buy", "ordertype": "limit", "price": "30010.0"},
        "vol": "0.02000000",
        "vol_exec": "0.02000000",
        "price": "30010.0"
    }
    """
    require_fields(data, ("descr", "opentm", "vol"), EXCHANGE, "order")
    descr = data["descr"]
    require_fields(descr, ("pair", "type"), EXCHANGE, "order")
    price = data.get("price")
    if not price or to_decimal(price) == 0:
        price = descr.get("price")
    return Order(
        id=order_id,
        exchange=EXCHANGE,
        symbol=normalize_pair(descr["pair"]),
        side=to_side(descr["type"], EXCHANGE),
        type=str(descr.get("ordertype", "")).lower(),
        status=map_status(ORDER_STATUS, data.get("status", "open"), OrderStatus.OPEN),
        price=to_decimal(price),
        quantity=to_decimal(data["vol"]),
        filled=to_decimal(data.get("vol_exec")),
        timestamp=to_timestamp(data["opentm"], EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """Kraken 입금 -> Deposit 모델

    Kraken POST /0/private/DepositStatus 항목 예시:
    {
        "method": "Bitcoin",
        "asset": "XXBT",
        "refid": "FTQcuak-V6Za8qrWnhzTx67yYHz8Tg",
        "txid": "6544b41b607d8b2512baf801755a3a87b6890eacdb451be8a94059fb11f0a8d9",
        "info": "2Myd4eaAW96ojk38A2uDK4FbioCayvkEgVq",
        "amount": "0.78125000",
        "fee": "0.0000000000",
        "time": 1688992722,
        "status": "Success"
    }
    """
    require_fields(data, ("refid", "asset", "amount", "time"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["refid"]),
        exchange=EXCHANGE,
        currency=normalize_asset(data["asset"]),
        amount=to_decimal(data["amount"]),
        address=data.get("info") or None,
        tx_id=data.get("txid") or None,
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["time"], EXCHANGE),
        network=data.get("network") or data.get("method") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """Kraken 출금 -> Withdrawal 모델 (WithdrawStatus, 필드는 입금과 동일)"""
    require_fields(data, ("refid", "asset", "amount", "time"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["refid"]),
        exchange=EXCHANGE,
        currency=normalize_asset(data["asset"]),
        amount=to_decimal(data["amount"]),
        address=data.get("info") or None,
        tx_id=data.get("txid") or None,
        status=map_status(TRANSFER_STATUS, data.get("status"), TransferStatus.PENDING),
        timestamp=to_timestamp(data["time"], EXCHANGE),
        fee=to_decimal(data.get("fee")),
        network=data.get("network") or data.get("method") or None,
    )
