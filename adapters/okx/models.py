"""
OKX v5 응답 -> 공통 모델 변환

응답 구조: {"code": "0", "msg": "", "data": [...]}
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

EXCHANGE = "okx"

ORDER_STATUS: dict[str, OrderStatus] = {
    "LIVE": OrderStatus.OPEN,
    "PARTIALLY_FILLED": OrderStatus.OPEN,
    "FILLED": OrderStatus.CLOSED,
    "CANCELED": OrderStatus.CANCELLED,
    "MMP_CANCELED": OrderStatus.CANCELLED,
}

# 입금 상태 ("1":입금 완료(출금 제한), "2":성공, 그 외 대기)
DEPOSIT_STATUS: dict[str, TransferStatus] = {
    "1": TransferStatus.COMPLETED,
    "2": TransferStatus.COMPLETED,
}

# 출금 상태 ("2":성공, "-1":실패, "-2":취소, 그 외 진행 중)
WITHDRAW_STATUS: dict[str, TransferStatus] = {
    "2": TransferStatus.COMPLETED,
    "-1": TransferStatus.FAILED,
    "-2": TransferStatus.FAILED,
}

ERROR_CODES = {
    "50001": (ServerError, "Service temporarily unavailable"),
    "50011": (RateLimitError, "Rate limit reached"),
    "50102": (ValidationError, "Request timestamp expired"),
    "50105": (AuthenticationError, "Invalid API passphrase"),
    "50110": (PermissionDeniedError, "Request IP is not whitelisted"),
    "50111": (AuthenticationError, "Invalid API key"),
    "50113": (AuthenticationError, "Invalid signature"),
    "50114": (AuthenticationError, "Invalid authorization"),
    "50120": (PermissionDeniedError, "API key lacks the required permission"),
    "51000": (ValidationError, "Invalid request parameters"),
}


def parse_fill(data: dict[str, Any]) -> Trade:
    """OKX 체결 -> Trade 모델

    OKX GET /api/v5/trade/fills-history 응답 항목 예시:
    {
        "instType": "SPOT",
        "instId": "BTC-USDT",
        "tradeId": "123",
        "ordId": "312269865356374016",
        "billId": "329371294213660672",
        "fillPx": "30000",
        "fillSz": "0.01",
        "side": "buy",
        "execType": "T",
        "fee": "-0.00001",
        "feeCcy": "BTC",
        "ts": "1597026383085"
    }

    fee는 음수(차감)로 내려오므로 절대값 사용. execType M이면 maker.
    """
    require_fields(data, ("tradeId", "instId", "side", "fillPx", "fillSz", "ts"), EXCHANGE, "trade")
    exec_type = data.get("execType")
    return Trade(
        id=str(data["tradeId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["instId"]),
        side=to_side(data["side"], EXCHANGE),
        price=to_decimal(data["fillPx"]),
        quantity=to_decimal(data["fillSz"]),
        fee=abs(to_decimal(data.get("fee"))),
        fee_currency=data.get("feeCcy") or None,
        timestamp=to_timestamp(data["ts"], EXCHANGE),
        order_id=data.get("ordId") or None,
        role=to_role(exec_type == "M") if exec_type in ("M", "T") else None,
    )


def parse_balances(data: list[dict[str, Any]]) -> list[Balance]:
    """OKX 계정 잔고 -> Balance 목록 (0 잔고 제외)

    OKX GET /api/v5/account/balance data 예시:
    [{"totalEq": "...", "details": [{"ccy": "USDT", "availBal": "100", "frozenBal": "5"}]}]
    """
    balances = []
    for account in data:
        for detail in account.get("details") or []:
            require_fields(detail, ("ccy",), EXCHANGE, "balance")
            balance = Balance(
                exchange=EXCHANGE,
                currency=detail["ccy"],
                free=to_decimal(detail.get("availBal")),
                locked=to_decimal(detail.get("frozenBal")),
            )
            if not balance.is_zero:
                balances.append(balance)
    return balances


def parse_order(data: dict[str, Any]) -> Order:
    """OKX 주문 -> Order 모델

    OKX GET /api/v5/trade/orders-history 응답 항목 예시:
    {
        "instId": "BTC-USDT",
        "ordId": "312269865356374016",
        "ordType": "limit",
        "side": "buy",
        "px": "30000",
        "sz": "0.01",
        "accFillSz": "0.01",
        "avgPx": "30000",
        "state": "filled",
        "cTime": "1597026383085"
    }
    """
    require_fields(data, ("ordId", "instId", "side", "state", "cTime"), EXCHANGE, "order")
    return Order(
        id=str(data["ordId"]),
        exchange=EXCHANGE,
        symbol=split_symbol(data["instId"]),
        side=to_side(data["side"], EXCHANGE),
        type=str(data.get("ordType", "")).lower(),
        status=map_status(ORDER_STATUS, data["state"], OrderStatus.OPEN),
        price=to_decimal(data.get("px") or data.get("avgPx")),
        quantity=to_decimal(data.get("sz")),
        filled=to_decimal(data.get("accFillSz")),
        timestamp=to_timestamp(data["cTime"], EXCHANGE),
    )


def parse_deposit(data: dict[str, Any]) -> Deposit:
    """OKX 입금 -> Deposit 모델

    OKX GET /api/v5/asset/deposit-history 응답 항목 예시:
    {
        "ccy": "USDT",
        "chain": "USDT-TRC20",
        "amt": "100",
        "to": "TN4hGjVXMzy2Xe...",
        "txId": "b4c1c...",
        "state": "2",
        "depId": "88165462",
        "ts": "1655251200000"
    }
    """
    require_fields(data, ("depId", "ccy", "amt", "ts"), EXCHANGE, "deposit")
    return Deposit(
        id=str(data["depId"]),
        exchange=EXCHANGE,
        currency=data["ccy"],
        amount=to_decimal(data["amt"]),
        address=data.get("to") or None,
        tx_id=data.get("txId") or None,
        status=map_status(DEPOSIT_STATUS, str(data.get("state")), TransferStatus.PENDING),
        timestamp=to_timestamp(data["ts"], EXCHANGE),
        network=data.get("chain") or None,
    )


def parse_withdrawal(data: dict[str, Any]) -> Withdrawal:
    """OKX 출금 -> Withdrawal 모델

    OKX GET /api/v5/asset/withdrawal-history 응답 항목 예시:
    {
        "ccy": "ETH",
        "chain": "ETH-Ethereum",
        "amt": "0.1",
        "fee": "0.00096",
        "to": "0xa30d1fab0e1a...",
        "txId": "0x62477bac6509...",
        "state": "2",
        "wdId": "58255301",
        "ts": "1655251200000"
    }
    """
    require_fields(data, ("wdId", "ccy", "amt", "ts"), EXCHANGE, "withdrawal")
    return Withdrawal(
        id=str(data["wdId"]),
        exchange=EXCHANGE,
        currency=data["ccy"],
        amount=to_decimal(data["amt"]),
        address=data.get("to") or None,
        tx_id=data.get("txId") or None,
        status=map_status(WITHDRAW_STATUS, str(data.get("state")), TransferStatus.PENDING),
        timestamp=to_timestamp(data["ts"], EXCHANGE),
        fee=to_decimal(data.get("fee")),
        network=data.get("chain") or None,
        memo=data.get("tag") or data.get("memo") or None,
    )
