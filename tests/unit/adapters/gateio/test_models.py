"""
Gate.io 응답 변환 테스트
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adapters.errors import ValidationError
from adapters.gateio.models import (
    parse_balances,
    parse_deposit,
    parse_order,
    parse_trade,
    parse_withdrawal,
)
from core.types import OrderStatus, TradeRole, TradeSide, TransferStatus


@pytest.fixture
def trade_data() -> dict:
    return {
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
        "fee_currency": "ETH",
    }


class TestParseTrade:

    def test_fields(self, trade_data: dict) -> None:
        trade = parse_trade(trade_data)

        assert trade.id == "1232893232"
        assert trade.symbol == "ETH/BTC"
        assert trade.side == TradeSide.SELL
        assert trade.role == TradeRole.TAKER
        assert trade.quantity == Decimal("0.15")
        assert trade.order_id == "4128442423"
        assert trade.timestamp == datetime(2019, 1, 20, 16, 0, 0, 123456, tzinfo=timezone.utc)

    def test_seconds_fallback(self, trade_data: dict) -> None:
        del trade_data["create_time_ms"]
        trade = parse_trade(trade_data)
        assert trade.timestamp == datetime(2019, 1, 20, 16, 0, 0, tzinfo=timezone.utc)

    def test_missing_pair(self, trade_data: dict) -> None:
        del trade_data["currency_pair"]
        with pytest.raises(ValidationError):
            parse_trade(trade_data)


class TestParseBalances:

    def test_available_and_locked(self) -> None:
        balances = parse_balances([
            {"currency": "ETH", "available": "968.8", "locked": "1.2"},
            {"currency": "GT", "available": "0", "locked": "0"},
        ])

        assert [b.currency for b in balances] == ["ETH"]
        assert balances[0].total == Decimal("970.0")


class TestParseOrderAndTransfers:

    def test_order_filled_from_left(self) -> None:
        order = parse_order({
            "id": "12332324",
            "create_time_ms": "1548000000123",
            "status": "closed",
            "currency_pair": "ETH_BTC",
            "type": "limit",
            "side": "buy",
            "amount": "1",
            "price": "5.00032",
            "left": "0.25",
        })

        assert order.status == OrderStatus.CLOSED
        assert order.filled == Decimal("0.75")
        assert order.remaining == Decimal("0.25")

    def test_deposit_done(self) -> None:
        deposit = parse_deposit({
            "id": "210496",
            "timestamp": "1542000000",
            "currency": "USDT",
            "address": "1Hkx",
            "txid": "1289",
            "amount": "222.61",
            "memo": "",
            "status": "DONE",
            "chain": "TRX",
        })

        assert deposit.status == TransferStatus.COMPLETED
        assert deposit.memo is None

    def test_withdrawal_cancel(self) -> None:
        withdrawal = parse_withdrawal({
            "id": "w1",
            "timestamp": "1542000000",
            "currency": "USDT",
            "amount": "10",
            "fee": "1",
            "status": "CANCEL",
        })

        assert withdrawal.status == TransferStatus.FAILED
        assert withdrawal.fee == Decimal("1")
