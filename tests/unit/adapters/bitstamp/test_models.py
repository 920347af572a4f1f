"""
Bitstamp 응답 변환 테스트

user_transactions 원장 항목은 type으로 거래/입금/출금을 구분.
"""

from decimal import Decimal

import pytest

from adapters.bitstamp.models import (
    is_deposit,
    is_trade,
    is_withdrawal,
    parse_balances,
    parse_deposit,
    parse_open_order,
    parse_trade,
    parse_withdrawal,
)
from adapters.errors import ValidationError
from core.types import OrderStatus, TradeSide, TransferStatus


@pytest.fixture
def trade_tx() -> dict:
    return {
        "id": 258001,
        "datetime": "2024-01-15 10:30:00.123456",
        "type": "2",
        "fee": "1.50",
        "order_id": 1473920,
        "btc": "0.01000000",
        "usd": "-300.00",
        "btc_usd": 30000.0,
    }


class TestTransactionType:

    def test_classification(self, trade_tx: dict) -> None:
        assert is_trade(trade_tx)
        assert not is_deposit(trade_tx)
        assert is_deposit({"type": 0})
        assert is_withdrawal({"type": "1"})


class TestParseTrade:

    def test_buy(self, trade_tx: dict) -> None:
        trade = parse_trade(trade_tx)

        assert trade.id == "258001"
        assert trade.symbol == "BTC/USD"
        assert trade.side == TradeSide.BUY
        assert trade.price == Decimal("30000.0")
        assert trade.quantity == Decimal("0.01")
        assert trade.fee == Decimal("1.50")
        assert trade.fee_currency == "USD"
        assert trade.order_id == "1473920"

    def test_sell(self, trade_tx: dict) -> None:
        trade_tx["btc"] = "-0.01000000"
        trade_tx["usd"] = "300.00"
        trade = parse_trade(trade_tx)

        assert trade.side == TradeSide.SELL
        assert trade.quantity == Decimal("0.01")

    def test_missing_pair_price(self, trade_tx: dict) -> None:
        del trade_tx["btc_usd"]
        with pytest.raises(ValidationError):
            parse_trade(trade_tx)


class TestParseBalances:

    def test_available_plus_reserved(self) -> None:
        balances = parse_balances({
            "btc_available": "0.50000000",
            "btc_balance": "0.60000000",
            "btc_reserved": "0.10000000",
            "usd_available": "0.00",
            "usd_balance": "0.00",
            "usd_reserved": "0.00",
            "btcusd_fee": "0.500",
        })

        assert len(balances) == 1
        btc = balances[0]
        assert btc.currency == "BTC"
        assert btc.free == Decimal("0.5")
        assert btc.locked == Decimal("0.1")
        assert btc.total == Decimal("0.6")

    def test_non_object(self) -> None:
        with pytest.raises(ValidationError):
            parse_balances([])


class TestParseTransfers:

    def test_deposit(self) -> None:
        deposit = parse_deposit({
            "id": 1,
            "datetime": "2024-01-15 10:30:00",
            "type": "0",
            "fee": "0.00",
            "btc": "0.5",
            "usd": "0.0",
        })

        assert deposit.currency == "BTC"
        assert deposit.amount == Decimal("0.5")
        assert deposit.status == TransferStatus.COMPLETED

    def test_withdrawal_amount_is_positive(self) -> None:
        withdrawal = parse_withdrawal({
            "id": 2,
            "datetime": "2024-01-15 10:30:00",
            "type": "1",
            "fee": "0.0005",
            "btc": "-0.2",
        })

        assert withdrawal.amount == Decimal("0.2")
        assert withdrawal.fee == Decimal("0.0005")

    def test_transfer_without_amount(self) -> None:
        with pytest.raises(ValidationError):
            parse_deposit({"id": 3, "datetime": "2024-01-15 10:30:00", "type": "0", "usd": "0"})


class TestParseOpenOrder:

    def test_filled_from_amount_at_create(self) -> None:
        order = parse_open_order({
            "id": "1473920",
            "datetime": "2024-01-15 10:30:00",
            "type": "1",
            "price": "30000.00",
            "amount": "0.01000000",
            "amount_at_create": "0.02000000",
            "currency_pair": "BTC/USD",
        })

        assert order.side == TradeSide.SELL
        assert order.status == OrderStatus.OPEN
        assert order.filled == Decimal("0.01")
