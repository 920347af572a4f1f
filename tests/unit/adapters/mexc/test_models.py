"""
MEXC 응답 변환 테스트
"""

from decimal import Decimal

import pytest

from adapters.errors import ValidationError
from adapters.mexc.models import (
    parse_balances,
    parse_deposit,
    parse_order,
    parse_trade,
    parse_withdrawal,
)
from core.types import OrderStatus, TradeRole, TradeSide, TransferStatus


class TestParseTrade:

    @pytest.fixture
    def trade_data(self) -> dict:
        return {
            "symbol": "MXUSDT",
            "id": "fad2af9e942049b6adbda1a271f990c6",
            "orderId": "bb41e5663e124046bd9497a3f5692f39",
            "price": "3.1",
            "qty": "10",
            "quoteQty": "31",
            "commission": "0.0031",
            "commissionAsset": "USDT",
            "time": 1651302920000,
            "isBuyer": False,
            "isMaker": True,
        }

    def test_fields(self, trade_data: dict) -> None:
        trade = parse_trade(trade_data)

        assert trade.id == "fad2af9e942049b6adbda1a271f990c6"
        assert trade.symbol == "MX/USDT"
        assert trade.side == TradeSide.SELL
        assert trade.role == TradeRole.MAKER
        assert trade.notional == Decimal("31.0")

    def test_missing_is_buyer(self, trade_data: dict) -> None:
        del trade_data["isBuyer"]
        with pytest.raises(ValidationError):
            parse_trade(trade_data)


class TestParseBalances:

    def test_excludes_zero(self) -> None:
        balances = parse_balances({
            "balances": [
                {"asset": "MX", "free": "3", "locked": "1"},
                {"asset": "USDT", "free": "0", "locked": "0"},
            ]
        })

        assert len(balances) == 1
        assert balances[0].total == Decimal("4")


class TestParseOrderAndTransfers:

    def test_partially_canceled(self) -> None:
        order = parse_order({
            "symbol": "MXUSDT",
            "orderId": "1",
            "price": "3",
            "origQty": "10",
            "executedQty": "4",
            "status": "PARTIALLY_CANCELED",
            "type": "LIMIT",
            "side": "BUY",
            "time": 1651302920000,
        })

        assert order.status == OrderStatus.CANCELLED
        assert order.remaining == Decimal("6")

    def test_deposit_uses_tx_id(self) -> None:
        deposit = parse_deposit({
            "amount": "50000",
            "coin": "EOS",
            "network": "EOS",
            "status": 5,
            "address": "0x20b7",
            "txId": "c4d6d9f2",
            "insertTime": 1659513342000,
            "memo": "1234",
        })

        assert deposit.id == "c4d6d9f2"
        assert deposit.status == TransferStatus.COMPLETED

    def test_withdrawal_without_tx_id(self) -> None:
        withdrawal = parse_withdrawal({
            "id": "bb17a2d4",
            "txId": None,
            "coin": "EOS",
            "amount": "10",
            "status": 9,
            "transactionFee": "0.1",
            "applyTime": 1665300874000,
        })

        assert withdrawal.tx_id is None
        assert withdrawal.status == TransferStatus.FAILED
        assert withdrawal.fee == Decimal("0.1")
