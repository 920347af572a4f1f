"""
KuCoin 응답 변환 테스트
"""

from decimal import Decimal

import pytest

from adapters.errors import ValidationError
from adapters.kucoin.models import (
    parse_accounts,
    parse_deposit,
    parse_fill,
    parse_order,
    parse_withdrawal,
)
from core.types import OrderStatus, TradeRole, TradeSide, TransferStatus


@pytest.fixture
def fill_data() -> dict:
    return {
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
        "createdAt": 1547026472000,
    }


class TestParseFill:

    def test_fields(self, fill_data: dict) -> None:
        trade = parse_fill(fill_data)

        assert trade.id == "5c35c02709e4f67d5266954e"
        assert trade.symbol == "BTC/USDT"
        assert trade.side == TradeSide.BUY
        assert trade.role == TradeRole.TAKER
        assert trade.fee == Decimal("0")
        assert trade.fee_currency == "USDT"

    def test_missing_size(self, fill_data: dict) -> None:
        del fill_data["size"]
        with pytest.raises(ValidationError):
            parse_fill(fill_data)


class TestParseAccounts:

    def test_sums_account_types(self) -> None:
        balances = parse_accounts([
            {"currency": "BTC", "type": "main", "balance": "1", "available": "1", "holds": "0"},
            {"currency": "BTC", "type": "trade", "balance": "0.5", "available": "0.4", "holds": "0.1"},
            {"currency": "KCS", "type": "main", "balance": "0", "available": "0", "holds": "0"},
        ])

        assert len(balances) == 1
        btc = balances[0]
        assert btc.free == Decimal("1.4")
        assert btc.locked == Decimal("0.1")
        assert btc.total == Decimal("1.5")


class TestParseOrder:

    @pytest.mark.parametrize(
        "flags,expected",
        [
            ({"isActive": True, "cancelExist": False, "dealSize": "0"}, OrderStatus.OPEN),
            ({"isActive": False, "cancelExist": True, "dealSize": "1"}, OrderStatus.CANCELLED),
            ({"isActive": False, "cancelExist": False, "dealSize": "2"}, OrderStatus.CLOSED),
            ({"isActive": False, "cancelExist": True, "dealSize": "2"}, OrderStatus.CLOSED),
        ],
    )
    def test_status_from_flags(self, flags, expected) -> None:
        order = parse_order({
            "id": "5c35c02703aa673ceec2a168",
            "symbol": "BTC-USDT",
            "type": "limit",
            "side": "buy",
            "price": "10",
            "size": "2",
            "createdAt": 1547026471000,
            **flags,
        })
        assert order.status == expected


class TestParseTransfers:

    def test_deposit_uses_wallet_tx_id(self) -> None:
        deposit = parse_deposit({
            "currency": "XRP",
            "chain": "xrp",
            "status": "SUCCESS",
            "address": "rNFug",
            "memo": "1919537769",
            "amount": "20.5",
            "walletTxId": "2C24A6D5",
            "createdAt": 1666600519000,
        })

        assert deposit.id == "2C24A6D5"
        assert deposit.tx_id == "2C24A6D5"
        assert deposit.status == TransferStatus.COMPLETED
        assert deposit.memo == "1919537769"

    def test_withdrawal_processing(self) -> None:
        withdrawal = parse_withdrawal({
            "id": "63564dbb",
            "currency": "XRP",
            "status": "PROCESSING",
            "amount": "20.5",
            "fee": "0.5",
            "createdAt": 1666600519000,
        })

        assert withdrawal.status == TransferStatus.PENDING
        assert withdrawal.tx_id is None
