"""
Kraken 응답 변환 테스트
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adapters.errors import ValidationError
from adapters.kraken.models import (
    normalize_asset,
    normalize_pair,
    parse_balances,
    parse_deposit,
    parse_order,
    parse_trade,
    parse_withdrawal,
)
from core.types import OrderStatus, TradeRole, TradeSide, TransferStatus


class TestNormalize:

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("XXBT", "BTC"),
            ("ZUSD", "USD"),
            ("XETH", "ETH"),
            ("XXDG", "DOGE"),
            ("USDT", "USDT"),
            ("DOT.S", "DOT"),
            ("SOL", "SOL"),
        ],
    )
    def test_asset(self, raw, expected) -> None:
        assert normalize_asset(raw) == expected

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("XXBTZUSD", "BTC/USD"),
            ("XETHZEUR", "ETH/EUR"),
            ("XBTUSD", "BTC/USD"),
            ("SOLUSD", "SOL/USD"),
            ("ETHUSDT", "ETH/USDT"),
        ],
    )
    def test_pair(self, raw, expected) -> None:
        assert normalize_pair(raw) == expected


class TestParseTrade:

    @pytest.fixture
    def trade_data(self) -> dict:
        return {
            "ordertxid": "OQCLML-BW3P3-BUCMWZ",
            "pair": "XXBTZUSD",
            "time": 1688667796.3578,
            "type": "buy",
            "ordertype": "limit",
            "price": "30010.00000",
            "cost": "600.20000",
            "fee": "0.96032",
            "vol": "0.02000000",
            "maker": True,
        }

    def test_fields(self, trade_data: dict) -> None:
        trade = parse_trade("TCWJEG-FL4SZ-3FKGH6", trade_data)

        assert trade.id == "TCWJEG-FL4SZ-3FKGH6"
        assert trade.symbol == "BTC/USD"
        assert trade.side == TradeSide.BUY
        assert trade.fee == Decimal("0.96032")
        assert trade.fee_currency == "USD"
        assert trade.role == TradeRole.MAKER
        assert trade.order_id == "OQCLML-BW3P3-BUCMWZ"
        assert trade.timestamp == datetime(2023, 7, 6, 18, 23, 16, 357800, tzinfo=timezone.utc)

    def test_missing_vol(self, trade_data: dict) -> None:
        del trade_data["vol"]
        with pytest.raises(ValidationError):
            parse_trade("T1", trade_data)


class TestParseBalances:

    def test_balance_minus_hold(self) -> None:
        balances = parse_balances({
            "XXBT": {"balance": "1.2000000000", "hold_trade": "0.2000000000"},
            "ZUSD": {"balance": "0.0000", "hold_trade": "0.0000"},
        })

        assert len(balances) == 1
        btc = balances[0]
        assert btc.currency == "BTC"
        assert btc.free == Decimal("1.0")
        assert btc.total == Decimal("1.2")


class TestParseOrderAndTransfers:

    def test_order_uses_descr_price_for_market_fill(self) -> None:
        order = parse_order("OQCLML", {
            "status": "closed",
            "opentm": 1688666559.8974,
            "descr": {"pair": "XBTUSD", "type": "sell", "ordertype": "limit", "price": "30010.0"},
            "vol": "0.02000000",
            "vol_exec": "0.02000000",
            "price": "0.00000",
        })

        assert order.status == OrderStatus.CLOSED
        assert order.side == TradeSide.SELL
        assert order.price == Decimal("30010.0")
        assert order.symbol == "BTC/USD"

    def test_deposit(self) -> None:
        deposit = parse_deposit({
            "method": "Bitcoin",
            "asset": "XXBT",
            "refid": "FTQcuak",
            "txid": "6544b41b",
            "info": "2Myd4ea",
            "amount": "0.78125000",
            "fee": "0.0000000000",
            "time": 1688992722,
            "status": "Success",
        })

        assert deposit.currency == "BTC"
        assert deposit.status == TransferStatus.COMPLETED
        assert deposit.network == "Bitcoin"

    def test_withdrawal_failure(self) -> None:
        withdrawal = parse_withdrawal({
            "asset": "XETH",
            "refid": "AGBZNBO",
            "amount": "0.5",
            "fee": "0.0035",
            "time": 1688992722,
            "status": "Failure",
        })

        assert withdrawal.status == TransferStatus.FAILED
        assert withdrawal.currency == "ETH"
