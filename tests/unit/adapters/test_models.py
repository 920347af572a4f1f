"""
공통 모델 테스트

Trade, Balance, Order, FetchOptions, ExchangeCredentials 모델 테스트.
"""

from dataclasses import FrozenInstanceError
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from adapters.errors import ValidationError
from adapters.models import (
    Balance,
    ExchangeCredentials,
    FetchOptions,
    HealthCheckResult,
    Order,
    Trade,
)
from core.types import HealthStatus, MarketType, OrderStatus, TradeRole, TradeSide

TS = datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)


def make_trade(**overrides) -> Trade:
    values = dict(
        id="1",
        exchange="binance",
        symbol="BTC/USDT",
        side=TradeSide.BUY,
        price=Decimal("42000"),
        quantity=Decimal("0.5"),
        fee=Decimal("0.0005"),
        fee_currency="BTC",
        timestamp=TS,
    )
    values.update(overrides)
    return Trade(**values)


class TestTrade:
    """Trade 모델 테스트"""

    def test_defaults(self) -> None:
        trade = make_trade()

        assert trade.order_id is None
        assert trade.role is None
        assert trade.market == MarketType.SPOT

    def test_notional(self) -> None:
        assert make_trade().notional == Decimal("21000.0")

    def test_negative_quantity_rejected(self) -> None:
        with pytest.raises(ValidationError):
            make_trade(quantity=Decimal("-1"))

    def test_immutable(self) -> None:
        trade = make_trade()
        with pytest.raises(FrozenInstanceError):
            trade.price = Decimal("1")  # type: ignore[misc]

    def test_to_dict(self) -> None:
        data = make_trade(role=TradeRole.MAKER, market=MarketType.FUTURES).to_dict()

        assert data["price"] == "42000"
        assert data["side"] == "buy"
        assert data["role"] == "maker"
        assert data["market"] == "futures"
        assert data["timestamp"] == "2024-01-15T10:30:00.000Z"


class TestBalance:
    """Balance 모델 테스트"""

    def test_total_is_free_plus_locked(self) -> None:
        balance = Balance(exchange="okx", currency="USDT", free=Decimal("100"), locked=Decimal("5.5"))

        assert balance.total == Decimal("105.5")
        assert not balance.is_zero

    def test_zero(self) -> None:
        assert Balance(exchange="okx", currency="USDT", free=Decimal("0")).is_zero

    def test_to_dict_includes_total(self) -> None:
        data = Balance(exchange="okx", currency="BTC", free=Decimal("1"), locked=Decimal("2")).to_dict()
        assert data["total"] == "3"


class TestOrder:

    def test_remaining(self) -> None:
        order = Order(
            id="o1",
            exchange="binance",
            symbol="ETH/USDT",
            side=TradeSide.SELL,
            type="limit",
            status=OrderStatus.OPEN,
            price=Decimal("2000"),
            quantity=Decimal("3"),
            filled=Decimal("1"),
            timestamp=TS,
        )
        assert order.remaining == Decimal("2")


class TestFetchOptions:

    def test_epoch_ms(self) -> None:
        options = FetchOptions(start_time=TS)

        assert options.start_ms == 1705314600000
        assert options.end_ms is None

    def test_in_range(self) -> None:
        options = FetchOptions(start_time=TS, end_time=datetime(2024, 1, 16, tzinfo=timezone.utc))

        assert options.in_range(datetime(2024, 1, 15, 12, tzinfo=timezone.utc))
        assert not options.in_range(datetime(2024, 1, 14, tzinfo=timezone.utc))
        assert not options.in_range(datetime(2024, 1, 17, tzinfo=timezone.utc))

    def test_market_filter(self) -> None:
        assert FetchOptions().includes_market(MarketType.FUTURES)
        assert not FetchOptions(market=MarketType.SPOT).includes_market(MarketType.FUTURES)

    def test_warnings_collected(self) -> None:
        options = FetchOptions()
        options.add_warning("binance", "Invalid symbol", market=MarketType.SPOT, symbol="BAD/USDT")

        assert options.warnings[0].to_dict() == {
            "exchange": "binance",
            "market": "spot",
            "symbol": "BAD/USDT",
            "message": "Invalid symbol",
        }


class TestExchangeCredentials:

    def test_repr_hides_secrets(self) -> None:
        credentials = ExchangeCredentials("my-key", "my-secret", "my-pass")

        text = repr(credentials)
        assert "my-key" not in text
        assert "my-secret" not in text
        assert "my-pass" not in text

    def test_has_passphrase(self) -> None:
        assert not ExchangeCredentials("k", "s").has_passphrase
        assert not ExchangeCredentials("k", "s", "").has_passphrase
        assert ExchangeCredentials("k", "s", "p").has_passphrase


class TestHealthCheckResult:

    def test_to_dict(self) -> None:
        result = HealthCheckResult(HealthStatus.DEGRADED, 3500)
        assert result.to_dict() == {"status": "degraded", "latency_ms": 3500, "error": None}
