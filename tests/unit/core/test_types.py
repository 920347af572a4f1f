"""
core/types.py 테스트

모든 Enum이 문자열 직렬화 가능하고, 거래소 식별자 속성이 올바른지 확인
"""

import pytest

from core.types import (
    AdapterState,
    ExchangeName,
    HealthStatus,
    JobPriority,
    MarketType,
    OrderStatus,
    ResourceType,
    SyncHistoryStatus,
    SyncMode,
    SyncStatus,
    SyncTrigger,
    TradeRole,
    TradeSide,
    TransferStatus,
)


class TestExchangeName:
    """ExchangeName 테스트"""

    def test_eleven_exchanges(self) -> None:
        assert len(ExchangeName) == 11

    def test_values_are_lowercase(self) -> None:
        for exchange in ExchangeName:
            assert exchange.value == exchange.value.lower()

    def test_from_string(self) -> None:
        assert ExchangeName("gateio") == ExchangeName.GATEIO
        assert ExchangeName("okx") == ExchangeName.OKX

    def test_unknown_raises(self) -> None:
        with pytest.raises(ValueError):
            ExchangeName("upbit")

    @pytest.mark.parametrize(
        "exchange",
        [ExchangeName.KUCOIN, ExchangeName.OKX, ExchangeName.BITSTAMP],
    )
    def test_requires_passphrase(self, exchange: ExchangeName) -> None:
        assert exchange.requires_passphrase is True

    def test_no_passphrase_for_others(self) -> None:
        others = set(ExchangeName) - {ExchangeName.KUCOIN, ExchangeName.OKX, ExchangeName.BITSTAMP}

        assert len(others) == 8
        assert not any(e.requires_passphrase for e in others)

    def test_string_comparison(self) -> None:
        """str 상속이므로 문자열과 직접 비교 가능"""
        assert ExchangeName.BINANCE == "binance"


class TestEnumValues:
    """나머지 Enum 값 확인"""

    def test_market_type(self) -> None:
        assert [m.value for m in MarketType] == ["spot", "futures"]

    def test_trade_side_and_role(self) -> None:
        assert TradeSide.BUY.value == "buy"
        assert TradeSide.SELL.value == "sell"
        assert TradeRole.MAKER.value == "maker"
        assert TradeRole.TAKER.value == "taker"

    def test_order_status_closed_set(self) -> None:
        assert {s.value for s in OrderStatus} == {"open", "closed", "cancelled", "expired"}

    def test_transfer_status_closed_set(self) -> None:
        assert {s.value for s in TransferStatus} == {"pending", "completed", "failed"}

    def test_resource_type(self) -> None:
        assert {r.value for r in ResourceType} == {
            "trades", "balances", "orders", "deposits", "withdrawals",
        }

    def test_sync_mode(self) -> None:
        assert SyncMode("preview") == SyncMode.PREVIEW
        assert SyncMode("import") == SyncMode.IMPORT

    def test_sync_status(self) -> None:
        assert {s.value for s in SyncStatus} == {
            "idle", "syncing", "pending_review", "success", "error",
        }

    def test_sync_history_status(self) -> None:
        assert {s.value for s in SyncHistoryStatus} == {
            "processing", "pending_review", "completed", "failed",
        }

    def test_sync_trigger(self) -> None:
        assert {t.value for t in SyncTrigger} == {"manual", "auto", "scheduled"}

    def test_health_status(self) -> None:
        assert {h.value for h in HealthStatus} == {"healthy", "degraded", "down"}

    def test_adapter_state(self) -> None:
        assert AdapterState.UNINITIALIZED.value == "uninitialized"
        assert AdapterState.TESTED.value == "tested"
        assert AdapterState.ACTIVE.value == "active"


class TestJobPriority:
    """JobPriority 정렬 순위 테스트"""

    def test_rank_order(self) -> None:
        assert JobPriority.HIGH.rank < JobPriority.NORMAL.rank < JobPriority.LOW.rank

    def test_sorted_by_rank(self) -> None:
        priorities = [JobPriority.LOW, JobPriority.HIGH, JobPriority.NORMAL]

        assert sorted(priorities, key=lambda p: p.rank) == [
            JobPriority.HIGH,
            JobPriority.NORMAL,
            JobPriority.LOW,
        ]
