"""
어댑터 공통 동작 테스트

연결 테스트, 심볼/마켓 단위 실패 격리, BingX 선물 체결 재조회 경로.
"""

import httpx
import pytest

from adapters.binance.rest_client import SPEC as BINANCE_SPEC
from adapters.binance.rest_client import BinanceAdapter
from adapters.bingx.rest_client import SPEC as BINGX_SPEC
from adapters.bingx.rest_client import BingXAdapter
from adapters.errors import AuthenticationError, ServerError
from adapters.exchange.base import ExchangeAdapterBase
from adapters.kucoin.rest_client import KuCoinAdapter
from adapters.models import ExchangeCredentials, FetchOptions
from core.config.loader import ExchangeSettings
from core.types import AdapterState, HealthStatus, MarketType

SPOT_TRADE = {
    "symbol": "BTCUSDT",
    "id": 1,
    "orderId": 10,
    "price": "42000",
    "qty": "0.01",
    "commission": "0.00001",
    "commissionAsset": "BTC",
    "time": 1705314600000,
    "isBuyer": True,
    "isMaker": False,
}

FUTURES_FILL = {
    "symbol": "BTC-USDT",
    "side": "SELL",
    "tradeId": "97244554",
    "orderId": "1732385339283357696",
    "price": "43210.5",
    "qty": "0.01",
    "commission": "-0.216",
    "commissionAsset": "USDT",
    "filledTm": "2023-12-06T12:00:00Z",
    "role": "maker",
}


def _ok(data) -> httpx.Response:
    return httpx.Response(200, json={"code": 0, "msg": "", "data": data})


class TestConnection:

    @pytest.mark.asyncio
    async def test_missing_passphrase_returns_false(self, credentials: ExchangeCredentials) -> None:
        adapter = KuCoinAdapter(credentials)

        assert await adapter.test_connection() is False
        assert adapter.state == AdapterState.UNINITIALIZED
        await adapter.close()

    @pytest.mark.asyncio
    async def test_success_marks_tested(self, credentials, mock_http) -> None:
        http = mock_http(BINANCE_SPEC, lambda request: httpx.Response(200, json={"balances": []}))
        adapter = BinanceAdapter(credentials, http=http)

        assert await adapter.test_connection() is True
        assert adapter.state == AdapterState.TESTED
        await adapter.close()

    @pytest.mark.asyncio
    async def test_auth_failure_returns_false(self, credentials, mock_http) -> None:
        http = mock_http(
            BINANCE_SPEC,
            lambda request: httpx.Response(401, json={"code": -2015, "msg": "Invalid API-key"}),
        )
        adapter = BinanceAdapter(credentials, http=http)

        assert await adapter.test_connection() is False
        await adapter.close()

    @pytest.mark.asyncio
    async def test_health_check_down(self, credentials, mock_http) -> None:
        http = mock_http(BINANCE_SPEC, lambda request: httpx.Response(403, text="forbidden"))
        adapter = BinanceAdapter(credentials, http=http)

        result = await adapter.health_check()

        assert result.status == HealthStatus.DOWN
        assert result.error
        await adapter.close()

    @pytest.mark.asyncio
    async def test_health_check_healthy(self, credentials, mock_http) -> None:
        http = mock_http(BINANCE_SPEC, lambda request: httpx.Response(200, json={"balances": []}))
        adapter = BinanceAdapter(credentials, http=http)

        result = await adapter.health_check()

        assert result.status == HealthStatus.HEALTHY
        assert result.error is None
        await adapter.close()


class TestSymbolIsolation:

    @pytest.mark.asyncio
    async def test_failed_symbol_becomes_warning(self, credentials, mock_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["symbol"] == "BADUSDT":
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            return httpx.Response(200, json=[SPOT_TRADE])

        adapter = BinanceAdapter(
            credentials,
            settings=ExchangeSettings(spot_symbols=("BTC/USDT", "BAD/USDT")),
            http=mock_http(BINANCE_SPEC, handler),
        )
        options = FetchOptions(market=MarketType.SPOT)

        trades = await adapter.fetch_trades(options)

        assert [t.id for t in trades] == ["1"]
        assert len(options.warnings) == 1
        warning = options.warnings[0]
        assert warning.exchange == "binance"
        assert warning.symbol == "BAD/USDT"
        assert warning.market == "spot"
        await adapter.close()

    def test_symbols_for_priority(self, credentials) -> None:
        adapter = BinanceAdapter(credentials, settings=ExchangeSettings(spot_symbols=("eth/usdt",)))

        assert adapter.symbols_for(MarketType.SPOT, FetchOptions()) == ["ETH/USDT"]
        assert adapter.symbols_for(MarketType.SPOT, FetchOptions(symbol="sol/usdt")) == ["SOL/USDT"]
        assert adapter.symbols_for(MarketType.FUTURES, FetchOptions()) == list(
            BinanceAdapter.DEFAULT_FUTURES_SYMBOLS
        )


class TestBingXFuturesFallback:

    def _adapter(self, credentials, mock_http, handler) -> BingXAdapter:
        return BingXAdapter(
            credentials,
            settings=ExchangeSettings(spot_symbols=("BTC/USDT",)),
            http=mock_http(BINGX_SPEC, handler),
        )

    @pytest.mark.asyncio
    async def test_empty_all_fill_orders_falls_back(self, credentials, mock_http) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            if request.url.path.endswith("allFillOrders"):
                return _ok({"fill_orders": []})
            return _ok({"fill_history_orders": [FUTURES_FILL]})

        adapter = self._adapter(credentials, mock_http, handler)
        trades = await adapter.fetch_trades(FetchOptions(market=MarketType.FUTURES))

        assert [t.id for t in trades] == ["97244554"]
        assert trades[0].market == MarketType.FUTURES
        assert paths == [
            "/openApi/swap/v2/trade/allFillOrders",
            "/openApi/swap/v2/trade/fillHistory",
        ]
        await adapter.close()

    @pytest.mark.asyncio
    async def test_failed_all_fill_orders_falls_back(self, credentials, mock_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("allFillOrders"):
                return httpx.Response(200, json={"code": 100400, "msg": "invalid param"})
            return _ok([FUTURES_FILL])

        adapter = self._adapter(credentials, mock_http, handler)
        trades = await adapter.fetch_trades(FetchOptions(market=MarketType.FUTURES))

        assert len(trades) == 1
        await adapter.close()

    @pytest.mark.asyncio
    async def test_non_empty_all_fill_orders_used(self, credentials, mock_http) -> None:
        paths: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            paths.append(request.url.path)
            return _ok({"fill_orders": [FUTURES_FILL]})

        adapter = self._adapter(credentials, mock_http, handler)
        trades = await adapter.fetch_trades(FetchOptions(market=MarketType.FUTURES))

        assert len(trades) == 1
        assert len(paths) == 1
        await adapter.close()

    @pytest.mark.asyncio
    async def test_market_failure_isolated(self, credentials, mock_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if "/swap/" in request.url.path:
                return httpx.Response(200, json={"code": 100400, "msg": "invalid param"})
            return _ok({"fills": [{
                "symbol": "BTC-USDT",
                "id": 7,
                "price": "30000",
                "qty": "0.001",
                "time": 1688112662412,
                "isBuyer": True,
            }]})

        adapter = self._adapter(credentials, mock_http, handler)
        options = FetchOptions()
        trades = await adapter.fetch_trades(options)

        assert [t.market for t in trades] == [MarketType.SPOT]
        assert len(options.warnings) == 1
        assert options.warnings[0].market == "futures"
        assert options.warnings[0].symbol is None
        await adapter.close()


class TwoMarketAdapter(ExchangeAdapterBase):
    """마켓별 실패를 주입하는 테스트용 어댑터"""

    spec = BINANCE_SPEC

    def __init__(self, credentials: ExchangeCredentials, errors: dict[MarketType, Exception]):
        super().__init__(BINANCE_SPEC, credentials)
        self.errors = errors

    async def _fetch(self, market: MarketType) -> list:
        if market in self.errors:
            raise self.errors[market]
        return []

    async def _fetch_spot_trades(self, options: FetchOptions) -> list:
        return await self._fetch(MarketType.SPOT)

    async def _fetch_futures_trades(self, options: FetchOptions) -> list:
        return await self._fetch(MarketType.FUTURES)


class TestMarketFailurePolicy:

    @pytest.mark.asyncio
    async def test_one_market_failure_is_warning(self, credentials) -> None:
        adapter = TwoMarketAdapter(
            credentials,
            {MarketType.FUTURES: ServerError("Exchange server error", "binance", 503)},
        )
        options = FetchOptions()

        assert await adapter.fetch_trades(options) == []
        assert [w.market for w in options.warnings] == ["futures"]

    @pytest.mark.asyncio
    async def test_all_markets_failed_raises(self, credentials) -> None:
        adapter = TwoMarketAdapter(
            credentials,
            {
                MarketType.SPOT: ServerError("Exchange server error", "binance", 502),
                MarketType.FUTURES: ServerError("Exchange server error", "binance", 503),
            },
        )

        with pytest.raises(ServerError):
            await adapter.fetch_trades(FetchOptions())

    @pytest.mark.asyncio
    async def test_only_requested_market_failed_raises(self, credentials) -> None:
        adapter = TwoMarketAdapter(
            credentials,
            {MarketType.SPOT: ServerError("Exchange server error", "binance", 500)},
        )

        with pytest.raises(ServerError):
            await adapter.fetch_trades(FetchOptions(market=MarketType.SPOT))

    @pytest.mark.asyncio
    async def test_auth_failure_not_isolated(self, credentials) -> None:
        adapter = TwoMarketAdapter(
            credentials,
            {MarketType.FUTURES: AuthenticationError("Invalid API key", "binance", 401)},
        )

        with pytest.raises(AuthenticationError):
            await adapter.fetch_trades(FetchOptions())

    @pytest.mark.asyncio
    async def test_auth_failure_on_symbol_propagates(self, credentials, mock_http) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(401, json={"code": -2015, "msg": "Invalid API-key, IP, or permissions for action."})

        adapter = BinanceAdapter(
            credentials,
            settings=ExchangeSettings(spot_symbols=("BTC/USDT", "ETH/USDT")),
            http=mock_http(BINANCE_SPEC, handler),
        )

        with pytest.raises(AuthenticationError):
            await adapter.fetch_trades(FetchOptions(market=MarketType.SPOT))
        await adapter.close()
