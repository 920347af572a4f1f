"""
ExchangeHttpClient 테스트

httpx.MockTransport로 실제 전송 경로(서명 → 전송 → 응답 분류 → 재시도)를 검증.
"""

from typing import Callable

import httpx
import pytest

from adapters.binance.rest_client import SPEC as BINANCE_SPEC
from adapters.bybit.rest_client import SPEC as BYBIT_SPEC
from adapters.errors import (
    AuthenticationError,
    ExchangeApiError,
    NetworkError,
    PermissionDeniedError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from adapters.exchange.client import ExchangeHttpClient, ExchangeSpec
from adapters.exchange.rate_limiter import RateLimiter
from adapters.exchange.retry import RetryPolicy
from adapters.gateio.rest_client import SPEC as GATEIO_SPEC
from adapters.kraken.rest_client import SPEC as KRAKEN_SPEC
from adapters.models import ExchangeCredentials

TS_MS = 1700000000000

Handler = Callable[[httpx.Request], httpx.Response]


def make_client(
    spec: ExchangeSpec,
    handler: Handler,
    max_retries: int = 0,
    secret: str = "test_api_secret",
) -> ExchangeHttpClient:
    client = ExchangeHttpClient(
        spec,
        ExchangeCredentials(api_key="test_api_key", api_secret=secret),
        retry_policy=RetryPolicy(max_retries=max_retries, base_delay=0),
        rate_limiter=RateLimiter(0),
        clock_ms=lambda: TS_MS,
    )
    client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return client


class TestRequestWiring:
    """요청 조립"""

    @pytest.mark.asyncio
    async def test_signed_query_sent_verbatim(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"id": 1}])

        client = make_client(BINANCE_SPEC, handler)
        result = await client.request("GET", "/api/v3/myTrades", {"symbol": "BTCUSDT", "startTime": None})
        await client.close()

        assert result == [{"id": 1}]
        request = seen[0]
        assert request.url.host == "api.binance.com"
        assert request.url.path == "/api/v3/myTrades"
        query = request.url.query.decode()
        assert query.startswith(f"symbol=BTCUSDT&timestamp={TS_MS}&signature=")
        assert "startTime" not in query
        assert request.headers["X-MBX-APIKEY"] == "test_api_key"

    @pytest.mark.asyncio
    async def test_base_url_override(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[])

        client = make_client(BINANCE_SPEC, handler)
        await client.request("GET", "/fapi/v1/userTrades", base_url="https://fapi.binance.com")
        await client.close()

        assert seen[0].url.host == "fapi.binance.com"

    @pytest.mark.asyncio
    async def test_unsigned_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"serverTime": 1})

        client = make_client(BINANCE_SPEC, handler)
        await client.request("GET", "/api/v3/time", signed=False)
        await client.close()

        assert "signature" not in seen[0].url.query.decode()
        assert "X-MBX-APIKEY" not in seen[0].headers


class TestHttpStatusMapping:
    """HTTP 상태 기반 분류"""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status,error_cls",
        [
            (401, AuthenticationError),
            (403, PermissionDeniedError),
            (429, RateLimitError),
            (500, ServerError),
            (503, ServerError),
            (400, ValidationError),
            (404, ValidationError),
            (409, ExchangeApiError),
        ],
    )
    async def test_status(self, status, error_cls) -> None:
        client = make_client(BINANCE_SPEC, lambda r: httpx.Response(status, text="nope"))

        with pytest.raises(error_cls) as exc_info:
            await client.request("GET", "/api/v3/account")
        await client.close()

        assert exc_info.value.exchange == "binance"

    @pytest.mark.asyncio
    async def test_retry_after_header(self) -> None:
        client = make_client(
            BINANCE_SPEC,
            lambda r: httpx.Response(429, headers={"Retry-After": "7"}, text="slow down"),
        )

        with pytest.raises(RateLimitError) as exc_info:
            await client.request("GET", "/api/v3/account")
        await client.close()

        assert exc_info.value.retry_after == 7.0

    @pytest.mark.asyncio
    async def test_non_json_success(self) -> None:
        client = make_client(BINANCE_SPEC, lambda r: httpx.Response(200, text="<html>"))

        with pytest.raises(ValidationError):
            await client.request("GET", "/api/v3/account")
        await client.close()


class TestExchangeCodeMapping:
    """본문 에러 코드 분류"""

    @pytest.mark.asyncio
    async def test_binance_code(self) -> None:
        client = make_client(
            BINANCE_SPEC,
            lambda r: httpx.Response(401, json={"code": -2015, "msg": "Invalid API-key, IP, or permissions"}),
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await client.request("GET", "/api/v3/account")
        await client.close()

        assert exc_info.value.code == -2015
        assert exc_info.value.raw_message == "Invalid API-key, IP, or permissions"

    @pytest.mark.asyncio
    async def test_unmapped_code_preserved(self) -> None:
        client = make_client(BINANCE_SPEC, lambda r: httpx.Response(409, json={"code": -9999, "msg": "odd"}))

        with pytest.raises(ExchangeApiError) as exc_info:
            await client.request("GET", "/api/v3/account")
        await client.close()

        assert exc_info.value.code == -9999
        assert exc_info.value.raw_message == "odd"

    @pytest.mark.asyncio
    async def test_bybit_error_with_http_200(self) -> None:
        client = make_client(
            BYBIT_SPEC,
            lambda r: httpx.Response(200, json={"retCode": 10003, "retMsg": "API key is invalid.", "result": {}}),
        )

        with pytest.raises(AuthenticationError):
            await client.request("GET", "/v5/account/wallet-balance")
        await client.close()

    @pytest.mark.asyncio
    async def test_bybit_payload_field(self) -> None:
        client = make_client(
            BYBIT_SPEC,
            lambda r: httpx.Response(200, json={"retCode": 0, "retMsg": "OK", "result": {"list": []}}),
        )

        assert await client.request("GET", "/v5/execution/list") == {"list": []}
        await client.close()

    @pytest.mark.asyncio
    async def test_gateio_label_means_error(self) -> None:
        client = make_client(
            GATEIO_SPEC,
            lambda r: httpx.Response(401, json={"label": "INVALID_KEY", "message": "Invalid key provided"}),
        )

        with pytest.raises(AuthenticationError) as exc_info:
            await client.request("GET", "/spot/accounts")
        await client.close()

        assert exc_info.value.code == "INVALID_KEY"

    @pytest.mark.asyncio
    async def test_gateio_list_success(self) -> None:
        client = make_client(GATEIO_SPEC, lambda r: httpx.Response(200, json=[{"currency": "BTC"}]))

        assert await client.request("GET", "/spot/accounts") == [{"currency": "BTC"}]
        await client.close()

    @pytest.mark.asyncio
    async def test_kraken_error_list(self) -> None:
        client = make_client(
            KRAKEN_SPEC,
            lambda r: httpx.Response(200, json={"error": ["EAPI:Invalid nonce"], "result": {}}),
            secret="dGVzdA==",
        )

        with pytest.raises(AuthenticationError):
            await client.request("POST", "/0/private/Balance")
        await client.close()


class TestRetry:
    """일시적 오류 재시도"""

    @pytest.mark.asyncio
    async def test_server_error_retried(self) -> None:
        responses = iter([
            httpx.Response(502, text="bad gateway"),
            httpx.Response(200, json={"balances": []}),
        ])
        client = make_client(BINANCE_SPEC, lambda r: next(responses), max_retries=2)

        assert await client.request("GET", "/api/v3/account") == {"balances": []}
        await client.close()

    @pytest.mark.asyncio
    async def test_each_attempt_is_resigned(self) -> None:
        timestamps = iter([TS_MS, TS_MS + 1000])
        seen: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.query.decode())
            if len(seen) == 1:
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json={})

        client = make_client(BINANCE_SPEC, handler, max_retries=1)
        client._clock_ms = lambda: next(timestamps)
        await client.request("GET", "/api/v3/account")
        await client.close()

        assert f"timestamp={TS_MS}&" in seen[0]
        assert f"timestamp={TS_MS + 1000}&" in seen[1]

    @pytest.mark.asyncio
    async def test_auth_error_not_retried(self) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(401, text="unauthorized")

        client = make_client(BINANCE_SPEC, handler, max_retries=3)
        with pytest.raises(AuthenticationError):
            await client.request("GET", "/api/v3/account")
        await client.close()

        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(BINANCE_SPEC, handler, max_retries=1)
        with pytest.raises(NetworkError):
            await client.request("GET", "/api/v3/account")
        await client.close()
