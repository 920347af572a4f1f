"""
어댑터 테스트 픽스처

httpx.MockTransport 기반 HTTP 클라이언트 팩토리 제공.
"""

from typing import Callable

import httpx
import pytest

from adapters.exchange.client import ExchangeHttpClient, ExchangeSpec
from adapters.exchange.rate_limiter import RateLimiter
from adapters.exchange.retry import RetryPolicy
from adapters.models import ExchangeCredentials

TS_MS = 1700000000000

Handler = Callable[[httpx.Request], httpx.Response]
HttpFactory = Callable[[ExchangeSpec, Handler], ExchangeHttpClient]


@pytest.fixture
def mock_http(credentials: ExchangeCredentials) -> HttpFactory:
    """spec + 요청 핸들러 → 네트워크 없는 ExchangeHttpClient"""

    def factory(spec: ExchangeSpec, handler: Handler) -> ExchangeHttpClient:
        client = ExchangeHttpClient(
            spec,
            credentials,
            retry_policy=RetryPolicy(max_retries=0, base_delay=0),
            rate_limiter=RateLimiter(0),
            clock_ms=lambda: TS_MS,
        )
        client._client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return client

    return factory
