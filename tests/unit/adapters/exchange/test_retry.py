"""
재시도/백오프 테스트
"""

from unittest.mock import AsyncMock

import pytest

from adapters.errors import AuthenticationError, NetworkError, RateLimitError, ServerError
from adapters.exchange.retry import RetryPolicy, with_retry


class TestRetryPolicy:
    """대기 시간 계산"""

    def test_exponential_schedule(self) -> None:
        policy = RetryPolicy(max_retries=3, base_delay=1.0)
        assert [policy.delay_for(i) for i in range(3)] == [1.0, 2.0, 4.0]

    def test_retry_after_longer_than_backoff(self) -> None:
        policy = RetryPolicy(base_delay=1.0)
        error = RateLimitError("Rate limit exceeded", "binance", retry_after=10)
        assert policy.delay_for(0, error) == 10.0

    def test_retry_after_shorter_than_backoff(self) -> None:
        policy = RetryPolicy(base_delay=1.0)
        error = RateLimitError("Rate limit exceeded", "binance", retry_after=1)
        assert policy.delay_for(2, error) == 4.0


class TestWithRetry:
    """with_retry 동작"""

    @pytest.mark.asyncio
    async def test_success_without_retry(self) -> None:
        func = AsyncMock(return_value="ok")
        sleep = AsyncMock()

        assert await with_retry(func, RetryPolicy(), sleep=sleep) == "ok"
        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_retries_transient_errors_then_succeeds(self) -> None:
        func = AsyncMock(side_effect=[ServerError("boom", "okx"), NetworkError("reset", "okx"), "ok"])
        sleep = AsyncMock()

        result = await with_retry(func, RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)

        assert result == "ok"
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_exhausted_reraises_last_error(self) -> None:
        last = ServerError("still down", "bybit")
        func = AsyncMock(side_effect=[ServerError("down", "bybit")] * 3 + [last])
        sleep = AsyncMock()

        with pytest.raises(ServerError) as exc_info:
            await with_retry(func, RetryPolicy(max_retries=3, base_delay=1.0), sleep=sleep)

        assert exc_info.value is last
        assert func.await_count == 4
        assert [c.args[0] for c in sleep.await_args_list] == [1.0, 2.0, 4.0]

    @pytest.mark.asyncio
    async def test_non_retryable_fails_immediately(self) -> None:
        func = AsyncMock(side_effect=AuthenticationError("bad key", "kucoin"))
        sleep = AsyncMock()

        with pytest.raises(AuthenticationError):
            await with_retry(func, RetryPolicy(max_retries=3), sleep=sleep)

        assert func.await_count == 1
        sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_non_exchange_error_propagates(self) -> None:
        func = AsyncMock(side_effect=KeyError("x"))

        with pytest.raises(KeyError):
            await with_retry(func, RetryPolicy(), sleep=AsyncMock())
