"""
재시도/백오프 헬퍼

일시적 오류(retryable=True: 네트워크, 5xx, rate limit)만 재시도.
인증/검증 오류는 즉시 전달.
재시도 소진 시 마지막 에러를 감싸지 않고 그대로 다시 발생.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, TypeVar

from adapters.errors import ExchangeError, RateLimitError
from core.constants import SyncDefaults

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """재시도 정책

    Attributes:
        max_retries: 최대 재시도 횟수 (최초 시도 제외)
        base_delay: 기본 대기 시간 (초), attempt번째 재시도 전 base_delay * 2^attempt
    """

    max_retries: int = SyncDefaults.MAX_RETRIES
    base_delay: float = SyncDefaults.RETRY_BASE_DELAY_SEC

    def delay_for(self, attempt: int, error: ExchangeError | None = None) -> float:
        """attempt(0부터) 번째 재시도 전 대기 시간

        거래소가 Retry-After를 준 경우 더 긴 쪽 사용.
        """
        delay = self.base_delay * (2 ** attempt)
        if isinstance(error, RateLimitError) and error.retry_after:
            delay = max(delay, float(error.retry_after))
        return delay


async def with_retry(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "",
) -> T:
    """재시도 래퍼

    Args:
        func: 매 시도마다 새로 호출할 코루틴 함수 (서명/타임스탬프 재생성)
        policy: 재시도 정책 (None이면 기본값)
        sleep: 대기 함수 (테스트 주입용)
        label: 로그용 요청 이름

    Returns:
        func 결과

    Raises:
        ExchangeError: 재시도 불가 에러 또는 재시도 소진 시 마지막 에러
    """
    policy = policy or RetryPolicy()
    attempt = 0

    while True:
        try:
            return await func()
        except ExchangeError as e:
            if not e.retryable or attempt >= policy.max_retries:
                raise

            delay = policy.delay_for(attempt, e)
            logger.warning(
                "일시적 오류, 재시도 예정",
                extra={
                    "request": label,
                    "error_type": type(e).__name__,
                    "attempt": attempt + 1,
                    "max_retries": policy.max_retries,
                    "delay_sec": delay,
                },
            )
            await sleep(delay)
            attempt += 1
