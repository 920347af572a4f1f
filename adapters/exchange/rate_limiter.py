"""
요청 간격 제한기

어댑터 인스턴스마다 하나씩 보유.
매 요청 전 마지막 요청 이후 min_delay가 지나지 않았으면 남은 시간만큼 대기.

동시에 여러 코루틴이 같은 인스턴스를 사용해도 Lock으로 직렬화되므로
K번 호출 시 총 소요 시간 >= (K-1) * min_delay.
인스턴스 간/프로세스 간 조정은 하지 않음.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """최소 요청 간격 제한기

    Args:
        min_delay: 요청 간 최소 간격 (초)
        clock: 단조 시계 (테스트 주입용)
        sleep: 대기 함수 (테스트 주입용)
    """

    def __init__(
        self,
        min_delay: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_delay < 0:
            raise ValueError(f"min_delay must be >= 0: {min_delay}")
        self.min_delay = min_delay
        self._clock = clock
        self._sleep = sleep
        self._last_request_time: float | None = None
        self._lock = asyncio.Lock()

    @property
    def last_request_time(self) -> float | None:
        """마지막 요청 시각 (clock 기준, 요청 전이면 None)"""
        return self._last_request_time

    def _wait_time(self, now: float) -> float:
        if self._last_request_time is None:
            return 0.0
        return max(0.0, self.min_delay - (now - self._last_request_time))

    async def acquire(self) -> None:
        """요청 슬롯 획득 (필요 시 대기 후 시각 기록)"""
        async with self._lock:
            wait = self._wait_time(self._clock())
            if wait > 0:
                logger.debug("Rate limit 대기", extra={"wait_sec": round(wait, 3)})
                await self._sleep(wait)
            self._last_request_time = self._clock()

    def reset(self) -> None:
        """마지막 요청 시각 초기화"""
        self._last_request_time = None
