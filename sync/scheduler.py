"""
동기화 작업 스케줄러

우선순위 큐 3단계(high/normal/low), 단계 내 FIFO.
동시에 최대 max_concurrent개 작업 실행.
"""

import asyncio
import logging
from collections import deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Callable

from core.constants import SyncDefaults
from core.types import JobPriority, ResourceType, SyncTrigger
from sync.data_sync import DEFAULT_SYNC_TYPES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncJob:
    """동기화 작업"""

    connection_id: int
    exchange_name: str
    priority: JobPriority = JobPriority.NORMAL
    sync_types: tuple[ResourceType, ...] = DEFAULT_SYNC_TYPES
    start_date: datetime | None = None
    end_date: datetime | None = None


@dataclass(frozen=True)
class SyncJobResult:
    """작업 실행 결과 (러너 예외는 error로 기록)"""

    job: SyncJob
    success: bool
    result: Any = None
    error: str | None = None


JobRunner = Callable[[SyncJob], Awaitable[Any]]


class SyncScheduler:
    """우선순위 동기화 스케줄러

    Args:
        runner: 작업 실행 함수 (보통 data_sync_runner)
        max_concurrent: 동시 실행 작업 수

    사용 예시:
    ```python
    scheduler = SyncScheduler(data_sync_runner(data_sync))
    scheduler.add_job(SyncJob(connection_id=1, exchange_name="binance"))
    results = await scheduler.run_until_empty()
    ```
    """

    def __init__(self, runner: JobRunner, max_concurrent: int = SyncDefaults.MAX_CONCURRENT_JOBS):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be >= 1")
        self.runner = runner
        self.max_concurrent = max_concurrent
        self._queues: dict[JobPriority, deque[SyncJob]] = {p: deque() for p in JobPriority}
        self._active: set[asyncio.Task[SyncJobResult]] = set()

    def add_job(self, job: SyncJob) -> None:
        self._queues[job.priority].append(job)
        logger.debug(
            "동기화 작업 추가",
            extra={"connection_id": job.connection_id, "priority": job.priority.value},
        )

    def _next_job(self) -> SyncJob | None:
        for priority in sorted(JobPriority, key=lambda p: p.rank):
            queue = self._queues[priority]
            if queue:
                return queue.popleft()
        return None

    def has_jobs(self) -> bool:
        return any(self._queues.values())

    async def _execute(self, job: SyncJob) -> SyncJobResult:
        try:
            result = await self.runner(job)
        except Exception as e:
            logger.error(
                "동기화 작업 실패",
                extra={"connection_id": job.connection_id, "exchange": job.exchange_name, "error": str(e)},
            )
            return SyncJobResult(job=job, success=False, error=str(e))
        success = getattr(result, "success", True)
        return SyncJobResult(job=job, success=bool(success), result=result, error=getattr(result, "error", None))

    async def run_until_empty(self) -> list[SyncJobResult]:
        """큐가 빌 때까지 실행 (완료 순서대로 결과 반환)"""
        results: list[SyncJobResult] = []
        while self.has_jobs() or self._active:
            while self.has_jobs() and len(self._active) < self.max_concurrent:
                job = self._next_job()
                assert job is not None
                self._active.add(asyncio.create_task(self._execute(job)))

            done, _ = await asyncio.wait(self._active, return_when=asyncio.FIRST_COMPLETED)
            for task in done:
                self._active.discard(task)
                results.append(task.result())
        return results

    def status(self) -> dict[str, int]:
        return {
            "high": len(self._queues[JobPriority.HIGH]),
            "normal": len(self._queues[JobPriority.NORMAL]),
            "low": len(self._queues[JobPriority.LOW]),
            "active": len(self._active),
        }

    def clear(self) -> None:
        """대기 작업 전체 삭제 (실행 중 작업은 유지)"""
        for queue in self._queues.values():
            queue.clear()


def data_sync_runner(data_sync: Any, trigger: SyncTrigger = SyncTrigger.SCHEDULED) -> JobRunner:
    """ExchangeDataSync.sync를 호출하는 러너"""

    async def run(job: SyncJob) -> Any:
        return await data_sync.sync(
            job.connection_id,
            job.sync_types,
            job.start_date,
            job.end_date,
            trigger=trigger,
        )

    return run
