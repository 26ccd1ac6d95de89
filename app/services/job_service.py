"""작업 큐 서비스 — 프로세스 내 백그라운드 작업 실행.

Job Service — In-process background job queue.

Jobs are ``JobItem(name, data)`` values placed on an ``asyncio.Queue``. A
single worker task, started from the application lifespan, pops each job,
opens its own database session, runs the handler registered for the job
name and commits. Handler errors are logged and reported as ``FAILED``;
they never stop the worker.
"""

import asyncio
import contextlib
import enum
from collections.abc import Awaitable, Callable
from typing import Any, Iterable

from loguru import logger
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import async_session


class JobName(str, enum.Enum):
    """작업 이름 — Job names."""

    QUEUE_DUPLICATE_DETECTION = "queue-duplicate-detection"
    DUPLICATE_DETECTION = "duplicate-detection"


class JobStatus(str, enum.Enum):
    """작업 결과 — Job outcome."""

    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"


class JobItem(BaseModel):
    """큐에 들어가는 작업 한 건.

    A queued job.

    Attributes:
        name: 작업 이름 (Job name, selects the handler)
        data: 핸들러 인자 (Handler payload, e.g. {"id": "..."} or {"force": true})
    """

    name: JobName
    data: dict[str, Any] = {}


# 작업 핸들러 — (db, data) -> JobStatus
JobHandler = Callable[[AsyncSession, dict[str, Any]], Awaitable[JobStatus]]


class JobQueue:
    """asyncio.Queue 기반 작업 큐와 워커.

    asyncio.Queue backed job queue with one worker task.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession] = async_session) -> None:
        self.session_factory: async_sessionmaker[AsyncSession] = session_factory
        self._queue: asyncio.Queue[JobItem] = asyncio.Queue()
        self._handlers: dict[JobName, JobHandler] = {}
        self._worker: asyncio.Task[None] | None = None

    def register(self, name: JobName, handler: JobHandler) -> None:
        """작업 이름에 핸들러를 등록합니다 — Register the handler for a job name."""
        self._handlers[name] = handler

    @property
    def pending(self) -> int:
        """대기 중인 작업 수 — Number of jobs waiting in the queue."""
        return self._queue.qsize()

    async def queue(self, item: JobItem) -> None:
        """작업 하나를 큐에 넣습니다 — Enqueue one job."""
        await self._queue.put(item)

    async def queue_all(self, items: Iterable[JobItem]) -> None:
        """작업 여러 개를 큐에 넣습니다 — Enqueue several jobs."""
        for item in items:
            await self._queue.put(item)

    def clear(self) -> int:
        """대기 중인 작업을 모두 버립니다 — Drop every pending job, returning how many."""
        dropped: int = 0
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()
            dropped += 1
        return dropped

    async def run_job(self, item: JobItem) -> JobStatus:
        """작업 하나를 자체 세션에서 실행하고 커밋합니다.

        Run one job in its own session and commit. Unknown job names and
        handler errors are logged and reported as ``FAILED``.

        Args:
            item: 실행할 작업 (Job to run)

        Returns:
            JobStatus: 작업 결과 (Job outcome)
        """
        handler: JobHandler | None = self._handlers.get(item.name)
        if handler is None:
            logger.error("No handler registered for job {}", item.name.value)
            return JobStatus.FAILED

        async with self.session_factory() as db:
            try:
                status: JobStatus = await handler(db, item.data)
                await db.commit()
            except Exception:
                await db.rollback()
                logger.exception("Job {} failed with data {}", item.name.value, item.data)
                return JobStatus.FAILED

        logger.debug("Job {} finished with status {}", item.name.value, status.value)
        return status

    async def run_pending(self) -> list[JobStatus]:
        """큐에 남은 작업을 현재 태스크에서 모두 실행합니다.

        Run every queued job inline, including jobs queued by the jobs
        being run, and return their outcomes in order.
        """
        results: list[JobStatus] = []
        while not self._queue.empty():
            item: JobItem = self._queue.get_nowait()
            try:
                results.append(await self.run_job(item))
            finally:
                self._queue.task_done()
        return results

    async def _work(self) -> None:
        while True:
            item: JobItem = await self._queue.get()
            try:
                await self.run_job(item)
            finally:
                self._queue.task_done()

    def start(self) -> None:
        """워커 태스크를 시작합니다 — Start the worker task (idempotent)."""
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._work(), name="job-worker")
            logger.info("Job worker started")

    async def stop(self) -> None:
        """워커 태스크를 중지합니다 — Cancel the worker task and wait for it."""
        if self._worker is None:
            return
        self._worker.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._worker
        self._worker = None
        logger.info("Job worker stopped")


# 싱글턴 인스턴스 — Singleton instance
job_queue: JobQueue = JobQueue()
