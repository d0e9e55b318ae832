"""
Notewise Backend — Background Generation Queue
================================================

What:  Fire-and-forget summary and tag generation after a note is saved.
How:   A bounded asyncio.Queue drained by a small pool of worker tasks. Each
       job runs the summary and tag orchestrators concurrently, each in its
       own database session, committed on success.
Who:   NoteService enqueues on create/update; the FastAPI lifespan starts and
       stops the workers.

Guarantees:
    - enqueue() never blocks and never raises; a full queue drops the job
      (logged at WARNING) and returns False
    - A failed job is logged and forgotten. Retries are the client's own
      policy; nothing is re-queued
    - Summary and tag jobs write disjoint tables, so either may fail alone
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from notewise.schemas.ai import SummaryResult, TagResult
from notewise.services.summary_service import SummaryService
from notewise.services.tag_service import TagService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationJob:
    note_id: str
    content: str
    user_id: str


class GenerationQueue:
    def __init__(
        self,
        summary_service: SummaryService,
        tag_service: TagService,
        session_factory: Callable[[], AsyncSession],
        maxsize: int = 100,
        workers: int = 2,
    ):
        self.summary_service = summary_service
        self.tag_service = tag_service
        self.session_factory = session_factory
        self.worker_count = max(1, workers)
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)
        self._workers: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._workers)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(i), name=f"generation-worker-{i}")
            for i in range(self.worker_count)
        ]
        logger.info("Generation queue started with %d workers", self.worker_count)

    async def stop(self) -> None:
        """Cancel the workers. Jobs still queued are dropped."""
        if not self._workers:
            return
        dropped = self._queue.qsize()
        for task in self._workers:
            task.cancel()
        for task in self._workers:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._workers = []
        if dropped:
            logger.warning("Generation queue stopped with %d jobs pending", dropped)
        else:
            logger.info("Generation queue stopped")

    def enqueue(self, note_id: str, content: Optional[str], user_id: str) -> bool:
        """Schedule generation for a saved note. False if the job was not accepted."""
        if not content or not content.strip():
            return False
        try:
            self._queue.put_nowait(GenerationJob(str(note_id), content, user_id))
        except asyncio.QueueFull:
            logger.warning("Generation queue full; skipping AI generation for note %s", note_id)
            return False
        logger.debug("Queued AI generation for note %s", note_id)
        return True

    async def join(self) -> None:
        """Wait until every queued job has been processed."""
        await self._queue.join()

    # ── Workers ───────────────────────────────────────────────────────────

    async def _worker(self, index: int) -> None:
        while True:
            job = await self._queue.get()
            try:
                await self.process(job)
            except Exception as e:
                logger.error(
                    "Generation worker %d failed on note %s: %s",
                    index,
                    job.note_id,
                    str(e),
                    exc_info=True,
                )
            finally:
                self._queue.task_done()

    async def process(self, job: GenerationJob) -> None:
        """Run summary and tag generation for one note, concurrently."""
        summary, tags = await asyncio.gather(
            self._run_summary(job),
            self._run_tags(job),
            return_exceptions=True,
        )
        for name, outcome in (("summary", summary), ("tags", tags)):
            if isinstance(outcome, BaseException):
                logger.error("Background %s job for note %s raised: %s", name, job.note_id, outcome)
            elif not outcome.success:
                logger.warning(
                    "Background %s generation failed for note %s: %s",
                    name,
                    job.note_id,
                    outcome.error_code,
                )

    async def _run_summary(self, job: GenerationJob) -> SummaryResult:
        async with self.session_factory() as db:
            result = await self.summary_service.generate_summary(
                db, job.note_id, job.content, job.user_id
            )
            if result.success:
                await db.commit()
            return result

    async def _run_tags(self, job: GenerationJob) -> TagResult:
        async with self.session_factory() as db:
            result = await self.tag_service.generate_tags(db, job.note_id, job.content, job.user_id)
            if result.success:
                await db.commit()
            return result


# ── FastAPI Dependency ────────────────────────────────────────────────────

def get_generation_queue(request: Request) -> Optional[GenerationQueue]:
    """The queue started in the lifespan, or None when it is not running."""
    return getattr(request.app.state, "generation_queue", None)
