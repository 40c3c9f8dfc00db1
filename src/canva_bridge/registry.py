"""In-memory image generation jobs.

A job is PENDING until its timer fires (COMPLETED) or it is cancelled
(CANCELLED). Nothing leaves COMPLETED or CANCELLED, and finished jobs are
kept for the lifetime of the process.

All methods must be called from the event loop thread; the timer callbacks
run on the same loop, so no locking is needed.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import uuid4

import structlog

from canva_bridge.errors import InsufficientCreditsError, NotFoundError, ValidationError
from canva_bridge.ledger import CreditLedger
from canva_bridge.schemas import ImageResponse, ImageSize, JobStatusResponse

logger = structlog.get_logger()

PROCESSING = "processing"
COMPLETED = "completed"
CANCELLED = "cancelled"

_PEXELS = "https://images.pexels.com/photos/{photo}/pexels-photo-{photo}.jpeg?auto=compress&cs=tinysrgb&w={w}&h={h}&dpr=2"

PLACEHOLDER_IMAGES: tuple[ImageResponse, ...] = (
    ImageResponse(
        fullsize=ImageSize(width=1280, height=853, url=_PEXELS.format(photo=1145720, w=1280, h=853)),
        thumbnail=ImageSize(width=640, height=427, url=_PEXELS.format(photo=1145720, w=640, h=427)),
    ),
    ImageResponse(
        fullsize=ImageSize(width=1280, height=853, url=_PEXELS.format(photo=4010108, w=1280, h=863)),
        thumbnail=ImageSize(width=640, height=427, url=_PEXELS.format(photo=4010108, w=640, h=427)),
    ),
)


@dataclass
class PendingJob:
    job_id: str
    prompt: str
    handle: asyncio.TimerHandle
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class JobRegistry:
    def __init__(self, ledger: CreditLedger, delay_sec: float = 5) -> None:
        self.ledger = ledger
        self.delay_sec = delay_sec
        self._pending: dict[str, PendingJob] = {}
        self._completed: dict[str, list[ImageResponse]] = {}
        self._cancelled: set[str] = set()

    def enqueue(self, prompt: str | None) -> str:
        """Queue a job for ``prompt`` and return its id without waiting for it."""
        if not prompt or not prompt.strip():
            raise ValidationError("Missing prompt parameter")
        if self.ledger.balance <= 0:
            raise InsufficientCreditsError("Not enough credits")

        job_id = uuid4().hex
        loop = asyncio.get_running_loop()
        handle = loop.call_later(self.delay_sec, self._complete, job_id)
        self._pending[job_id] = PendingJob(job_id=job_id, prompt=prompt, handle=handle)
        logger.info("job.queued", job_id=job_id, prompt=prompt, delay_sec=self.delay_sec)
        return job_id

    def _complete(self, job_id: str) -> None:
        job = self._pending.pop(job_id, None)
        if job is None:
            return

        self._completed[job_id] = [img.model_copy(update={"label": job.prompt}) for img in PLACEHOLDER_IMAGES]
        balance = self.ledger.charge(job_id)
        logger.info("job.completed", job_id=job_id, credits=balance)

    def status(self, job_id: str | None) -> JobStatusResponse:
        if not job_id:
            raise ValidationError("Missing jobId parameter")
        if job_id in self._completed:
            return JobStatusResponse(status=COMPLETED, images=self._completed[job_id], credits=self.ledger.balance)
        if job_id in self._pending:
            return JobStatusResponse(status=PROCESSING)
        if job_id in self._cancelled:
            return JobStatusResponse(status=CANCELLED)
        raise NotFoundError("Job not found")

    def cancel(self, job_id: str | None) -> None:
        if not job_id:
            raise ValidationError("Missing jobId parameter")
        job = self._pending.pop(job_id, None)
        if job is None:
            raise NotFoundError("Job not found")

        job.handle.cancel()
        self._cancelled.add(job_id)
        logger.info("job.cancelled", job_id=job_id)

    def shutdown(self) -> None:
        """Cancel every outstanding timer. Pending jobs stay pending."""
        for job in self._pending.values():
            job.handle.cancel()
        if self._pending:
            logger.info("registry.shutdown", pending=len(self._pending))

    def counts(self) -> dict[str, int]:
        return {
            PROCESSING: len(self._pending),
            COMPLETED: len(self._completed),
            CANCELLED: len(self._cancelled),
        }
