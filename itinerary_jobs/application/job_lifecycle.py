"""Job state machine.

``JobLifecycleManager`` is the only writer of job status. Allowed moves:

    queued      → processing | failed
    processing  → processing (no-op) | completed | failed

``completed`` and ``failed`` are terminal. Illegal requests are logged and
ignored so a terminal record is never overwritten.
"""

from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Any, Optional, Union

from pydantic import ValidationError

from itinerary_jobs.domain.enums import JobStatus
from itinerary_jobs.domain.exceptions import IllegalTransitionError
from itinerary_jobs.domain.models import Job, JobResult, JobView, utc_now
from itinerary_jobs.infrastructure.job_store import JobStore

_logger = logging.getLogger("itinerary-jobs.lifecycle")

_ALLOWED: dict[JobStatus, frozenset[JobStatus]] = {
    JobStatus.QUEUED: frozenset({JobStatus.PROCESSING, JobStatus.FAILED}),
    JobStatus.PROCESSING: frozenset({JobStatus.PROCESSING, JobStatus.COMPLETED, JobStatus.FAILED}),
    JobStatus.COMPLETED: frozenset(),
    JobStatus.FAILED: frozenset(),
}


def check_transition(job_id: str, current: JobStatus, requested: JobStatus) -> None:
    if requested not in _ALLOWED.get(current, frozenset()):
        raise IllegalTransitionError(job_id, current.value, requested.value)


def _next_timestamp(previous: dt.datetime) -> dt.datetime:
    now = utc_now()
    if now <= previous:
        return previous + dt.timedelta(microseconds=1)
    return now


class JobLifecycleManager:
    def __init__(
        self,
        store: JobStore,
        *,
        create_attempts: int = 3,
        backoff_base_seconds: float = 0.5,
    ):
        self.store = store
        self._create_attempts = max(1, create_attempts)
        self._backoff_base = max(0.0, backoff_base_seconds)

    async def create(self, job_id: str) -> bool:
        """Write a fresh ``queued`` record. Refuses to replace an existing job."""
        if self.store.peek(job_id) is not None:
            _logger.warning("Job %s already exists; not re-creating it", job_id)
            return False
        now = utc_now()
        job = Job(id=job_id, status=JobStatus.QUEUED, created_at=now, updated_at=now)
        ok = await self.store.put(job)
        if ok:
            _logger.info("Created job %s", job_id)
        return ok

    async def create_with_retry(self, job_id: str, attempts: Optional[int] = None) -> bool:
        total = max(1, attempts or self._create_attempts)
        for attempt in range(1, total + 1):
            if await self.create(job_id):
                return True
            if self.store.peek(job_id) is not None:
                return False
            _logger.warning("Creating job %s failed (attempt %d/%d)", job_id, attempt, total)
            if attempt < total and self._backoff_base > 0:
                await asyncio.sleep(self._backoff_base * (2**attempt))
        _logger.error("Giving up creating job %s after %d attempts", job_id, total)
        return False

    async def transition(
        self,
        job_id: str,
        status: Union[JobStatus, str],
        *,
        result: Union[JobResult, dict[str, Any], None] = None,
        error: Optional[str] = None,
        diagnostics: Optional[dict[str, Any]] = None,
    ) -> bool:
        """Apply ``status`` to the job; returns True when the transition took effect."""
        try:
            requested = JobStatus(status)
        except ValueError:
            _logger.error("Job %s: unknown status %r requested", job_id, status)
            return False

        current = await self.store.get(job_id)
        if current is None:
            _logger.warning("Job %s: cannot move to %s, job not found", job_id, requested.value)
            return False

        try:
            check_transition(job_id, current.status, requested)
        except IllegalTransitionError as exc:
            _logger.warning("%s; ignoring", exc)
            return False

        if current.status == requested == JobStatus.PROCESSING:
            return True

        try:
            updated = Job(
                id=job_id,
                status=requested,
                result=result,
                error=error,
                diagnostics=diagnostics,
                created_at=current.created_at,
                updated_at=_next_timestamp(current.updated_at),
            )
        except ValidationError as exc:
            _logger.error("Job %s: rejected %s payload: %s", job_id, requested.value, exc.errors()[0]["msg"])
            return False

        ok = await self.store.put(updated)
        if ok:
            _logger.info("Job %s: %s -> %s", job_id, current.status.value, requested.value)
        return ok

    async def mark_unstartable(self, job_id: str, reason: str) -> bool:
        """``queued → failed`` for a job the caller could not start.

        When no record exists at all a failed record is written directly so a
        later poll still sees why the job never ran.
        """
        current = await self.store.get(job_id)
        if current is not None:
            return await self.transition(job_id, JobStatus.FAILED, error=reason)
        now = utc_now()
        return await self.store.put(Job(id=job_id, status=JobStatus.FAILED, error=reason, created_at=now, updated_at=now))

    async def read(self, job_id: str) -> JobView:
        job = await self.store.get(job_id)
        if job is None:
            return JobView.not_found(job_id)
        return JobView.from_job(job)


__all__ = ["JobLifecycleManager", "check_transition"]
