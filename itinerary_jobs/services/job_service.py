"""Request-boundary use-cases: submit a generation job, read its status."""

from __future__ import annotations

import logging
import secrets
import string
import time
from typing import Any

from itinerary_jobs.application.context import AppContext
from itinerary_jobs.application.scheduling import JobScheduler
from itinerary_jobs.domain.models import JobView, SurveyInput
from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.shared.exceptions import JobCreationError

_logger = logging.getLogger("itinerary-jobs.api")

_BASE36 = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 13

QUEUED_MESSAGE = "Your itinerary is being generated. Poll the job-status endpoint for updates."
CREATE_FAILED_REASON = "Failed to create job record"


def generate_job_id() -> str:
    """``job_<epoch-ms>_<13 base36 chars>``; the timestamp doubles as the durable key."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(_SUFFIX_LENGTH))
    return f"job_{int(time.time() * 1000)}_{suffix}"


async def submit_generation(ctx: AppContext, survey: SurveyInput, scheduler: JobScheduler) -> dict[str, Any]:
    """Create a queued job, start the pipeline detached, return the job handle.

    Raises ``JobCreationError`` when the queued record cannot be written; the
    job is then marked failed on a best-effort basis.
    """
    job_id = generate_job_id()
    lifecycle = ctx.lifecycle

    if not await lifecycle.create_with_retry(job_id):
        await lifecycle.mark_unstartable(job_id, CREATE_FAILED_REASON)
        raise JobCreationError(job_id)

    view = await lifecycle.read(job_id)
    if not view.found:
        _logger.warning("Job %s not readable right after creation; re-creating once", job_id)
        if not await lifecycle.create(job_id):
            await lifecycle.mark_unstartable(job_id, CREATE_FAILED_REASON)
            raise JobCreationError(job_id)

    scheduler.schedule(job_id, ctx.pipeline.run, job_id, survey)
    _logger.info("Job %s queued for %s (%s → %s)", job_id, survey.destination, survey.start_date, survey.end_date)
    return {"jobId": job_id, "status": "queued", "message": QUEUED_MESSAGE}


async def get_job_status(ctx: AppContext, job_id: str) -> JobView:
    return await ctx.lifecycle.read(job_id)


def describe_job_id(job_id: str) -> dict[str, Any]:
    return {"originalJobId": job_id, "dbCompatibleId": durable_key(job_id)}


__all__ = [
    "QUEUED_MESSAGE",
    "describe_job_id",
    "generate_job_id",
    "get_job_status",
    "submit_generation",
]
