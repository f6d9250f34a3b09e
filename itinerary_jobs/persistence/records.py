"""Job ↔ durable record codec.

Record shape: ``{id, handle, status, result, error, diagnostics, created_at,
updated_at}``; ``id`` is the numeric durable key and ``handle`` the original
job id, used to detect numeric-key collisions on read.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import ValidationError

from itinerary_jobs.domain.models import Job
from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.shared.exceptions import DurableTierDataError


def job_to_record(job: Job) -> dict[str, Any]:
    return {
        "id": durable_key(job.id),
        "handle": job.id,
        "status": job.status.value,
        "result": job.result.model_dump(mode="json") if job.result is not None else None,
        "error": job.error,
        "diagnostics": job.diagnostics,
        "created_at": job.created_at.isoformat(),
        "updated_at": job.updated_at.isoformat(),
    }


def record_to_job(record: dict[str, Any], job_id: str) -> Optional[Job]:
    """Decode a record; ``None`` when it belongs to a different handle."""
    handle = record.get("handle")
    if handle and handle != job_id:
        return None
    try:
        return Job.model_validate(
            {
                "id": job_id,
                "status": record.get("status"),
                "result": record.get("result"),
                "error": record.get("error"),
                "diagnostics": record.get("diagnostics"),
                "created_at": record.get("created_at"),
                "updated_at": record.get("updated_at"),
            }
        )
    except ValidationError as exc:
        raise DurableTierDataError(
            f"Stored record for {job_id} is malformed: {exc.error_count()} error(s)",
            code="bad_payload",
        ) from exc


__all__ = ["job_to_record", "record_to_job"]
