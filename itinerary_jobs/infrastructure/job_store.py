"""Two-tier job record store: in-process primary tier plus optional durable tier.

The primary tier is a plain dict owned by one ``JobStore`` instance and is the
success criterion for writes. The durable tier is best-effort: connectivity
failures disable it for the rest of the process, every other failure is
logged and absorbed. No method raises to its caller.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any, Optional

from itinerary_jobs.domain.models import Job
from itinerary_jobs.persistence.durable import DurableTier
from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.persistence.records import job_to_record, record_to_job
from itinerary_jobs.shared.exceptions import DurableTierDataError, DurableTierError, DurableTierUnavailable

_logger = logging.getLogger("itinerary-jobs.store")


class JobStore:
    def __init__(
        self,
        durable: Optional[DurableTier] = None,
        *,
        read_attempts: int = 3,
        backoff_base_seconds: float = 0.5,
    ):
        self._primary: dict[str, Job] = {}
        self._durable = durable
        self._durable_disabled = False
        self._read_attempts = max(1, read_attempts)
        self._backoff_base = max(0.0, backoff_base_seconds)

    @property
    def backend(self) -> str:
        if self._durable is None:
            return "memory"
        return f"memory+{self._durable.backend}"

    @property
    def durable_enabled(self) -> bool:
        return self._durable is not None and not self._durable_disabled

    def _disable_durable(self, exc: Exception) -> None:
        if not self._durable_disabled:
            _logger.warning("Disabling durable job tier for this process after connectivity failure: %s", exc)
        self._durable_disabled = True

    def peek(self, job_id: str) -> Optional[Job]:
        """Primary-tier read only; never touches the network."""
        job = self._primary.get(job_id)
        return job.model_copy(deep=True) if job is not None else None

    async def put(self, job: Job) -> bool:
        try:
            self._primary[job.id] = job.model_copy(deep=True)
        except Exception:
            _logger.exception("Primary tier write failed for job %s", job.id)
            return False

        if not self.durable_enabled:
            return True

        try:
            record = job_to_record(job)
            await self._durable.upsert(record["id"], record)
        except DurableTierUnavailable as exc:
            self._disable_durable(exc)
        except DurableTierError as exc:
            _logger.error("Durable write for job %s failed [%s]: %s", job.id, exc.code, exc)
        except Exception:
            _logger.exception("Unexpected durable write failure for job %s", job.id)
        else:
            _logger.debug("Job %s (key %s) written to durable tier as %s", job.id, record["id"], job.status.value)
        return True

    async def get(self, job_id: str) -> Optional[Job]:
        local = self._primary.get(job_id)
        if not self.durable_enabled:
            return local.model_copy(deep=True) if local is not None else None

        key = durable_key(job_id)
        last_error: Optional[Exception] = None
        for attempt in range(1, self._read_attempts + 1):
            try:
                record = await self._durable.lookup(key)
                remote = record_to_job(record, job_id) if record is not None else None
            except DurableTierDataError as exc:
                _logger.error("Durable read for job %s returned unusable data [%s]: %s", job_id, exc.code, exc)
                return self._fallback(local)
            except DurableTierError as exc:
                last_error = exc
            except Exception as exc:
                _logger.exception("Unexpected durable read failure for job %s", job_id)
                last_error = exc
            else:
                if record is not None and remote is None:
                    _logger.warning("Durable key %s belongs to another job; ignoring it for %s", key, job_id)
                if remote is None:
                    return self._fallback(local)
                return self._promote(remote, local)

            _logger.warning(
                "Durable read for job %s failed (attempt %d/%d): %s",
                job_id,
                attempt,
                self._read_attempts,
                last_error,
            )
            if attempt < self._read_attempts and self._backoff_base > 0:
                await asyncio.sleep(self._backoff_base * (2**attempt))

        _logger.warning("All %d durable reads for job %s failed; using in-memory data", self._read_attempts, job_id)
        if isinstance(last_error, DurableTierUnavailable):
            self._disable_durable(last_error)
        return self._fallback(local)

    @staticmethod
    def _fallback(local: Optional[Job]) -> Optional[Job]:
        return local.model_copy(deep=True) if local is not None else None

    def _promote(self, remote: Job, local: Optional[Job]) -> Job:
        # A newer local record wins: the durable copy may lag behind a failed write.
        if local is not None and local.updated_at > remote.updated_at:
            return local.model_copy(deep=True)
        self._primary[remote.id] = remote
        return remote.model_copy(deep=True)

    def stats(self) -> dict[str, Any]:
        by_status = Counter(job.status.value for job in self._primary.values())
        return {
            "backend": self.backend,
            "durable_enabled": self.durable_enabled,
            "jobs": len(self._primary),
            "by_status": dict(by_status),
        }

    async def close(self) -> None:
        if self._durable is None:
            return
        try:
            await self._durable.close()
        except Exception as exc:
            _logger.warning("Closing durable tier failed: %s", exc)


__all__ = ["JobStore"]
