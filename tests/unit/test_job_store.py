"""Two-tier JobStore: fallback, promotion, tier disabling."""

from __future__ import annotations

import asyncio
import datetime as dt

from itinerary_jobs.domain.enums import JobStatus
from itinerary_jobs.domain.models import Job, JobResult
from itinerary_jobs.infrastructure.job_store import JobStore
from itinerary_jobs.persistence.keys import durable_key
from itinerary_jobs.persistence.records import job_to_record
from itinerary_jobs.shared.exceptions import DurableTierDataError, DurableTierUnavailable

_T0 = dt.datetime(2024, 6, 1, 12, 0, tzinfo=dt.timezone.utc)


def _job(job_id: str = "job_1717236000000_abc", status: JobStatus = JobStatus.QUEUED, *, minutes: int = 0) -> Job:
    kwargs = {}
    if status == JobStatus.COMPLETED:
        kwargs["result"] = JobResult(itinerary={"title": "x"}, prompt="p")
    if status == JobStatus.FAILED:
        kwargs["error"] = "boom"
    return Job(
        id=job_id,
        status=status,
        created_at=_T0,
        updated_at=_T0 + dt.timedelta(minutes=minutes),
        **kwargs,
    )


class _MemoryTier:
    backend = "fake"

    def __init__(self) -> None:
        self.records: dict[int, dict] = {}
        self.accept_writes = True
        self.lookups = 0

    async def upsert(self, key, record):
        if self.accept_writes:
            self.records[key] = dict(record)

    async def lookup(self, key):
        self.lookups += 1
        record = self.records.get(key)
        return dict(record) if record is not None else None

    async def close(self):
        return None


class _DownTier:
    backend = "fake"

    def __init__(self, *, fail_writes: bool = True) -> None:
        self.fail_writes = fail_writes
        self.upserts = 0
        self.lookups = 0

    async def upsert(self, key, record):
        self.upserts += 1
        if self.fail_writes:
            raise DurableTierUnavailable("connection refused")

    async def lookup(self, key):
        self.lookups += 1
        raise DurableTierUnavailable("connection refused")

    async def close(self):
        return None


class _BadDataTier(_MemoryTier):
    async def lookup(self, key):
        self.lookups += 1
        raise DurableTierDataError("relation does not exist", code="missing_table")


def test_memory_only_round_trip():
    async def scenario():
        store = JobStore()
        job = _job()
        assert await store.put(job) is True
        return store, await store.get(job.id)

    store, fetched = asyncio.run(scenario())
    assert fetched == _job()
    assert store.backend == "memory"
    assert store.durable_enabled is False


def test_unknown_job_is_none():
    assert asyncio.run(JobStore().get("job_1_missing")) is None


def test_unreachable_durable_tier_falls_back_to_last_write():
    tier = _DownTier()

    async def scenario():
        store = JobStore(tier, backoff_base_seconds=0)
        await store.put(_job())
        await store.put(_job(status=JobStatus.PROCESSING, minutes=1))
        return store, await store.get("job_1717236000000_abc")

    store, fetched = asyncio.run(scenario())
    assert fetched.status == JobStatus.PROCESSING
    assert store.durable_enabled is False
    # Disabled after the first failed write; later operations skip the tier.
    assert tier.upserts == 1
    assert tier.lookups == 0


def test_read_retries_then_disables_durable_tier():
    tier = _DownTier(fail_writes=False)

    async def scenario():
        store = JobStore(tier, read_attempts=3, backoff_base_seconds=0)
        await store.put(_job())
        first = await store.get("job_1717236000000_abc")
        second = await store.get("job_1717236000000_abc")
        return store, first, second

    store, first, second = asyncio.run(scenario())
    assert first == second == _job()
    assert tier.lookups == 3
    assert store.durable_enabled is False


def test_data_errors_fall_back_without_disabling():
    tier = _BadDataTier()

    async def scenario():
        store = JobStore(tier, backoff_base_seconds=0)
        await store.put(_job())
        return store, await store.get("job_1717236000000_abc")

    store, fetched = asyncio.run(scenario())
    assert fetched == _job()
    assert tier.lookups == 1
    assert store.durable_enabled is True


def test_durable_record_is_promoted_into_primary_tier():
    tier = _MemoryTier()
    remote = _job(status=JobStatus.COMPLETED, minutes=5)
    tier.records[durable_key(remote.id)] = job_to_record(remote)

    async def scenario():
        store = JobStore(tier, backoff_base_seconds=0)
        assert store.peek(remote.id) is None
        fetched = await store.get(remote.id)
        return store, fetched

    store, fetched = asyncio.run(scenario())
    assert fetched.status == JobStatus.COMPLETED
    assert store.peek(remote.id) == fetched


def test_newer_local_record_beats_stale_durable_copy():
    tier = _MemoryTier()

    async def scenario():
        store = JobStore(tier, backoff_base_seconds=0)
        await store.put(_job())
        tier.accept_writes = False
        await store.put(_job(status=JobStatus.PROCESSING, minutes=1))
        return await store.get("job_1717236000000_abc")

    fetched = asyncio.run(scenario())
    assert fetched.status == JobStatus.PROCESSING


def test_colliding_durable_key_is_ignored():
    tier = _MemoryTier()
    other = _job("job_1717236000000_zzz", status=JobStatus.COMPLETED)
    tier.records[durable_key(other.id)] = job_to_record(other)

    async def scenario():
        store = JobStore(tier, backoff_base_seconds=0)
        return await store.get("job_1717236000000_abc")

    assert asyncio.run(scenario()) is None


def test_put_is_idempotent():
    tier = _MemoryTier()

    async def scenario():
        store = JobStore(tier)
        job = _job(status=JobStatus.FAILED, minutes=2)
        await store.put(job)
        await store.put(job)
        return store, await store.get(job.id)

    store, fetched = asyncio.run(scenario())
    assert fetched == _job(status=JobStatus.FAILED, minutes=2)
    assert len(tier.records) == 1
    assert store.stats()["jobs"] == 1


def test_returned_jobs_are_copies():
    async def scenario():
        store = JobStore()
        await store.put(_job())
        fetched = await store.get("job_1717236000000_abc")
        fetched.status = JobStatus.FAILED
        return await store.get("job_1717236000000_abc")

    assert asyncio.run(scenario()).status == JobStatus.QUEUED


def test_stats_counts_by_status():
    async def scenario():
        store = JobStore(_MemoryTier())
        await store.put(_job("job_1_a"))
        await store.put(_job("job_2_b", status=JobStatus.COMPLETED))
        return store.stats()

    stats = asyncio.run(scenario())
    assert stats["backend"] == "memory+fake"
    assert stats["durable_enabled"] is True
    assert stats["by_status"] == {"queued": 1, "completed": 1}
