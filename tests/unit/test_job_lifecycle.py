"""Job state machine."""

from __future__ import annotations

import asyncio

import pytest

from itinerary_jobs.application.job_lifecycle import JobLifecycleManager, check_transition
from itinerary_jobs.domain.enums import JobStatus
from itinerary_jobs.domain.exceptions import IllegalTransitionError
from itinerary_jobs.domain.models import JobResult
from itinerary_jobs.infrastructure.job_store import JobStore

JOB_ID = "job_1717236000000_lifecycle"
RESULT = JobResult(itinerary={"title": "Trip"}, prompt="prompt text")


def _manager(store=None) -> JobLifecycleManager:
    return JobLifecycleManager(store or JobStore(), backoff_base_seconds=0)


class _FlakyStore:
    """Primary writes fail ``failures`` times before succeeding."""

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.jobs = {}
        self.puts = 0

    def peek(self, job_id):
        return self.jobs.get(job_id)

    async def put(self, job):
        self.puts += 1
        if self.failures > 0:
            self.failures -= 1
            return False
        self.jobs[job.id] = job
        return True

    async def get(self, job_id):
        return self.jobs.get(job_id)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (JobStatus.QUEUED, JobStatus.PROCESSING),
        (JobStatus.QUEUED, JobStatus.FAILED),
        (JobStatus.PROCESSING, JobStatus.PROCESSING),
        (JobStatus.PROCESSING, JobStatus.COMPLETED),
        (JobStatus.PROCESSING, JobStatus.FAILED),
    ],
)
def test_allowed_transitions(current, requested):
    check_transition(JOB_ID, current, requested)


@pytest.mark.parametrize(
    ("current", "requested"),
    [
        (JobStatus.QUEUED, JobStatus.COMPLETED),
        (JobStatus.COMPLETED, JobStatus.PROCESSING),
        (JobStatus.COMPLETED, JobStatus.FAILED),
        (JobStatus.FAILED, JobStatus.PROCESSING),
        (JobStatus.FAILED, JobStatus.COMPLETED),
        (JobStatus.PROCESSING, JobStatus.QUEUED),
    ],
)
def test_illegal_transitions(current, requested):
    with pytest.raises(IllegalTransitionError):
        check_transition(JOB_ID, current, requested)


def test_create_then_read_queued():
    async def scenario():
        manager = _manager()
        assert await manager.create(JOB_ID) is True
        return await manager.read(JOB_ID)

    view = asyncio.run(scenario())
    assert view.status == JobStatus.QUEUED
    assert view.result is None and view.error is None
    assert view.created_at == view.updated_at


def test_create_refuses_existing_job():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.transition(JOB_ID, JobStatus.PROCESSING)
        again = await manager.create(JOB_ID)
        return again, await manager.read(JOB_ID)

    again, view = asyncio.run(scenario())
    assert again is False
    assert view.status == JobStatus.PROCESSING


def test_full_success_path_advances_timestamps():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        created = await manager.read(JOB_ID)
        assert await manager.transition(JOB_ID, JobStatus.PROCESSING)
        processing = await manager.read(JOB_ID)
        assert await manager.transition(JOB_ID, "completed", result=RESULT)
        completed = await manager.read(JOB_ID)
        return created, processing, completed

    created, processing, completed = asyncio.run(scenario())
    assert completed.status == JobStatus.COMPLETED
    assert completed.result == RESULT
    assert completed.error is None
    assert created.created_at == processing.created_at == completed.created_at
    assert created.updated_at < processing.updated_at < completed.updated_at


def test_terminal_state_is_never_left():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.transition(JOB_ID, JobStatus.PROCESSING)
        await manager.transition(JOB_ID, JobStatus.COMPLETED, result=RESULT)
        applied = [
            await manager.transition(JOB_ID, JobStatus.PROCESSING),
            await manager.transition(JOB_ID, JobStatus.FAILED, error="late failure"),
        ]
        return applied, await manager.read(JOB_ID)

    applied, view = asyncio.run(scenario())
    assert applied == [False, False]
    assert view.status == JobStatus.COMPLETED
    assert view.result == RESULT


def test_reentering_processing_is_a_noop():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.transition(JOB_ID, JobStatus.PROCESSING)
        before = await manager.read(JOB_ID)
        applied = await manager.transition(JOB_ID, JobStatus.PROCESSING)
        return applied, before, await manager.read(JOB_ID)

    applied, before, after = asyncio.run(scenario())
    assert applied is True
    assert after.updated_at == before.updated_at


def test_completed_without_result_is_rejected():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.transition(JOB_ID, JobStatus.PROCESSING)
        applied = await manager.transition(JOB_ID, JobStatus.COMPLETED)
        return applied, await manager.read(JOB_ID)

    applied, view = asyncio.run(scenario())
    assert applied is False
    assert view.status == JobStatus.PROCESSING


def test_failed_carries_error_and_diagnostics():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.transition(JOB_ID, JobStatus.PROCESSING)
        await manager.transition(JOB_ID, JobStatus.FAILED, error="bad output", diagnostics={"raw_sample": "{"})
        return await manager.read(JOB_ID)

    view = asyncio.run(scenario())
    assert view.status == JobStatus.FAILED
    assert view.error == "bad output"
    assert view.diagnostics == {"raw_sample": "{"}
    assert view.result is None


def test_transition_on_unknown_job_is_ignored():
    assert asyncio.run(_manager().transition("job_1_nope", JobStatus.PROCESSING)) is False


def test_unknown_status_string_is_ignored():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        return await manager.transition(JOB_ID, "paused")

    assert asyncio.run(scenario()) is False


def test_read_unknown_is_not_found():
    view = asyncio.run(_manager().read("job_1_nope"))
    assert view.status == JobStatus.NOT_FOUND
    assert view.found is False


def test_mark_unstartable_fails_queued_job():
    async def scenario():
        manager = _manager()
        await manager.create(JOB_ID)
        await manager.mark_unstartable(JOB_ID, "could not start")
        return await manager.read(JOB_ID)

    view = asyncio.run(scenario())
    assert view.status == JobStatus.FAILED
    assert view.error == "could not start"


def test_mark_unstartable_without_record_writes_failed_job():
    async def scenario():
        manager = _manager()
        assert await manager.mark_unstartable(JOB_ID, "store down")
        return await manager.read(JOB_ID)

    assert asyncio.run(scenario()).status == JobStatus.FAILED


def test_create_with_retry_recovers_from_transient_failures():
    store = _FlakyStore(failures=2)
    assert asyncio.run(_manager(store).create_with_retry(JOB_ID)) is True
    assert store.puts == 3
    assert store.jobs[JOB_ID].status == JobStatus.QUEUED


def test_create_with_retry_gives_up_after_attempt_cap():
    store = _FlakyStore(failures=10)
    assert asyncio.run(_manager(store).create_with_retry(JOB_ID, attempts=3)) is False
    assert store.puts == 3
