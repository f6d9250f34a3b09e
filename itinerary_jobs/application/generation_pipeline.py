"""Drive one job from ``queued`` to a terminal state.

``run`` never raises: every failure path ends in a ``failed`` transition so a
poller always sees the job finish.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from itinerary_jobs.application.job_lifecycle import JobLifecycleManager
from itinerary_jobs.config.settings import Settings
from itinerary_jobs.domain.enums import JobStatus
from itinerary_jobs.domain.exceptions import InvalidSurveyError, ItineraryRepairError
from itinerary_jobs.domain.models import JobResult, SurveyInput
from itinerary_jobs.infrastructure.llm_client import CompletionClient
from itinerary_jobs.infrastructure.logging import JobEventLog, job_event_log
from itinerary_jobs.planner.prompt_builder import GenerationPrompt, build_prompt
from itinerary_jobs.repair.engine import OutputRepairEngine, RepairOutcome
from itinerary_jobs.repair.normalize import TripWindow
from itinerary_jobs.security.key_manager import KeyManager, get_key_manager
from itinerary_jobs.security.redact import clip_job_error
from itinerary_jobs.shared.exceptions import (
    ModelCredentialsError,
    ModelInvocationError,
    ModelProviderError,
    ModelTimeoutError,
)

_logger = logging.getLogger("itinerary-jobs.pipeline")

TIMEOUT_MESSAGE = "The request to generate an itinerary timed out. Please try again."
PARSE_FAILURE_MESSAGE = "Unable to parse the generated itinerary data"


class _StageFailed(Exception):
    """Internal: a stage produced a caller-safe failure for the job."""

    def __init__(self, message: str, diagnostics: Optional[dict] = None):
        self.diagnostics = diagnostics
        super().__init__(message)


class GenerationPipeline:
    def __init__(
        self,
        lifecycle: JobLifecycleManager,
        client: CompletionClient,
        repair_engine: Optional[OutputRepairEngine] = None,
        *,
        settings: Optional[Settings] = None,
        key_manager: Optional[KeyManager] = None,
        log_output=None,
    ):
        self.lifecycle = lifecycle
        self.client = client
        self.repair_engine = repair_engine or OutputRepairEngine()
        self.settings = settings or Settings()
        self._km = key_manager or get_key_manager()
        self._log_output = log_output

    async def run(self, job_id: str, survey: SurveyInput) -> JobStatus:
        log = job_event_log(job_id, output=self._log_output, scrubber=self._km.scrub_text)
        try:
            return await self._run(job_id, survey, log)
        except _StageFailed as exc:
            return await self._fail(job_id, str(exc), log, diagnostics=exc.diagnostics)
        except Exception as exc:
            safe = self._km.scrub_text(str(exc)) or type(exc).__name__
            _logger.exception("Job %s: unexpected pipeline error", job_id)
            return await self._fail(job_id, f"Internal error: {safe}", log)

    async def _run(self, job_id: str, survey: SurveyInput, log: JobEventLog) -> JobStatus:
        if not await self.lifecycle.transition(job_id, JobStatus.PROCESSING):
            view = await self.lifecycle.read(job_id)
            _logger.warning("Job %s: could not enter processing (status=%s); not running", job_id, view.status.value)
            return view.status
        log.transition(JobStatus.QUEUED.value, JobStatus.PROCESSING.value)

        prompt = self._build_prompt(survey, log)
        raw = await self._invoke_model(prompt, log)
        outcome = self._repair(raw, survey, log)

        result = JobResult(itinerary=outcome.itinerary.to_payload(), prompt=prompt.user_prompt)
        if not await self.lifecycle.transition(job_id, JobStatus.COMPLETED, result=result):
            view = await self.lifecycle.read(job_id)
            _logger.error("Job %s: completed result was not recorded (status=%s)", job_id, view.status.value)
            return view.status

        log.transition(JobStatus.PROCESSING.value, JobStatus.COMPLETED.value)
        log.summary(
            status=JobStatus.COMPLETED.value,
            days=len(outcome.itinerary.days),
            strategy=outcome.strategy,
            fixes=len(outcome.fixes),
        )
        return JobStatus.COMPLETED

    def _build_prompt(self, survey: SurveyInput, log: JobEventLog) -> GenerationPrompt:
        log.stage_start("prompt")
        try:
            prompt = build_prompt(survey)
        except InvalidSurveyError as exc:
            log.error("prompt", str(exc))
            raise _StageFailed(str(exc)) from exc
        log.stage_end("prompt", day_count=prompt.day_count, destination=survey.destination)
        return prompt

    async def _invoke_model(self, prompt: GenerationPrompt, log: JobEventLog) -> str:
        timeout = self.settings.llm_timeout_seconds
        log.stage_start("model", provider=getattr(self.client, "provider", "unknown"), timeout_s=timeout)
        try:
            raw = await asyncio.wait_for(
                self.client.complete(
                    prompt.system_prompt,
                    prompt.user_prompt,
                    max_tokens=self.settings.llm_max_tokens,
                    temperature=self.settings.llm_temperature,
                ),
                timeout=timeout,
            )
        except (asyncio.TimeoutError, ModelTimeoutError) as exc:
            log.error("model", f"timeout after {timeout:g}s")
            raise _StageFailed(TIMEOUT_MESSAGE) from exc
        except ModelCredentialsError as exc:
            log.error("model", str(exc))
            raise _StageFailed(self._km.scrub_text(str(exc))) from exc
        except ModelProviderError as exc:
            log.error("model", str(exc), status_code=exc.status_code)
            raise _StageFailed(f"Failed to generate itinerary: {self._km.scrub_text(exc.provider_message)}") from exc
        except ModelInvocationError as exc:
            log.error("model", str(exc))
            raise _StageFailed(f"Failed to generate itinerary: {self._km.scrub_text(str(exc))}") from exc
        log.stage_end("model", chars=len(raw))
        return raw

    def _repair(self, raw: str, survey: SurveyInput, log: JobEventLog) -> RepairOutcome:
        log.stage_start("repair")
        try:
            outcome = self.repair_engine.repair(raw, TripWindow.from_survey(survey))
        except ItineraryRepairError as exc:
            log.error("repair", str(exc), attempts=exc.attempts)
            raise _StageFailed(PARSE_FAILURE_MESSAGE, diagnostics=exc.diagnostics()) from exc
        if outcome.fixes:
            log.warning("repair", f"normalization applied {len(outcome.fixes)} fix(es)", fixes=list(outcome.fixes[:20]))
        log.stage_end("repair", strategy=outcome.strategy, rewrites=list(outcome.rewrites))
        return outcome

    async def _fail(
        self,
        job_id: str,
        message: str,
        log: JobEventLog,
        *,
        diagnostics: Optional[dict] = None,
    ) -> JobStatus:
        message = clip_job_error(message)
        applied = await self.lifecycle.transition(job_id, JobStatus.FAILED, error=message, diagnostics=diagnostics)
        if not applied:
            view = await self.lifecycle.read(job_id)
            _logger.error("Job %s: failure %r was not recorded (status=%s)", job_id, message, view.status.value)
            log.summary(status=view.status.value, error=message, recorded=False)
            return view.status
        log.transition(JobStatus.PROCESSING.value, JobStatus.FAILED.value)
        log.summary(status=JobStatus.FAILED.value, error=message)
        return JobStatus.FAILED


__all__ = ["GenerationPipeline", "PARSE_FAILURE_MESSAGE", "TIMEOUT_MESSAGE"]
