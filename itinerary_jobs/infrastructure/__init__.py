"""Infrastructure services and cross-cutting utilities."""

from itinerary_jobs.infrastructure.job_store import JobStore
from itinerary_jobs.infrastructure.llm_client import (
    CompletionClient,
    OpenAICompatibleClient,
    TemplateItineraryClient,
    UnconfiguredClient,
    build_completion_client,
)
from itinerary_jobs.infrastructure.logging import JobEventLog, job_event_log

__all__ = [
    "CompletionClient",
    "JobEventLog",
    "JobStore",
    "OpenAICompatibleClient",
    "TemplateItineraryClient",
    "UnconfiguredClient",
    "build_completion_client",
    "job_event_log",
]
