"""Application orchestration layer."""

from itinerary_jobs.application.context import AppContext, get_app_context, make_app_context, reset_app_context
from itinerary_jobs.application.generation_pipeline import GenerationPipeline
from itinerary_jobs.application.job_lifecycle import JobLifecycleManager
from itinerary_jobs.application.scheduling import AsyncioTaskScheduler, BackgroundTaskScheduler, JobScheduler

__all__ = [
    "AppContext",
    "AsyncioTaskScheduler",
    "BackgroundTaskScheduler",
    "GenerationPipeline",
    "JobLifecycleManager",
    "JobScheduler",
    "get_app_context",
    "make_app_context",
    "reset_app_context",
]
