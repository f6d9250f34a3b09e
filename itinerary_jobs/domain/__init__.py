"""Domain layer: job and itinerary models, enums, and semantic exceptions."""

from itinerary_jobs.domain.enums import TERMINAL_STATUSES, JobStatus, TimeOfDay
from itinerary_jobs.domain.exceptions import (
    DomainError,
    IllegalTransitionError,
    InvalidSurveyError,
    ItineraryRepairError,
)
from itinerary_jobs.domain.models import (
    Activity,
    Coordinates,
    Itinerary,
    ItineraryDay,
    Job,
    JobResult,
    JobView,
    SurveyInput,
)

__all__ = [
    "Activity",
    "Coordinates",
    "DomainError",
    "IllegalTransitionError",
    "InvalidSurveyError",
    "Itinerary",
    "ItineraryDay",
    "ItineraryRepairError",
    "Job",
    "JobResult",
    "JobStatus",
    "JobView",
    "SurveyInput",
    "TERMINAL_STATUSES",
    "TimeOfDay",
]
