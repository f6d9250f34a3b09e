"""Domain enums."""

from enum import Enum


class JobStatus(str, Enum):
    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    # Read sentinel only; never persisted.
    NOT_FOUND = "not_found"


TERMINAL_STATUSES = frozenset({JobStatus.COMPLETED, JobStatus.FAILED})


class TimeOfDay(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


class BudgetLevel(str, Enum):
    BUDGET = "budget"
    MODERATE = "moderate"
    LUXURY = "luxury"


class TripPurpose(str, Enum):
    VACATION = "vacation"
    HONEYMOON = "honeymoon"
    FAMILY = "family"
    SOLO = "solo"
    BUSINESS = "business"
    WEEKEND = "weekend"
    ROADTRIP = "roadtrip"
