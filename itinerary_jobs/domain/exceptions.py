"""Domain semantic exceptions."""

from __future__ import annotations


class DomainError(Exception):
    """Base domain exception."""


class InvalidSurveyError(DomainError):
    """Raised when the travel survey cannot produce a valid trip window."""


class IllegalTransitionError(DomainError):
    """Raised when a job status change is not allowed by the state machine."""

    def __init__(self, job_id: str, current: str, requested: str):
        self.job_id = job_id
        self.current = current
        self.requested = requested
        super().__init__(f"Job {job_id}: illegal transition {current} -> {requested}")


class ItineraryRepairError(DomainError):
    """Raised when no repair strategy could recover an itinerary object."""

    def __init__(
        self,
        message: str,
        *,
        raw_sample: str = "",
        error_context: str = "",
        attempts: list[str] | None = None,
    ):
        self.raw_sample = raw_sample
        self.error_context = error_context
        self.attempts = list(attempts or [])
        super().__init__(message)

    def diagnostics(self) -> dict[str, object]:
        return {
            "raw_sample": self.raw_sample,
            "parse_error": str(self),
            "error_context": self.error_context,
            "attempts": self.attempts,
        }
