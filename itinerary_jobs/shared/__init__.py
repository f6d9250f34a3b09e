"""Shared cross-layer types and exceptions."""

from itinerary_jobs.shared.exceptions import (
    DurableTierDataError,
    DurableTierError,
    DurableTierUnavailable,
    ExternalServiceError,
    JobCreationError,
    KeyMissingError,
    ModelCredentialsError,
    ModelInvocationError,
    ModelProviderError,
    ModelTimeoutError,
    ModelTransportError,
)

__all__ = [
    "DurableTierDataError",
    "DurableTierError",
    "DurableTierUnavailable",
    "ExternalServiceError",
    "JobCreationError",
    "KeyMissingError",
    "ModelCredentialsError",
    "ModelInvocationError",
    "ModelProviderError",
    "ModelTimeoutError",
    "ModelTransportError",
]
