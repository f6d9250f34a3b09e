"""Shared (non-domain) exceptions."""


class ExternalServiceError(Exception):
    """External service call failed."""


class KeyMissingError(Exception):
    """Required key is missing."""

    def __init__(self, name: str):
        self.key_name = name
        super().__init__(f"Missing required API key: {name} (configure it in .env)")


class DurableTierError(ExternalServiceError):
    """Durable job tier operation failed."""

    code = "durable_error"

    def __init__(self, message: str, *, code: str | None = None):
        if code:
            self.code = code
        super().__init__(message)


class DurableTierUnavailable(DurableTierError):
    """Connectivity-class failure: the tier cannot be reached."""

    code = "unavailable"


class DurableTierDataError(DurableTierError):
    """The tier answered, but the data or schema is unusable."""

    code = "data_error"


class ModelInvocationError(ExternalServiceError):
    """Completion call to the model provider failed."""


class ModelCredentialsError(ModelInvocationError):
    """Provider credentials are missing or malformed."""


class ModelTimeoutError(ModelInvocationError):
    """Completion call exceeded its time budget."""

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(f"Model request timed out after {timeout_seconds:g}s")


class ModelProviderError(ModelInvocationError):
    """Provider answered with a non-success response."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.provider_message = message
        super().__init__(f"HTTP {status_code}: {message}")


class ModelTransportError(ModelInvocationError):
    """Network-level failure talking to the provider."""


class JobCreationError(ExternalServiceError):
    """The initial ``queued`` record could not be written."""

    def __init__(self, job_id: str):
        self.job_id = job_id
        super().__init__(f"Failed to create job {job_id}")
