"""pytest global fixtures: environment isolation."""

import pytest

_ENV_NAMES = (
    "DASHSCOPE_API_KEY",
    "OPENAI_API_KEY",
    "LLM_API_KEY",
    "LLM_BASE_URL",
    "LLM_MODEL",
    "LLM_TIMEOUT_SECONDS",
    "APP_ENV",
    "ALLOW_TEMPLATE_ITINERARY",
    "JOB_STORE_DURABLE_BACKEND",
    "REDIS_URL",
    "JOB_STORE_SQLITE_PATH",
    "STORE_READ_ATTEMPTS",
    "STORE_BACKOFF_BASE_SECONDS",
    "JOB_CREATE_ATTEMPTS",
)


@pytest.fixture(autouse=True)
def no_real_services(monkeypatch):
    """No real LLM keys or durable stores leak into tests from the host environment."""
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)

    from itinerary_jobs.application.context import reset_app_context
    from itinerary_jobs.security.key_manager import reset_key_manager

    reset_key_manager()
    reset_app_context()
    yield
    reset_key_manager()
    reset_app_context()
