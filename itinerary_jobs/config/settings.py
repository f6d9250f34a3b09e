"""Environment-driven settings snapshot."""

from __future__ import annotations

import os

from pydantic import BaseModel, Field

_TRUTHY = {"1", "true", "yes", "on"}

_DASHSCOPE_BASE_URL = "https://dashscope.aliyuncs.com/compatible-mode/v1"
_DASHSCOPE_DEFAULT_MODEL = "qwen-plus"
_OPENAI_BASE_URL = "https://api.openai.com/v1"
_OPENAI_DEFAULT_MODEL = "gpt-4o-mini"


def _is_enabled(value: str | None) -> bool:
    return bool(value and value.strip().lower() in _TRUTHY)


def _is_configured(value: str | None) -> bool:
    return bool(value and value.strip())


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not _is_configured(raw):
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not _is_configured(raw):
        return default
    try:
        return float(str(raw).strip())
    except ValueError:
        return default


def resolve_llm_provider() -> str:
    if _is_configured(os.getenv("DASHSCOPE_API_KEY")):
        return "dashscope"
    if _is_configured(os.getenv("OPENAI_API_KEY")):
        return "openai"
    if _is_configured(os.getenv("LLM_API_KEY")):
        return "llm_compatible"
    return "template"


def resolve_durable_backend() -> str:
    mode = str(os.getenv("JOB_STORE_DURABLE_BACKEND") or "").strip().lower()
    if mode in {"redis", "sqlite", "none"}:
        return mode
    if _is_configured(os.getenv("REDIS_URL")):
        return "redis"
    return "none"


class Settings(BaseModel):
    app_env: str = Field(default="production")
    allow_template_itinerary: bool = Field(default=False)

    llm_provider: str = Field(default="template")
    llm_base_url: str = Field(default=_OPENAI_BASE_URL)
    llm_model: str = Field(default=_OPENAI_DEFAULT_MODEL)
    llm_timeout_seconds: float = Field(default=45.0, gt=0)
    llm_max_tokens: int = Field(default=3000, gt=0)
    llm_temperature: float = Field(default=0.7, ge=0, le=2)

    durable_backend: str = Field(default="none")
    redis_url: str | None = None
    sqlite_path: str = Field(default="data/itinerary_jobs.sqlite3")

    store_read_attempts: int = Field(default=3, ge=1)
    store_backoff_base_seconds: float = Field(default=0.5, ge=0)
    job_create_attempts: int = Field(default=3, ge=1)

    @property
    def template_mode_allowed(self) -> bool:
        return self.allow_template_itinerary or self.app_env == "development"


def load_settings() -> Settings:
    provider = resolve_llm_provider()
    if provider == "dashscope":
        base_url = os.getenv("LLM_BASE_URL", _DASHSCOPE_BASE_URL)
        model = os.getenv("LLM_MODEL", _DASHSCOPE_DEFAULT_MODEL)
    else:
        base_url = os.getenv("LLM_BASE_URL", _OPENAI_BASE_URL)
        model = os.getenv("LLM_MODEL", _OPENAI_DEFAULT_MODEL)

    return Settings(
        app_env=str(os.getenv("APP_ENV") or "production").strip().lower(),
        allow_template_itinerary=_is_enabled(os.getenv("ALLOW_TEMPLATE_ITINERARY")),
        llm_provider=provider,
        llm_base_url=base_url,
        llm_model=model,
        llm_timeout_seconds=_env_float("LLM_TIMEOUT_SECONDS", 45.0),
        llm_max_tokens=_env_int("LLM_MAX_TOKENS", 3000),
        llm_temperature=_env_float("LLM_TEMPERATURE", 0.7),
        durable_backend=resolve_durable_backend(),
        redis_url=os.getenv("REDIS_URL") or None,
        sqlite_path=os.getenv("JOB_STORE_SQLITE_PATH", "data/itinerary_jobs.sqlite3"),
        store_read_attempts=max(1, _env_int("STORE_READ_ATTEMPTS", 3)),
        store_backoff_base_seconds=max(0.0, _env_float("STORE_BACKOFF_BASE_SECONDS", 0.5)),
        job_create_attempts=max(1, _env_int("JOB_CREATE_ATTEMPTS", 3)),
    )


__all__ = ["Settings", "load_settings", "resolve_durable_backend", "resolve_llm_provider"]
