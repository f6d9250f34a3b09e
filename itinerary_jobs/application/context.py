"""Application context for dependency injection."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Optional

from itinerary_jobs.application.generation_pipeline import GenerationPipeline
from itinerary_jobs.application.job_lifecycle import JobLifecycleManager
from itinerary_jobs.config.settings import Settings, load_settings
from itinerary_jobs.infrastructure.job_store import JobStore
from itinerary_jobs.infrastructure.llm_client import CompletionClient, build_completion_client
from itinerary_jobs.persistence.durable import DurableTier, build_durable_tier
from itinerary_jobs.repair.engine import OutputRepairEngine
from itinerary_jobs.security.key_manager import KeyManager, get_key_manager

_FROM_SETTINGS: Any = object()


@dataclass
class AppContext:
    settings: Settings
    store: JobStore
    lifecycle: JobLifecycleManager
    pipeline: GenerationPipeline
    key_manager: KeyManager

    async def close(self) -> None:
        await self.store.close()


def make_app_context(
    settings: Optional[Settings] = None,
    *,
    durable: Optional[DurableTier] = _FROM_SETTINGS,
    client: Optional[CompletionClient] = None,
    repair_engine: Optional[OutputRepairEngine] = None,
    key_manager: Optional[KeyManager] = None,
) -> AppContext:
    settings = settings or load_settings()
    km = key_manager or get_key_manager()
    if durable is _FROM_SETTINGS:
        durable = build_durable_tier(settings)

    store = JobStore(
        durable,
        read_attempts=settings.store_read_attempts,
        backoff_base_seconds=settings.store_backoff_base_seconds,
    )
    lifecycle = JobLifecycleManager(
        store,
        create_attempts=settings.job_create_attempts,
        backoff_base_seconds=settings.store_backoff_base_seconds,
    )
    pipeline = GenerationPipeline(
        lifecycle,
        client or build_completion_client(settings, km),
        repair_engine or OutputRepairEngine(),
        settings=settings,
        key_manager=km,
    )
    return AppContext(settings=settings, store=store, lifecycle=lifecycle, pipeline=pipeline, key_manager=km)


_context: Optional[AppContext] = None
_context_lock = threading.Lock()


def get_app_context() -> AppContext:
    global _context
    if _context is None:
        with _context_lock:
            if _context is None:
                _context = make_app_context()
    return _context


def set_app_context(ctx: Optional[AppContext]) -> None:
    global _context
    with _context_lock:
        _context = ctx


def reset_app_context() -> None:
    set_app_context(None)


async def close_app_context() -> None:
    global _context
    ctx, _context = _context, None
    if ctx is not None:
        await ctx.close()


__all__ = [
    "AppContext",
    "close_app_context",
    "get_app_context",
    "make_app_context",
    "reset_app_context",
    "set_app_context",
]
