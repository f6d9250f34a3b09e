"""Durable tier interface and factory."""

from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

from itinerary_jobs.config.settings import Settings

_logger = logging.getLogger("itinerary-jobs.store")


class DurableTier(Protocol):
    """Keyed upsert/lookup against a network store.

    Implementations raise ``DurableTierUnavailable`` for connectivity failures
    and ``DurableTierDataError`` when the store answers with unusable data.
    """

    backend: str

    async def upsert(self, key: int, record: dict[str, Any]) -> None: ...

    async def lookup(self, key: int) -> Optional[dict[str, Any]]: ...

    async def close(self) -> None: ...


def build_durable_tier(settings: Settings) -> Optional[DurableTier]:
    backend = settings.durable_backend
    if backend == "redis":
        if not settings.redis_url:
            _logger.warning("JOB_STORE_DURABLE_BACKEND=redis but REDIS_URL is unset; using memory tier only")
            return None
        from itinerary_jobs.persistence.redis_tier import RedisDurableTier

        _logger.info("Durable job tier: redis")
        return RedisDurableTier(settings.redis_url)
    if backend == "sqlite":
        from itinerary_jobs.persistence.sqlite_tier import SQLiteDurableTier

        _logger.info("Durable job tier: sqlite (%s)", settings.sqlite_path)
        return SQLiteDurableTier(settings.sqlite_path)
    _logger.info("No durable job tier configured; using in-process storage only")
    return None


__all__ = ["DurableTier", "build_durable_tier"]
