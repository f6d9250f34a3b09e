"""Redis-backed durable tier for job records."""

from __future__ import annotations

import json
from typing import Any, Awaitable, Optional, TypeVar

import redis.asyncio as aioredis
from redis import exceptions as redis_exceptions

from itinerary_jobs.shared.exceptions import DurableTierDataError, DurableTierUnavailable

T = TypeVar("T")

_DEFAULT_PREFIX = "itinerary-jobs:job:"
_DEFAULT_SOCKET_TIMEOUT = 2.0


class RedisDurableTier:
    backend = "redis"

    def __init__(
        self,
        redis_url: str | None = None,
        *,
        client: Any = None,
        prefix: str = _DEFAULT_PREFIX,
        socket_timeout: float = _DEFAULT_SOCKET_TIMEOUT,
    ):
        if client is None:
            if not redis_url:
                raise ValueError("redis_url or client is required")
            client = aioredis.Redis.from_url(
                redis_url,
                decode_responses=True,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        self._client = client
        self._prefix = prefix

    def _key(self, key: int) -> str:
        return f"{self._prefix}{key}"

    async def _call(self, operation: Awaitable[T]) -> T:
        try:
            return await operation
        except (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError, OSError) as exc:
            raise DurableTierUnavailable(f"redis unreachable: {exc}") from exc
        except redis_exceptions.ResponseError as exc:
            raise DurableTierDataError(f"redis rejected command: {exc}", code="response_error") from exc
        except redis_exceptions.RedisError as exc:
            raise DurableTierDataError(f"redis error: {exc}", code="redis_error") from exc

    async def upsert(self, key: int, record: dict[str, Any]) -> None:
        payload = json.dumps(record, ensure_ascii=False, default=str)
        await self._call(self._client.set(self._key(key), payload))

    async def lookup(self, key: int) -> Optional[dict[str, Any]]:
        raw = await self._call(self._client.get(self._key(key)))
        if raw is None:
            return None
        try:
            record = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise DurableTierDataError(f"stored payload for key {key} is not JSON", code="bad_payload") from exc
        if not isinstance(record, dict):
            raise DurableTierDataError(f"stored payload for key {key} is not an object", code="bad_payload")
        return record

    async def close(self) -> None:
        await self._client.aclose()


__all__ = ["RedisDurableTier"]
