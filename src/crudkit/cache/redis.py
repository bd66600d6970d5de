from __future__ import annotations

import os
from typing import TypeVar

from pydantic import BaseModel
from redis.asyncio import Redis

M = TypeVar("M", bound=BaseModel)

DEFAULT_REDIS_URL = "redis://localhost:6379/0"
DEFAULT_TTL_SECONDS = 600


class RedisCacher:
    """Redis-backed cache-aside store. Models are stored as JSON with a per-key TTL."""

    def __init__(self, client: Redis, *, ttl_seconds: int | None = DEFAULT_TTL_SECONDS) -> None:
        self._client = client
        self._ttl = ttl_seconds

    @classmethod
    def from_url(cls, url: str | None = None, *, ttl_seconds: int | None = None) -> RedisCacher:
        redis_url = url or os.getenv("REDIS_URL", DEFAULT_REDIS_URL)
        if ttl_seconds is None:
            ttl_seconds = int(os.getenv("CRUDKIT_CACHE_TTL", str(DEFAULT_TTL_SECONDS)))
        return cls(Redis.from_url(redis_url), ttl_seconds=ttl_seconds or None)

    async def get(self, key: str, model: type[M]) -> M | None:
        raw = await self._client.get(key)
        if raw is None:
            return None
        return model.model_validate_json(raw)

    async def set(self, key: str, value: BaseModel) -> None:
        await self._client.set(key, value.model_dump_json(by_alias=True), ex=self._ttl)

    async def delete_pattern(self, pattern: str) -> int:
        keys = [key async for key in self._client.scan_iter(match=pattern)]
        if not keys:
            return 0
        return int(await self._client.delete(*keys))

    async def close(self) -> None:
        await self._client.aclose()
