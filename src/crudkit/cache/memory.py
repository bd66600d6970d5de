"""Single-process cache-aside store.

Values are kept as JSON text so every read hands back a fresh instance and a
caller mutating a returned model can never corrupt the cached copy.
"""

from __future__ import annotations

import fnmatch
import time
from typing import TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class InMemoryCacher:
    def __init__(self, *, ttl_seconds: int | None = None) -> None:
        self._store: dict[str, tuple[str, float | None]] = {}
        self._ttl = ttl_seconds

    async def get(self, key: str, model: type[M]) -> M | None:
        entry = self._store.get(key)
        if entry is None:
            return None
        raw, expires_at = entry
        if expires_at is not None and time.monotonic() > expires_at:
            self._store.pop(key, None)
            return None
        return model.model_validate_json(raw)

    async def set(self, key: str, value: BaseModel) -> None:
        expires_at = time.monotonic() + self._ttl if self._ttl else None
        self._store[key] = (value.model_dump_json(by_alias=True), expires_at)

    async def delete_pattern(self, pattern: str) -> int:
        doomed = [key for key in self._store if fnmatch.fnmatchcase(key, pattern)]
        for key in doomed:
            del self._store[key]
        return len(doomed)

    async def close(self) -> None:
        self._store.clear()

    def keys(self) -> list[str]:
        return sorted(self._store)
