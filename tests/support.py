"""Models and port doubles shared by unit and integration tests."""

from __future__ import annotations

from collections import Counter
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel

from crudkit.core.descriptor import ModelDescriptor, Relation


class Owner(BaseModel):
    id: int | None = None
    name: str


class Gadget(BaseModel):
    id: int | None = None
    name: str
    size: int = 0
    owner_id: int | None = None
    owner: Owner | None = None


OWNER = ModelDescriptor(Owner)
GADGET = ModelDescriptor(Gadget, cacheable=True, relations={"owner": Relation(OWNER, "owner_id")})


class SpyRepository:
    """Delegates to a real repository and counts calls per method."""

    def __init__(self, inner: Any) -> None:
        self.inner = inner
        self.calls: Counter[str] = Counter()

    def __getattr__(self, name: str) -> Callable[..., Awaitable[Any]]:
        target = getattr(self.inner, name)

        async def _spy(*args: Any, **kwargs: Any) -> Any:
            self.calls[name] += 1
            return await target(*args, **kwargs)

        return _spy


class FailingCacher:
    """A cacher whose backend is permanently unreachable."""

    def __init__(self) -> None:
        self.attempts: Counter[str] = Counter()

    async def get(self, key: str, model: type[Any]) -> Any:
        self.attempts["get"] += 1
        raise ConnectionError("cache down")

    async def set(self, key: str, value: BaseModel) -> None:
        self.attempts["set"] += 1
        raise ConnectionError("cache down")

    async def delete_pattern(self, pattern: str) -> int:
        self.attempts["delete_pattern"] += 1
        raise ConnectionError("cache down")

    async def close(self) -> None:
        pass
