from typing import Protocol, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)


class Cacher(Protocol):
    """Cache-aside port. Callers treat every failure as a miss or a skipped write."""

    async def get(self, key: str, model: type[M]) -> M | None: ...

    async def set(self, key: str, value: BaseModel) -> None: ...

    async def delete_pattern(self, pattern: str) -> int: ...

    async def close(self) -> None: ...
