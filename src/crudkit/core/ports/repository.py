from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, TypeVar

from pydantic import BaseModel

from crudkit.core.descriptor import ModelDescriptor
from crudkit.core.requests import FilterRequest, Page, PageRequest

M = TypeVar("M", bound=BaseModel)


class Repository(Protocol):
    """Persistence port. Soft-deleted rows are invisible to every read except ``restore``.

    Implementations raise ``NotFoundError`` for missing rows and ``RepositoryError``
    for backend failures.
    """

    async def get(self, descriptor: ModelDescriptor[M], id: int, preloads: Sequence[str] = ()) -> M: ...

    async def first(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> M: ...

    async def list(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> list[M]: ...

    async def page(self, descriptor: ModelDescriptor[M], request: PageRequest) -> Page[M]: ...

    async def create(self, descriptor: ModelDescriptor[M], instance: M) -> M: ...

    async def update(self, descriptor: ModelDescriptor[M], id: int, instance: M) -> M: ...

    async def update_fields(self, descriptor: ModelDescriptor[M], id: int, fields: dict[str, Any]) -> M: ...

    async def remove(self, descriptor: ModelDescriptor[M], id: int) -> M: ...

    async def restore(self, descriptor: ModelDescriptor[M], id: int) -> M: ...

    async def destroy(self, descriptor: ModelDescriptor[M], id: int) -> None: ...

    async def ping(self) -> bool: ...

    async def dispose(self) -> None: ...
