"""Explicit per-model metadata bound into a ResourceService at construction."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

M = TypeVar("M", bound=BaseModel)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", name).lower()


@dataclass(frozen=True)
class Relation:
    """A preloadable relation.

    ``many=False`` is a belongs-to: the owning row's ``foreign_key`` holds the
    target's primary key. ``many=True`` is a has-many: each target row's
    ``foreign_key`` holds the owning row's primary key.
    """

    descriptor: ModelDescriptor[Any]
    foreign_key: str
    many: bool = False


@dataclass(frozen=True)
class ModelDescriptor(Generic[M]):
    model: type[M]
    singular: str = ""
    plural: str = ""
    primary_key: str = "id"
    cacheable: bool = False
    relations: Mapping[str, Relation] = field(default_factory=dict)
    name: str = ""

    def __post_init__(self) -> None:
        name = self.name or self.model.__name__
        singular = self.singular or snake_case(name)
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "singular", singular)
        object.__setattr__(self, "plural", self.plural or f"{singular}s")

        fields = self.model.model_fields
        if self.primary_key not in fields:
            raise ValueError(f"{name} has no primary key field '{self.primary_key}'")
        for relation in self.relations:
            if relation not in fields:
                raise ValueError(f"{name} has no field for relation '{relation}'")

    @property
    def fields(self) -> frozenset[str]:
        return frozenset(self.model.model_fields)

    @property
    def columns(self) -> frozenset[str]:
        """Persisted fields: every declared field except relations."""
        return self.fields - frozenset(self.relations)

    def with_primary_key(self, instance: M, id: int) -> M:
        return instance.model_copy(update={self.primary_key: id})

    def cache_key(self, id: int, preloads: Iterable[str] = ()) -> str:
        key = f"{self.name}:{id}"
        names = sorted(set(preloads))
        if names:
            key = f"{key}:{'-'.join(names)}"
        return key

    def cache_patterns(self, id: int) -> tuple[str, str]:
        """Glob patterns covering the bare key and every preload variant of one row."""
        bare = self.cache_key(id)
        return bare, f"{bare}:*"
