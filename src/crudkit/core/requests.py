"""Request and response shapes exchanged with clients and the repository port."""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

M = TypeVar("M", bound=BaseModel)

MAX_PAGE_SIZE = 1000
DEFAULT_PAGE_SIZE = 20


class Operator(str, Enum):
    EQ = "eq"
    NE = "ne"
    GT = "gt"
    GE = "ge"
    LT = "lt"
    LE = "le"
    IN = "in"
    NOT_IN = "not_in"
    LIKE = "like"
    IS_NULL = "is_null"
    NOT_NULL = "not_null"


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Filter(_Camel):
    """A single predicate term. A list of filters is a conjunction."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    field: str = Field(min_length=1)
    operator: Operator = Operator.EQ
    value: Any = None

    @model_validator(mode="after")
    def _check_value(self) -> Filter:
        if self.operator in (Operator.IN, Operator.NOT_IN) and not isinstance(self.value, list):
            raise ValueError(f"operator '{self.operator.value}' on '{self.field}' requires a list value")
        return self


class FilterRequest(_Camel):
    filters: list[Filter] = Field(default_factory=list)
    order: list[str] = Field(default_factory=list)


class PageRequest(FilterRequest):
    page: int = Field(1, ge=1)
    page_size: int = Field(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


class IDRequest(_Camel):
    id: int = Field(ge=0)
    preloads: list[str] = Field(default_factory=list)


class Pagination(_Camel):
    total: int
    page: int
    page_size: int
    page_count: int

    @classmethod
    def build(cls, total: int, page: int, page_size: int) -> Pagination:
        return cls(total=total, page=page, page_size=page_size, page_count=math.ceil(total / page_size))


@dataclass(frozen=True)
class Page(Generic[M]):
    items: list[M]
    pagination: Pagination


def parse_preloads(values: Iterable[str]) -> list[str]:
    """Flatten repeated and comma-separated preload names, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        for name in value.split(","):
            name = name.strip()
            if name:
                seen.setdefault(name, None)
    return list(seen)


def parse_order(order: Iterable[str]) -> list[tuple[str, bool]]:
    """Turn ``["-created", "name"]`` into ``[("created", True), ("name", False)]`` (descending flag)."""
    return [(item[1:], True) if item.startswith("-") else (item, False) for item in order]
