from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from crudkit.core.descriptor import ModelDescriptor
from crudkit.core.errors import NotFoundError, RepositoryError
from crudkit.core.requests import Filter, FilterRequest, Operator, Page, PageRequest, Pagination, parse_order

M = TypeVar("M", bound=BaseModel)

Row = dict[str, Any]


def _like(value: Any, pattern: Any) -> bool:
    if value is None:
        return False
    regex = "".join(".*" if ch == "%" else "." if ch == "_" else re.escape(ch) for ch in str(pattern))
    return re.fullmatch(regex, str(value), flags=re.DOTALL) is not None


def _ordered(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def _op(a: Any, b: Any) -> bool:
        return a is not None and b is not None and compare(a, b)

    return _op


_OPERATORS: dict[Operator, Callable[[Any, Any], bool]] = {
    Operator.EQ: lambda a, b: a == b,
    Operator.NE: lambda a, b: a != b,
    Operator.GT: _ordered(lambda a, b: a > b),
    Operator.GE: _ordered(lambda a, b: a >= b),
    Operator.LT: _ordered(lambda a, b: a < b),
    Operator.LE: _ordered(lambda a, b: a <= b),
    Operator.IN: lambda a, b: a in b,
    Operator.NOT_IN: lambda a, b: a not in b,
    Operator.LIKE: _like,
    Operator.IS_NULL: lambda a, _: a is None,
    Operator.NOT_NULL: lambda a, _: a is not None,
}


def matches(row: Row, filters: Sequence[Filter]) -> bool:
    return all(_OPERATORS[f.operator](row.get(f.field), f.value) for f in filters)


def sort_rows(rows: list[Row], order: Sequence[str], primary_key: str) -> list[Row]:
    keys = parse_order(order) or [(primary_key, False)]
    result = list(rows)
    # Stable sorts applied from the least significant key; None sorts last ascending.
    for name, descending in reversed(keys):
        present = [r for r in result if r.get(name) is not None]
        missing = [r for r in result if r.get(name) is None]
        present.sort(key=lambda r: r[name], reverse=descending)
        result = missing + present if descending else present + missing
    return result


class InMemoryRepository:
    """Dict-backed repository. Rows are stored as column dicts keyed by primary key."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[int, Row]] = {}
        self.deleted: dict[str, set[int]] = {}
        self._sequences: dict[str, int] = {}

    async def get(self, descriptor: ModelDescriptor[M], id: int, preloads: Sequence[str] = ()) -> M:
        row = self._live_row(descriptor, id)
        return self._to_model(descriptor, self._attach(descriptor, row, preloads))

    async def first(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> M:
        rows = self._select(descriptor, request)
        if not rows:
            raise NotFoundError(f"No {descriptor.name} matches the given filters")
        return self._to_model(descriptor, rows[0])

    async def list(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> list[M]:
        return [self._to_model(descriptor, row) for row in self._select(descriptor, request)]

    async def page(self, descriptor: ModelDescriptor[M], request: PageRequest) -> Page[M]:
        rows = self._select(descriptor, request)
        window = rows[request.offset : request.offset + request.page_size]
        return Page(
            items=[self._to_model(descriptor, row) for row in window],
            pagination=Pagination.build(len(rows), request.page, request.page_size),
        )

    async def create(self, descriptor: ModelDescriptor[M], instance: M) -> M:
        table = self.tables.setdefault(descriptor.name, {})
        row = instance.model_dump(include=set(descriptor.columns))
        pk = descriptor.primary_key
        if not row.get(pk):
            row[pk] = self._sequences.get(descriptor.name, 0) + 1
        elif row[pk] in table:
            raise RepositoryError(f"Duplicate primary key {row[pk]} for {descriptor.name}")
        self._sequences[descriptor.name] = max(self._sequences.get(descriptor.name, 0), row[pk])
        table[row[pk]] = row
        return self._to_model(descriptor, row)

    async def update(self, descriptor: ModelDescriptor[M], id: int, instance: M) -> M:
        self._live_row(descriptor, id)
        row = instance.model_dump(include=set(descriptor.columns))
        row[descriptor.primary_key] = id
        self.tables[descriptor.name][id] = row
        return self._to_model(descriptor, row)

    async def update_fields(self, descriptor: ModelDescriptor[M], id: int, fields: dict[str, Any]) -> M:
        row = self._live_row(descriptor, id)
        unknown = set(fields) - descriptor.columns
        if unknown:
            raise RepositoryError(f"{descriptor.name} has no columns {sorted(unknown)}")
        merged = {**row, **fields, descriptor.primary_key: id}
        self.tables[descriptor.name][id] = merged
        return self._to_model(descriptor, merged)

    async def remove(self, descriptor: ModelDescriptor[M], id: int) -> M:
        row = self._live_row(descriptor, id)
        self.deleted.setdefault(descriptor.name, set()).add(id)
        return self._to_model(descriptor, row)

    async def restore(self, descriptor: ModelDescriptor[M], id: int) -> M:
        row = self.tables.get(descriptor.name, {}).get(id)
        if row is None:
            raise NotFoundError(f"{descriptor.name} {id} not found")
        self.deleted.get(descriptor.name, set()).discard(id)
        return self._to_model(descriptor, row)

    async def destroy(self, descriptor: ModelDescriptor[M], id: int) -> None:
        table = self.tables.get(descriptor.name, {})
        if id not in table:
            raise NotFoundError(f"{descriptor.name} {id} not found")
        del table[id]
        self.deleted.get(descriptor.name, set()).discard(id)

    async def ping(self) -> bool:
        return True

    async def dispose(self) -> None:
        pass

    def _live_rows(self, descriptor: ModelDescriptor[Any]) -> list[Row]:
        deleted = self.deleted.get(descriptor.name, set())
        return [row for id, row in self.tables.get(descriptor.name, {}).items() if id not in deleted]

    def _live_row(self, descriptor: ModelDescriptor[Any], id: int) -> Row:
        row = self.tables.get(descriptor.name, {}).get(id)
        if row is None or id in self.deleted.get(descriptor.name, set()):
            raise NotFoundError(f"{descriptor.name} {id} not found")
        return row

    def _select(self, descriptor: ModelDescriptor[Any], request: FilterRequest) -> list[Row]:
        try:
            rows = [row for row in self._live_rows(descriptor) if matches(row, request.filters)]
            return sort_rows(rows, request.order, descriptor.primary_key)
        except TypeError as exc:
            raise RepositoryError(str(exc)) from exc

    def _attach(self, descriptor: ModelDescriptor[Any], row: Row, preloads: Sequence[str]) -> Row:
        data = dict(row)
        for name in preloads:
            relation = descriptor.relations.get(name)
            if relation is None:
                raise RepositoryError(f"{descriptor.name} has no relation '{name}'")
            target = relation.descriptor
            candidates = self._live_rows(target)
            if relation.many:
                pk = row[descriptor.primary_key]
                data[name] = [r for r in candidates if r.get(relation.foreign_key) == pk]
            else:
                fk = row.get(relation.foreign_key)
                data[name] = next((r for r in candidates if r[target.primary_key] == fk), None)
        return data

    @staticmethod
    def _to_model(descriptor: ModelDescriptor[M], row: Row) -> M:
        return descriptor.model.model_validate(row)
