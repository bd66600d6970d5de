from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable, Mapping, Sequence
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, inspect, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload

from crudkit.core.descriptor import ModelDescriptor
from crudkit.core.errors import NotFoundError, RepositoryError
from crudkit.core.requests import Filter, FilterRequest, Operator, Page, PageRequest, Pagination, parse_order

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

SOFT_DELETE_COLUMN = "deleted_at"

_OPERATORS: dict[Operator, Callable[[Any, Any], Any]] = {
    Operator.EQ: lambda c, v: c == v,
    Operator.NE: lambda c, v: c != v,
    Operator.GT: lambda c, v: c > v,
    Operator.GE: lambda c, v: c >= v,
    Operator.LT: lambda c, v: c < v,
    Operator.LE: lambda c, v: c <= v,
    Operator.IN: lambda c, v: c.in_(v),
    Operator.NOT_IN: lambda c, v: c.not_in(v),
    Operator.LIKE: lambda c, v: c.like(v),
    Operator.IS_NULL: lambda c, _: c.is_(None),
    Operator.NOT_NULL: lambda c, _: c.is_not(None),
}


def _column_keys(orm: type[Any]) -> set[str]:
    return {attr.key for attr in inspect(orm).column_attrs}


def _row_columns(row: Any) -> dict[str, Any]:
    return {attr.key: getattr(row, attr.key) for attr in inspect(row).mapper.column_attrs}


class SqlRepository:
    """SQLAlchemy-backed repository.

    ``mappings`` pairs each pydantic model with its declarative ORM class. Tables
    with a ``deleted_at`` column support soft delete; rows with a non-null
    ``deleted_at`` are invisible to every read except restore and destroy.
    Each port call runs in its own transaction.
    """

    def __init__(self, engine: AsyncEngine, mappings: Mapping[type[BaseModel], type[Any]]) -> None:
        self._engine = engine
        self._sessions = async_sessionmaker(engine, expire_on_commit=False)
        self._mappings = dict(mappings)

    async def get(self, descriptor: ModelDescriptor[M], id: int, preloads: Sequence[str] = ()) -> M:
        orm = self._orm(descriptor)
        async with self._transaction() as session:
            row = await self._fetch(session, descriptor, orm, id, preloads)
            return self._to_model(descriptor, row, preloads)

    async def first(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> M:
        orm = self._orm(descriptor)
        stmt = self._ordered(descriptor, orm, self._select(orm, request.filters), request.order).limit(1)
        async with self._transaction() as session:
            row = (await session.scalars(stmt)).first()
            if row is None:
                raise NotFoundError(f"No {descriptor.name} matches the given filters")
            return self._to_model(descriptor, row)

    async def list(self, descriptor: ModelDescriptor[M], request: FilterRequest) -> list[M]:
        orm = self._orm(descriptor)
        stmt = self._ordered(descriptor, orm, self._select(orm, request.filters), request.order)
        async with self._transaction() as session:
            return [self._to_model(descriptor, row) for row in await session.scalars(stmt)]

    async def page(self, descriptor: ModelDescriptor[M], request: PageRequest) -> Page[M]:
        orm = self._orm(descriptor)
        base = self._select(orm, request.filters)
        stmt = self._ordered(descriptor, orm, base, request.order).offset(request.offset).limit(request.page_size)
        async with self._transaction() as session:
            total = await session.scalar(select(func.count()).select_from(base.subquery()))
            rows = await session.scalars(stmt)
            items = [self._to_model(descriptor, row) for row in rows]
        return Page(items=items, pagination=Pagination.build(int(total or 0), request.page, request.page_size))

    async def create(self, descriptor: ModelDescriptor[M], instance: M) -> M:
        orm = self._orm(descriptor)
        keys = _column_keys(orm)
        data = {k: v for k, v in instance.model_dump(include=set(descriptor.columns)).items() if k in keys}
        if not data.get(descriptor.primary_key):
            data.pop(descriptor.primary_key, None)
        async with self._transaction() as session:
            row = orm(**data)
            session.add(row)
            await session.flush()
            await session.refresh(row)
            return self._to_model(descriptor, row)

    async def update(self, descriptor: ModelDescriptor[M], id: int, instance: M) -> M:
        data = instance.model_dump(include=set(descriptor.columns))
        data.pop(descriptor.primary_key, None)
        return await self._assign(descriptor, id, data, strict=False)

    async def update_fields(self, descriptor: ModelDescriptor[M], id: int, fields: dict[str, Any]) -> M:
        return await self._assign(descriptor, id, fields, strict=True)

    async def remove(self, descriptor: ModelDescriptor[M], id: int) -> M:
        orm = self._soft_deletable(descriptor)
        async with self._transaction() as session:
            row = await self._fetch(session, descriptor, orm, id)
            setattr(row, SOFT_DELETE_COLUMN, datetime.now(timezone.utc))
            await session.flush()
            return self._to_model(descriptor, row)

    async def restore(self, descriptor: ModelDescriptor[M], id: int) -> M:
        orm = self._soft_deletable(descriptor)
        async with self._transaction() as session:
            row = await self._fetch(session, descriptor, orm, id, include_deleted=True)
            setattr(row, SOFT_DELETE_COLUMN, None)
            await session.flush()
            return self._to_model(descriptor, row)

    async def destroy(self, descriptor: ModelDescriptor[M], id: int) -> None:
        orm = self._orm(descriptor)
        async with self._transaction() as session:
            row = await self._fetch(session, descriptor, orm, id, include_deleted=True)
            await session.delete(row)

    async def ping(self) -> bool:
        try:
            async with self._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception:
            return False

    async def dispose(self) -> None:
        await self._engine.dispose()

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._sessions.begin() as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error("repository failure: %s", exc)
            raise RepositoryError(str(exc)) from exc

    def _orm(self, descriptor: ModelDescriptor[Any]) -> type[Any]:
        orm = self._mappings.get(descriptor.model)
        if orm is None:
            raise RepositoryError(f"No table mapped for {descriptor.name}")
        return orm

    def _soft_deletable(self, descriptor: ModelDescriptor[Any]) -> type[Any]:
        orm = self._orm(descriptor)
        if SOFT_DELETE_COLUMN not in _column_keys(orm):
            raise RepositoryError(f"{descriptor.name} cannot be soft deleted")
        return orm

    async def _assign(self, descriptor: ModelDescriptor[M], id: int, data: dict[str, Any], *, strict: bool) -> M:
        orm = self._orm(descriptor)
        keys = _column_keys(orm)
        unknown = set(data) - keys
        if strict and unknown:
            raise RepositoryError(f"{descriptor.name} has no columns {sorted(unknown)}")
        async with self._transaction() as session:
            row = await self._fetch(session, descriptor, orm, id)
            for key, value in data.items():
                if key in keys:
                    setattr(row, key, value)
            await session.flush()
            return self._to_model(descriptor, row)

    async def _fetch(
        self,
        session: AsyncSession,
        descriptor: ModelDescriptor[Any],
        orm: type[Any],
        id: int,
        preloads: Sequence[str] = (),
        *,
        include_deleted: bool = False,
    ) -> Any:
        stmt = select(orm).where(getattr(orm, descriptor.primary_key) == id)
        if not include_deleted and SOFT_DELETE_COLUMN in _column_keys(orm):
            stmt = stmt.where(getattr(orm, SOFT_DELETE_COLUMN).is_(None))
        for name in preloads:
            relationship = getattr(orm, name, None)
            if relationship is None:
                raise RepositoryError(f"{descriptor.name} has no relation '{name}'")
            stmt = stmt.options(selectinload(relationship))
        row = (await session.scalars(stmt)).first()
        if row is None:
            raise NotFoundError(f"{descriptor.name} {id} not found")
        return row

    @staticmethod
    def _select(orm: type[Any], filters: Sequence[Filter]) -> Select[Any]:
        keys = _column_keys(orm)
        stmt = select(orm)
        if SOFT_DELETE_COLUMN in keys:
            stmt = stmt.where(getattr(orm, SOFT_DELETE_COLUMN).is_(None))
        for f in filters:
            if f.field not in keys:
                raise RepositoryError(f"Unknown column '{f.field}'")
            stmt = stmt.where(_OPERATORS[f.operator](getattr(orm, f.field), f.value))
        return stmt

    @staticmethod
    def _ordered(descriptor: ModelDescriptor[Any], orm: type[Any], stmt: Select[Any], order: Sequence[str]) -> Select[Any]:
        for name, descending in parse_order(order) or [(descriptor.primary_key, False)]:
            column = getattr(orm, name)
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        return stmt

    @staticmethod
    def _to_model(descriptor: ModelDescriptor[M], row: Any, preloads: Sequence[str] = ()) -> M:
        data = _row_columns(row)
        for name in preloads:
            related = getattr(row, name)
            if related is None:
                data[name] = None
            elif isinstance(related, (list, tuple, set)):
                data[name] = [_row_columns(item) for item in related]
            else:
                data[name] = _row_columns(related)
        return descriptor.model.model_validate(data)
