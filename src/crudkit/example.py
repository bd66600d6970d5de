"""Example wiring: a cached ``Widget`` resource and a small RPC handler.

Used as the default factory for ``crudkit serve`` and ``crudkit routes``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import FastAPI
from pydantic import BaseModel, Field
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from crudkit.api.app import create_app
from crudkit.api.builder import ApplicationBuilder
from crudkit.cache.memory import InMemoryCacher
from crudkit.cache.redis import RedisCacher
from crudkit.core.actions import ALL_ACTIONS
from crudkit.core.descriptor import ModelDescriptor
from crudkit.core.errors import HookVetoError
from crudkit.core.hooks import Hooks
from crudkit.core.ports.cache import Cacher
from crudkit.core.ports.repository import Repository
from crudkit.core.service import ResourceService
from crudkit.db.engine import get_engine
from crudkit.db.memory import InMemoryRepository
from crudkit.db.sql import SqlRepository
from crudkit.rpc.registry import RPCAction, RPCRegistry


class Widget(BaseModel):
    id: int | None = None
    name: str = Field(min_length=1)


WIDGET = ModelDescriptor(Widget, singular="widget", plural="widgets", cacheable=True)


class Base(DeclarativeBase):
    pass


class WidgetRow(Base):
    __tablename__ = "widgets"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str]
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


def _normalize_name(widget: Widget, _request: Any) -> Widget:
    return widget.model_copy(update={"name": widget.name.strip()})


def _protect_locked(widget: Widget, _request: Any) -> None:
    if widget.name.startswith("locked"):
        raise HookVetoError(f"Widget {widget.id} is locked")


def _mount_widgets(repository: Repository, cacher: Cacher) -> FastAPI:
    widgets = ResourceService(
        WIDGET,
        repository,
        cacher=cacher,
        hooks=Hooks(before_create=_normalize_name, before_delete=_protect_locked),
    )

    app = create_app(repository, cacher=cacher, title="crudkit example")
    builder = ApplicationBuilder(app)
    builder.add_resource("/widget", widgets, ALL_ACTIONS)
    builder.initialize()
    return app


def create_example_app() -> FastAPI:
    """Widgets over the in-process repository and cache."""
    return _mount_widgets(InMemoryRepository(), InMemoryCacher())


def create_example_sql_app() -> FastAPI:
    """Widgets over Postgres and Redis, configured from DATABASE_URL and REDIS_URL.

    The ``widgets`` table must already exist; ``Base.metadata`` describes it.
    """
    repository = SqlRepository(get_engine(), {Widget: WidgetRow})
    return _mount_widgets(repository, RedisCacher.from_url())


class ExampleRPCService:
    def actions(self, cmd: str) -> list[RPCAction]:
        return [
            RPCAction("echo", "str", "str"),
            RPCAction("add", "int, int", "int"),
        ]

    def echo(self, text: str) -> str:
        return text

    def add(self, a: int, b: int) -> int:
        return a + b


def create_example_rpc() -> RPCRegistry:
    registry = RPCRegistry()
    registry.register(ExampleRPCService())
    return registry
