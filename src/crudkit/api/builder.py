from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from fastapi import FastAPI
from fastapi.params import Depends

from crudkit.api.binder import HTTPAction, RouteBinder
from crudkit.api.envelope import resource_error_handler, unhandled_error_handler
from crudkit.core.actions import ALL_ACTIONS, Action
from crudkit.core.errors import ResourceError
from crudkit.core.service import ResourceService

logger = logging.getLogger(__name__)


class ApplicationBuilder:
    """Mount ResourceServices onto a FastAPI app.

    The same path may be added several times with different action groups,
    for example to guard write actions with extra dependencies.
    """

    def __init__(self, app: FastAPI, base_path: str = "") -> None:
        self.app = app
        self.base_path = base_path.rstrip("/")
        self._pending: list[tuple[str, RouteBinder, list[Action], Sequence[Depends], list[str] | None]] = []
        self._initialized = False

    def add_resource(
        self,
        path: str,
        service: ResourceService[Any],
        actions: Iterable[Action | str] = ALL_ACTIONS,
        *,
        dependencies: Sequence[Depends] = (),
        tags: list[str] | None = None,
    ) -> list[HTTPAction]:
        if self._initialized:
            raise RuntimeError(f"Cannot add resource {path!r}: the application is already initialized")
        binder = RouteBinder(service)
        # Resolve eagerly so unsupported actions fail while the app is being assembled.
        bound = [binder.action(action) for action in actions]
        self._pending.append((path, binder, [b.action for b in bound], dependencies, tags))
        return bound

    def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True
        self.app.add_exception_handler(ResourceError, resource_error_handler)
        self.app.add_exception_handler(Exception, unhandled_error_handler)
        for path, binder, actions, dependencies, tags in self._pending:
            router = binder.router(self.base_path + path, actions, dependencies=dependencies, tags=tags)
            self.app.include_router(router)
            for action in actions:
                http_action = binder.action(action)
                logger.info("[http] %s %s%s", ",".join(http_action.methods), router.prefix, http_action.path)
