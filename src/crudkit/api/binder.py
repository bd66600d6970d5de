"""Map symbolic actions onto concrete HTTP routes for one ResourceService."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from fastapi import APIRouter, Request
from fastapi.params import Depends
from fastapi.responses import JSONResponse

from crudkit.api.envelope import ok, read_json
from crudkit.core.actions import Action
from crudkit.core.errors import UnsupportedActionError
from crudkit.core.requests import IDRequest, parse_preloads
from crudkit.core.service import ResourceService

ID_PATTERN = "{id:int}"

Endpoint = Callable[[Request], Awaitable[JSONResponse]]

# action -> (path, methods, endpoint attribute on RouteBinder)
_BINDINGS: dict[Action, tuple[str, tuple[str, ...], str]] = {
    Action.GET_BY_ID: (f"/{ID_PATTERN}", ("GET",), "get_by_id"),
    Action.FIRST: ("/first", ("POST",), "first"),
    Action.LIST: ("/list", ("POST",), "list"),
    Action.PAGE: ("/page", ("POST",), "page"),
    Action.STORE: ("", ("POST",), "store"),
    Action.UPDATE: (f"/{ID_PATTERN}", ("PUT",), "update"),
    Action.UPDATE_FIELDS: (f"/{ID_PATTERN}", ("PATCH",), "update_fields"),
    Action.REMOVE: (f"/{ID_PATTERN}/remove", ("DELETE",), "remove"),
    Action.RESTORE: (f"/{ID_PATTERN}/restore", ("DELETE",), "restore"),
    Action.DESTROY: (f"/{ID_PATTERN}/destroy", ("DELETE",), "destroy"),
}


@dataclass(frozen=True)
class HTTPAction:
    action: Action
    path: str
    methods: tuple[str, ...]
    endpoint: Endpoint


class RouteBinder:
    """HTTP adapter around a ResourceService.

    ``action()`` is pure: the same action always yields the same path, methods
    and endpoint for a given service.
    """

    def __init__(self, service: ResourceService[Any]) -> None:
        self.service = service

    def action(self, action: Action | str) -> HTTPAction:
        parsed = Action.parse(action)
        binding = _BINDINGS.get(parsed)
        if binding is None:
            raise UnsupportedActionError(f"Unsupported action: {parsed.value}")
        path, methods, attribute = binding
        return HTTPAction(action=parsed, path=path, methods=methods, endpoint=getattr(self, attribute))

    def router(
        self,
        prefix: str,
        actions: Iterable[Action | str],
        *,
        dependencies: Sequence[Depends] = (),
        tags: list[str] | None = None,
    ) -> APIRouter:
        router = APIRouter(prefix=prefix, dependencies=list(dependencies), tags=tags or [self.service.plural])
        seen: set[Action] = set()
        for action in actions:
            http_action = self.action(action)
            if http_action.action in seen:
                continue
            seen.add(http_action.action)
            router.add_api_route(
                http_action.path,
                http_action.endpoint,
                methods=list(http_action.methods),
                name=f"{self.service.singular}.{http_action.action.value}",
                response_class=JSONResponse,
            )
        return router

    async def get_by_id(self, request: Request) -> JSONResponse:
        id_request = IDRequest(
            id=request.path_params["id"], preloads=parse_preloads(request.query_params.getlist("preloads"))
        )
        instance = await self.service.get_by_id(id_request.id, id_request.preloads, request)
        return ok({self.service.singular: instance})

    async def first(self, request: Request) -> JSONResponse:
        instance = await self.service.first(await read_json(request), request)
        return ok({self.service.singular: instance})

    async def list(self, request: Request) -> JSONResponse:
        instances = await self.service.list(await read_json(request), request)
        return ok({self.service.plural: instances})

    async def page(self, request: Request) -> JSONResponse:
        page = await self.service.page(await read_json(request), request)
        return ok({self.service.plural: page.items, "pagination": page.pagination})

    async def store(self, request: Request) -> JSONResponse:
        instance = await self.service.store(await read_json(request), request)
        return ok({self.service.singular: instance})

    async def update(self, request: Request) -> JSONResponse:
        instance = await self.service.update(request.path_params["id"], await read_json(request), request)
        return ok({self.service.singular: instance})

    async def update_fields(self, request: Request) -> JSONResponse:
        instance = await self.service.update_fields(request.path_params["id"], await read_json(request), request)
        return ok({self.service.singular: instance})

    async def remove(self, request: Request) -> JSONResponse:
        instance = await self.service.remove(request.path_params["id"], request)
        return ok({self.service.singular: instance})

    async def restore(self, request: Request) -> JSONResponse:
        instance = await self.service.restore(request.path_params["id"], request)
        return ok({self.service.singular: instance})

    async def destroy(self, request: Request) -> JSONResponse:
        await self.service.destroy(request.path_params["id"], request)
        return ok()
