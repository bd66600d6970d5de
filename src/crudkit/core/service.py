"""Generic CRUD dispatcher bound to one model type.

A ``ResourceService`` decodes payloads into its descriptor's model, runs the
configured hooks, talks to the repository port and keeps the optional
cache-aside port consistent. It is framework-agnostic: the HTTP layer in
``crudkit.api`` only moves bytes in and envelopes out.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, TypeAdapter, ValidationError

from crudkit.core.descriptor import ModelDescriptor
from crudkit.core.errors import DecodeError
from crudkit.core.hooks import NO_HOOKS, Hooks, call_hook
from crudkit.core.ports.cache import Cacher
from crudkit.core.ports.repository import Repository
from crudkit.core.requests import Filter, FilterRequest, Operator, Page, PageRequest, parse_order

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)
R = TypeVar("R", bound=FilterRequest)


class ResourceService(Generic[M]):
    def __init__(
        self,
        descriptor: ModelDescriptor[M],
        repository: Repository,
        *,
        cacher: Cacher | None = None,
        hooks: Hooks = NO_HOOKS,
    ) -> None:
        self.descriptor = descriptor
        self.repository = repository
        self.cacher = cacher if descriptor.cacheable else None
        self._filter_hook = hooks.filter
        self._before_create = hooks.before_create
        self._before_update = hooks.before_update
        self._before_delete = hooks.before_delete

    @property
    def singular(self) -> str:
        return self.descriptor.singular

    @property
    def plural(self) -> str:
        return self.descriptor.plural

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def decode_model(self, payload: Any) -> M:
        try:
            return self.descriptor.model.model_validate(payload)
        except ValidationError as exc:
            raise DecodeError(str(exc)) from exc

    def decode_request(self, payload: Any, request_type: type[R] = FilterRequest) -> R:  # type: ignore[assignment]
        if isinstance(payload, request_type):
            decoded = payload
        else:
            try:
                decoded = request_type.model_validate(payload or {})
            except ValidationError as exc:
                raise DecodeError(str(exc)) from exc

        columns = self.descriptor.columns
        for name, _ in parse_order(decoded.order):
            if name not in columns:
                raise DecodeError(f"Unknown order field '{name}' for {self.descriptor.name}")
        filters = [self._decode_filter(f) for f in decoded.filters]
        return decoded.model_copy(update={"filters": filters})

    def _decode_filter(self, f: Filter) -> Filter:
        """Coerce a filter value to its column type so a mismatch is a client error."""
        info = self.descriptor.model.model_fields.get(f.field)
        if info is None or f.field not in self.descriptor.columns:
            raise DecodeError(f"Unknown filter field '{f.field}' for {self.descriptor.name}")
        if f.operator in (Operator.IS_NULL, Operator.NOT_NULL):
            return f
        if f.operator is Operator.LIKE:
            annotation: Any = str
        elif f.operator in (Operator.IN, Operator.NOT_IN):
            annotation = list[info.annotation]
        else:
            annotation = info.annotation
        try:
            value = TypeAdapter(annotation).validate_python(f.value)
        except ValidationError as exc:
            raise DecodeError(f"Invalid value for filter on '{f.field}': {exc}") from exc
        return f.model_copy(update={"value": value})

    def decode_fields(self, base: M, payload: Any) -> dict[str, Any]:
        """Validate a sparse field set against the model by overlaying it on ``base``.

        Keys may be field names or aliases; the result is keyed by field name.
        """
        if not isinstance(payload, Mapping):
            raise DecodeError("Partial update payload must be a JSON object")

        model_fields = self.descriptor.model.model_fields
        names: dict[str, str] = {}
        for name, info in model_fields.items():
            if name == self.descriptor.primary_key or name in self.descriptor.relations:
                continue
            names[name] = name
            if info.alias:
                names[info.alias] = name

        unknown = [key for key in payload if key not in names]
        if unknown:
            raise DecodeError(f"Unknown or read-only fields for {self.descriptor.name}: {', '.join(sorted(unknown))}")

        supplied = {names[key]: value for key, value in payload.items()}
        # The base dump is keyed by alias, so supplied values must land on the same keys.
        merged = base.model_dump(by_alias=True)
        for name, value in supplied.items():
            merged[model_fields[name].alias or name] = value
        try:
            validated = self.descriptor.model.model_validate(merged)
        except ValidationError as exc:
            raise DecodeError(str(exc)) from exc
        return {name: getattr(validated, name) for name in supplied}

    def check_preloads(self, preloads: Sequence[str]) -> list[str]:
        unknown = [name for name in preloads if name not in self.descriptor.relations]
        if unknown:
            raise DecodeError(f"Unknown preloads for {self.descriptor.name}: {', '.join(unknown)}")
        return list(preloads)

    # ------------------------------------------------------------------
    # Read path
    # ------------------------------------------------------------------

    async def get_by_id(self, id: int, preloads: Sequence[str] = (), request: Any = None) -> M:
        preloads = self.check_preloads(preloads)
        cacher = self.cacher
        if cacher is None:
            return await self.repository.get(self.descriptor, id, preloads)

        key = self.descriptor.cache_key(id, preloads)
        cached = await self._cache_get(cacher, key)
        if cached is not None:
            logger.debug("cache hit %s", key)
            return cached

        logger.debug("cache miss %s", key)
        instance = await self.repository.get(self.descriptor, id, preloads)
        # best effort: a failed write leaves the entry cold
        await self._cache_set(cacher, key, instance)
        return instance

    async def first(self, payload: Any = None, request: Any = None) -> M:
        filter_request = await self._filtered(self.decode_request(payload), request)
        return await self.repository.first(self.descriptor, filter_request)

    async def list(self, payload: Any = None, request: Any = None) -> list[M]:
        filter_request = await self._filtered(self.decode_request(payload), request)
        return await self.repository.list(self.descriptor, filter_request)

    async def page(self, payload: Any = None, request: Any = None) -> Page[M]:
        page_request = await self._filtered(self.decode_request(payload, PageRequest), request)
        return await self.repository.page(self.descriptor, page_request)

    # ------------------------------------------------------------------
    # Write path
    # ------------------------------------------------------------------

    async def store(self, payload: Any, request: Any = None) -> M:
        instance = self.decode_model(payload)
        if self._before_create is not None:
            replaced = await call_hook(self._before_create, instance, request)
            if replaced is not None:
                instance = replaced
        return await self.repository.create(self.descriptor, instance)

    async def update(self, id: int, payload: Any, request: Any = None) -> M:
        instance = self.descriptor.with_primary_key(self.decode_model(payload), id)
        if self._before_update is not None:
            rewritten = await call_hook(self._before_update, instance, id, request)
            if rewritten is not None:
                instance, id = rewritten
        updated = await self.repository.update(self.descriptor, id, instance)
        await self._invalidate(id)
        return updated

    async def update_fields(self, id: int, payload: Any, request: Any = None) -> M:
        # Always read fresh: merging into a cached copy could resurrect stale values.
        base = await self.repository.get(self.descriptor, id)
        fields = self.decode_fields(base, payload)
        if self._before_update is not None:
            rewritten = await call_hook(self._before_update, fields, id, request)
            if rewritten is not None:
                fields, id = rewritten
        await self.repository.update_fields(self.descriptor, id, fields)
        await self._invalidate(id)
        # The pre-merge row is returned on purpose; see DESIGN.md.
        return base

    async def remove(self, id: int, request: Any = None) -> M:
        await self._check_delete(id, request)
        removed = await self.repository.remove(self.descriptor, id)
        await self._invalidate(id)
        return removed

    async def restore(self, id: int, request: Any = None) -> M:
        restored = await self.repository.restore(self.descriptor, id)
        await self._invalidate(id)
        return restored

    async def destroy(self, id: int, request: Any = None) -> None:
        await self._check_delete(id, request)
        await self.repository.destroy(self.descriptor, id)
        await self._invalidate(id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _filtered(self, filter_request: R, request: Any) -> R:
        if self._filter_hook is None:
            return filter_request
        filters = await call_hook(self._filter_hook, list(filter_request.filters), request)
        return filter_request.model_copy(update={"filters": list(filters)})

    async def _check_delete(self, id: int, request: Any) -> None:
        if self._before_delete is None:
            return
        instance = await self.repository.get(self.descriptor, id)
        await call_hook(self._before_delete, instance, request)

    async def _cache_get(self, cacher: Cacher, key: str) -> M | None:
        try:
            return await cacher.get(key, self.descriptor.model)
        except Exception:
            logger.warning("cache read failed for %s, treating as miss", key, exc_info=True)
            return None

    async def _cache_set(self, cacher: Cacher, key: str, instance: M) -> bool:
        try:
            await cacher.set(key, instance)
        except Exception:
            logger.warning("cache write failed for %s", key, exc_info=True)
            return False
        return True

    async def _invalidate(self, id: int) -> bool:
        """Drop every cached variant of one row. Runs only after the mutation returned.

        Callers ignore the result: a failed delete is logged and the entry
        expires through the cacher's TTL.
        """
        if self.cacher is None:
            return True
        ok = True
        for pattern in self.descriptor.cache_patterns(id):
            try:
                await self.cacher.delete_pattern(pattern)
            except Exception:
                logger.warning("cache invalidation failed for %s", pattern, exc_info=True)
                ok = False
        return ok
