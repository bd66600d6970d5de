"""Uniform JSON envelope: ``{"ok": true, "data": {...}}`` or ``{"ok": false, "error": "..."}``."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, cast

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from crudkit.core.errors import DecodeError, ResourceError

logger = logging.getLogger(__name__)


def dump(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    if isinstance(value, (list, tuple)):
        return [dump(item) for item in value]
    return value


def ok(data: Mapping[str, Any] | None = None) -> JSONResponse:
    return JSONResponse({"ok": True, "data": {key: dump(value) for key, value in (data or {}).items()}})


def fail(message: str, status_code: int = 400) -> JSONResponse:
    return JSONResponse({"ok": False, "error": message}, status_code=status_code)


async def resource_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    error = cast(ResourceError, exc)
    return fail(error.message, error.status_code)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return fail(str(exc) or type(exc).__name__, 500)


async def read_json(request: Request) -> Any:
    """Return the decoded body, or ``None`` for an empty body."""
    body = await request.body()
    if not body.strip():
        return None
    try:
        return json.loads(body)
    except ValueError as exc:
        raise DecodeError(f"Malformed JSON body: {exc}") from exc
