"""Optional per-service hooks.

Hooks may be plain functions or coroutines. A hook vetoes an operation by
raising: a ``ResourceError`` passes through unchanged, any other exception
becomes a ``HookVetoError`` carrying its message.
The ``request`` argument is the inbound Starlette request, or ``None`` when
the service is driven directly.
"""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from crudkit.core.errors import HookVetoError, ResourceError
from crudkit.core.requests import Filter

FilterHook = Callable[[list[Filter], Any], "list[Filter] | Awaitable[list[Filter]]"]
BeforeCreateHook = Callable[[Any, Any], Any]
BeforeUpdateHook = Callable[[Any, int, Any], Any]
BeforeDeleteHook = Callable[[Any, Any], Any]


@dataclass(frozen=True)
class Hooks:
    filter: FilterHook | None = None
    before_create: BeforeCreateHook | None = None
    before_update: BeforeUpdateHook | None = None
    before_delete: BeforeDeleteHook | None = None


NO_HOOKS = Hooks()


async def call_hook(hook: Callable[..., Any], *args: Any) -> Any:
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            result = await result
    except ResourceError:
        raise
    except Exception as exc:
        raise HookVetoError(str(exc) or type(exc).__name__) from exc
    return result
