"""Start-up catalog of RPC handlers and the operations each one exposes.

Handlers are registered once while the process assembles itself. ``start``
asks every handler to enumerate its actions, logs them and binds the handler
into a transport; after that the registry is sealed.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RPCAction:
    name: str
    request: str
    response: str

    def __str__(self) -> str:
        return f"{self.name}({self.request}, {self.response})"


class RPCHandler(Protocol):
    def actions(self, cmd: str) -> list[RPCAction]: ...


class RPCTransport(Protocol):
    def register_name(self, name: str, handler: Any, actions: list[RPCAction]) -> None: ...


class RegistrySealedError(RuntimeError):
    """Raised when the registry is mutated or started after start-up."""


@dataclass(frozen=True)
class RPCHandlerConfig:
    name: str
    handler: RPCHandler


class RPCRegistry:
    def __init__(self) -> None:
        self._configs: list[RPCHandlerConfig] = []
        self._sealed = False

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def handlers(self) -> tuple[RPCHandlerConfig, ...]:
        return tuple(self._configs)

    def register(self, handler: RPCHandler, name: str | None = None) -> RPCHandlerConfig:
        """Append ``handler`` under ``name`` (defaults to the handler's class name)."""
        if self._sealed:
            raise RegistrySealedError("RPC registry is sealed after start-up")
        name = name or type(handler).__name__
        if any(config.name == name for config in self._configs):
            raise ValueError(f"RPC handler '{name}' is already registered")
        config = RPCHandlerConfig(name=name, handler=handler)
        self._configs.append(config)
        return config

    def describe(self) -> Mapping[str, list[RPCAction]]:
        return {config.name: list(config.handler.actions("all")) for config in self._configs}

    def start(self, transport: RPCTransport) -> Mapping[str, list[RPCAction]]:
        if self._sealed:
            raise RegistrySealedError("RPC registry was already started")
        self._sealed = True
        bound: dict[str, list[RPCAction]] = {}
        for config in self._configs:
            actions = list(config.handler.actions("all"))
            transport.register_name(config.name, config.handler, actions)
            logger.info("[ rpc] %s [%s]", config.name, "; ".join(str(a) for a in actions))
            bound[config.name] = actions
        return bound
