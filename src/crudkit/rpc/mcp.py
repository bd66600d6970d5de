"""Bind registered RPC handlers into a FastMCP server as tools."""

from __future__ import annotations

from typing import Any

from fastmcp import FastMCP

from crudkit.rpc.registry import RPCAction, RPCRegistry


class FastMCPTransport:
    """Expose each ``(handler, action)`` pair as the tool ``<handler>_<action>``."""

    def __init__(self, server: FastMCP) -> None:
        self.server = server
        self.tool_names: list[str] = []

    def register_name(self, name: str, handler: Any, actions: list[RPCAction]) -> None:
        for action in actions:
            method = getattr(handler, action.name, None)
            if method is None or not callable(method):
                raise ValueError(f"RPC handler '{name}' has no callable '{action.name}'")
            tool_name = f"{name}_{action.name}"
            description = f"{action.name}({action.request}) -> {action.response}"
            self.server.tool(method, name=tool_name, description=description)
            self.tool_names.append(tool_name)


def create_rpc_server(registry: RPCRegistry, name: str = "crudkit") -> FastMCP:
    """Create a FastMCP server and start ``registry`` into it."""
    server = FastMCP(name, instructions="RPC actions registered with crudkit.")
    registry.start(FastMCPTransport(server))
    return server
