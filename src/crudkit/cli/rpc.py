from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table
from uvicorn.importer import import_from_string

from crudkit.cli.serve import DEFAULT_RPC_FACTORY

rpc_app = typer.Typer(help="Inspect registered RPC handlers.")
console = Console()


@rpc_app.command("actions")
def actions(
    factory: Annotated[str, typer.Option(help="Import string of the RPC registry factory.")] = DEFAULT_RPC_FACTORY,
) -> None:
    """List every handler's actions without binding them."""
    registry = import_from_string(factory)()
    table = Table(show_lines=False)
    for header in ("handler", "action", "request", "response"):
        table.add_column(header)
    for name, handler_actions in registry.describe().items():
        for action in handler_actions:
            table.add_row(name, action.name, action.request, action.response)
    console.print(table)
