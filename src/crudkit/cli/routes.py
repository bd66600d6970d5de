from typing import Annotated

import typer
from fastapi.routing import APIRoute
from rich.console import Console
from rich.table import Table
from uvicorn.importer import import_from_string

from crudkit.cli.serve import DEFAULT_APP_FACTORY

console = Console()


def routes(
    factory: Annotated[str, typer.Option(help="Import string of the FastAPI app factory.")] = DEFAULT_APP_FACTORY,
) -> None:
    """Print the route table of an app factory."""
    app = import_from_string(factory)()
    table = Table(show_lines=False)
    for header in ("methods", "path", "name"):
        table.add_column(header)
    count = 0
    for route in app.routes:
        if isinstance(route, APIRoute):
            table.add_row(",".join(sorted(route.methods)), route.path, route.name)
            count += 1
    console.print(table)
    console.print(f"({count} routes)")
