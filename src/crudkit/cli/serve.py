from typing import Annotated

import typer
from rich.console import Console

serve_app = typer.Typer(help="Start servers.")
console = Console()

DEFAULT_APP_FACTORY = "crudkit.example:create_example_app"
DEFAULT_RPC_FACTORY = "crudkit.example:create_example_rpc"


@serve_app.command("api")
def api(
    factory: Annotated[str, typer.Option(help="Import string of the FastAPI app factory.")] = DEFAULT_APP_FACTORY,
    host: str = "127.0.0.1",
    port: int = 8000,
) -> None:
    """Start the HTTP resource server."""
    import uvicorn

    console.print(f"[green]Starting API server on {host}:{port} ({factory})[/green]")
    uvicorn.run(factory, factory=True, host=host, port=port)


@serve_app.command("rpc")
def rpc(
    factory: Annotated[str, typer.Option(help="Import string of the RPC registry factory.")] = DEFAULT_RPC_FACTORY,
    transport: str = "stdio",
) -> None:
    """Start the RPC server with every registered handler bound as a tool."""
    from uvicorn.importer import import_from_string

    from crudkit.rpc.mcp import create_rpc_server

    registry = import_from_string(factory)()
    server = create_rpc_server(registry)
    console.print(f"[green]Starting RPC server (transport: {transport})[/green]")
    server.run(transport=transport)  # type: ignore[arg-type]
