import logging
from typing import Annotated

import typer

from crudkit.cli.routes import routes
from crudkit.cli.rpc import rpc_app
from crudkit.cli.serve import serve_app

app = typer.Typer(
    name="crudkit",
    help="crudkit CLI: serve generic CRUD resources and RPC handlers.",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)

app.add_typer(serve_app, name="serve")
app.add_typer(rpc_app, name="rpc")
app.command("routes")(routes)


@app.callback()
def configure(
    log_level: Annotated[str, typer.Option(help="Root log level.")] = "INFO",
) -> None:
    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    app()
