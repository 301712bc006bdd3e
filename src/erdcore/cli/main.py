"""erdcore CLI - Main entry point."""

import logging
import sys
from typing import Annotated

import typer

import erdcore
from erdcore.cli.context import CLIContext, get_database_url, get_diagram_file

# Create main Typer app
app = typer.Typer(
    name="erdcore",
    help="erdcore CLI - consistent entity-relationship diagrams from the command line",
    no_args_is_help=True,
)

# Store CLI context globally (will be set in callback)
state: dict[str, CLIContext] = {}


@app.callback()
def main_callback(
    ctx: typer.Context,
    file: Annotated[
        str | None,
        typer.Option(
            "--file",
            "-f",
            envvar="ERDCORE_FILE",
            help="Diagram JSON document to edit",
        ),
    ] = None,
    database: Annotated[
        str | None,
        typer.Option(
            "--database",
            "-d",
            envvar="ERDCORE_URL",
            help="Diagram store URL (PostgreSQL or SQLite)",
        ),
    ] = None,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            "-j",
            help="Output as JSON (machine-readable)",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Log propagation steps to stderr",
        ),
    ] = False,
) -> None:
    """Initialize CLI context with global options."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            stream=sys.stderr,
            format="%(levelname)s %(name)s: %(message)s",
        )

    cli_ctx = CLIContext(
        diagram_file=get_diagram_file(file),
        database_url=get_database_url(database),
        json_output=json_output,
    )

    # Store in Typer context for command access
    ctx.obj = cli_ctx
    state["cli_ctx"] = cli_ctx


@app.command()
def version() -> None:
    """Show version information."""
    typer.echo(f"erdcore v{erdcore.__version__}")


# Register command groups
from erdcore.cli.commands import relationship, schema, store  # noqa: E402

app.add_typer(schema.app, name="schema")
app.add_typer(relationship.app, name="rel")
app.add_typer(store.app, name="store")


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
