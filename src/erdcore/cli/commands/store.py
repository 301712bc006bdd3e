"""Diagram store commands."""

from typing import Annotated

import typer

from erdcore.cli.context import CLIContext
from erdcore.cli.output import OutputFormatter

# Create store subcommand group
app = typer.Typer(help="Save and load diagrams in the database")


@app.command("save")
def store_save(
    ctx: typer.Context,
    title: Annotated[str, typer.Option("--title", "-t", help="Diagram title")],
    description: Annotated[
        str | None, typer.Option("--description", help="Diagram description")
    ] = None,
    owner: Annotated[str | None, typer.Option("--owner", help="Owner email")] = None,
    tags: Annotated[
        list[str] | None, typer.Option("--tag", help="Tag. Can be repeated.")
    ] = None,
    public: Annotated[bool, typer.Option("--public", help="Mark as public")] = False,
    diagram_id: Annotated[
        str | None,
        typer.Option("--id", help="Update this saved diagram instead of creating one"),
    ] = None,
) -> None:
    """Save the diagram file to the store."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        graph = cli_ctx.load_editor().graph
        store = cli_ctx.get_store()
        if diagram_id:
            info = store.update(
                diagram_id,
                graph=graph,
                title=title,
                description=description,
                is_public=public or None,
                tags=tags,
            )
        else:
            info = store.save(
                graph,
                title=title,
                description=description,
                owner_email=owner,
                is_public=public,
                tags=tags,
            )
        formatter.print_success(
            f"Diagram '{info.title}' saved",
            {"id": info.id, "version": info.version, "entities": info.entity_count},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("list")
def store_list(
    ctx: typer.Context,
    owner: Annotated[str | None, typer.Option("--owner", help="Only this owner's diagrams")] = None,
) -> None:
    """List saved diagrams."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        diagrams = cli_ctx.get_store().list_diagrams(owner_email=owner)
        formatter.print_table(
            f"Diagrams ({len(diagrams)} total)",
            [d.model_dump(mode="json") for d in diagrams],
            ["id", "title", "version", "entity_count", "owner_email", "updated_at"],
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("load")
def store_load(
    ctx: typer.Context,
    diagram_id: Annotated[str, typer.Argument(help="Saved diagram id")],
) -> None:
    """Load a saved diagram into the diagram file (overwrites it)."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        graph = cli_ctx.get_store().load(diagram_id)
        cli_ctx.save_graph(graph)
        formatter.print_success(
            f"Diagram '{diagram_id}' loaded",
            {"file": cli_ctx.diagram_file, "entities": len(graph.entities)},
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()


@app.command("delete")
def store_delete(
    ctx: typer.Context,
    diagram_id: Annotated[str, typer.Argument(help="Saved diagram id")],
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
) -> None:
    """Delete a saved diagram."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        if not force and not cli_ctx.json_output:
            typer.confirm(f"Delete diagram '{diagram_id}'?", abort=True)
        cli_ctx.get_store().delete(diagram_id)
        formatter.print_success(f"Diagram '{diagram_id}' deleted")
    except typer.Abort:
        raise
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
    finally:
        cli_ctx.close()
