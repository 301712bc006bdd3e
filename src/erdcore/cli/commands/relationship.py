"""Relationship commands."""

from typing import Annotated

import typer

from erdcore.cli.context import CLIContext, resolve_entity
from erdcore.cli.output import OutputFormatter
from erdcore.core.types import RelationshipKind
from erdcore.schema.graph import foreign_keys_from, get_entity

# Create relationship subcommand group
app = typer.Typer(help="Connect entities with relationships")

KIND_HELP = f"Relationship kind: {', '.join(RelationshipKind.values())}"


@app.command("list")
def rel_list(ctx: typer.Context) -> None:
    """List relationships with the FK columns backing them."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        graph = cli_ctx.load_editor().graph
        table_data = []
        for relationship in graph.relationships:
            source = get_entity(graph, relationship.source)
            target = get_entity(graph, relationship.target)
            table_data.append(
                {
                    "id": relationship.id,
                    "source": source.label,
                    "target": target.label,
                    "kind": relationship.kind.value,
                    "foreign_keys": ", ".join(
                        c.name for c in foreign_keys_from(target, source.id)
                    ),
                }
            )
        formatter.print_table(
            f"Relationships ({len(table_data)} total)",
            table_data,
            ["id", "source", "target", "kind", "foreign_keys"],
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("connect")
def rel_connect(
    ctx: typer.Context,
    source_ref: Annotated[str, typer.Argument(help="Parent entity id or physical name")],
    target_ref: Annotated[str, typer.Argument(help="Child entity id or physical name")],
    kind: Annotated[
        str, typer.Option("--kind", "-k", help=KIND_HELP)
    ] = RelationshipKind.ONE_TO_MANY_NON_IDENTIFYING.value,
) -> None:
    """Draw a relationship from a parent to a child entity.

    Examples:

        erdcore rel connect user order --kind one-to-many-identifying
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        if kind not in RelationshipKind.values():
            raise ValueError(f"Invalid kind '{kind}'. {KIND_HELP}")
        editor = cli_ctx.load_editor()
        source = resolve_entity(editor.graph, source_ref)
        target = resolve_entity(editor.graph, target_ref)
        result = editor.connect(source.id, target.id, RelationshipKind(kind))
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Connected '{source.label}' -> '{target.label}'",
            {"relationship_id": result.relationship_id, "kind": kind},
            result.notifications,
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("reconnect")
def rel_reconnect(
    ctx: typer.Context,
    relationship_id: Annotated[str, typer.Argument(help="Relationship id")],
    kind: Annotated[str, typer.Argument(help=KIND_HELP)],
) -> None:
    """Change a relationship's kind."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        if kind not in RelationshipKind.values():
            raise ValueError(f"Invalid kind '{kind}'. {KIND_HELP}")
        editor = cli_ctx.load_editor()
        result = editor.reconnect(relationship_id, RelationshipKind(kind))
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Relationship '{relationship_id}' is now {kind}",
            notifications=result.notifications,
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("disconnect")
def rel_disconnect(
    ctx: typer.Context,
    relationship_id: Annotated[str, typer.Argument(help="Relationship id")],
) -> None:
    """Remove a relationship and the FK columns it created."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        result = editor.disconnect(relationship_id)
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Relationship '{relationship_id}' removed", notifications=result.notifications
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
