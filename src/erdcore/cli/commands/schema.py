"""Entity and column commands."""

from typing import Annotated

import typer

from erdcore.cli.context import CLIContext, resolve_entity
from erdcore.cli.output import OutputFormatter
from erdcore.cli.parsing import parse_column_spec, parse_field_value
from erdcore.core.types import Entity
from erdcore.core.validation import validate_data_type_for_sql
from erdcore.exceptions import ColumnNotFoundError
from erdcore.schema.document import dump_document
from erdcore.schema.graph import find_column, find_invariant_violations

# Create schema subcommand group
app = typer.Typer(help="Edit entities and columns of the diagram")


@app.command("show")
def schema_show(
    ctx: typer.Context,
    entity_ref: Annotated[
        str | None, typer.Argument(help="Entity id or physical name (all entities if omitted)")
    ] = None,
) -> None:
    """Show the diagram's entities, or one entity in detail."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        graph = cli_ctx.load_editor().graph
        if entity_ref:
            formatter.print_entity(graph, resolve_entity(graph, entity_ref))
        elif cli_ctx.json_output:
            formatter.print_data(dump_document(graph))
        else:
            table_data = [
                {
                    "Id": e.id,
                    "Name": e.physical_name,
                    "Columns": len(e.columns),
                    "PK": ", ".join(c.name for c in e.pk_columns),
                    "FK": sum(1 for c in e.columns if c.fk),
                }
                for e in graph.entities
            ]
            formatter.print_table(
                f"Entities ({len(graph.entities)} total)",
                table_data,
                ["Id", "Name", "Columns", "PK", "FK"],
            )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("validate")
def schema_validate(
    ctx: typer.Context,
    sql_types: Annotated[
        bool,
        typer.Option("--sql-types", help="Also check every data type is exportable"),
    ] = False,
) -> None:
    """Check the diagram for broken foreign keys and relationships."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        graph = cli_ctx.load_editor().graph
        problems = find_invariant_violations(graph)
        if sql_types:
            for entity in graph.entities:
                for column in entity.columns:
                    ok, reason = validate_data_type_for_sql(column.data_type)
                    if not ok:
                        problems.append(f"{entity.label}.{column.name}: {reason}")
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)

    if problems:
        if cli_ctx.json_output:
            formatter.print_data({"valid": False, "problems": problems})
        else:
            formatter.print_table(
                f"{len(problems)} problem(s)", [{"Problem": p} for p in problems], ["Problem"]
            )
        raise typer.Exit(code=1)
    formatter.print_success("Diagram is consistent", {"entities": len(graph.entities)})


@app.command("entity-add")
def entity_add(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="Physical name (e.g., user, order_item)")],
    columns: Annotated[
        list[str] | None,
        typer.Option(
            "--column",
            "-c",
            help="Column spec: name:type[:pk][:nn][:uq][:ai]. Can be repeated.",
        ),
    ] = None,
    logical_name: Annotated[
        str | None, typer.Option("--logical-name", "-l", help="Logical (display) name")
    ] = None,
    comment: Annotated[str | None, typer.Option("--comment", help="Entity comment")] = None,
) -> None:
    """Add an entity.

    Examples:

        erdcore schema entity-add user --column "id:INT:pk:ai" --column "email:VARCHAR(255):nn:uq"
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        entity = Entity(
            physical_name=name,
            logical_name=logical_name or "",
            comment=comment or "",
            columns=tuple(parse_column_spec(spec) for spec in columns or []),
        )
        editor.add_entity(entity)
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Entity '{name}' added", {"id": entity.id, "columns": len(entity.columns)}
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("entity-remove")
def entity_remove(
    ctx: typer.Context,
    entity_ref: Annotated[str, typer.Argument(help="Entity id or physical name")],
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
) -> None:
    """Remove an entity, its relationships and the FKs its children hold."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        entity = resolve_entity(editor.graph, entity_ref)
        if not force and not cli_ctx.json_output:
            typer.confirm(f"Remove entity '{entity.label}'?", abort=True)
        result = editor.remove_entity(entity.id)
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Entity '{entity.label}' removed", notifications=result.notifications
        )
    except typer.Abort:
        raise
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("column-add")
def column_add(
    ctx: typer.Context,
    entity_ref: Annotated[str, typer.Argument(help="Entity id or physical name")],
    spec: Annotated[str, typer.Argument(help="Column spec: name:type[:pk][:nn][:uq][:ai]")],
    index: Annotated[
        int | None, typer.Option("--index", "-i", help="Insert position (appended if omitted)")
    ] = None,
) -> None:
    """Add a column; a new PK column propagates to child entities."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        entity = resolve_entity(editor.graph, entity_ref)
        column = parse_column_spec(spec)
        result = editor.add_column(entity.id, column, index)
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Column '{column.name}' added to '{entity.label}'",
            {"id": column.id},
            result.notifications,
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("column-remove")
def column_remove(
    ctx: typer.Context,
    entity_ref: Annotated[str, typer.Argument(help="Entity id or physical name")],
    column_ref: Annotated[str, typer.Argument(help="Column id or name")],
) -> None:
    """Remove a column and the FK copies derived from it."""
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        entity = resolve_entity(editor.graph, entity_ref)
        column = find_column(entity, column_ref)
        if column is None:
            raise ColumnNotFoundError(column_ref, entity.label, [c.name for c in entity.columns])
        result = editor.remove_column(entity.id, column.id)
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Column '{column.name}' removed from '{entity.label}'",
            notifications=result.notifications,
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)


@app.command("column-set")
def column_set(
    ctx: typer.Context,
    entity_ref: Annotated[str, typer.Argument(help="Entity id or physical name")],
    column_ref: Annotated[str, typer.Argument(help="Column id or name")],
    field: Annotated[
        str, typer.Argument(help="Field: name, dataType, pk, nn, uq, ai, onDelete, ...")
    ],
    value: Annotated[str, typer.Argument(help="New value (true/false for flags)")],
) -> None:
    """Set one column field, cascading key and type changes.

    Examples:

        erdcore schema column-set user id dataType BIGINT
        erdcore schema column-set order user_id pk false
    """
    cli_ctx: CLIContext = ctx.obj
    formatter = OutputFormatter(cli_ctx.json_output)

    try:
        editor = cli_ctx.load_editor()
        entity = resolve_entity(editor.graph, entity_ref)
        column = find_column(entity, column_ref)
        if column is None:
            raise ColumnNotFoundError(column_ref, entity.label, [c.name for c in entity.columns])
        result = editor.set_column_field(
            entity.id, column.id, field, parse_field_value(field, value)
        )
        cli_ctx.save_graph(editor.graph)
        formatter.print_success(
            f"Set {field} on '{entity.label}.{column.name}'",
            notifications=result.notifications,
        )
    except Exception as e:
        formatter.print_error(e)
        raise typer.Exit(code=1)
