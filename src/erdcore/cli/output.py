"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.pretty import pprint
from rich.table import Table

from erdcore.core.types import Entity, Graph, Notification, NotificationLevel
from erdcore.exceptions import ErdCoreError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, output JSON instead of Rich formatting
        """
        self.json_mode = json_mode

    def print_table(
        self,
        title: str,
        data: list[dict[str, Any]],
        columns: list[str],
    ) -> None:
        """Print data as Rich table or JSON array.

        Args:
            title: Table title
            data: List of row dictionaries
            columns: Column names to display
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            table = Table(title=title, show_header=True, header_style="bold magenta")
            for col in columns:
                table.add_column(col)
            for row in data:
                table.add_row(*[str(row.get(col, "")) for col in columns])
            console.print(table)

    def print_entity(self, graph: Graph, entity: Entity) -> None:
        """Print an entity with its columns and FK targets."""
        if self.json_mode:
            print(json.dumps(entity.model_dump(mode="json", by_alias=True), indent=2))
            return

        labels = {e.id: e.label for e in graph.entities}
        console.print(f"\n[bold]Entity:[/bold] {entity.physical_name} [dim]({entity.id})[/dim]")
        if entity.logical_name:
            console.print(f"Logical name: {entity.logical_name}")
        if entity.comment:
            console.print(f"Comment: {entity.comment}")

        table = Table(show_header=True, header_style="bold cyan")
        for heading in ("Name", "Type", "PK", "FK", "NN", "UQ", "AI", "References"):
            table.add_column(heading)
        for column in entity.columns:
            fk = column.foreign_key
            target = ""
            if fk is not None:
                parent = labels.get(fk.parent_entity_id, fk.parent_entity_id)
                target = f"{parent}.{fk.parent_column_id}"
            table.add_row(
                column.name,
                column.data_type,
                "✓" if column.pk else "",
                "✓" if column.fk else "",
                "✓" if column.nn else "",
                "✓" if column.uq else "",
                "✓" if column.ai else "",
                target,
            )
        console.print(table)

    def print_notifications(self, notifications: list[Notification]) -> None:
        """Print cascade notifications (terminal mode only)."""
        if self.json_mode:
            return
        for note in notifications:
            style = "yellow" if note.level == NotificationLevel.WARNING else "dim"
            console.print(f"  • {note.message}", style=style)

    def print_success(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        notifications: list[Notification] | None = None,
    ) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Optional details to display
            notifications: Cascade notifications of the edit
        """
        if self.json_mode:
            output: dict[str, Any] = {"success": True, "message": message}
            if details:
                output.update(details)
            if notifications:
                output["notifications"] = [n.model_dump(mode="json") for n in notifications]
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")
            self.print_notifications(notifications or [])

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, ErdCoreError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, ErdCoreError) and error.context:
                context_str = "\n".join(f"{k}: {v}" for k, v in error.context.items())
                error_text = f"{error_text}\n\n{context_str}"

            panel = Panel(
                error_text,
                title="[red]Error[/red]",
                border_style="red",
            )
            console.print(panel)

    def print_data(self, data: Any) -> None:
        """Print generic data (dict, list, etc.).

        Args:
            data: Data to print
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            pprint(data, console=console)
