"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from schemaforge.core.types import ChangeSet, RelationDescriptor
from schemaforge.exceptions import SchemaForgeError

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

    def print_entity(self, entity: dict[str, Any]) -> None:
        """Print one entity with its fields and relations.

        Args:
            entity: Entity summary as built by `schema describe`
        """
        if self.json_mode:
            print(json.dumps(entity, default=str, indent=2))
            return

        console.print(f"\n[bold]Entity:[/bold] {entity['name']}")
        pivot = " (pivot)" if entity.get("pivot") else ""
        console.print(f"Table: {entity['table']}{pivot}")

        fields_table = Table(show_header=True, header_style="bold cyan")
        for col in ("Name", "Type", "Nullable", "Primary", "Implicit"):
            fields_table.add_column(col)
        for f in entity["fields"]:
            fields_table.add_row(
                f["name"],
                f["type"],
                "✓" if f["nullable"] else "",
                "✓" if f["primary_key"] else "",
                "✓" if f["implicit"] else "",
            )
        console.print(f"\n[bold]Fields ({len(entity['fields'])}):[/bold]")
        console.print(fields_table)

        if entity["relations"]:
            rel_table = Table(show_header=True, header_style="bold cyan")
            rel_table.add_column("Method")
            rel_table.add_column("Returns")
            rel_table.add_column("Kind")
            for rel in entity["relations"]:
                rel_table.add_row(rel["method"], rel["returns"], rel["kind"])
            console.print(f"\n[bold]Relations ({len(entity['relations'])}):[/bold]")
            console.print(rel_table)

    def print_relations(self, descriptors: list[RelationDescriptor]) -> None:
        """Print relation descriptors."""
        if self.json_mode:
            print(json.dumps([d.to_dict() for d in descriptors], default=str, indent=2))
            return
        self.print_table(
            f"Relations ({len(descriptors)} total)",
            [
                {
                    "Entity": d.entity,
                    "Method": f"{d.method}()",
                    "Kind": d.kind,
                    "Related": d.related or "",
                    "Keys": ", ".join(
                        f"{k}={v}"
                        for k, v in d.to_dict().items()
                        if k.endswith("_key") or k in ("pivot_table", "morph_name")
                    ),
                }
                for d in descriptors
            ],
            ["Entity", "Method", "Kind", "Related", "Keys"],
        )

    def print_change_set(self, change_set: ChangeSet) -> None:
        """Print a change set, one block per table."""
        if self.json_mode:
            print(change_set.model_dump_json(indent=2))
            return
        if change_set.is_empty:
            console.print("✓ Nothing to change", style="green")
            return

        for change in change_set.changes:
            style = "green" if change.kind == "create_table" else "yellow"
            console.print(f"\n[bold {style}]{change.kind}[/bold {style}] {change.table}")
            for command in change.commands:
                target = f" -> {command.target}" if command.target else ""
                console.print(f"  {command.kind} {command.source}{target}", style="dim")
            for column in change.columns:
                nullable = "nullable" if column.nullable else "not null"
                marker = "~" if column.exists else "+"
                console.print(f"  {marker} {column.name}: {column.type} ({nullable})")
            for index in change.indexes:
                console.print(f"  + index {index.name} ({', '.join(index.columns)})")
            for unique in change.uniques:
                console.print(f"  + unique {unique.name} ({', '.join(unique.columns)})")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display
        """
        if self.json_mode:
            if isinstance(error, SchemaForgeError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            # For SchemaForgeError, include context if available
            if isinstance(error, SchemaForgeError) and error.context:
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
            console.print_json(json.dumps(data, default=str))
