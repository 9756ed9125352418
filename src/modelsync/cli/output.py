"""Output formatting for CLI commands."""

import json
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from modelsync.core.types import EntityInfo
from modelsync.exceptions import ModelSyncError

console = Console()


class OutputFormatter:
    """Formats output for terminal or JSON mode."""

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize formatter.

        Args:
            json_mode: If True, print JSON instead of Rich output
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
            data: Row dictionaries
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

    def print_entity_info(self, entity: EntityInfo) -> None:
        """Print entity information with attributes and references.

        Args:
            entity: Entity description to display
        """
        if self.json_mode:
            print(json.dumps(entity.model_dump(), default=str, indent=2))
            return

        console.print(f"\n[bold]Entity:[/bold] {entity.name}")
        console.print(f"Table: {entity.table_name}")
        if entity.primary_key:
            console.print(f"Primary key: {entity.primary_key}")
        if entity.description:
            console.print(f"Description: {entity.description}")
        console.print(f"Attributes: {', '.join(entity.attributes) or '-'}")
        console.print(f"References: {', '.join(entity.references) or '-'}")
        if entity.features:
            console.print(f"Features: {', '.join(entity.features)}")

    def print_success(self, message: str, details: dict[str, Any] | None = None) -> None:
        """Print success message.

        Args:
            message: Success message
            details: Extra keys merged into the output
        """
        if self.json_mode:
            output = {"success": True, "message": message}
            if details:
                output.update(details)
            print(json.dumps(output, default=str, indent=2))
        else:
            console.print(f"✓ {message}", style="green")
            if details:
                for key, value in details.items():
                    console.print(f"  {key}: {value}", style="dim")

    def print_error(self, error: Exception) -> None:
        """Print error message.

        Args:
            error: Exception to display, with its context when it has one
        """
        if self.json_mode:
            if isinstance(error, ModelSyncError):
                print(json.dumps(error.to_dict(), default=str, indent=2))
            else:
                print(json.dumps({"error": str(error)}, indent=2))
        else:
            error_text = str(error)
            if isinstance(error, ModelSyncError) and error.context:
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
            data: JSON-serializable data
        """
        if self.json_mode:
            print(json.dumps(data, default=str, indent=2))
        else:
            console.print_json(json.dumps(data, default=str))


class ProgressBarWrapper:
    """Rich progress bars driven by the fixture populate callback.

    One bar per entity, measured in percent.
    """

    def __init__(self, json_mode: bool = False) -> None:
        """Initialize progress wrapper.

        Args:
            json_mode: If True, draw no progress bars
        """
        self.json_mode = json_mode
        self.progress: Progress | None = None
        self.tasks: dict[str, TaskID] = {}

    def __enter__(self) -> "ProgressBarWrapper":
        if not self.json_mode:
            self.progress = Progress(
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
                TimeElapsedColumn(),
                console=console,
            )
            self.progress.__enter__()
        return self

    def __exit__(self, *args: Any) -> None:
        if self.progress is not None:
            self.progress.__exit__(*args)

    def on_populate(self, entity_name: str, percent: int) -> None:
        """Populate callback: move the entity's bar to ``percent``.

        Args:
            entity_name: Entity being populated
            percent: Rows inserted so far, as a percentage of its fixture
        """
        if self.progress is None:
            return
        if entity_name not in self.tasks:
            self.tasks[entity_name] = self.progress.add_task(f"Populating {entity_name}", total=100)
        self.progress.update(self.tasks[entity_name], completed=percent)
