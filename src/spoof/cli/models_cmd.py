"""spoof models — List the model catalog."""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..models.registry import detect_data_type, list_models

console = Console()


def models(
    file: Path = typer.Option(
        None,
        "--file", "-f",
        help="Mark models suited to this dataset file",
    ),
) -> None:
    """Show available generation models."""
    detected = detect_data_type(file.name) if file else None

    table = Table(show_header=True, header_style="bold")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Details")

    for entry in list_models():
        name = entry.name
        if detected and entry.data_type == detected:
            name = f"{name} [green](recommended)[/green]"
        table.add_row(entry.id, name, entry.data_type, "\n".join(entry.details))

    if detected:
        console.print(f"Detected data type for {file.name}: [bold]{detected}[/bold]")
    console.print(table)
