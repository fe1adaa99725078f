"""spoof upload — Upload a dataset file to the generation service."""

from pathlib import Path

import typer
from rich.console import Console

from ..client.api import SpoofClient
from ..client.uploads import validate_upload
from ..core.errors import SpoofError
from ..models.registry import detect_data_type, recommend_models
from .common import resolve_config

console = Console()


def upload(
    file: Path = typer.Argument(
        ...,
        exists=True,
        dir_okay=False,
        help="Dataset file (CSV, JSON, TXT, XLS, XLSX)",
    ),
    config_path: Path = typer.Option(
        None,
        "--config", "-c",
        help="TOML file merged over the default config",
    ),
    url: str = typer.Option(
        None,
        "--url",
        help="Service base URL (overrides config)",
    ),
) -> None:
    """Upload a dataset and print its dataset id."""
    config = resolve_config(config_path, url)

    try:
        validate_upload(file.name, file.stat().st_size, config)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    client = SpoofClient.from_config(config)
    with console.status(f"Uploading {file.name}..."):
        try:
            dataset_id = client.upload_dataset(file)
        except SpoofError as e:
            console.print(f"[red]Upload failed:[/red] {e}")
            raise typer.Exit(1)

    console.print(f"[green]Uploaded[/green] {file.name}")
    console.print(f"Dataset id: [bold]{dataset_id}[/bold]")

    detected = detect_data_type(file.name)
    suggested = ", ".join(m.id for m in recommend_models(file.name)) or "none"
    console.print(f"Detected data type: {detected} (suggested models: {suggested})")
    console.print(f"\nNext: [cyan]spoof generate --dataset {dataset_id}[/cyan]")
