"""spoof status — Show the remote status of a job."""

from pathlib import Path

import typer
from rich.console import Console

from ..client.api import SpoofClient
from ..core.errors import SpoofError
from ..pipeline.poller import clamp_percent, normalize_status
from .common import resolve_config

console = Console()

STATUS_STYLES = {
    "completed": "[green]completed[/green]",
    "failed": "[red]failed[/red]",
    "error": "[red]error[/red]",
    "running": "[yellow]running[/yellow]",
    "": "[dim]unknown[/dim]",
}


def status(
    job_id: str = typer.Argument(..., help="Job id returned by training"),
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
    """Fetch a job's status once."""
    config = resolve_config(config_path, url)
    client = SpoofClient.from_config(config)

    try:
        raw = client.fetch_status(job_id)
    except SpoofError as e:
        console.print(f"[red]Status fetch failed:[/red] {e}")
        raise typer.Exit(1)

    job_status = normalize_status(raw.get("status"))
    percent = clamp_percent(raw.get("percent"))
    styled = STATUS_STYLES.get(job_status, f"[yellow]{job_status}[/yellow]")
    console.print(f"Job {job_id}: {styled} ({percent:.0f}%)")
