"""spoof generate — Run the full pipeline against an uploaded dataset."""

from pathlib import Path

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn, TimeElapsedColumn

from ..client.api import SpoofClient
from ..core.constants import EXPORT_FORMATS, PHASE_ORDER, RUN_COMPLETED, STATUS_ERROR
from ..core.parameters import GenerationParameters
from ..models.registry import get_model
from ..pipeline.driver import DriverSnapshot, GenerationDriver
from ..results.export import write_artifact
from .common import resolve_config, setup_logging

console = Console()

PHASE_ICONS = {
    "completed": "[green]OK[/green]",
    "error": "[red]FAIL[/red]",
    "running": "[yellow]..[/yellow]",
    "pending": "[dim]--[/dim]",
}


def generate(
    dataset: str = typer.Option(
        ...,
        "--dataset", "-d",
        help="Dataset id returned by 'spoof upload'",
    ),
    model: str = typer.Option(
        None,
        "--model", "-m",
        help="Catalog model id (see 'spoof models'); defaults to generation.model_name",
    ),
    samples: int = typer.Option(1000, "--samples", "-n", help="Number of synthetic samples"),
    privacy: int = typer.Option(50, "--privacy", help="Privacy level (0-100)"),
    quality: int = typer.Option(75, "--quality", help="Quality level (25-100)"),
    diversity: int = typer.Option(60, "--diversity", help="Diversity level (0-100)"),
    output: Path = typer.Option(
        None,
        "--output", "-o",
        help="Write generated records to this file or directory",
    ),
    fmt: str = typer.Option(
        None,
        "--format",
        help="Export format: csv or json (default: from --output suffix)",
    ),
    show_log: bool = typer.Option(False, "--show-log", help="Print the run's debug log"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
    config_path: Path = typer.Option(
        None,
        "--config", "-c",
        help="TOML file merged over the default config",
    ),
    url: str = typer.Option(None, "--url", help="Service base URL (overrides config)"),
) -> None:
    """Preprocess, train, generate and validate synthetic data."""
    setup_logging(verbose)
    config = resolve_config(config_path, url)

    if fmt is not None and fmt not in EXPORT_FORMATS:
        console.print(f"[red]Unknown format {fmt!r}. Use one of: {', '.join(EXPORT_FORMATS)}[/red]")
        raise typer.Exit(1)

    if model:
        try:
            backend_name = get_model(model).backend_name
        except KeyError as e:
            console.print(f"[red]{e.args[0]}[/red]")
            raise typer.Exit(1)
    else:
        backend_name = config.get("generation", {}).get("model_name", "adsgan")

    params = GenerationParameters(
        samples=samples, privacy=privacy, quality=quality, diversity=diversity,
    )
    try:
        params.validate()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    client = SpoofClient.from_config(config)
    driver = GenerationDriver(client, config)

    console.print(f"[bold]Generating {params.samples:,} samples with {backend_name}[/bold]")
    console.print(f"Dataset: {dataset}")
    console.print(f"Est. time: ~{params.estimated_seconds()}s")
    console.print()

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("[progress.percentage]{task.percentage:>3.0f}%"),
        TimeElapsedColumn(),
        console=console,
    ) as progress:
        overall = progress.add_task("Overall", total=100)
        phase_tasks = {
            phase.id: progress.add_task(f"  {phase.label}", total=100)
            for phase in driver.snapshot.phases
        }

        driver.start(dataset, backend_name, params.samples)
        try:
            while not driver.wait(timeout=0.2):
                _render(progress, overall, phase_tasks, driver.snapshot)
        except KeyboardInterrupt:
            driver.cancel()
            driver.wait(timeout=5)
        _render(progress, overall, phase_tasks, driver.snapshot)

    snap = driver.snapshot

    console.print()
    for phase_id in PHASE_ORDER:
        phase = snap.phase(phase_id)
        console.print(f"  {phase.label}: {PHASE_ICONS.get(phase.status, phase.status)}")

    if show_log:
        console.print("\n[bold]Debug log[/bold]")
        for line in reversed(snap.log):
            console.print(f"  [dim]{line}[/dim]")

    if snap.suspicious_fast_generation:
        console.print(
            "[yellow]Generation finished without ever reporting 'running'; "
            "the backend may have returned a stale 'completed'.[/yellow]"
        )

    if snap.status != RUN_COMPLETED:
        failed = next((p for p in snap.phases if p.status == STATUS_ERROR), None)
        where = f" in {failed.label}" if failed else ""
        console.print(f"\n[red]Run {snap.status}{where}:[/red] {snap.error or ''}")
        raise typer.Exit(1)

    rows = len(snap.artifact.synthetic_data) if snap.artifact else 0
    console.print(f"\n[green]Done:[/green] {rows:,} records (job {snap.job_id})")

    if output is not None and snap.artifact is not None:
        try:
            written = write_artifact(snap.artifact, output, fmt)
        except ValueError as e:
            console.print(f"[red]Export failed:[/red] {e}")
            raise typer.Exit(1)
        console.print(f"Written to: {written}")


def _render(progress: Progress, overall, phase_tasks: dict, snap: DriverSnapshot) -> None:
    progress.update(overall, completed=snap.overall)
    for phase in snap.phases:
        progress.update(phase_tasks[phase.id], completed=phase.progress)
