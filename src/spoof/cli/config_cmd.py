"""spoof config — Show the effective config and update an override file."""

import tomllib
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from ..core.config import load_config, load_override, save_config

console = Console()


def parse_assignment(item: str) -> tuple[str, str, object]:
    """Split ``section.key=value`` into its parts.

    The value is read as a TOML literal (numbers, booleans, quoted strings,
    arrays); anything that does not parse is kept as a bare string.
    """
    name, sep, raw = item.partition("=")
    section, dot, key = name.strip().partition(".")
    if not sep or not dot or not section or not key or "." in key:
        raise ValueError(f"Expected section.key=value, got {item!r}")
    raw = raw.strip()
    try:
        value = tomllib.loads(f"v = {raw}")["v"]
    except tomllib.TOMLDecodeError:
        value = raw
    return section, key, value


def config(
    config_path: Path = typer.Option(
        Path("spoof.toml"),
        "--config", "-c",
        help="Override file to read and update",
    ),
    assignments: list[str] = typer.Option(
        None,
        "--set",
        help="section.key=value to store in the override file (repeatable)",
    ),
) -> None:
    """Show the merged config; --set writes values to the override file."""
    if assignments:
        overrides = load_override(config_path)
        for item in assignments:
            try:
                section, key, value = parse_assignment(item)
            except ValueError as e:
                console.print(f"[red]{e}[/red]")
                raise typer.Exit(1)
            if not isinstance(overrides.get(section, {}), dict):
                console.print(f"[red]{section!r} is not a config section[/red]")
                raise typer.Exit(1)
            overrides.setdefault(section, {})[key] = value
        save_config(config_path, overrides)
        console.print(f"Written to: {config_path}")

    effective = load_config(config_path)
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for section, values in effective.items():
        if isinstance(values, dict):
            for key, value in values.items():
                table.add_row(f"{section}.{key}", repr(value))
        else:
            table.add_row(section, repr(values))
    console.print(table)
