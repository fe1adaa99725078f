"""Helpers shared by CLI commands."""

import logging
from pathlib import Path

from rich.logging import RichHandler

from ..core.config import load_config


def resolve_config(config_path: Path | None, url: str | None) -> dict:
    """Load config with an optional override file and service URL."""
    config = load_config(config_path)
    if url:
        config.setdefault("service", {})["base_url"] = url
    return config


def setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
        force=True,
    )
