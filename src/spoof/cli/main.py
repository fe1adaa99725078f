"""Spoof CLI — Typer application with subcommands."""

import typer

from .upload_cmd import upload
from .models_cmd import models
from .generate_cmd import generate
from .status_cmd import status
from .web_cmd import web
from .config_cmd import config

app = typer.Typer(
    name="spoof",
    help="Synthetic data generation: upload, train, generate, export.",
    no_args_is_help=True,
)

app.command()(upload)
app.command()(models)
app.command()(generate)
app.command()(status)
app.command()(web)
app.command()(config)


if __name__ == "__main__":
    app()
