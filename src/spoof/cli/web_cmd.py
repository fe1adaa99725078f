"""spoof web — Start the web dashboard."""

import typer
from rich.console import Console

console = Console()


def web(
    port: int = typer.Option(
        8000,
        "--port",
        help="HTTP port for the dashboard",
    ),
    host: str = typer.Option(
        "127.0.0.1",
        "--host",
        help="Host to bind to",
    ),
) -> None:
    """Start the Spoof web dashboard (FastAPI + SSE)."""
    import uvicorn

    console.print("[bold]Starting Spoof dashboard[/bold]")
    console.print(f"URL: http://localhost:{port}")
    console.print()

    uvicorn.run(
        "spoof.web.app:app",
        host=host,
        port=port,
        reload=False,
    )
