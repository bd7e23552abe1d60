"""minizap serve: start the HTTP API."""

import typer

from minizap.cli.commands import console
from minizap.config import config


def serve(
    host: str = typer.Option(None, help="Host to bind to (default MINIZAP_HOST)"),
    port: int = typer.Option(None, help="Port to listen on (default MINIZAP_PORT)"),
    reload: bool = typer.Option(False, help="Reload on code changes"),
):
    """Start the minizap API server."""
    import uvicorn
    host = host or config.host
    port = port or config.port
    console.print(f"[green]Starting minizap API on {host}:{port}[/green]")
    uvicorn.run("minizap.api.main:app", host=host, port=port, reload=reload)
