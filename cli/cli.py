"""Operator CLI for the IceKart race service.

Runs the service and talks to a running instance over HTTP: registering
racers before the start and printing the standings.
"""

import os

import httpx
import typer
import uvicorn
from loguru import logger
from rich.console import Console
from rich.table import Table

from icekart.core.logger import setup_logger
from icekart.core.settings import Settings

# Initialize Rich console for output
console = Console()

# Initialize Typer app
app = typer.Typer(
    name="icekart",
    help="IceKart race service - run the server and manage racers",
    add_completion=False,
)

DEFAULT_URL = os.getenv("ICEKART_URL", "http://127.0.0.1:3000")


def format_ms(value: int | None) -> str:
    """Render milliseconds as ``m:ss.mmm``; ``--`` when unknown."""
    if value is None:
        return "--"
    minutes, rest = divmod(value, 60_000)
    seconds, millis = divmod(rest, 1000)
    return f"{minutes}:{seconds:02d}.{millis:03d}"


def build_results_table(racers: list[dict]) -> Table:
    """Standings table for the racers returned by ``/api/results``."""
    table = Table(title="Race Results")
    table.add_column("Pos", justify="right")
    table.add_column("Racer")
    table.add_column("Laps", justify="right")
    table.add_column("CP", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Best lap", justify="right")
    table.add_column("Gap", justify="right")
    table.add_column("State")

    position = 0
    for racer in racers:
        if racer.get("disqualified"):
            pos, state = "-", "[red]DQ[/red]"
        else:
            position += 1
            pos = str(position)
            state = "[green]finished[/green]" if racer.get("finished") else ""
        table.add_row(
            pos,
            racer.get("name", "?"),
            str(racer.get("laps", 0)),
            str(racer.get("checkpoints", 0)),
            format_ms(racer.get("totalTime")),
            format_ms(racer.get("bestLap")),
            f"+{racer.get('gap', 0) / 1000:.2f}s",
            state,
        )
    return table


@app.command()
def serve(
    host: str | None = typer.Option(None, "--host", "-h", help="Host to bind to (default: HOST)"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to bind to (default: PORT)"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Run the race service."""
    settings = Settings()
    host = settings.host if host is None else host
    port = settings.port if port is None else port

    setup_logger(level="DEBUG" if debug else settings.log_level, log_file=settings.log_file)
    logger.info(f"Starting race service on {host}:{port} (reload={reload})")
    uvicorn.run("icekart.main:app", host=host, port=port, reload=reload)


@app.command()
def register(
    name: str = typer.Argument(..., help="Racer name"),
    avatar: str = typer.Option("", "--avatar", help="Avatar shown on displays"),
    url: str = typer.Option(DEFAULT_URL, "--url", help="Race service base URL"),
) -> None:
    """Register a racer with a running service."""
    try:
        response = httpx.post(f"{url}/api/register", json={"name": name, "avatar": avatar}, timeout=5.0)
    except httpx.HTTPError as e:
        console.print(f"[red]Could not reach race service at {url}: {e}[/red]")
        raise typer.Exit(1) from e

    if response.status_code == 409:
        console.print(f"[yellow]Racer '{name}' already exists[/yellow]")
        raise typer.Exit(1)
    if response.is_error:
        console.print(f"[red]Registration failed ({response.status_code}): {response.text}[/red]")
        raise typer.Exit(1)

    racer = response.json()
    console.print(f"[green]Registered {racer['name']}[/green] (id={racer['id']})")


@app.command()
def results(
    url: str = typer.Option(DEFAULT_URL, "--url", help="Race service base URL"),
) -> None:
    """Print the current standings."""
    try:
        response = httpx.get(f"{url}/api/results", timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError as e:
        console.print(f"[red]Could not fetch results from {url}: {e}[/red]")
        raise typer.Exit(1) from e

    console.print(build_results_table(response.json()["racers"]))


if __name__ == "__main__":
    app()
