"""Typer CLI commands for inspecting integration stores."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.table import Table

from .clock import system_clock, to_epoch
from .logging_setup import configure_logging
from .persist import FileStore, default_path

app = typer.Typer(name="infra-integrations", help="Integration store maintenance commands")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", help="Print store diagnostics to stderr")) -> None:
    configure_logging(verbose=verbose)


def _resolve(name: Optional[str], path: Optional[Path]) -> Path:
    if path is not None:
        return path
    if name:
        return default_path(name)
    rprint("[red]Either --name or --path is required[/red]")
    raise typer.Exit(code=2)


@app.command("path")
def show_path(name: str = typer.Argument(..., help="Integration name")) -> None:
    """Print the default store file of an integration."""

    typer.echo(str(default_path(name)))


@app.command()
def show(
    name: Optional[str] = typer.Option(None, help="Integration name"),
    path: Optional[Path] = typer.Option(None, help="Store file path"),
) -> None:
    """List the baselines held by a store file."""

    store_path = _resolve(name, path)
    if not store_path.exists():
        rprint(f"[yellow]No store found at {store_path}[/yellow]")
        raise typer.Exit(code=1)

    store = FileStore(store_path)
    if not len(store):
        rprint(f"[yellow]Store {store_path} is empty or expired[/yellow]")
        return

    now = to_epoch(system_clock())
    table = Table(title=str(store_path))
    table.add_column("key")
    table.add_column("value", justify="right")
    table.add_column("stored at")
    table.add_column("age (s)", justify="right")
    for key in store.keys():
        entry = store.get(key)
        assert entry is not None
        stored_at = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc).isoformat()
        table.add_row(key, f"{entry.value:g}", stored_at, f"{now - entry.timestamp:.0f}")
    rprint(table)


@app.command()
def clear(
    name: Optional[str] = typer.Option(None, help="Integration name"),
    path: Optional[Path] = typer.Option(None, help="Store file path"),
) -> None:
    """Delete a store file so the next run starts without baselines."""

    store_path = _resolve(name, path)
    if not store_path.exists():
        rprint(f"[yellow]No store found at {store_path}[/yellow]")
        return
    store_path.unlink()
    rprint(f"[green]Removed {store_path}[/green]")


if __name__ == "__main__":  # pragma: no cover
    app()
