"""Typer CLI for spirewatch."""

from __future__ import annotations

import json
import platform
from pathlib import Path

import typer

from spirewatch.config import load_settings
from spirewatch.core.app import build_context
from spirewatch.logging import configure_logging
from spirewatch.replay import load_trace
from spirewatch.replay import replay as run_replay

app = typer.Typer(no_args_is_help=True)


@app.command()
def doctor() -> None:
    """Print environment diagnostics."""

    settings = load_settings()
    configure_logging(settings)
    ctx = build_context(settings)
    info = {
        "python": platform.python_version(),
        "platform": platform.platform(),
        "paths": {
            "home": str(settings.paths.base_dir),
            "logs": str(settings.paths.logs_dir),
        },
        "listener": ctx.listener.describe(),
    }
    typer.echo(json.dumps(info, indent=2))


@app.command()
def settings(key: str | None = typer.Argument(None)) -> None:
    """Display current settings or a specific section."""

    data = load_settings().model_dump()
    if key:
        data = data.get(key, {})
    typer.echo(json.dumps(data, indent=2, default=str))


@app.command()
def replay(
    trace: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    all_ticks: bool = typer.Option(False, "--all", help="Print every tick, not only boundaries."),
) -> None:
    """Replay a JSON-lines trace of host ticks and print each reported boundary."""

    current = load_settings()
    configure_logging(current, level="WARNING")
    try:
        steps = load_trace(trace)
    except ValueError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    for outcome in run_replay(steps, current.detector, include_all=all_ticks):
        typer.echo(outcome.model_dump_json())
