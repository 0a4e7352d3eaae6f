"""
Command-line interface for the Harare Metro aggregation backend.

Uses Typer to expose one-off refreshes, the periodic trigger loop, the
HTTP server and cache maintenance. Supports loading .env files for the
admin key.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from .config import AppConfig, load_config
from .errors import RefreshError
from .services import build_services
from .utils.logging import setup_logging

try:
    from dotenv import load_dotenv
except Exception:  # noqa: BLE001
    load_dotenv = None

app = typer.Typer(add_completion=False)
console = Console()

ConfigOption = typer.Option(None, "--config", "-c", exists=True, help="YAML config file.")
LogLevelOption = typer.Option(None, "--log-level", help="Logging level.")


def _prepare(config: Path | None, log_level: str | None) -> AppConfig:
    # Load environment variables from .env if available
    if load_dotenv is not None:
        load_dotenv()
    cfg = load_config(str(config) if config else None)
    if log_level:
        cfg.logging.level = log_level
    setup_logging(cfg.logging)
    return cfg


@app.command()
def refresh(
    config: Path | None = ConfigOption,
    force: bool = typer.Option(False, "--force", help="Ignore the schedule and any held lock."),
    log_level: str | None = LogLevelOption,
):
    """Run one refresh: scheduled (only when due) or forced."""
    cfg = _prepare(config, log_level)
    services = build_services(cfg)
    scheduler = services.scheduler

    try:
        result = asyncio.run(scheduler.force_refresh() if force else scheduler.run_scheduled())
    except RefreshError as exc:
        console.print(f"[red]Refresh failed:[/red] {exc}")
        raise typer.Exit(code=1)

    console.print(f"Refresh {result.status}: {result.articles_count} articles in {result.duration_seconds:.1f}s")
    if result.reason:
        console.print(f"Reason: {result.reason}")
    if result.report and result.report.failed:
        table = Table("Source", "Error", title="Failed sources")
        for name, reason in result.report.failed.items():
            table.add_row(name, reason)
        console.print(table)
    if result.status == "failed":
        raise typer.Exit(code=1)


@app.command()
def schedule(
    config: Path | None = ConfigOption,
    log_level: str | None = LogLevelOption,
):
    """Run the periodic trigger loop until interrupted."""
    cfg = _prepare(config, log_level)
    services = build_services(cfg)
    console.print(
        f"Checking every {cfg.scheduler.tick_seconds}s, refreshing every {cfg.scheduler.interval_seconds}s"
    )
    try:
        asyncio.run(services.scheduler.run_forever())
    except KeyboardInterrupt:
        console.print("Stopped")


@app.command()
def serve(
    config: Path | None = ConfigOption,
    host: str | None = typer.Option(None, "--host", help="Bind host."),
    port: int | None = typer.Option(None, "--port", help="Bind port."),
    scheduler: bool | None = typer.Option(
        None, "--scheduler/--no-scheduler", help="Run the periodic trigger inside the server."
    ),
    log_level: str | None = LogLevelOption,
):
    """Serve the HTTP API with uvicorn."""
    import uvicorn

    from .api.app import create_app

    cfg = _prepare(config, log_level)
    if host:
        cfg.api.host = host
    if port:
        cfg.api.port = port
    if scheduler is not None:
        cfg.scheduler.enabled = scheduler

    uvicorn.run(create_app(cfg), host=cfg.api.host, port=cfg.api.port, log_level=cfg.logging.level.lower())


@app.command()
def status(
    config: Path | None = ConfigOption,
    as_json: bool = typer.Option(False, "--json", help="Print raw JSON."),
):
    """Print cache and scheduler status."""
    cfg = _prepare(config, None)
    services = build_services(cfg)
    data = {
        "cache": services.cache.stats(),
        "refreshLock": services.lock.is_held(),
        "refresh": services.scheduler.status(),
    }
    if as_json:
        console.print_json(json.dumps(data))
        return

    table = Table("Field", "Value", title="Harare Metro status")
    for key, value in data["cache"].items():
        table.add_row(key, str(value))
    table.add_row("refreshLock", str(data["refreshLock"]))
    for key, value in data["refresh"].items():
        table.add_row(key, str(value))
    console.print(table)


@app.command("clear-cache")
def clear_cache(config: Path | None = ConfigOption):
    """Delete the snapshot, its metadata, the locks and cached searches."""
    cfg = _prepare(config, None)
    services = build_services(cfg)
    cleared = services.cache.clear_all()
    console.print(f"Cleared {len(cleared)} keys")


if __name__ == "__main__":
    app()
