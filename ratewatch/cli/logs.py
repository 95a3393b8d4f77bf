"""Funding log commands: listing, inspection and cleanup."""

from __future__ import annotations

import typer

from ratewatch.core.exceptions import RateWatchError
from ratewatch.core.storage import normalize_day, purge_older_than, summarize

from .utils import fail, get_config, get_log, render

logs_app = typer.Typer(help="Inspect and maintain the funding log.")

LIST_COLUMNS = ["instrument", "day", "size", "modified", "path"]
RECORD_COLUMNS = ["timestamp", "provider", "funding_rate", "mark_price", "index_price"]


@logs_app.command("list")
def list_logs(ctx: typer.Context) -> None:
    """List every day-file in the log directory."""

    try:
        descriptors = get_log(ctx).enumerate()
    except RateWatchError as error:
        raise fail(error) from error
    render(ctx, [d.model_dump(mode="json") for d in descriptors], LIST_COLUMNS)


@logs_app.command("stats")
def stats(ctx: typer.Context) -> None:
    """Show file counts and total size per day."""

    try:
        summary = summarize(get_log(ctx))
    except RateWatchError as error:
        raise fail(error) from error
    rows = [{"day": day, "files": count} for day, count in summary.files_by_day.items()]
    rows.append({"day": "total", "files": summary.total_files})
    render(ctx, rows, ["day", "files"])
    typer.echo(f"{summary.instruments} instruments, {summary.total_bytes} bytes")


@logs_app.command("show")
def show(
    ctx: typer.Context,
    symbol: str = typer.Argument(..., help="Instrument, e.g. BTCUSDT."),
    date: str | None = typer.Option(None, "--date", "-d", help="Day as YYYY-MM-DD or DD-MM-YYYY; today when omitted."),
    raw: bool = typer.Option(False, "--raw", help="Print the file exactly as stored."),
) -> None:
    """Show one instrument's entries for a day."""

    log = get_log(ctx)
    try:
        day = normalize_day(date) if date else log.today()
        if raw:
            typer.echo(log.read_raw(symbol, day).decode("utf-8", errors="replace"), nl=False)
            return
        records = log.read_records(symbol, day)
    except RateWatchError as error:
        raise fail(error) from error
    render(ctx, [r.model_dump(mode="json") for r in records], RECORD_COLUMNS)


@logs_app.command("cleanup")
def cleanup(
    ctx: typer.Context,
    days: int | None = typer.Option(None, "--days", help="Remove files older than this many days."),
) -> None:
    """Remove day-files older than the retention window."""

    retention = days if days is not None else get_config(ctx).storage.retention_days
    try:
        removed = purge_older_than(get_log(ctx), retention)
    except RateWatchError as error:
        raise fail(error) from error
    for descriptor in removed:
        typer.echo(f"removed {descriptor.path}")
    typer.echo(f"{len(removed)} files removed")


def register(app: typer.Typer) -> None:
    """Attach the ``logs`` sub-command group to ``app``."""

    app.add_typer(logs_app, name="logs")
