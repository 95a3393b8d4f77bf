"""Main entry point for the ratewatch command line interface."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer

from ratewatch.core.config import ConfigManager
from ratewatch.core.exceptions import ConfigurationError, RateWatchError
from ratewatch.core.logging import configure_logging

from . import utils
from .formatters import create_formatter
from .logs import register as register_log_commands

RATE_COLUMNS = ["instrument", "provider", "funding_rate", "mark_price", "index_price", "next_funding_time"]


def create_app() -> typer.Typer:
    """Create a Typer application instance for ratewatch."""

    app = typer.Typer(add_completion=False, help="Funding rate collector and log browser")

    @app.callback()
    def main(
        ctx: typer.Context,
        config: Path | None = typer.Option(
            None,
            "--config",
            "-c",
            help="Path of the TOML configuration file.",
        ),
        format: str = typer.Option(
            "table",
            "--format",
            "-f",
            help="Output format (table or jsonl).",
            show_default=True,
        ),
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Logging level; the configured level when omitted.",
        ),
        no_color: bool = typer.Option(
            False,
            "--no-color",
            help="Disable colorized output for table format.",
        ),
    ) -> None:
        ctx.ensure_object(dict)
        normalized_format = format.strip().lower()
        try:
            create_formatter(normalized_format, no_color=no_color)
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--format") from exc

        try:
            resolved = ConfigManager(config).get_config()
        except ConfigurationError as error:
            raise utils.fail(error) from error

        level = (log_level or resolved.logging.level).upper()
        configure_logging(level, format=resolved.logging.format)
        ctx.obj.update({"config": resolved, "format": normalized_format, "no_color": no_color})

    @app.command()
    def serve(
        ctx: typer.Context,
        host: str | None = typer.Option(None, "--host", help="Bind address."),
        port: int | None = typer.Option(None, "--port", "-p", help="Bind port."),
    ) -> None:
        """Run the HTTP API and the background collector."""

        from ratewatch.web.main import run

        run(utils.get_config(ctx), host=host, port=port)

    @app.command()
    def collect(ctx: typer.Context) -> None:
        """Run a single collection round and append it to the funding log."""

        service = utils.get_funding_service(utils.get_config(ctx))
        try:
            summary = asyncio.run(_run_round(service))
        except RateWatchError as error:
            raise utils.fail(error) from error

        typer.echo(
            f"{summary.observations} observations, "
            f"{len(summary.instruments_written)} instruments written, "
            f"{len(summary.instruments_failed)} failed"
        )
        if summary.providers_failed:
            typer.echo("unavailable: " + ", ".join(summary.providers_failed), err=True)

    @app.command()
    def rates(
        ctx: typer.Context,
        exchange: str | None = typer.Option(None, "--exchange", "-e", help="Only query this exchange."),
    ) -> None:
        """Show live funding rates without writing them to the log."""

        service = utils.get_funding_service(utils.get_config(ctx))
        try:
            observations = asyncio.run(_live(service, exchange))
        except RateWatchError as error:
            raise utils.fail(error) from error
        utils.render(ctx, [o.model_dump(mode="json") for o in observations], RATE_COLUMNS)

    @app.command()
    def history(
        ctx: typer.Context,
        symbol: str = typer.Argument(..., help="Instrument, e.g. BTCUSDT."),
        exchange: str = typer.Option(..., "--exchange", "-e", help="Exchange whose rates to extract."),
    ) -> None:
        """Rebuild an exchange's funding history for one instrument from the log."""

        try:
            points = utils.get_log(ctx).reconstruct_history(symbol, exchange)
        except RateWatchError as error:
            raise utils.fail(error) from error
        utils.render(ctx, [p.model_dump(mode="json") for p in points], ["timestamp", "funding_rate"])

    register_log_commands(app)
    return app


async def _run_round(service):
    try:
        return await service.run_collection_round()
    finally:
        await service.aclose()


async def _live(service, exchange: str | None):
    try:
        if exchange:
            return await service.get_one_live(exchange)
        return await service.get_all_live()
    finally:
        await service.aclose()


app = create_app()


def run() -> None:
    """Entrypoint used by console scripts."""

    app()


if __name__ == "__main__":  # pragma: no cover
    run()
