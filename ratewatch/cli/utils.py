"""Helpers shared across CLI commands."""

from __future__ import annotations

import json
import sys
from typing import Any, Mapping, Sequence

import typer

from ratewatch.core.config import RateWatchConfig
from ratewatch.core.exceptions import ErrorCode, RateWatchError
from ratewatch.core.service import FundingService
from ratewatch.core.storage import TimeSeriesLog

from .formatters import OutputFormatter, create_formatter

VALIDATION_EXIT_CODE = 2
NOT_FOUND_EXIT_CODE = 3
PROVIDER_EXIT_CODE = 4
SYSTEM_EXIT_CODE = 5

_EXIT_BY_CODE = {
    ErrorCode.INVALID_QUERY: VALIDATION_EXIT_CODE,
    ErrorCode.CONFIGURATION_ERROR: VALIDATION_EXIT_CODE,
    ErrorCode.SOURCE_NOT_FOUND: NOT_FOUND_EXIT_CODE,
    ErrorCode.LOG_FILE_NOT_FOUND: NOT_FOUND_EXIT_CODE,
    ErrorCode.SOURCE_UNAVAILABLE: PROVIDER_EXIT_CODE,
    ErrorCode.PROVIDER_ERROR: PROVIDER_EXIT_CODE,
    ErrorCode.NETWORK_ERROR: PROVIDER_EXIT_CODE,
}


def get_config(ctx: typer.Context) -> RateWatchConfig:
    ctx.ensure_object(dict)
    return ctx.obj["config"]


def get_formatter(ctx: typer.Context) -> OutputFormatter:
    ctx.ensure_object(dict)
    return create_formatter(str(ctx.obj.get("format", "table")), no_color=bool(ctx.obj.get("no_color", False)))


def get_log(ctx: typer.Context) -> TimeSeriesLog:
    return TimeSeriesLog(get_config(ctx).storage.log_directory)


def get_funding_service(config: RateWatchConfig) -> FundingService:
    """Factory hook for obtaining a :class:`FundingService`."""

    return FundingService.from_config(config)


def render(ctx: typer.Context, rows: Sequence[Mapping[str, object]], columns: Sequence[str] | None = None) -> None:
    get_formatter(ctx).render(rows, stream=sys.stdout, columns=columns)


def emit_error(message: str, code: str, *, details: Mapping[str, Any] | None = None) -> None:
    """Write a structured error to stderr."""

    payload: dict[str, Any] = {"code": code, "message": message}
    if details:
        payload["details"] = dict(details)
    typer.echo(json.dumps({"error": payload}, default=str), err=True)


def fail(error: RateWatchError) -> typer.Exit:
    """Report ``error`` and return the matching ``typer.Exit`` to raise."""

    emit_error(error.message, error.error_code.value, details=error.details)
    return typer.Exit(code=_EXIT_BY_CODE.get(error.error_code, SYSTEM_EXIT_CODE))
