"""Age-based cleanup and statistics for funding log day-files."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from loguru import logger

from ratewatch.core.exceptions import InvalidQueryError
from ratewatch.core.models import LogFileDescriptor
from ratewatch.core.storage.timeseries_log import TimeSeriesLog, parse_day


@dataclass
class LogStats:
    """Summary of the day-files currently on disk."""

    total_files: int = 0
    total_bytes: int = 0
    files_by_day: dict[str, int] = field(default_factory=dict)
    instruments: int = 0


def summarize(log: TimeSeriesLog) -> LogStats:
    descriptors = log.enumerate()
    by_day = Counter(d.day for d in descriptors)
    ordered_days = sorted(by_day, key=lambda day: (parse_day(day) or datetime.max, day))
    return LogStats(
        total_files=len(descriptors),
        total_bytes=sum(d.size for d in descriptors),
        files_by_day={day: by_day[day] for day in ordered_days},
        instruments=len({d.instrument for d in descriptors}),
    )


def purge_older_than(
    log: TimeSeriesLog,
    days: int,
    *,
    now: datetime | None = None,
) -> list[LogFileDescriptor]:
    """Delete day-files last modified more than ``days`` days ago.

    Returns the descriptors of the removed files. Files that vanish or cannot
    be removed are logged and left out of the result.
    """

    if days < 0:
        raise InvalidQueryError("days must be non-negative", parameter="days")

    cutoff = (now or datetime.now(UTC)) - timedelta(days=days)
    removed: list[LogFileDescriptor] = []
    for descriptor in log.enumerate():
        if descriptor.modified >= cutoff:
            continue
        path = log.root / descriptor.path
        try:
            path.unlink()
        except FileNotFoundError:
            continue
        except OSError as e:
            logger.warning("Failed to remove {}: {}", path, e)
            continue
        removed.append(descriptor)

    logger.info("Removed {} log files older than {} days", len(removed), days)
    return removed
