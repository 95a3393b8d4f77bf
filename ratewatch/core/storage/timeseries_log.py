"""Append-only funding log partitioned by instrument and day."""

from __future__ import annotations

import re
from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from ratewatch.core.exceptions import (
    InvalidQueryError,
    LogFileNotFoundError,
    LogWriteFailedError,
    StorageError,
)
from ratewatch.core.models import HistoryPoint, LogFileDescriptor, LogRecord, Observation
from ratewatch.core.storage import line_format

DAY_FORMAT = "%d-%m-%Y"
ISO_DAY_FORMAT = "%Y-%m-%d"
LOG_SUFFIX = ".log"

_NATIVE_DAY_RE = re.compile(r"^\d{2}-\d{2}-\d{4}$")
_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def normalize_day(day: str) -> str:
    """Return ``day`` in the native ``DD-MM-YYYY`` form.

    Accepts ``YYYY-MM-DD`` or ``DD-MM-YYYY``.
    """
    day = day.strip()
    for pattern, fmt in ((_ISO_DAY_RE, ISO_DAY_FORMAT), (_NATIVE_DAY_RE, DAY_FORMAT)):
        if pattern.match(day):
            try:
                return datetime.strptime(day, fmt).strftime(DAY_FORMAT)
            except ValueError:
                break
    raise InvalidQueryError(f"invalid date {day!r}, expected YYYY-MM-DD or DD-MM-YYYY", parameter="date")


def parse_day(day: str) -> datetime | None:
    try:
        return datetime.strptime(day, DAY_FORMAT)
    except ValueError:
        return None


def _validate_instrument(instrument: str) -> str:
    if not instrument or instrument in (".", "..") or "/" in instrument or "\\" in instrument or "\x00" in instrument:
        raise InvalidQueryError(f"invalid instrument name {instrument!r}", parameter="symbol")
    return instrument


class TimeSeriesLog:
    """Funding log stored as ``<root>/<INSTRUMENT>/<DD-MM-YYYY>.log``.

    Files are only ever opened in append mode. Each :meth:`append` call writes
    its whole block with a single ``write`` and closes the file again, so no
    handle is held between rounds and readers never see half a line from this
    process.
    """

    def __init__(self, root: str | Path, *, clock: Callable[[], datetime] | None = None) -> None:
        self.root = Path(root)
        self._clock = clock or (lambda: datetime.now(UTC))

    def day_path(self, instrument: str, day: str) -> Path:
        return self.root / _validate_instrument(instrument) / f"{day}{LOG_SUFFIX}"

    def today(self) -> str:
        return self._now().strftime(DAY_FORMAT)

    def _now(self) -> datetime:
        now = self._clock()
        return now.astimezone(UTC) if now.tzinfo is not None else now

    def append(self, instrument: str, observations: Sequence[Observation]) -> None:
        """Append one timestamped block for ``instrument`` to today's file."""

        try:
            _validate_instrument(instrument)
        except InvalidQueryError as e:
            raise LogWriteFailedError(instrument, reason=e.message) from e
        if not observations:
            return

        captured_at = self._now()
        block = line_format.render_block(instrument, observations, captured_at)
        path = self.root / instrument / f"{captured_at.strftime(DAY_FORMAT)}{LOG_SUFFIX}"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(block)
        except OSError as e:
            raise LogWriteFailedError(instrument, reason=str(e), details={"path": str(path)}) from e

        logger.debug("Appended {} observations to {}", len(observations), path)

    def read_raw(self, instrument: str, day: str) -> bytes:
        """Return the raw content of one day-file."""

        path = self.day_path(instrument, day)
        try:
            return path.read_bytes()
        except FileNotFoundError as e:
            raise LogFileNotFoundError(instrument, day) from e
        except OSError as e:
            raise StorageError(f"failed to read log file: {e}", details={"path": str(path)}) from e

    def read_records(self, instrument: str, day: str) -> list[LogRecord]:
        """Parse one day-file into structured records."""

        content = self.read_raw(instrument, day).decode("utf-8", errors="replace")
        return list(line_format.iter_records(content.splitlines()))

    def enumerate(self) -> list[LogFileDescriptor]:
        """List every day-file from directory metadata alone."""

        if not self.root.is_dir():
            return []

        descriptors: list[LogFileDescriptor] = []
        try:
            for instrument_dir in self.root.iterdir():
                if not instrument_dir.is_dir():
                    continue
                for path in instrument_dir.iterdir():
                    if path.suffix != LOG_SUFFIX or not path.is_file():
                        continue
                    stat = path.stat()
                    descriptors.append(
                        LogFileDescriptor(
                            instrument=instrument_dir.name,
                            day=path.stem,
                            path=str(path.relative_to(self.root)),
                            size=stat.st_size,
                            modified=datetime.fromtimestamp(stat.st_mtime, UTC),
                        )
                    )
        except OSError as e:
            raise StorageError(f"failed to read log directory: {e}", details={"root": str(self.root)}) from e

        descriptors.sort(key=lambda d: (d.instrument, parse_day(d.day) or datetime.max, d.day))
        return descriptors

    def reconstruct_history(self, instrument: str, provider: str) -> list[HistoryPoint]:
        """Rebuild one exchange's funding history for ``instrument`` from its day-files.

        Points come out grouped per file in day order and per line within a
        file; sort by ``timestamp`` if strict chronological order matters.
        """

        instrument_dir = self.root / _validate_instrument(instrument)
        if not instrument_dir.is_dir():
            return []

        files = sorted(
            (p for p in instrument_dir.iterdir() if p.suffix == LOG_SUFFIX and p.is_file()),
            key=lambda p: (parse_day(p.stem) or datetime.max, p.name),
        )
        points: list[HistoryPoint] = []
        for path in files:
            try:
                content = path.read_text(encoding="utf-8", errors="replace")
            except OSError as e:
                logger.debug("Skipping unreadable log file {}: {}", path, e)
                continue
            points.extend(line_format.iter_history(content.splitlines(), provider))
        return points
