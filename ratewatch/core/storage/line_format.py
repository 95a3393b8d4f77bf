"""
Text encoding of the funding log.

Every collection round writes one block per instrument::

    [2024-05-01 12:00:00] Symbol: BTCUSDT
      Exchange: binance, Funding Rate: 0.000100, Mark Price: 63000.12, Index Price: 62990.50
      Exchange: bybit, Funding Rate: -0.000050, Mark Price: 63001.00, Index Price: 62991.00

followed by a blank line. Header timestamps are UTC. The format has no schema,
so reading it back is a best-effort scan: a header sets the timestamp context
for the exchange lines that follow it and anything that does not parse is
skipped.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from loguru import logger

from ratewatch.core.exceptions import MalformedLogLineError
from ratewatch.core.models import HistoryPoint, LogRecord, Observation

HEADER_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_HEADER_RE = re.compile(
    r"^\[(?P<timestamp>\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2})\] Symbol: (?P<instrument>\S+)\s*$"
)
_EXCHANGE_RE = re.compile(
    r"^\s+Exchange: (?P<provider>[^,]+), "
    r"Funding Rate: (?P<funding_rate>\S+), "
    r"Mark Price: (?P<mark_price>\S+), "
    r"Index Price: (?P<index_price>\S+)\s*$"
)


@dataclass(frozen=True)
class Header:
    timestamp: str
    captured_at: datetime
    instrument: str

    @property
    def epoch(self) -> int:
        return int(self.captured_at.timestamp())


@dataclass(frozen=True)
class ExchangeLine:
    provider: str
    funding_rate: Decimal
    mark_price: Decimal
    index_price: Decimal


def format_header(instrument: str, captured_at: datetime) -> str:
    if captured_at.tzinfo is not None:
        captured_at = captured_at.astimezone(UTC)
    return f"[{captured_at.strftime(HEADER_TIME_FORMAT)}] Symbol: {instrument}"


def format_exchange_line(observation: Observation) -> str:
    return (
        f"  Exchange: {observation.provider}, "
        f"Funding Rate: {observation.funding_rate:.6f}, "
        f"Mark Price: {observation.mark_price:.2f}, "
        f"Index Price: {observation.index_price:.2f}"
    )


def render_block(instrument: str, observations: Sequence[Observation], captured_at: datetime) -> str:
    """Render one log block: header, one line per observation, blank line."""

    lines = [format_header(instrument, captured_at)]
    lines.extend(format_exchange_line(observation) for observation in observations)
    return "\n".join(lines) + "\n\n"


def parse_header(line: str) -> Header:
    match = _HEADER_RE.match(line)
    if match is None:
        raise MalformedLogLineError(line, "not a header line")
    try:
        captured_at = datetime.strptime(match["timestamp"], HEADER_TIME_FORMAT).replace(tzinfo=UTC)
    except ValueError as e:
        raise MalformedLogLineError(line, f"bad timestamp: {e}") from e
    return Header(timestamp=match["timestamp"], captured_at=captured_at, instrument=match["instrument"])


def parse_exchange_line(line: str) -> ExchangeLine:
    match = _EXCHANGE_RE.match(line)
    if match is None:
        raise MalformedLogLineError(line, "not an exchange line")
    try:
        values = {key: Decimal(match[key]) for key in ("funding_rate", "mark_price", "index_price")}
    except InvalidOperation as e:
        raise MalformedLogLineError(line, "non-numeric field") from e
    if not all(value.is_finite() for value in values.values()):
        raise MalformedLogLineError(line, "non-finite field")
    return ExchangeLine(provider=match["provider"].strip(), **values)


def iter_entries(lines: Iterable[str]) -> Iterator[tuple[Header, ExchangeLine]]:
    """Pair every parsable exchange line with the most recent header.

    A header that fails to parse does not clear the previous context, so an
    exchange line following a corrupt header is attributed to the last good
    one. Exchange lines seen before any header are dropped.
    """

    current: Header | None = None
    for raw in lines:
        line = raw.rstrip("\r\n")
        if not line.strip():
            continue
        try:
            if line.startswith("["):
                current = parse_header(line)
                continue
            entry = parse_exchange_line(line)
        except MalformedLogLineError as e:
            logger.trace("Skipping log line: {}", e.reason)
            continue
        if current is None:
            continue
        yield current, entry


def iter_history(lines: Iterable[str], provider: str) -> Iterator[HistoryPoint]:
    for header, entry in iter_entries(lines):
        if entry.provider == provider:
            yield HistoryPoint(timestamp=header.epoch, funding_rate=entry.funding_rate)


def iter_records(lines: Iterable[str]) -> Iterator[LogRecord]:
    for header, entry in iter_entries(lines):
        yield LogRecord(
            timestamp=header.timestamp,
            instrument=header.instrument,
            provider=entry.provider,
            funding_rate=entry.funding_rate,
            mark_price=entry.mark_price,
            index_price=entry.index_price,
        )
