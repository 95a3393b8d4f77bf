"""Funding rate data models."""

from datetime import UTC, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer


class Observation(BaseModel):
    """One provider's funding reading for one instrument at one instant."""

    model_config = ConfigDict(frozen=True)

    instrument: str = Field(..., min_length=1)
    provider: str = Field(..., min_length=1)
    funding_rate: Decimal
    mark_price: Decimal = Decimal("0")
    index_price: Decimal = Decimal("0")
    last_funding_rate: Decimal | None = None
    next_funding_time: datetime | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @field_serializer("funding_rate", "mark_price", "index_price", "last_funding_rate", when_used="json")
    def serialize_decimal(self, value: Decimal | None) -> str | None:
        """Serialize Decimal to string."""
        if value is None:
            return None
        return str(value)


class ProviderStatus(BaseModel):
    """Liveness of one registered source."""

    name: str
    healthy: bool


class LogFileDescriptor(BaseModel):
    """A day-file found by walking the log directory."""

    instrument: str
    day: str
    path: str
    size: int
    modified: datetime


class HistoryPoint(BaseModel):
    """Funding rate at one header capture instant, reconstructed from a day-file."""

    timestamp: int
    funding_rate: Decimal

    @field_serializer("funding_rate", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        return float(value)


class LogRecord(BaseModel):
    """One parsed exchange line together with its header context."""

    timestamp: str
    instrument: str
    provider: str
    funding_rate: Decimal
    mark_price: Decimal
    index_price: Decimal

    @field_serializer("funding_rate", "mark_price", "index_price", when_used="json")
    def serialize_decimal(self, value: Decimal) -> float:
        return float(value)
