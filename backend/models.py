"""
Pydantic models describing one event log submission.

An `EventEntry` is built straight from the decoded request body. Fields
the models do not know about are dropped; required text fields must be
non-empty and air humidity is bounded to a percentage. Soil humidity is
deliberately left unbounded.

Guidelines:
- These are input shapes. Storage-generated fields (`_id`) are added by
    the service/repo layers on the plain document, not declared here.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(ts: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a `Z` suffix."""

    return ts.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class _Document(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, allow_inf_nan=False)


class AirReading(_Document):
    sensor: str = Field(..., min_length=1)
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    temperature: Optional[float] = None
    heatIndex: Optional[float] = None
    dewPoint: Optional[float] = None


class SoilReading(_Document):
    sensor: str = Field(..., min_length=1)
    humidity: Optional[float] = None


class EventEntry(_Document):
    """One device submission.

    Fields:
    - `sender`: device name; required and non-empty.
    - `event`: optional free-text label.
    - `date`: submission timestamp; defaults to now, normalized to UTC.
    - `airReadings` / `soilReadings`: embedded readings, possibly empty.
    """

    sender: str = Field(..., min_length=1)
    event: Optional[str] = None
    date: datetime = Field(default_factory=utcnow)
    airReadings: List[AirReading] = Field(default_factory=list)
    soilReadings: List[SoilReading] = Field(default_factory=list)

    @field_validator("date", mode="before")
    @classmethod
    def _default_null_date(cls, value: Any) -> Any:
        return utcnow() if value is None else value

    @field_validator("date")
    @classmethod
    def _normalize_date(cls, value: datetime) -> datetime:
        # Naive timestamps are taken to be UTC already.
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        try:
            return value.astimezone(timezone.utc)
        except OverflowError as e:
            raise ValueError("date value out of range") from e

    @field_serializer("date")
    def _serialize_date(self, value: datetime) -> str:
        return format_timestamp(value)

    def to_document(self) -> Dict[str, Any]:
        """JSON-ready dict with absent optional fields left out."""

        return self.model_dump(mode="json", exclude_none=True)
