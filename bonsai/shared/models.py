"""Core data models for sensor readings."""

from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import Enum
from typing import Iterator, Optional, Tuple

NUMERIC_FIELDS = ("temperature_c", "humidity_pct", "pressure_hpa", "battery_v")


@dataclass(frozen=True)
class Reading:
    """A single normalized sensor observation.

    Numeric fields are None when the source value was missing or unreadable.
    """
    timestamp: datetime
    temperature_c: Optional[float] = None
    humidity_pct: Optional[float] = None
    pressure_hpa: Optional[float] = None
    battery_v: Optional[float] = None

    def local_time(self, tz: tzinfo) -> datetime:
        """Timestamp converted to the given display timezone."""
        return self.timestamp.astimezone(tz)

    def display_time(self, tz: tzinfo, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
        return self.local_time(tz).strftime(fmt)

    def has_values(self) -> bool:
        """True if at least one numeric field decoded."""
        return any(getattr(self, name) is not None for name in NUMERIC_FIELDS)


@dataclass(frozen=True)
class Series:
    """Readings from one fetch cycle, in source order (oldest first)."""
    readings: Tuple[Reading, ...]

    def __post_init__(self):
        if not self.readings:
            raise ValueError("Series requires at least one reading")

    @property
    def latest(self) -> Reading:
        return self.readings[-1]

    def __len__(self) -> int:
        return len(self.readings)

    def __iter__(self) -> Iterator[Reading]:
        return iter(self.readings)

    def __getitem__(self, index):
        return self.readings[index]


@dataclass(frozen=True)
class ExtremaSummary:
    """Maximum and minimum of one numeric field across a series."""
    maximum: Optional[float] = None
    minimum: Optional[float] = None

    @property
    def is_empty(self) -> bool:
        return self.maximum is None and self.minimum is None


class DisplayStatus(Enum):
    LOADING = "loading"
    OK = "ok"
    ERROR = "error"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class DisplayState:
    """Snapshot handed to the display layer.

    Either series/extrema or error is populated, never both.
    """
    status: DisplayStatus
    series: Optional[Series] = None
    extrema: Optional[ExtremaSummary] = None
    error: Optional[str] = None
    error_kind: Optional[str] = None
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def latest(self) -> Optional[Reading]:
        if self.series is None:
            return None
        return self.series.latest

    @property
    def is_error(self) -> bool:
        return self.status is DisplayStatus.ERROR

    @classmethod
    def loading(cls) -> "DisplayState":
        return cls(status=DisplayStatus.LOADING)

    @classmethod
    def success(cls, series: Series, extrema: ExtremaSummary) -> "DisplayState":
        return cls(status=DisplayStatus.OK, series=series, extrema=extrema)

    @classmethod
    def failure(cls, kind: str, message: str) -> "DisplayState":
        return cls(status=DisplayStatus.ERROR, error=message, error_kind=kind)
