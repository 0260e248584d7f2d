"""Row decoding: one raw source row into a normalized Reading."""

import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from numbers import Real
from typing import Any, Mapping, Optional, Tuple

from bonsai.shared.config import TIMESTAMP_FORMATS
from bonsai.shared.errors import RowDecodeError
from bonsai.shared.models import Reading

_FRACTION = re.compile(r"(?<=:\d{2})\.(\d+)")
_SHORT_OFFSET = re.compile(r"(?<=\d{2}:\d{2})(:\d{2}(?:\.\d+)?)?([+-]\d{2})(\d{2})?$")


@dataclass(frozen=True)
class FieldSpec:
    """How to read one numeric column.

    The first alias present in the row is used. The raw value is divided by
    ``divisor`` and rounded to ``precision`` decimals.
    """
    aliases: Tuple[str, ...]
    divisor: float = 1.0
    precision: int = 1

    def lookup(self, row: Mapping[str, Any]) -> Any:
        for key in self.aliases:
            if key in row:
                return row[key]
        return None

    def convert(self, raw: Any) -> Optional[float]:
        value = parse_number(raw)
        if value is None:
            return None
        value = round(value / self.divisor, self.precision)
        return value if math.isfinite(value) else None


@dataclass(frozen=True)
class TimestampSpec:
    """How to read the timestamp column.

    ``source_tz`` is attached to naive values; aware values keep their offset.
    """
    aliases: Tuple[str, ...]
    format: str = "iso"
    pattern: Optional[str] = None
    source_tz: tzinfo = timezone.utc

    def __post_init__(self):
        if self.format not in TIMESTAMP_FORMATS:
            raise ValueError(f"Unknown timestamp format: {self.format}")
        if self.format == "pattern" and not self.pattern:
            raise ValueError("Timestamp format 'pattern' needs a pattern")

    def lookup(self, row: Mapping[str, Any]) -> Any:
        for key in self.aliases:
            if key in row:
                return row[key]
        return None

    def parse(self, raw: Any) -> datetime:
        """Parse a raw timestamp into an aware UTC datetime.

        Raises:
            RowDecodeError: If the value is missing or unparseable.
        """
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            raise RowDecodeError("missing timestamp")

        try:
            if self.format == "epoch":
                seconds = parse_number(raw)
                if seconds is None:
                    raise ValueError(f"not a number: {raw!r}")
                return datetime.fromtimestamp(seconds, tz=timezone.utc)

            if isinstance(raw, datetime):
                parsed = raw
            elif self.format == "pattern":
                parsed = datetime.strptime(str(raw).strip(), self.pattern)
            else:
                parsed = datetime.fromisoformat(normalize_iso(str(raw)))
        except (ValueError, TypeError, OverflowError, OSError) as e:
            raise RowDecodeError(f"invalid timestamp {raw!r}") from e

        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=self.source_tz)
        return parsed.astimezone(timezone.utc)


@dataclass(frozen=True)
class ColumnMap:
    """Column naming and unit policy for one source."""
    timestamp: TimestampSpec
    temperature: FieldSpec
    humidity: FieldSpec
    pressure: FieldSpec
    battery: FieldSpec


def normalize_iso(text: str) -> str:
    """Rewrite an ISO 8601 string into a form ``datetime.fromisoformat`` accepts.

    Handles a trailing ``Z``, fractions that are not six digits long and
    compact offsets such as ``+00`` or ``+0100``.
    """
    candidate = text.strip()
    if candidate[-1:] in ("Z", "z"):
        candidate = candidate[:-1] + "+00:00"
    candidate = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), candidate, count=1)
    return _SHORT_OFFSET.sub(
        lambda m: f"{m.group(1) or ''}{m.group(2)}:{m.group(3) or '00'}", candidate, count=1
    )


def parse_number(raw: Any) -> Optional[float]:
    """Parse a raw scalar as a finite float, or None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Real):
        value = float(raw)
    else:
        text = str(raw).strip()
        if not text:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    return value if math.isfinite(value) else None


def decode_row(row: Mapping[str, Any], column_map: ColumnMap) -> Reading:
    """Decode one raw row.

    Unreadable numeric values become None. Only the timestamp is required.

    Raises:
        RowDecodeError: If the timestamp is missing or invalid.
    """
    timestamp = column_map.timestamp.parse(column_map.timestamp.lookup(row))

    return Reading(
        timestamp=timestamp,
        temperature_c=column_map.temperature.convert(column_map.temperature.lookup(row)),
        humidity_pct=column_map.humidity.convert(column_map.humidity.lookup(row)),
        pressure_hpa=column_map.pressure.convert(column_map.pressure.lookup(row)),
        battery_v=column_map.battery.convert(column_map.battery.lookup(row)),
    )


# Header names used by the CSV export and keys used by the remote table
CSV_ALIASES = {
    "timestamp": ("Timestamp",),
    "temperature": ("Temperature (°C)",),
    "humidity": ("Relative Humidity (%)",),
    "pressure": ("Barometric Pressure (Pa)",),
    "battery": ("Battery Voltage (mV)",),
}

REMOTE_ALIASES = {
    "timestamp": ("timestamp", "timestamp_est"),
    "temperature": ("temperature_c",),
    "humidity": ("humidity_percent",),
    "pressure": ("pressure_pa",),
    "battery": ("battery_voltage_mv",),
}


def build_column_map(
    aliases: Optional[Mapping[str, Tuple[str, ...]]] = None,
    pressure_divisor: float = 1000.0,
    battery_divisor: float = 1000.0,
    timestamp_format: str = "iso",
    timestamp_pattern: Optional[str] = None,
    source_tz: tzinfo = timezone.utc,
) -> ColumnMap:
    """Build a column map with explicit unit divisors.

    Args:
        aliases: Field name to candidate column keys. Defaults to both the
            CSV headers and the remote table keys.
        pressure_divisor: Raw pressure is divided by this (1000 for Pa to hPa
            as the sensor reports it, 1 to keep raw units).
        battery_divisor: Raw battery is divided by this (1000 for mV to V).
    """
    if aliases is None:
        aliases = {name: CSV_ALIASES[name] + REMOTE_ALIASES[name] for name in CSV_ALIASES}

    return ColumnMap(
        timestamp=TimestampSpec(
            aliases=tuple(aliases["timestamp"]),
            format=timestamp_format,
            pattern=timestamp_pattern,
            source_tz=source_tz,
        ),
        temperature=FieldSpec(tuple(aliases["temperature"]), precision=1),
        humidity=FieldSpec(tuple(aliases["humidity"]), precision=2),
        pressure=FieldSpec(tuple(aliases["pressure"]), divisor=pressure_divisor, precision=1),
        battery=FieldSpec(tuple(aliases["battery"]), divisor=battery_divisor, precision=3),
    )


CSV_EXPORT_COLUMNS = build_column_map(CSV_ALIASES)
REMOTE_TABLE_COLUMNS = build_column_map(REMOTE_ALIASES)
DEFAULT_COLUMNS = build_column_map()
