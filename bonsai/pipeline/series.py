"""Series building: decode, drop, and filter a raw batch."""

import logging
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Callable, Iterable, List, Mapping, Optional

from bonsai.shared.errors import EmptyBatchError, RowDecodeError
from bonsai.shared.models import Reading, Series

from .decoder import ColumnMap, decode_row

logger = logging.getLogger(__name__)

DateFilter = Callable[[datetime], bool]


def build_series(
    raw_batch: Iterable[Mapping[str, Any]],
    column_map: ColumnMap,
    date_filter: Optional[DateFilter] = None,
) -> Series:
    """Decode a raw batch into a Series.

    Rows with a bad timestamp are dropped. Rows without any numeric value
    are kept. Input order is preserved, so the last row is the latest.

    Raises:
        EmptyBatchError: If no rows remain.
    """
    readings: List[Reading] = []
    raw_count = 0
    dropped = 0

    for row_number, row in enumerate(raw_batch, start=1):
        raw_count += 1
        try:
            readings.append(decode_row(row, column_map))
        except RowDecodeError as e:
            dropped += 1
            logger.debug(f"Dropping row {row_number}: {e}")

    if dropped:
        logger.info(f"Dropped {dropped} of {raw_count} rows with unusable timestamps")

    if raw_count == 0:
        raise EmptyBatchError("Source returned no rows")
    if not readings:
        raise EmptyBatchError(
            f"All {raw_count} rows failed to decode", raw_count=raw_count
        )

    decoded_count = len(readings)
    if date_filter is not None:
        readings = [r for r in readings if date_filter(r.timestamp)]
        if not readings:
            raise EmptyBatchError(
                f"Date filter excluded all {decoded_count} readings",
                raw_count=raw_count,
                decoded_count=decoded_count,
            )

    return Series(tuple(readings))


def on_local_date(tz: tzinfo, now: Optional[datetime] = None) -> DateFilter:
    """Keep readings whose local calendar date in ``tz`` is today."""
    today = (now or datetime.now(timezone.utc)).astimezone(tz).date()

    def predicate(timestamp: datetime) -> bool:
        return timestamp.astimezone(tz).date() == today

    return predicate


def within_last(hours: float = 24.0, now: Optional[datetime] = None) -> DateFilter:
    """Keep readings from the trailing window ending at ``now``."""
    end = now or datetime.now(timezone.utc)
    start = end - timedelta(hours=hours)

    def predicate(timestamp: datetime) -> bool:
        return start <= timestamp <= end

    return predicate


def date_filter_from_name(name: Optional[str], tz: tzinfo) -> Optional[Callable[[], DateFilter]]:
    """Map a configured filter name to a factory evaluated once per cycle.

    The factory is called at refresh time so "today" follows the clock.
    """
    if name is None:
        return None
    if name == "today":
        return lambda: on_local_date(tz)
    if name == "last_24h":
        return lambda: within_last(24.0)
    raise ValueError(f"Unknown date filter: {name}")
