"""Normalization pipeline: raw rows to readings and statistics."""

from .decoder import (
    CSV_EXPORT_COLUMNS,
    DEFAULT_COLUMNS,
    REMOTE_TABLE_COLUMNS,
    ColumnMap,
    FieldSpec,
    TimestampSpec,
    build_column_map,
    decode_row,
)
from .series import build_series, date_filter_from_name, on_local_date, within_last
from .stats import extrema

__all__ = [
    "CSV_EXPORT_COLUMNS",
    "DEFAULT_COLUMNS",
    "REMOTE_TABLE_COLUMNS",
    "ColumnMap",
    "FieldSpec",
    "TimestampSpec",
    "build_column_map",
    "decode_row",
    "build_series",
    "date_filter_from_name",
    "on_local_date",
    "within_last",
    "extrema",
]
