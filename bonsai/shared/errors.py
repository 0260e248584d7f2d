"""Error kinds raised by the data pipeline and source adapters."""

from typing import Optional


class DashboardError(Exception):
    """Base class for dashboard errors."""

    kind = "error"
    user_text = "Unexpected error while refreshing sensor data."


class TransportError(DashboardError):
    """The data source was unreachable or answered with a failure status."""

    kind = "transport"
    user_text = "Failed to load sensor data. Check the data source connection."

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ParseError(DashboardError):
    """The fetched batch could not be read as tabular data."""

    kind = "parse"
    user_text = "Sensor data is not formatted correctly."


class EmptyBatchError(DashboardError):
    """No usable rows remained after decoding and filtering."""

    kind = "empty"
    user_text = "No sensor data available."

    def __init__(self, message: str, raw_count: int = 0, decoded_count: int = 0):
        super().__init__(message)
        self.raw_count = raw_count
        self.decoded_count = decoded_count


class ConfigurationError(DashboardError):
    """Required configuration is missing or invalid."""

    kind = "configuration"
    user_text = "Data source is not configured."


class RowDecodeError(ValueError):
    """A single row could not be decoded; the row is dropped."""


def user_message(exc: BaseException) -> str:
    """Return the display text for an error, without internals."""
    if isinstance(exc, ConfigurationError):
        return f"{exc.user_text} {exc}"
    if isinstance(exc, DashboardError):
        return exc.user_text
    return DashboardError.user_text


def error_kind(exc: BaseException) -> str:
    if isinstance(exc, DashboardError):
        return exc.kind
    return DashboardError.kind
