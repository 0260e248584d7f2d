"""Row sources for the dashboard."""

from .base import RawRow, SourceAdapter
from .csv_file import CsvFileSource, parse_delimited
from .supabase import SupabaseTableSource

from bonsai.shared.config import DashboardConfig, RemoteConfig
from bonsai.shared.errors import ConfigurationError


def build_source(config: DashboardConfig) -> SourceAdapter:
    """Create the configured source adapter.

    Raises:
        ConfigurationError: If the source is missing required settings.
    """
    source = config.source

    if source.type == "csv":
        if not source.path:
            raise ConfigurationError("CSV source needs a path (source.path or BONSAI_CSV_PATH)")
        return CsvFileSource(
            source.path,
            delimiter=source.delimiter,
            timeout=config.fetch_timeout,
        )

    if source.type == "remote":
        return SupabaseTableSource(
            RemoteConfig.from_env(),
            relation=source.relation,
            order_column=source.order_column,
            timeout=config.fetch_timeout,
        )

    raise ConfigurationError(f"Unsupported source type: {source.type}")


__all__ = [
    "RawRow",
    "SourceAdapter",
    "CsvFileSource",
    "SupabaseTableSource",
    "parse_delimited",
    "build_source",
]
