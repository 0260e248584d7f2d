"""Configuration loading utilities."""

import logging
import math
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import yaml
from dotenv import load_dotenv

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

_CONFIG_ENV = "BONSAI_CONFIG"
_URL_ENV = "SUPABASE_URL"
_KEY_ENV = "SUPABASE_KEY"

SOURCE_TYPES = ("csv", "remote")
DATE_FILTERS = ("today", "last_24h")
TIMESTAMP_FORMATS = ("iso", "epoch", "pattern")


def _read_number(data: dict, name: str, default, cast=float, minimum=None, exclusive=True):
    """Read a numeric setting, raising ConfigurationError when unusable."""
    value = data.get(name, default)
    if isinstance(value, bool):
        raise ConfigurationError(f"{name} must be a number, got {value!r}")
    try:
        parsed = cast(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"{name} must be a number, got {value!r}") from e
    if isinstance(parsed, float) and not math.isfinite(parsed):
        raise ConfigurationError(f"{name} must be finite, got {value!r}")
    if minimum is not None:
        if exclusive and parsed <= minimum:
            raise ConfigurationError(f"{name} must be greater than {minimum}, got {parsed}")
        if not exclusive and parsed < minimum:
            raise ConfigurationError(f"{name} must be at least {minimum}, got {parsed}")
    return parsed


@dataclass
class RemoteConfig:
    """Endpoint and access key for the remote table service."""
    url: str
    key: str

    @classmethod
    def from_env(cls) -> "RemoteConfig":
        """Create config from environment variables.

        Raises:
            ConfigurationError: If the endpoint or key is not set.
        """
        url = (os.getenv(_URL_ENV) or "").strip()
        key = (os.getenv(_KEY_ENV) or "").strip()

        logger.info(f"Remote URL: {url or '<unset>'}")
        # Only log whether the key is there, never the key itself
        logger.info(f"Remote key present? {bool(key)}")

        missing = [name for name, value in ((_URL_ENV, url), (_KEY_ENV, key)) if not value]
        if missing:
            logger.error(f"Remote source environment variables are missing: {', '.join(missing)}")
            raise ConfigurationError(f"Missing environment variables: {', '.join(missing)}")

        return cls(url=url.rstrip("/"), key=key)


@dataclass
class SourceConfig:
    """Where raw rows come from."""
    type: str = "csv"
    path: Optional[str] = None
    delimiter: str = ","
    relation: str = "sensor_data"
    order_column: str = "timestamp"

    @classmethod
    def from_dict(cls, data: dict) -> "SourceConfig":
        source_type = str(data.get("type", "csv")).lower()
        if source_type not in SOURCE_TYPES:
            raise ConfigurationError(
                f"Unknown source type {source_type!r}, expected one of {', '.join(SOURCE_TYPES)}"
            )
        return cls(
            type=source_type,
            path=data.get("path"),
            delimiter=data.get("delimiter", ","),
            relation=data.get("relation", "sensor_data"),
            order_column=data.get("order_column", "timestamp"),
        )


@dataclass
class UnitConfig:
    """Divisors applied to raw pressure (Pa) and battery (mV) values."""
    pressure_divisor: float = 1000.0
    battery_divisor: float = 1000.0

    @classmethod
    def from_dict(cls, data: dict) -> "UnitConfig":
        return cls(
            pressure_divisor=_read_number(data, "pressure_divisor", 1000.0, minimum=0),
            battery_divisor=_read_number(data, "battery_divisor", 1000.0, minimum=0),
        )


@dataclass
class DashboardConfig:
    """Configuration for the dashboard service."""

    source: SourceConfig = field(default_factory=SourceConfig)
    units: UnitConfig = field(default_factory=UnitConfig)

    refresh_interval: float = 5.0  # seconds
    fetch_timeout: float = 10.0  # seconds

    display_timezone: str = "America/New_York"
    source_timezone: str = "UTC"  # assumed for naive timestamps
    timestamp_format: str = "iso"
    timestamp_pattern: Optional[str] = None
    date_filter: Optional[str] = None

    recent_rows: int = 10
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, data: dict) -> "DashboardConfig":
        """Create config from dictionary.

        Raises:
            ConfigurationError: If a value is invalid.
        """
        for section in ("source", "units"):
            if not isinstance(data.get(section, {}), dict):
                raise ConfigurationError(f"{section} must be a mapping")

        date_filter = data.get("date_filter")
        if date_filter is not None and date_filter not in DATE_FILTERS:
            raise ConfigurationError(
                f"Unknown date filter {date_filter!r}, expected one of {', '.join(DATE_FILTERS)}"
            )

        timestamp_format = data.get("timestamp_format", "iso")
        timestamp_pattern = data.get("timestamp_pattern")
        if timestamp_format not in TIMESTAMP_FORMATS:
            raise ConfigurationError(
                f"Unknown timestamp format {timestamp_format!r}, "
                f"expected one of {', '.join(TIMESTAMP_FORMATS)}"
            )
        if timestamp_format == "pattern" and not timestamp_pattern:
            raise ConfigurationError("timestamp_format 'pattern' needs a timestamp_pattern")

        return cls(
            source=SourceConfig.from_dict(data.get("source", {})),
            units=UnitConfig.from_dict(data.get("units", {})),
            refresh_interval=_read_number(data, "refresh_interval", 5.0, minimum=0),
            fetch_timeout=_read_number(data, "fetch_timeout", 10.0, minimum=0),
            display_timezone=data.get("display_timezone", "America/New_York"),
            source_timezone=data.get("source_timezone", "UTC"),
            timestamp_format=timestamp_format,
            timestamp_pattern=timestamp_pattern,
            date_filter=date_filter,
            recent_rows=_read_number(data, "recent_rows", 10, cast=int, minimum=1, exclusive=False),
            log_level=data.get("log_level", "INFO"),
        )


def get_config_path(config_dir: Optional[Union[str, Path]] = None) -> Path:
    """Get path to the dashboard configuration file.

    Args:
        config_dir: Directory containing config files. If None, uses
            the 'config' directory at the repo root.
    """
    if config_dir is None:
        config_dir = Path(__file__).parent.parent.parent / "config"
    return Path(config_dir) / "bonsai.yaml"


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    load_env: bool = True,
) -> DashboardConfig:
    """Load configuration from YAML file or environment.

    Args:
        config_path: Path to YAML config file. If not provided,
            looks for BONSAI_CONFIG env var, then the repo config
            directory, then falls back to defaults.
        load_env: Whether to load .env file first.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        ConfigurationError: If the config file contains invalid values.
    """
    if load_env:
        load_dotenv()

    if config_path is None:
        config_path = os.environ.get(_CONFIG_ENV)
        if config_path and not Path(config_path).exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        if config_path is None and get_config_path().exists():
            config_path = get_config_path()
    elif not Path(config_path).exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    data = {}
    if config_path:
        with open(config_path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")

    config = DashboardConfig.from_dict(data)

    # Environment variable overrides
    if log_level := os.environ.get("LOG_LEVEL"):
        config.log_level = log_level
    if csv_path := os.environ.get("BONSAI_CSV_PATH"):
        config.source.path = csv_path

    return config
