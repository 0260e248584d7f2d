"""Shared utilities for the dashboard."""

from .models import DisplayState, ExtremaSummary, Reading, Series
from .config import DashboardConfig, RemoteConfig, load_config
from .errors import (
    ConfigurationError,
    EmptyBatchError,
    ParseError,
    TransportError,
)
from .logging import setup_logging

__all__ = [
    "DisplayState",
    "ExtremaSummary",
    "Reading",
    "Series",
    "DashboardConfig",
    "RemoteConfig",
    "load_config",
    "ConfigurationError",
    "EmptyBatchError",
    "ParseError",
    "TransportError",
    "setup_logging",
]
