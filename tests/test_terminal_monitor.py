"""Tests for the Rich terminal rendering."""

import io
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest
from rich.console import Console

from bonsai.display.terminal_monitor import TerminalMonitor, format_value
from bonsai.pipeline.decoder import DEFAULT_COLUMNS
from bonsai.pipeline.series import build_series
from bonsai.pipeline.stats import extrema
from bonsai.shared.models import DisplayState

from .conftest import csv_row

NOW = datetime(2025, 2, 16, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def console():
    return Console(file=io.StringIO(), width=200, color_system=None, force_terminal=False)


@pytest.fixture
def monitor(console):
    return TerminalMonitor(display_tz=ZoneInfo("America/New_York"), console=console, clock=lambda: NOW)


def _output(console):
    return console.file.getvalue()


def test_format_value():
    assert format_value(None, "°C") == "N/A"
    assert format_value(21.46, "°C") == "21.5°C"
    assert format_value(3.7, " V", 3) == "3.700 V"


def test_renders_tiles_for_latest_reading(monitor, console, three_rows):
    series = build_series(three_rows, DEFAULT_COLUMNS)
    monitor.show(DisplayState.success(series, extrema(series)))

    output = _output(console)
    assert "17.8°C" in output
    assert "19.5°C" in output
    assert "45.25%" in output
    assert "101.3 hPa" in output
    assert "3.700 V" in output
    assert "08:10:00" in output
    assert "RECENT READINGS (3 total)" in output


def test_absent_values_render_as_na(monitor, console):
    series = build_series([{"Timestamp": "2025-02-16T13:00:00Z"}], DEFAULT_COLUMNS)
    monitor.show(DisplayState.success(series, extrema(series)))

    assert "N/A" in _output(console)


def test_renders_loading(monitor, console):
    monitor.show(DisplayState.loading())

    assert "Loading data..." in _output(console)


def test_renders_error_message_only(monitor, console):
    monitor.show(DisplayState.failure("transport", "Failed to load sensor data."))

    output = _output(console)
    assert "Failed to load sensor data." in output
    assert "ERROR" in output
    assert "RECENT READINGS" not in output


def test_header_clock_uses_display_timezone(monitor, console):
    monitor.show(DisplayState.loading())

    assert "2025-02-16 13:30:00" in _output(console)


def test_recent_rows_limit(console):
    monitor = TerminalMonitor(console=console, recent_rows=2, clock=lambda: NOW)
    rows = [csv_row(f"2025-02-16T13:0{i}:00Z") for i in range(5)]
    series = build_series(rows, DEFAULT_COLUMNS)

    monitor.show(DisplayState.success(series, extrema(series)))

    output = _output(console)
    assert "2025-02-16 13:04:00" in output
    assert "2025-02-16 13:03:00" in output
    assert "2025-02-16 13:02:00" not in output


def test_zero_recent_rows_shows_no_rows(console):
    monitor = TerminalMonitor(console=console, recent_rows=0, clock=lambda: NOW)
    rows = [csv_row(f"2025-02-16T13:0{i}:00Z") for i in range(3)]
    series = build_series(rows, DEFAULT_COLUMNS)

    monitor.show(DisplayState.success(series, extrema(series)))

    output = _output(console)
    assert "RECENT READINGS (3 total)" in output
    assert "2025-02-16 13:00:00" not in output
    assert "2025-02-16 13:02:00" not in output
