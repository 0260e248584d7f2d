"""
Terminal Monitor for the Bonsai Sensor Dashboard
Renders the current DisplayState with the Rich library.
"""

import logging
from datetime import datetime, timezone, tzinfo
from typing import Callable, List, Optional

from rich.align import Align
from rich.columns import Columns
from rich.console import Console, Group, RenderableType
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bonsai.shared.models import DisplayState, DisplayStatus, Reading

logger = logging.getLogger(__name__)

TITLE = "🌱 BONSAI SENSOR DASHBOARD"
MISSING = "N/A"


def format_value(value: Optional[float], unit: str, digits: int = 1) -> str:
    """Format a reading value, or N/A when absent."""
    if value is None:
        return MISSING
    return f"{value:.{digits}f}{unit}"


class TerminalMonitor:
    """Terminal-based dashboard using Rich"""

    def __init__(
        self,
        display_tz: tzinfo = timezone.utc,
        console: Optional[Console] = None,
        recent_rows: int = 10,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.display_tz = display_tz
        self.console = console or Console()
        self.recent_rows = recent_rows
        self.clock = clock

    def render(self, state: DisplayState) -> RenderableType:
        """Build the full screen for a state."""
        header = self._create_header(state)

        if state.status is DisplayStatus.ERROR:
            return Group(header, self._create_error_panel(state))

        if state.status is DisplayStatus.LOADING or state.latest is None:
            return Group(header, Panel(Align.center(Text("Loading data...", style="white"))))

        return Group(
            header,
            self._create_tiles(state),
            self._create_recent_table(state),
        )

    def show(self, state: DisplayState) -> None:
        """Print a state once, without live updating."""
        self.console.print(self.render(state))

    def _create_header(self, state: DisplayState) -> Panel:
        """Create header with title and timestamp"""
        now = self.clock().astimezone(self.display_tz).strftime("%Y-%m-%d %H:%M:%S")

        header_text = Text()
        header_text.append(TITLE, style="bold cyan")
        header_text.append(f" - {now}", style="white")
        if state.is_error:
            header_text.append(" - ERROR", style="bold red")

        return Panel(Align.center(header_text), style="red" if state.is_error else "cyan")

    def _tile(self, label: str, value: str, style: str = "bold white") -> Panel:
        return Panel(
            Align.center(Text(value, style=style)),
            title=label,
            width=22,
            style="cyan",
        )

    def _create_tiles(self, state: DisplayState) -> Columns:
        """Create the single-value tiles for the latest reading"""
        latest = state.latest
        summary = state.extrema

        tiles = [
            self._tile("🌡️ Temperature", format_value(latest.temperature_c, "°C")),
            self._tile("💧 Humidity", format_value(latest.humidity_pct, "%", 2)),
            self._tile("🌬️ Pressure", format_value(latest.pressure_hpa, " hPa")),
            self._tile("🔋 Battery", format_value(latest.battery_v, " V", 3)),
            self._tile("📈 High", format_value(summary.maximum if summary else None, "°C"), "bold red"),
            self._tile("📉 Low", format_value(summary.minimum if summary else None, "°C"), "bold blue"),
            self._tile("🕒 Time", latest.display_time(self.display_tz, "%H:%M:%S")),
        ]
        return Columns(tiles)

    def _create_recent_table(self, state: DisplayState) -> Panel:
        """Create table of the most recent readings, newest first"""
        table = Table(show_header=True, header_style="bold cyan", box=None)
        table.add_column("Time", style="white")
        table.add_column("Temperature", justify="right")
        table.add_column("Humidity", justify="right")
        table.add_column("Pressure", justify="right")
        table.add_column("Battery", justify="right")

        start = max(len(state.series) - self.recent_rows, 0)
        recent: List[Reading] = list(state.series.readings[start:])
        for reading in reversed(recent):
            table.add_row(
                reading.display_time(self.display_tz),
                format_value(reading.temperature_c, "°C"),
                format_value(reading.humidity_pct, "%", 2),
                format_value(reading.pressure_hpa, " hPa"),
                format_value(reading.battery_v, " V", 3),
                style="white" if reading.has_values() else "dim",
            )

        return Panel(table, title=f"RECENT READINGS ({len(state.series)} total)", style="cyan")

    def _create_error_panel(self, state: DisplayState) -> Panel:
        """Show the user-facing error message"""
        return Panel(
            Align.center(Text(state.error or "Unknown error", style="bold red")),
            title="Error",
            style="red",
        )
