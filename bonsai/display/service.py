"""Dashboard service - wires source, scheduler and terminal monitor."""

import asyncio
import logging
import signal
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from rich.console import Console
from rich.live import Live

from bonsai.pipeline.decoder import ColumnMap, build_column_map
from bonsai.pipeline.series import date_filter_from_name
from bonsai.shared.config import DashboardConfig
from bonsai.shared.errors import ConfigurationError, user_message
from bonsai.shared.models import DisplayState
from bonsai.sources import build_source
from bonsai.sources.base import SourceAdapter

from .scheduler import RefreshScheduler, StateCell
from .terminal_monitor import TerminalMonitor

logger = logging.getLogger(__name__)


def load_timezone(name: str) -> ZoneInfo:
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigurationError(f"Unknown timezone: {name}") from e


def column_map_from_config(config: DashboardConfig) -> ColumnMap:
    """Column map using every known alias and the configured unit policy.

    Raises:
        ConfigurationError: If the timestamp settings or timezone are invalid.
    """
    source_tz = load_timezone(config.source_timezone)
    try:
        return build_column_map(
            pressure_divisor=config.units.pressure_divisor,
            battery_divisor=config.units.battery_divisor,
            timestamp_format=config.timestamp_format,
            timestamp_pattern=config.timestamp_pattern,
            source_tz=source_tz,
        )
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


class DashboardService:
    """Main service that keeps the terminal dashboard up to date."""

    def __init__(
        self,
        config: DashboardConfig,
        source: Optional[SourceAdapter] = None,
        console: Optional[Console] = None,
    ):
        self.config = config
        self.cell = StateCell()
        self.console = console or Console()
        self._source = source
        self._running = False
        self.scheduler: Optional[RefreshScheduler] = None
        self.monitor = TerminalMonitor(
            display_tz=load_timezone(config.display_timezone),
            console=self.console,
            recent_rows=config.recent_rows,
        )

    def _build_scheduler(self) -> RefreshScheduler:
        """Create the scheduler; configuration problems surface here."""
        column_map = column_map_from_config(self.config)
        try:
            date_filter_factory = date_filter_from_name(
                self.config.date_filter, self.monitor.display_tz
            )
        except ValueError as e:
            raise ConfigurationError(str(e)) from e
        source = self._source or build_source(self.config)
        return RefreshScheduler(
            source=source,
            column_map=column_map,
            cell=self.cell,
            interval=self.config.refresh_interval,
            fetch_timeout=self.config.fetch_timeout,
            date_filter_factory=date_filter_factory,
        )

    def _prepare(self) -> bool:
        try:
            self.scheduler = self._build_scheduler()
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}")
            self.cell.publish(DisplayState.failure(e.kind, user_message(e)))
            return False
        return True

    async def run_once(self) -> DisplayState:
        """Refresh a single time and print the result."""
        if self._prepare():
            try:
                await self.scheduler.refresh_now()
            finally:
                await self.scheduler.stop()
        self.monitor.show(self.cell.current)
        return self.cell.current

    def _setup_signal_handlers(self):
        """Set up signal handlers for graceful shutdown."""
        def signal_handler(signum, frame):
            signame = signal.Signals(signum).name
            logger.info(f"Received {signame}, shutting down...")
            self._running = False

        signal.signal(signal.SIGTERM, signal_handler)
        signal.signal(signal.SIGINT, signal_handler)

    async def run(self) -> None:
        """Run the dashboard until interrupted."""
        self._setup_signal_handlers()
        self._running = True

        # A configuration error stays on screen; there is nothing to refresh
        ready = self._prepare()

        with Live(
            self.monitor.render(self.cell.current),
            console=self.console,
            refresh_per_second=1,
            screen=False,
        ) as live:
            unsubscribe = self.cell.subscribe(
                lambda state: live.update(self.monitor.render(state))
            )
            if ready:
                self.scheduler.start()

            logger.info("Dashboard is running. Press Ctrl+C to stop.")
            try:
                while self._running:
                    await asyncio.sleep(1.0)
                    # Keeps the clock in the header moving between refreshes
                    live.update(self.monitor.render(self.cell.current))
            except asyncio.CancelledError:
                pass
            finally:
                unsubscribe()
                if self.scheduler is not None:
                    await self.scheduler.stop()

        logger.info("Dashboard stopped.")
