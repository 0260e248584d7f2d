"""Periodic refresh of the displayed sensor state."""

import asyncio
import logging
from enum import Enum
from typing import Callable, List, Optional

from bonsai.pipeline.decoder import ColumnMap
from bonsai.pipeline.series import DateFilter, build_series
from bonsai.pipeline.stats import FieldSelector, extrema
from bonsai.shared.errors import DashboardError, TransportError, error_kind, user_message
from bonsai.shared.models import DisplayState
from bonsai.sources.base import SourceAdapter

logger = logging.getLogger(__name__)

Subscriber = Callable[[DisplayState], None]


class SchedulerState(Enum):
    """Refresh scheduler lifecycle states."""
    IDLE = "idle"
    FETCHING = "fetching"
    PUBLISHING = "publishing"
    STOPPED = "stopped"


class StateCell:
    """Holds the current DisplayState and notifies subscribers on replace."""

    def __init__(self, initial: Optional[DisplayState] = None):
        self._state = initial or DisplayState.loading()
        self._subscribers: List[Subscriber] = []

    @property
    def current(self) -> DisplayState:
        return self._state

    def publish(self, state: DisplayState) -> None:
        """Replace the current state and notify every subscriber."""
        self._state = state
        for callback in list(self._subscribers):
            try:
                callback(state)
            except Exception as e:
                logger.error(f"Subscriber {callback!r} failed: {e}")

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)


class RefreshScheduler:
    """Fetches, normalizes and publishes sensor data on a fixed interval.

    Only one refresh cycle runs at a time. After stop() nothing further is
    published, including the result of a cycle that was in flight.
    """

    def __init__(
        self,
        source: SourceAdapter,
        column_map: ColumnMap,
        cell: Optional[StateCell] = None,
        interval: float = 5.0,
        fetch_timeout: float = 10.0,
        date_filter_factory: Optional[Callable[[], DateFilter]] = None,
        extrema_field: FieldSelector = "temperature_c",
    ):
        self.source = source
        self.column_map = column_map
        self.cell = cell or StateCell()
        self.interval = interval
        self.fetch_timeout = fetch_timeout
        self.date_filter_factory = date_filter_factory
        self.extrema_field = extrema_field

        self.state = SchedulerState.IDLE
        self.cycles_completed = 0
        self._in_flight = False
        self._stopped = False
        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the refresh loop; the first cycle runs immediately."""
        if self._stopped:
            raise RuntimeError("Scheduler has been stopped")
        if self._task is not None:
            raise RuntimeError("Scheduler already started")

        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run())
        logger.info(f"Refresh scheduler started (interval={self.interval}s, timeout={self.fetch_timeout}s)")

    async def _run(self) -> None:
        while not self._stopped:
            await self.refresh_now()
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass

    async def refresh_now(self) -> bool:
        """Run one refresh cycle.

        Returns:
            True if a new state was published, False if skipped because a
            cycle was already in flight or the scheduler was stopped.
        """
        if self._in_flight or self._stopped:
            logger.debug("Refresh skipped, cycle already in flight or stopped")
            return False

        self._in_flight = True
        try:
            new_state = await self._cycle()
            if self._stopped:
                logger.debug("Discarding refresh result after stop")
                return False

            self.state = SchedulerState.PUBLISHING
            self.cell.publish(new_state)
            self.cycles_completed += 1
            return True
        finally:
            self._in_flight = False
            if not self._stopped:
                self.state = SchedulerState.IDLE

    async def _cycle(self) -> DisplayState:
        self.state = SchedulerState.FETCHING
        try:
            try:
                batch = await asyncio.wait_for(self.source.fetch_batch(), timeout=self.fetch_timeout)
            except asyncio.TimeoutError as e:
                raise TransportError(f"Fetch timed out after {self.fetch_timeout}s") from e

            date_filter = self.date_filter_factory() if self.date_filter_factory else None
            series = build_series(batch, self.column_map, date_filter)
            summary = extrema(series, self.extrema_field)
        except DashboardError as e:
            logger.error(f"Refresh failed ({e.kind}): {e}")
            return DisplayState.failure(e.kind, user_message(e))
        except Exception as e:
            logger.exception(f"Unexpected error during refresh: {e}")
            return DisplayState.failure(error_kind(e), user_message(e))

        logger.info(
            f"Refreshed {len(series)} readings, "
            f"high={summary.maximum} low={summary.minimum}"
        )
        return DisplayState.success(series, summary)

    async def stop(self) -> None:
        """Stop refreshing and release the source. Safe to call at any time."""
        if self._stopped:
            return
        self._stopped = True
        self.state = SchedulerState.STOPPED

        if self._stop_event is not None:
            self._stop_event.set()

        task = self._task
        if task is not None and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self.source.close()
        logger.info("Refresh scheduler stopped")
