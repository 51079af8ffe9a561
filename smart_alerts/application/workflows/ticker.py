"""Polling ticker that feeds quotes into the alert store.

Each cycle fetches one tick per watched symbol from the tick source and
hands it to ``AlertStore.on_tick``. Ticks are awaited one at a time, so
the store finishes latching and persisting a tick before it sees the
next one.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Callable

from smart_alerts.application.commands.alert_store import AlertStore
from smart_alerts.domain.interfaces.data_feed import TickSource
from smart_alerts.domain.models.notification import Notification

logger = logging.getLogger(__name__)

DEFAULT_TICK_INTERVAL = 2.0


class TickerStatus(str, Enum):
    """Status of the ticker loop."""

    RUNNING = "running"
    PAUSED = "paused"
    STOPPED = "stopped"
    ERROR = "error"


@dataclass
class TickCycleResult:
    """Result of a single polling cycle."""

    cycle_number: int
    started_at: datetime
    completed_at: datetime
    symbols_polled: int
    notifications: list[Notification] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def has_notifications(self) -> bool:
        """Check if any rule fired this cycle."""
        return len(self.notifications) > 0


@dataclass
class TickerResult:
    """Result of a ticker run."""

    status: TickerStatus
    started_at: datetime
    stopped_at: datetime | None = None
    cycles_completed: int = 0
    total_notifications: int = 0
    cycle_results: list[TickCycleResult] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class Ticker:
    """Recurring task that polls quotes for a watchlist.

    This loop:
    1. Fetches the latest tick for each symbol
    2. Passes it to the store, which evaluates and latches rules
    3. Sleeps until the next cycle
    """

    def __init__(
        self,
        tick_source: TickSource,
        store: AlertStore,
        symbols: list[str],
        interval_seconds: float = DEFAULT_TICK_INTERVAL,
    ):
        """Initialize the ticker.

        Args:
            tick_source: Where quotes come from
            store: Alert store receiving every tick
            symbols: Watchlist, polled in order
            interval_seconds: Time between cycles
        """
        self._tick_source = tick_source
        self._store = store
        self._symbols = [s.strip().upper() for s in symbols if s.strip()]
        self._interval = interval_seconds

        self._status = TickerStatus.STOPPED
        self._cycle_count = 0
        self._stop_requested = False

    @property
    def status(self) -> TickerStatus:
        """Current ticker status."""
        return self._status

    @property
    def is_running(self) -> bool:
        """Check if the loop is running."""
        return self._status == TickerStatus.RUNNING

    @property
    def symbols(self) -> list[str]:
        return list(self._symbols)

    async def start(
        self,
        max_cycles: int | None = None,
        on_cycle_complete: Callable[[TickCycleResult], None] | None = None,
    ) -> TickerResult:
        """Run the polling loop.

        Args:
            max_cycles: Optional maximum cycles (None = run until stopped)
            on_cycle_complete: Optional callback after each cycle

        Returns:
            TickerResult when the loop ends
        """
        self._status = TickerStatus.RUNNING
        self._stop_requested = False
        self._cycle_count = 0

        started_at = datetime.now()
        cycle_results = []
        errors = []

        logger.info(
            f"Ticker started: {len(self._symbols)} symbols from "
            f"{self._tick_source.source_name} every {self._interval}s"
        )

        try:
            while not self._stop_requested:
                if max_cycles is not None and self._cycle_count >= max_cycles:
                    break

                if self._status == TickerStatus.PAUSED:
                    await asyncio.sleep(self._interval)
                    continue

                cycle_result = await self.run_cycle()
                cycle_results.append(cycle_result)

                if on_cycle_complete:
                    on_cycle_complete(cycle_result)

                self._cycle_count += 1

                if not self._stop_requested and (
                    max_cycles is None or self._cycle_count < max_cycles
                ):
                    await asyncio.sleep(self._interval)

        except Exception as e:
            logger.exception("Ticker loop failed")
            self._status = TickerStatus.ERROR
            errors.append(f"Ticker loop error: {e}")

        final_status = (
            TickerStatus.ERROR if self._status == TickerStatus.ERROR else TickerStatus.STOPPED
        )
        self._status = TickerStatus.STOPPED

        return TickerResult(
            status=final_status,
            started_at=started_at,
            stopped_at=datetime.now(),
            cycles_completed=self._cycle_count,
            total_notifications=sum(len(c.notifications) for c in cycle_results),
            cycle_results=cycle_results,
            errors=errors,
        )

    def stop(self) -> None:
        """Request the loop to stop after the current cycle."""
        self._stop_requested = True

    def pause(self) -> None:
        """Pause polling."""
        if self._status == TickerStatus.RUNNING:
            self._status = TickerStatus.PAUSED

    def resume(self) -> None:
        """Resume a paused loop."""
        if self._status == TickerStatus.PAUSED:
            self._status = TickerStatus.RUNNING

    async def run_cycle(self) -> TickCycleResult:
        """Poll every symbol once.

        A failure for one symbol is recorded and does not stop the others.

        Returns:
            TickCycleResult with the notifications created
        """
        started_at = datetime.now()
        notifications: list[Notification] = []
        errors: list[str] = []

        for symbol in self._symbols:
            try:
                tick = await self._tick_source.get_tick(symbol)
                notifications.extend(await self._store.on_tick(tick))
            except Exception as e:
                logger.warning(f"Tick failed for {symbol}: {e}")
                errors.append(f"Error polling {symbol}: {e}")

        return TickCycleResult(
            cycle_number=self._cycle_count + 1,
            started_at=started_at,
            completed_at=datetime.now(),
            symbols_polled=len(self._symbols),
            notifications=notifications,
            errors=errors,
        )
