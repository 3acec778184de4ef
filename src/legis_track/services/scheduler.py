# ABOUTME: Periodic trigger for recent-bill ingestion.
# ABOUTME: Launches ingestion as a background asyncio task so the timer loop never waits on a run.

import asyncio
from collections.abc import Awaitable, Callable
from datetime import date, timedelta

import structlog

from legis_track.config import Settings

log = structlog.get_logger()

IngestCallable = Callable[[date], Awaitable[int]]


class ScheduledIngestion:
    """Runs ingestion every ``ingestion_interval_seconds``.

    Runs are fire-and-forget: a slow run may still be going when the next one
    starts. Nothing prevents overlapping runs for the same ``from_date``.
    """

    def __init__(
        self,
        ingest: IngestCallable,
        settings: Settings,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.ingest = ingest
        self.settings = settings
        self.today = today
        self._loop_task: asyncio.Task | None = None
        self._runs: set[asyncio.Task] = set()

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    def from_date(self) -> date:
        return self.today() - timedelta(days=self.settings.ingestion_lookback_days)

    def trigger(self) -> asyncio.Task:
        """Start one ingestion run in the background and return its task."""
        from_date = self.from_date()
        log.info("ingestion_triggered", from_date=from_date.isoformat())
        task = asyncio.create_task(self._run(from_date), name="scheduled_ingestion")
        self._runs.add(task)
        task.add_done_callback(self._runs.discard)
        return task

    async def _run(self, from_date: date) -> int:
        try:
            return await self.ingest(from_date)
        except Exception:
            log.exception("scheduled_ingestion_failed", from_date=from_date.isoformat())
            return 0

    async def _loop(self) -> None:
        while True:
            try:
                self.trigger()
            except Exception:
                log.exception("scheduled_ingestion_tick_failed")
            await asyncio.sleep(self.settings.ingestion_interval_seconds)

    def start(self) -> bool:
        """Start the periodic loop. Returns False when disabled or already running."""
        if not self.settings.ingestion_enabled:
            log.info("scheduled_ingestion_disabled")
            return False
        if self.running:
            return False
        log.info(
            "scheduled_ingestion_started",
            interval_seconds=self.settings.ingestion_interval_seconds,
            lookback_days=self.settings.ingestion_lookback_days,
        )
        self._loop_task = asyncio.create_task(self._loop(), name="ingestion_scheduler")
        return True

    async def stop(self) -> None:
        """Cancel the loop and any runs still in flight."""
        tasks = list(self._runs)
        if self._loop_task is not None:
            tasks.append(self._loop_task)
            self._loop_task = None
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        log.info("scheduled_ingestion_stopped")
