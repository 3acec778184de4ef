# ABOUTME: Tests for the periodic ingestion trigger.
# ABOUTME: Verifies from_date calculation, non-blocking triggers, start/stop and failure isolation.

import asyncio
from datetime import date

from legis_track.services.scheduler import ScheduledIngestion

TODAY = date(2025, 6, 30)


class TestScheduledIngestion:
    """Tests for ScheduledIngestion."""

    async def test_trigger_does_not_wait_for_run(self, mock_settings) -> None:
        release = asyncio.Event()
        seen: list[date] = []

        async def ingest(from_date: date) -> int:
            seen.append(from_date)
            await release.wait()
            return 3

        scheduler = ScheduledIngestion(ingest, mock_settings, today=lambda: TODAY)
        task = scheduler.trigger()

        await asyncio.sleep(0)
        assert not task.done()
        assert seen == [date(2025, 6, 23)]

        release.set()
        assert await task == 3

    async def test_run_failure_is_contained(self, mock_settings) -> None:
        async def ingest(from_date: date) -> int:
            raise RuntimeError("db down")

        scheduler = ScheduledIngestion(ingest, mock_settings, today=lambda: TODAY)

        assert await scheduler.trigger() == 0

    async def test_disabled(self, mock_settings) -> None:
        async def ingest(from_date: date) -> int:
            return 0

        scheduler = ScheduledIngestion(ingest, mock_settings)

        assert scheduler.start() is False
        assert not scheduler.running

    async def test_start_triggers_and_stop_cancels(self, mock_settings) -> None:
        settings = mock_settings.model_copy(
            update={"ingestion_enabled": True, "ingestion_interval_seconds": 3600}
        )
        started = asyncio.Event()

        async def ingest(from_date: date) -> int:
            started.set()
            await asyncio.sleep(3600)
            return 0

        scheduler = ScheduledIngestion(ingest, settings, today=lambda: TODAY)

        assert scheduler.start() is True
        assert scheduler.start() is False
        await asyncio.wait_for(started.wait(), timeout=1)
        assert scheduler.running

        await scheduler.stop()
        assert not scheduler.running

    async def test_failed_tick_keeps_loop_alive(self, mock_settings) -> None:
        settings = mock_settings.model_copy(
            update={"ingestion_enabled": True, "ingestion_interval_seconds": 0}
        )
        ticks = 0

        def today() -> date:
            nonlocal ticks
            ticks += 1
            if ticks == 1:
                raise OverflowError("date value out of range")
            return TODAY

        seen: list[date] = []

        async def ingest(from_date: date) -> int:
            seen.append(from_date)
            return 0

        scheduler = ScheduledIngestion(ingest, settings, today=today)
        scheduler.start()
        for _ in range(20):
            if seen:
                break
            await asyncio.sleep(0)

        assert scheduler.running
        assert seen[0] == date(2025, 6, 23)
        await scheduler.stop()
