"""
Unit tests for PeriodicJob
"""

from unittest.mock import AsyncMock

import pytest

from services.scheduler import PeriodicJob


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.mark.unit
class TestPeriodicJob:
    @pytest.mark.asyncio
    async def test_run_once_records_result(self):
        func = AsyncMock(return_value={"ok": 1})
        job = PeriodicJob("job", 60, func)

        await job.run_once()

        assert job.cycles == 1
        assert job.last_result == {"ok": 1}

    @pytest.mark.asyncio
    async def test_cycle_error_calls_on_error_and_continues(self):
        error = RuntimeError("boom")
        func = AsyncMock(side_effect=[error, "second"])
        on_error = AsyncMock()
        job = PeriodicJob("gap_filler", 60, func, on_error=on_error)

        await job.run_once()
        await job.run_once()

        on_error.assert_awaited_once_with("gap_filler", error)
        assert job.errors == 1
        assert job.last_result == "second"

    @pytest.mark.asyncio
    async def test_failing_error_handler_is_contained(self):
        job = PeriodicJob(
            "job", 60, AsyncMock(side_effect=ValueError("x")), on_error=AsyncMock(side_effect=RuntimeError("alert down"))
        )

        await job.run_once()

        assert job.errors == 1

    @pytest.mark.asyncio
    async def test_sleeps_interval_minus_elapsed(self):
        clock = FakeClock()
        sleeps = []

        async def work():
            clock.now += 12

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            clock.now += seconds
            if len(sleeps) == 3:
                job.stop()

        job = PeriodicJob("job", 60, work, initial_delay=5, clock=clock, sleep=fake_sleep)
        await job.run()

        assert sleeps == [5, 48, 48]
        assert job.cycles == 2

    @pytest.mark.asyncio
    async def test_overrunning_cycle_does_not_sleep(self):
        clock = FakeClock()
        sleeps = []
        calls = 0

        async def slow_work():
            nonlocal calls
            calls += 1
            clock.now += 90
            if calls == 2:
                job.stop()

        async def fake_sleep(seconds):
            sleeps.append(seconds)

        job = PeriodicJob("job", 60, slow_work, clock=clock, sleep=fake_sleep)
        await job.run()

        assert sleeps == []
        assert calls == 2

    def test_invalid_interval(self):
        with pytest.raises(ValueError, match="interval must be positive"):
            PeriodicJob("job", 0, AsyncMock())
