"""
Unit tests for DailyQuota and RequestGate (fake clocks, no sleeping)
"""

from datetime import datetime, timedelta

import pytest

from core.exceptions import QuotaExceededError
from providers.http.rate_limit import DailyQuota, RequestGate


class FakeDateClock:
    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now


@pytest.mark.unit
class TestDailyQuota:
    def test_rejects_after_limit(self):
        quota = DailyQuota("coingecko", limit=2, clock=FakeDateClock(datetime(2024, 5, 1, 10)))

        quota.check()
        quota.record()
        quota.check()
        quota.record()

        with pytest.raises(QuotaExceededError, match="daily quota of 2"):
            quota.check()
        assert quota.remaining == 0

    def test_resets_on_day_boundary(self):
        clock = FakeDateClock(datetime(2024, 5, 1, 23, 59))
        quota = DailyQuota("coingecko", limit=1, clock=clock)
        quota.record()
        with pytest.raises(QuotaExceededError):
            quota.check()

        clock.now += timedelta(minutes=2)

        quota.check()
        assert quota.used == 0
        assert quota.remaining == 1

    def test_unlimited(self):
        quota = DailyQuota("jupiter", limit=None)
        for _ in range(1000):
            quota.check()
            quota.record()

        assert quota.remaining is None
        assert quota.used == 1000


@pytest.mark.unit
class TestRequestGate:
    @pytest.mark.asyncio
    async def test_spacing_between_requests(self):
        now = [100.0]
        sleeps = []

        async def fake_sleep(seconds):
            sleeps.append(seconds)
            now[0] += seconds

        gate = RequestGate(6.0, clock=lambda: now[0], sleep=fake_sleep)

        await gate.wait_turn()
        now[0] += 2.5
        await gate.wait_turn()
        now[0] += 10
        await gate.wait_turn()

        assert sleeps == [pytest.approx(3.5)]

    @pytest.mark.asyncio
    async def test_gate_is_exclusive(self):
        gate = RequestGate(0)

        async with gate:
            assert gate._lock.locked()
        assert not gate._lock.locked()
