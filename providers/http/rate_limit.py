"""
Rate limiting state for HTTP providers

- DailyQuota: request counter that resets at the local-day boundary
- RequestGate: minimum spacing between requests plus a single in-flight slot

Both take their clock as a constructor argument so tests can drive them with
a fake clock instead of sleeping.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime

from core.exceptions import QuotaExceededError

logger = logging.getLogger(__name__)


class DailyQuota:
    """
    Per-provider daily request counter

    Every attempted request counts (successful or failed). A request rejected
    by check() never reaches the network and is not counted.

    Example:
        >>> quota = DailyQuota("coingecko", limit=333)
        >>> quota.check()   # raises QuotaExceededError once 333 were recorded today
        >>> quota.record()
    """

    def __init__(
        self,
        provider: str,
        limit: int | None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.provider = provider
        self.limit = limit
        self._clock = clock
        self._day: date = clock().date()
        self._used = 0

    def _roll(self) -> None:
        today = self._clock().date()
        if today != self._day:
            if self._used:
                logger.info(f"🔄 {self.provider}: daily usage reset ({self._used} used on {self._day})")
            self._day = today
            self._used = 0

    @property
    def used(self) -> int:
        self._roll()
        return self._used

    @property
    def remaining(self) -> int | None:
        """Requests left today (None = unlimited)"""
        if self.limit is None:
            return None
        return max(0, self.limit - self.used)

    def check(self) -> None:
        """Raise QuotaExceededError if no request may be sent today"""
        if self.limit is not None and self.used >= self.limit:
            raise QuotaExceededError(self.provider, self.limit)

    def record(self) -> None:
        """Count one attempted request"""
        self._roll()
        self._used += 1
        if self.limit is not None and self._used == int(self.limit * 0.9):
            logger.warning(f"⚠️ {self.provider}: 90% of daily quota used ({self._used}/{self.limit})")


class RequestGate:
    """
    Request spacing gate

    Holding the gate (async with) gives exclusive use of the provider, so at
    most one request is in flight. wait_turn() sleeps until min_interval has
    passed since the previous request started.
    """

    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request: float | None = None

    async def __aenter__(self) -> "RequestGate":
        await self._lock.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self._lock.release()

    async def wait_turn(self) -> None:
        """Sleep out the remaining spacing, then mark a request as started"""
        if self._last_request is not None:
            wait = self.min_interval - (self._clock() - self._last_request)
            if wait > 0:
                await self._sleep(wait)
        self._last_request = self._clock()
