"""
Periodic job runner

Each job runs on its own timer:
- sleep initial_delay once
- run the cycle, measure elapsed time, sleep max(0, interval - elapsed)

A failing cycle is logged with traceback and handed to on_error (operational
alert); the next cycle runs on schedule. Only stop() ends the loop.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

logger = logging.getLogger(__name__)

ErrorHandler = Callable[[str, Exception], Awaitable[Any]]


class PeriodicJob:
    """
    Example:
        >>> job = PeriodicJob("gap_filler", 60, filler.run_cycle, on_error=alert)
        >>> asyncio.create_task(job.run())
    """

    def __init__(
        self,
        name: str,
        interval: float,
        func: Callable[[], Awaitable[Any]],
        initial_delay: float = 0,
        on_error: ErrorHandler | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if interval <= 0:
            raise ValueError(f"{name}: interval must be positive, got {interval}")
        self.name = name
        self.interval = interval
        self.func = func
        self.initial_delay = initial_delay
        self.on_error = on_error
        self._clock = clock
        self._sleep = sleep
        self.running = False

        self.cycles = 0
        self.errors = 0
        self.last_result: Any = None

    async def run_once(self) -> float:
        """
        Run one cycle

        Returns:
            Elapsed seconds
        """
        start = self._clock()
        self.cycles += 1
        try:
            self.last_result = await self.func()
        except Exception as e:
            self.errors += 1
            logger.error(f"❌ {self.name} cycle failed: {e}", exc_info=True)
            if self.on_error is not None:
                try:
                    await self.on_error(self.name, e)
                except Exception as alert_error:
                    logger.error(f"✗ {self.name}: error handler failed: {alert_error}")

        elapsed = self._clock() - start
        logger.debug(f"{self.name} cycle completed in {elapsed:.2f}s")
        return elapsed

    async def run(self) -> None:
        """Loop until stop()"""
        self.running = True
        logger.info(f"⏰ {self.name}: every {self.interval}s (initial delay {self.initial_delay}s)")

        if self.initial_delay > 0:
            await self._sleep(self.initial_delay)

        while self.running:
            elapsed = await self.run_once()
            sleep_time = max(0, self.interval - elapsed)
            if self.running and sleep_time > 0:
                await self._sleep(sleep_time)

    def stop(self) -> None:
        self.running = False

    def get_stats(self) -> dict[str, int]:
        return {f"{self.name}_cycles": self.cycles, f"{self.name}_errors": self.errors}
