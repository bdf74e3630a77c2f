"""
Maintenance job - hourly rollup and retention cleanup

Order matters: complete hours are rolled up into ohlcv_1h first, then the
expired 1m candles are deleted. Only hours whose minute rows are all still
retained are rolled up, so a rollup row is never rebuilt from a partial hour.
"""

import logging
import time
from collections.abc import Callable

from config.settings import get_settings
from core.interfaces.database import BaseSignalStore
from core.models.signals import MaintenanceReport

logger = logging.getLogger(__name__)

HOUR_SECONDS = 3600


def floor_hour(ts: int) -> int:
    return ts - ts % HOUR_SECONDS


def ceil_hour(ts: int) -> int:
    return floor_hour(ts + HOUR_SECONDS - 1)


class MaintenanceJob:
    """
    Example:
        >>> job = MaintenanceJob(store)
        >>> report = await job.run_cycle()
        >>> report.candles_deleted
        1440
    """

    def __init__(self, store: BaseSignalStore, clock: Callable[[], float] = time.time):
        self.settings = get_settings()
        self.store = store
        self._clock = clock

    def cutoffs(self, now_ts: int) -> dict[str, int]:
        """Retention cutoffs (epoch seconds) for every table"""
        return {
            "candles_before": now_ts - self.settings.CANDLE_RETENTION_HOURS * HOUR_SECONDS,
            "signals_before": now_ts - self.settings.SIGNAL_RETENTION_HOURS * HOUR_SECONDS,
            "tokens_before": now_ts - self.settings.TRACKED_TOKEN_RETENTION_HOURS * HOUR_SECONDS,
            "rollups_before": now_ts - self.settings.HOURLY_ROLLUP_RETENTION_DAYS * 24 * HOUR_SECONDS,
        }

    async def run_cycle(self) -> MaintenanceReport:
        """Roll up complete hours, then delete expired rows"""
        now_ts = int(self._clock())
        cutoffs = self.cutoffs(now_ts)

        from_ts = ceil_hour(cutoffs["candles_before"])
        to_ts = floor_hour(now_ts)
        rolled_up = await self.store.rollup_hourly_candles(from_ts, to_ts)

        report = await self.store.cleanup_expired(**cutoffs)
        report.rolled_up = rolled_up

        logger.info(
            f"🧹 Maintenance: rolled_up={report.rolled_up} candles={report.candles_deleted} "
            f"signals={report.signals_deleted} tokens={report.tokens_deleted} "
            f"rollups={report.rollups_deleted}"
        )
        return report
