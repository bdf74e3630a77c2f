"""
Signal Detector - Stage A of the signal cascade

For every pool older than the minimum age:
1. Load the newest candle window
2. Compute the indicator snapshot
3. Persist a signal when cross, volume spike and oversold RSI all hold

Reads candles and pools only; never calls external pricing APIs.
"""

import logging
import time
from collections.abc import Callable

from config.settings import get_settings
from core.exceptions import PipelineError
from core.interfaces.database import BaseSignalStore
from core.models.market_data import Pool
from core.models.signals import DetectionReport, Signal, Skipped, SkipReason
from core.utils.time_buckets import count_missing_buckets
from domain.indicators.engine import IndicatorEngine
from domain.signals.rules import SignalThresholds, check_snapshot

logger = logging.getLogger(__name__)


class SignalDetector:
    """
    Stage A sweep

    Example:
        >>> detector = SignalDetector(store)
        >>> report = await detector.run_cycle()
        >>> report.signals
        1
    """

    def __init__(
        self,
        store: BaseSignalStore,
        engine: IndicatorEngine | None = None,
        thresholds: SignalThresholds | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = get_settings()
        self.store = store
        self.engine = engine or IndicatorEngine(
            min_window=self.settings.MIN_HISTORY_CANDLES,
            ema_fast=self.settings.EMA_FAST_PERIOD,
            ema_slow=self.settings.EMA_SLOW_PERIOD,
            rsi_period=self.settings.RSI_PERIOD,
            spike_recent=self.settings.SPIKE_RECENT_WINDOW,
            spike_baseline=self.settings.SPIKE_BASELINE_WINDOW,
        )
        self.thresholds = thresholds or SignalThresholds.from_settings(self.settings)
        self._clock = clock

    async def evaluate(self, pool: Pool, now_ts: int) -> Signal | Skipped:
        """Run the indicator gate for one pool"""
        candles = await self.store.get_recent_candles(pool.mint, self.engine.min_window)
        snapshot = self.engine.compute(candles)
        if snapshot is None:
            return Skipped(
                reason=SkipReason.INSUFFICIENT_HISTORY,
                detail=f"{len(candles)}/{self.engine.min_window} candles",
            )

        missing = count_missing_buckets(candles, self.settings.CANDLE_INTERVAL_SECONDS)
        if missing:
            logger.debug(f"{pool.mint}: window has {missing} missing buckets")

        rejected = check_snapshot(snapshot, self.thresholds)
        if rejected is not None:
            return rejected

        signal = await self.store.create_signal(
            mint=pool.mint,
            signal_ts=now_ts,
            ema_cross=snapshot.bullish_cross,
            vol_spike=snapshot.volume_spike,
            rsi=snapshot.rsi,
        )
        logger.info(
            f"🎯 Signal #{signal.id} {pool.mint}: rsi={snapshot.rsi:.1f} "
            f"spike={snapshot.volume_spike:.2f}x close={snapshot.last_close:.8g}"
        )
        return signal

    async def run_cycle(self) -> DetectionReport:
        """
        One detection sweep

        Returns:
            DetectionReport (scanned / signals / skipped by reason / failed)
        """
        now_ts = int(self._clock())
        cutoff = now_ts - self.thresholds.min_token_age_seconds
        pools = await self.store.get_pools_older_than(cutoff)
        report = DetectionReport()

        for pool in pools:
            report.scanned += 1
            try:
                outcome = await self.evaluate(pool, now_ts)
            except PipelineError as e:
                report.failed += 1
                logger.error(f"✗ Detection failed for {pool.mint}: {e}")
                continue

            if isinstance(outcome, Skipped):
                report.count_skip(outcome)
            else:
                report.signals += 1

        logger.info(
            f"✅ Detection: scanned={report.scanned} signals={report.signals} "
            f"failed={report.failed} skipped={report.skipped}"
        )
        return report
