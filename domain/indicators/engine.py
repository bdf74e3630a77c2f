"""
Indicator engine

Pure function from an ordered candle window (oldest -> newest) to an
IndicatorSnapshot: EMA fast/slow, bullish cross, RSI and volume spike.
"""

import logging

from core.models.market_data import Candle
from core.models.signals import IndicatorSnapshot
from domain.indicators.momentum import RSI
from domain.indicators.moving_averages import EMA, crossed_above
from domain.indicators.volume import VolumeSpike

logger = logging.getLogger(__name__)


class IndicatorEngine:
    """
    Computes indicator snapshots over candle windows

    The minimum window is checked against every indicator at construction, so a
    reconfigured period can never produce an undefined EMA comparison.

    Example:
        >>> engine = IndicatorEngine(min_window=40)
        >>> snapshot = engine.compute(candles)
        >>> if snapshot and snapshot.bullish_cross:
        ...     print(snapshot.rsi)
    """

    def __init__(
        self,
        min_window: int = 40,
        ema_fast: int = 9,
        ema_slow: int = 21,
        rsi_period: int = 14,
        spike_recent: int = 5,
        spike_baseline: int = 30,
    ):
        if ema_fast >= ema_slow:
            raise ValueError(f"Fast EMA ({ema_fast}) must be shorter than slow EMA ({ema_slow})")

        self.fast = EMA(period=ema_fast)
        self.slow = EMA(period=ema_slow)
        self.rsi = RSI(period=rsi_period)
        self.spike = VolumeSpike(recent=spike_recent, baseline=spike_baseline)

        # Two defined slow-EMA points are needed for the cross check
        required = max(ema_slow + 2, self.rsi.min_candles, self.spike.min_candles)
        if min_window < required:
            raise ValueError(
                f"min_window={min_window} too small: EMA({ema_slow}) cross, RSI({rsi_period}) "
                f"and volume spike ({spike_recent}+{spike_baseline}) need at least {required}"
            )
        self.min_window = min_window

    def compute(self, candles: list[Candle]) -> IndicatorSnapshot | None:
        """
        Compute a snapshot at the newest candle

        Args:
            candles: Candles for one mint, ordered oldest -> newest

        Returns:
            IndicatorSnapshot, or None if fewer than min_window candles
        """
        if len(candles) < self.min_window:
            return None

        fast = self.fast.series(candles)
        slow = self.slow.series(candles)
        rsi = self.rsi.calculate(candles)
        spike = self.spike.calculate(candles)

        if rsi is None or spike is None:
            # Unreachable with the window check above
            logger.warning(f"Incomplete indicators for {candles[-1].mint}: rsi={rsi} spike={spike}")
            return None

        return IndicatorSnapshot(
            mint=candles[-1].mint,
            bucket_ts=candles[-1].bucket_ts,
            last_close=float(candles[-1].close),
            ema_fast=float(fast[-1]),
            ema_slow=float(slow[-1]),
            rsi=rsi,
            volume_spike=spike,
            bullish_cross=crossed_above(fast, slow),
        )

    def __repr__(self) -> str:
        return f"IndicatorEngine(min_window={self.min_window}, {self.fast!r}, {self.slow!r}, {self.rsi!r}, {self.spike!r})"
