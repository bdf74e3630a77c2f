"""
Moving average indicators

Implementations:
- EMA: Exponential Moving Average (SMA-seeded)
- crossed_above: bullish crossover check between two series
"""

import logging

import numpy as np
import talib

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle

logger = logging.getLogger(__name__)


class EMA(BaseIndicator):
    """
    Exponential Moving Average

    Formula:
        seed = SMA of the first N closes, placed at index N-1
        EMA[i] = close[i] × k + EMA[i-1] × (1 - k), k = 2 / (N + 1)

    TA-Lib's EMA uses the same SMA seed; indices before N-1 are NaN.

    Example:
        >>> candles = [...]  # 40 one-minute candles
        >>> ema = EMA(period=9)
        >>> value = ema.calculate(candles)
    """

    def series(self, candles: list[Candle]) -> np.ndarray:
        """EMA values aligned with candles (NaN before the seed index)"""
        closes = self.closes(candles)
        if len(closes) < self.period:
            return np.full(len(closes), np.nan)
        return talib.EMA(closes, timeperiod=self.period)


def crossed_above(fast: np.ndarray, slow: np.ndarray) -> bool:
    """
    Bullish crossover on the last bar

    True when fast <= slow at the second-to-last index and fast > slow at the last.

    Raises:
        ValueError: If either series has fewer than two defined trailing points
    """
    if len(fast) < 2 or len(slow) < 2:
        raise ValueError("Crossover needs at least two points per series")

    tail = np.concatenate([fast[-2:], slow[-2:]])
    if np.isnan(tail).any():
        raise ValueError("Crossover needs both series defined at the last two indices")

    return bool(fast[-2] <= slow[-2] and fast[-1] > slow[-1])
