"""
Momentum indicators

Implementations:
- RSI: Relative Strength Index (Wilder smoothing)
"""

import numpy as np
import talib

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle


class RSI(BaseIndicator):
    """
    Relative Strength Index

    Formula:
        avg gain/loss seeded as the simple mean of the first N deltas, then
        avg' = (avg × (N-1) + new) / N
        RSI = 100 - (100 / (1 + avgGain / avgLoss)), or 100 when avgLoss = 0

    Interpretation:
        - RSI > 70: Overbought
        - RSI < 35: Oversold (signal threshold)

    Example:
        >>> candles = [...]  # 40 candles
        >>> rsi = RSI(period=14)
        >>> value = rsi.calculate(candles)
    """

    def __init__(self, period: int = 14):
        super().__init__(period=period)

    @property
    def min_candles(self) -> int:
        """N deltas need N + 1 closes"""
        return self.period + 1

    def series(self, candles: list[Candle]) -> np.ndarray:
        """RSI values aligned with candles (NaN for the first N indices)"""
        closes = self.closes(candles)
        if len(closes) < self.min_candles:
            return np.full(len(closes), np.nan)

        values = talib.RSI(closes, timeperiod=self.period)

        # TA-Lib reports 0 for a window with neither gains nor losses; with no
        # loss observed yet the average loss is exactly zero, so RSI is 100.
        no_loss_yet = np.concatenate([[True], np.cumsum(np.diff(closes) < 0) == 0])
        defined = ~np.isnan(values)
        values[defined & no_loss_yet] = 100.0

        return np.clip(values, 0.0, 100.0)
