"""
Abstract interface for technical indicators
"""

from abc import ABC, abstractmethod

import numpy as np

from core.models.market_data import Candle


class BaseIndicator(ABC):
    """
    Indicator over a candle window

    Design principle:
    - Pure calculation logic (no store dependency)
    - Testable with plain candle lists
    - Candles are ordered oldest -> newest

    Implementations:
    - EMA (domain/indicators/moving_averages.py)
    - RSI (domain/indicators/momentum.py)
    - VolumeSpike (domain/indicators/volume.py)
    """

    def __init__(self, period: int, **kwargs):
        """
        Initialize indicator

        Args:
            period: Look-back period for calculation
            **kwargs: Additional indicator-specific parameters
        """
        if period <= 0:
            raise ValueError(f"{self.__class__.__name__}: period must be positive, got {period}")
        self.period = period
        self.name = self.__class__.__name__
        self.params = {"period": period, **kwargs}

    @property
    def min_candles(self) -> int:
        """Candles required before calculate() returns a value"""
        return self.period

    @abstractmethod
    def series(self, candles: list[Candle]) -> np.ndarray:
        """
        Full indicator series aligned with candles

        Indices before the indicator is defined hold NaN.
        """

    def calculate(self, candles: list[Candle]) -> float | None:
        """
        Most recent indicator value

        Returns:
            Indicator value, or None if the window is too short
        """
        if len(candles) < self.min_candles:
            return None
        values = self.series(candles)
        return float(values[-1]) if not np.isnan(values[-1]) else None

    @staticmethod
    def closes(candles: list[Candle]) -> np.ndarray:
        """Closing prices as float64 (Decimal -> float)"""
        return np.array([float(c.close) for c in candles], dtype=np.float64)

    @staticmethod
    def volumes(candles: list[Candle]) -> np.ndarray:
        return np.array([float(c.volume) for c in candles], dtype=np.float64)

    def __repr__(self) -> str:
        """String representation"""
        params_str = ", ".join(f"{k}={v}" for k, v in self.params.items())
        return f"{self.name}({params_str})"
