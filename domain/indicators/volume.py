"""
Volume indicators

Implementations:
- VolumeSpike: recent volume relative to a trailing baseline
"""

import numpy as np

from core.interfaces.indicators import BaseIndicator
from core.models.market_data import Candle


class VolumeSpike(BaseIndicator):
    """
    Volume spike ratio

    Formula (recent=5, baseline=30):
        spike = sum(volumes[-5:]) / (mean(volumes[-35:-5]) × 5)

    A zero baseline yields 0.0 ("no spike") instead of a division error.

    Example:
        >>> spike = VolumeSpike(recent=5, baseline=30)
        >>> spike.calculate(candles)  # last 5 buckets at 4x the prior 30
        4.0
    """

    def __init__(self, recent: int = 5, baseline: int = 30):
        super().__init__(period=recent, baseline=baseline)
        if baseline <= 0:
            raise ValueError(f"VolumeSpike: baseline must be positive, got {baseline}")
        self.recent = recent
        self.baseline = baseline

    @property
    def min_candles(self) -> int:
        return self.recent + self.baseline

    def series(self, candles: list[Candle]) -> np.ndarray:
        """Spike ratio at every index with a full recent + baseline window"""
        volumes = self.volumes(candles)
        out = np.full(len(volumes), np.nan)
        for end in range(self.min_candles, len(volumes) + 1):
            out[end - 1] = self._ratio(volumes[end - self.min_candles : end])
        return out

    def _ratio(self, window: np.ndarray) -> float:
        base = window[: self.baseline]
        recent = window[self.baseline :]
        avg = float(np.mean(base))
        if avg == 0:
            return 0.0
        return float(np.sum(recent)) / (avg * self.recent)
