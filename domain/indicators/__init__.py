"""
Technical indicators module

Exports:
- BaseIndicator (core/interfaces/indicators.py)
- Moving averages: EMA, crossed_above
- Momentum: RSI
- Volume: VolumeSpike
- Engine: IndicatorEngine
"""

from core.interfaces.indicators import BaseIndicator
from domain.indicators.engine import IndicatorEngine
from domain.indicators.momentum import RSI
from domain.indicators.moving_averages import EMA, crossed_above
from domain.indicators.volume import VolumeSpike

__all__ = [
    "BaseIndicator",
    "EMA",
    "crossed_above",
    "RSI",
    "VolumeSpike",
    "IndicatorEngine",
]
