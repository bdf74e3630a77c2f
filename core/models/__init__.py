"""Models module - Pydantic data models"""

from .market_data import (
    Candle,
    Pool,
    PoolInitEvent,
    PriceQuote,
    Quote,
    SwapEvent,
    TrackedToken,
)
from .signals import (
    DetectionReport,
    DispatchReport,
    GapFillReport,
    IndicatorSnapshot,
    MaintenanceReport,
    Signal,
    Skipped,
    SkipReason,
)

__all__ = [
    "Pool",
    "Candle",
    "SwapEvent",
    "PoolInitEvent",
    "TrackedToken",
    "PriceQuote",
    "Quote",
    "IndicatorSnapshot",
    "Signal",
    "SkipReason",
    "Skipped",
    "GapFillReport",
    "DetectionReport",
    "DispatchReport",
    "MaintenanceReport",
]
