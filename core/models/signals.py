"""
Signal models

- IndicatorSnapshot: ephemeral indicator values for one candle window
- Signal: persisted buy signal (notified flips false -> true exactly once)
- SkipReason / Skipped: explicit outcome for items a cycle did not act on
- *Report: per-cycle counters logged at the end of every run
"""

from enum import Enum

from pydantic import BaseModel, Field


class IndicatorSnapshot(BaseModel):
    """Indicator values at the newest candle of a window"""

    mint: str
    bucket_ts: int = Field(description="Bucket of the newest candle")
    last_close: float
    ema_fast: float
    ema_slow: float
    rsi: float = Field(ge=0, le=100)
    volume_spike: float = Field(ge=0)
    bullish_cross: bool


class Signal(BaseModel):
    """Buy signal row"""

    id: int
    mint: str
    signal_ts: int = Field(description="Detection time (epoch seconds)")
    ema_cross: bool
    vol_spike: float
    rsi: float
    notified: bool = False


class SkipReason(str, Enum):
    """Why an item was not acted on in a cycle"""

    CANDLE_EXISTS = "candle_exists"
    NO_PRICE = "no_price"
    INSUFFICIENT_HISTORY = "insufficient_history"
    NO_BULLISH_CROSS = "no_bullish_cross"
    LOW_VOLUME_SPIKE = "low_volume_spike"
    RSI_NOT_OVERSOLD = "rsi_not_oversold"
    POOL_MISSING = "pool_missing"
    LOW_LIQUIDITY = "low_liquidity"
    HIGH_FDV = "high_fdv"
    QUOTE_UNAVAILABLE = "quote_unavailable"
    HIGH_PRICE_IMPACT = "high_price_impact"
    DELIVERY_FAILED = "delivery_failed"
    ERROR = "error"


class Skipped(BaseModel):
    """Named outcome for a skipped item"""

    reason: SkipReason
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.reason.value}: {self.detail}" if self.detail else self.reason.value


class GapFillReport(BaseModel):
    """Gap filler cycle counters"""

    processed: int = 0
    synthesized: int = 0
    price_fetched: int = 0
    skipped: dict[str, int] = Field(default_factory=dict)
    failed: int = 0

    def count_skip(self, outcome: Skipped) -> None:
        key = outcome.reason.value
        self.skipped[key] = self.skipped.get(key, 0) + 1


class DetectionReport(BaseModel):
    """Stage A cycle counters"""

    scanned: int = 0
    signals: int = 0
    skipped: dict[str, int] = Field(default_factory=dict)
    failed: int = 0

    def count_skip(self, outcome: Skipped) -> None:
        key = outcome.reason.value
        self.skipped[key] = self.skipped.get(key, 0) + 1


class DispatchReport(BaseModel):
    """Stage B cycle counters"""

    pending: int = 0
    delivered: int = 0
    skipped: dict[str, int] = Field(default_factory=dict)
    failed: int = 0

    def count_skip(self, outcome: Skipped) -> None:
        key = outcome.reason.value
        self.skipped[key] = self.skipped.get(key, 0) + 1


class MaintenanceReport(BaseModel):
    """Rollup and retention counters"""

    rolled_up: int = 0
    candles_deleted: int = 0
    signals_deleted: int = 0
    tokens_deleted: int = 0
    rollups_deleted: int = 0
