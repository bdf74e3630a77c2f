"""
Signal cascade rules

Stage A (detection) gates on indicator values only:
    bullish cross AND volume spike >= min AND RSI < oversold
Stage B (dispatch) gates on market structure:
    liquidity >= min AND FDV <= max AND price impact <= max

Each check returns None when the item passes, otherwise a Skipped outcome
naming the first failing rule.
"""

from pydantic import BaseModel, Field

from core.models.market_data import Pool
from core.models.signals import IndicatorSnapshot, Skipped, SkipReason


class SignalThresholds(BaseModel):
    """Thresholds for both cascade stages"""

    min_token_age_seconds: int = Field(default=14 * 86400)
    min_volume_spike: float = 3.0
    max_rsi_oversold: float = 35.0
    min_liquidity_usd: float = 10_000.0
    max_fdv_usd: float = 5_000_000.0
    max_price_impact_percent: float = 3.0
    price_impact_test_amount_usd: float = 10.0

    @classmethod
    def from_settings(cls, settings) -> "SignalThresholds":
        """Build from Settings (config/settings.py)"""
        return cls(
            min_token_age_seconds=int(settings.MIN_TOKEN_AGE_DAYS * 86400),
            min_volume_spike=settings.MIN_VOLUME_SPIKE,
            max_rsi_oversold=settings.MAX_RSI_OVERSOLD,
            min_liquidity_usd=settings.MIN_LIQUIDITY_USD,
            max_fdv_usd=settings.MAX_FDV_USD,
            max_price_impact_percent=settings.MAX_PRICE_IMPACT_PERCENT,
            price_impact_test_amount_usd=settings.PRICE_IMPACT_TEST_AMOUNT_USD,
        )


def check_snapshot(snapshot: IndicatorSnapshot, thresholds: SignalThresholds) -> Skipped | None:
    """Stage A: all indicator conditions must hold"""
    if not snapshot.bullish_cross:
        return Skipped(
            reason=SkipReason.NO_BULLISH_CROSS,
            detail=f"ema_fast={snapshot.ema_fast:.8g} ema_slow={snapshot.ema_slow:.8g}",
        )
    if snapshot.volume_spike < thresholds.min_volume_spike:
        return Skipped(
            reason=SkipReason.LOW_VOLUME_SPIKE,
            detail=f"{snapshot.volume_spike:.2f}x < {thresholds.min_volume_spike}x",
        )
    if snapshot.rsi >= thresholds.max_rsi_oversold:
        return Skipped(
            reason=SkipReason.RSI_NOT_OVERSOLD,
            detail=f"rsi={snapshot.rsi:.1f} >= {thresholds.max_rsi_oversold}",
        )
    return None


def check_pool(pool: Pool | None, thresholds: SignalThresholds) -> Skipped | None:
    """
    Stage B: liquidity and valuation filters

    Unknown liquidity fails; unknown FDV passes.
    """
    if pool is None:
        return Skipped(reason=SkipReason.POOL_MISSING)

    if pool.liq_usd is None:
        return Skipped(reason=SkipReason.LOW_LIQUIDITY, detail="liquidity unknown")
    if float(pool.liq_usd) < thresholds.min_liquidity_usd:
        return Skipped(
            reason=SkipReason.LOW_LIQUIDITY,
            detail=f"${float(pool.liq_usd):,.0f} < ${thresholds.min_liquidity_usd:,.0f}",
        )

    if pool.fdv_usd is not None and float(pool.fdv_usd) > thresholds.max_fdv_usd:
        return Skipped(
            reason=SkipReason.HIGH_FDV,
            detail=f"${float(pool.fdv_usd):,.0f} > ${thresholds.max_fdv_usd:,.0f}",
        )
    return None


def check_price_impact(impact_percent: float, thresholds: SignalThresholds) -> Skipped | None:
    """Stage B: price impact for the test notional"""
    if impact_percent > thresholds.max_price_impact_percent:
        return Skipped(
            reason=SkipReason.HIGH_PRICE_IMPACT,
            detail=f"{impact_percent:.2f}% > {thresholds.max_price_impact_percent}%",
        )
    return None
