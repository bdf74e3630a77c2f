"""
Unit tests for signal cascade rules
"""

from decimal import Decimal

import pytest

from core.models.market_data import Pool
from core.models.signals import IndicatorSnapshot, SkipReason
from domain.signals.rules import (
    SignalThresholds,
    check_pool,
    check_price_impact,
    check_snapshot,
)


def make_snapshot(**overrides) -> IndicatorSnapshot:
    values = {
        "mint": "MINT",
        "bucket_ts": 1_700_000_040,
        "last_close": 1.5,
        "ema_fast": 1.10,
        "ema_slow": 1.09,
        "rsi": 31.0,
        "volume_spike": 4.0,
        "bullish_cross": True,
    }
    values.update(overrides)
    return IndicatorSnapshot(**values)


def make_pool(liq="20000", fdv="1000000") -> Pool:
    return Pool(
        mint="MINT",
        first_seen_ts=0,
        liq_usd=Decimal(liq) if liq is not None else None,
        fdv_usd=Decimal(fdv) if fdv is not None else None,
    )


@pytest.fixture
def thresholds():
    return SignalThresholds()


@pytest.mark.unit
class TestCheckSnapshot:
    """Stage A gate"""

    def test_all_conditions_pass(self, thresholds):
        assert check_snapshot(make_snapshot(), thresholds) is None

    def test_no_cross(self, thresholds):
        result = check_snapshot(make_snapshot(bullish_cross=False), thresholds)
        assert result.reason == SkipReason.NO_BULLISH_CROSS

    def test_low_spike(self, thresholds):
        result = check_snapshot(make_snapshot(volume_spike=2.99), thresholds)
        assert result.reason == SkipReason.LOW_VOLUME_SPIKE

    def test_spike_at_threshold_passes(self, thresholds):
        assert check_snapshot(make_snapshot(volume_spike=3.0), thresholds) is None

    def test_rsi_must_be_strictly_below(self, thresholds):
        result = check_snapshot(make_snapshot(rsi=35.0), thresholds)
        assert result.reason == SkipReason.RSI_NOT_OVERSOLD


@pytest.mark.unit
class TestCheckPool:
    """Stage B liquidity / valuation gate"""

    def test_pool_passes(self, thresholds):
        assert check_pool(make_pool(), thresholds) is None

    def test_missing_pool(self, thresholds):
        assert check_pool(None, thresholds).reason == SkipReason.POOL_MISSING

    def test_low_liquidity(self, thresholds):
        assert check_pool(make_pool(liq="9999"), thresholds).reason == SkipReason.LOW_LIQUIDITY

    def test_unknown_liquidity_fails(self, thresholds):
        result = check_pool(make_pool(liq=None), thresholds)
        assert result.reason == SkipReason.LOW_LIQUIDITY
        assert "unknown" in result.detail

    def test_high_fdv(self, thresholds):
        assert check_pool(make_pool(fdv="5000001"), thresholds).reason == SkipReason.HIGH_FDV

    def test_unknown_fdv_passes(self, thresholds):
        assert check_pool(make_pool(fdv=None), thresholds) is None


@pytest.mark.unit
class TestCheckPriceImpact:
    def test_impact_within_limit(self, thresholds):
        assert check_price_impact(3.0, thresholds) is None

    def test_impact_too_high(self, thresholds):
        assert check_price_impact(3.01, thresholds).reason == SkipReason.HIGH_PRICE_IMPACT


@pytest.mark.unit
class TestThresholdsFromSettings:
    def test_defaults_from_yaml(self):
        from config.settings import get_settings

        thresholds = SignalThresholds.from_settings(get_settings())

        assert thresholds.min_token_age_seconds == 14 * 86400
        assert thresholds.min_liquidity_usd == 10_000
        assert thresholds.max_fdv_usd == 5_000_000
        assert thresholds.price_impact_test_amount_usd == 10
