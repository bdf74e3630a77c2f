"""
Unit tests for moving average indicators

Tests with hand-calculated examples to verify correctness
"""

from decimal import Decimal

import numpy as np
import pytest

from core.models.market_data import Candle
from domain.indicators.moving_averages import EMA, crossed_above


def create_test_candle(close: float, index: int = 0, volume: float = 100, mint: str = "MINT") -> Candle:
    """Helper to create a 1m test candle with minimal fields"""
    price = Decimal(str(close))
    return Candle(
        mint=mint,
        bucket_ts=1_700_000_040 + index * 60,
        open=price,
        high=price,
        low=price,
        close=price,
        volume=Decimal(str(volume)),
    )


@pytest.mark.unit
class TestEMA:
    """Test Exponential Moving Average"""

    def test_ema_constant_series_equals_constant(self):
        """EMA of a constant series equals that constant from the seed index on"""
        candles = [create_test_candle(2.5, i) for i in range(30)]

        values = EMA(period=9).series(candles)

        assert np.isnan(values[:8]).all(), f"Values before the seed must be undefined: {values[:8]}"
        assert np.allclose(values[8:], 2.5), f"EMA should equal the constant: {values[8:]}"

    def test_ema_seed_is_simple_average(self):
        """Seed at index period-1 is the SMA of the first period closes"""
        closes = [1, 2, 3, 4, 5]
        candles = [create_test_candle(p, i) for i, p in enumerate(closes)]

        values = EMA(period=3).series(candles)

        # seed = (1+2+3)/3 = 2; k = 0.5 → 4*0.5 + 2*0.5 = 3; 5*0.5 + 3*0.5 = 4
        assert values[2] == pytest.approx(2.0)
        assert values[3] == pytest.approx(3.0)
        assert values[4] == pytest.approx(4.0)

    def test_ema_insufficient_data(self):
        """calculate() returns None with fewer candles than the period"""
        candles = [create_test_candle(1.0, i) for i in range(5)]

        assert EMA(period=9).calculate(candles) is None
        assert np.isnan(EMA(period=9).series(candles)).all()

    def test_invalid_period(self):
        with pytest.raises(ValueError, match="period must be positive"):
            EMA(period=0)


@pytest.mark.unit
class TestCrossedAbove:
    """Test bullish crossover detection"""

    def test_cross_on_last_bar(self):
        fast = np.array([1.0, 0.9, 1.2])
        slow = np.array([1.0, 1.0, 1.1])

        assert crossed_above(fast, slow) is True

    def test_touching_then_above_counts_as_cross(self):
        """fast == slow on the prior bar satisfies the <= condition"""
        assert crossed_above(np.array([1.0, 1.5]), np.array([1.0, 1.4])) is True

    def test_already_above_is_not_a_cross(self):
        assert crossed_above(np.array([1.2, 1.3]), np.array([1.0, 1.0])) is False

    def test_cross_down_is_not_bullish(self):
        assert crossed_above(np.array([1.0, 0.8]), np.array([0.9, 0.9])) is False

    def test_undefined_points_raise(self):
        with pytest.raises(ValueError, match="defined"):
            crossed_above(np.array([np.nan, 1.0]), np.array([1.0, 1.0]))

    def test_short_series_raise(self):
        with pytest.raises(ValueError, match="two points"):
            crossed_above(np.array([1.0]), np.array([1.0]))
