"""
Unit tests for momentum indicators (RSI)

Tests with known scenarios: overbought, oversold, flat
"""

import pytest

from domain.indicators.momentum import RSI
from tests.unit.indicators.test_moving_averages import create_test_candle


@pytest.mark.unit
class TestRSI:
    """Test Relative Strength Index with known scenarios"""

    def test_rsi_all_gains_is_100(self):
        """Strictly rising closes have no losses → RSI 100"""
        candles = [create_test_candle(10 + i, i) for i in range(30)]

        result = RSI(period=14).calculate(candles)

        assert result == pytest.approx(100.0), f"RSI should be 100: {result}"

    def test_rsi_all_losses_is_0(self):
        """Strictly falling closes have no gains → RSI 0"""
        candles = [create_test_candle(100 - i, i) for i in range(30)]

        result = RSI(period=14).calculate(candles)

        assert result == pytest.approx(0.0), f"RSI should be 0: {result}"

    def test_rsi_flat_series_is_100(self):
        """No deltas at all: average loss is zero, so RSI is 100"""
        candles = [create_test_candle(1.0, i) for i in range(20)]

        result = RSI(period=14).calculate(candles)

        assert result == pytest.approx(100.0), f"Flat series RSI should be 100: {result}"

    def test_rsi_oversold_after_downtrend(self):
        prices = [100 - i * 0.5 + (0.3 if i % 4 == 0 else 0) for i in range(30)]
        candles = [create_test_candle(p, i) for i, p in enumerate(prices)]

        result = RSI(period=14).calculate(candles)

        assert result is not None
        assert result < 35, f"RSI should be oversold: {result}"

    def test_rsi_bounds(self):
        """RSI always stays within 0-100"""
        prices = [100, 110, 95, 115, 90, 120, 85, 125, 80, 130] * 3
        candles = [create_test_candle(p, i) for i, p in enumerate(prices)]

        values = RSI(period=14).series(candles)
        defined = values[14:]

        assert ((defined >= 0) & (defined <= 100)).all(), f"RSI out of bounds: {defined}"

    def test_rsi_needs_period_plus_one_candles(self):
        rsi = RSI(period=14)
        candles = [create_test_candle(10 + i, i) for i in range(14)]

        assert rsi.min_candles == 15
        assert rsi.calculate(candles) is None
        assert rsi.calculate(candles + [create_test_candle(30, 14)]) is not None
