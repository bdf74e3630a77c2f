"""
Unit tests for time bucket utilities and the swap validator
"""

from decimal import Decimal

import pytest

from core.models.market_data import Candle, SwapEvent
from core.utils.config import get_nested
from core.utils.decimals import to_decimal
from core.utils.time_buckets import bucket_ts, count_missing_buckets, current_bucket, parse_interval
from core.validators.market_data import SwapValidator


def make_swap(price="1.0", volume="10", timestamp=1_700_000_000, mint="MINT"):
    return SwapEvent(
        signature=f"sig-{price}-{timestamp}",
        mint=mint,
        price=Decimal(price),
        volume_usd=Decimal(volume),
        timestamp=timestamp,
    )


@pytest.mark.unit
class TestTimeBuckets:
    def test_bucket_boundaries(self):
        assert bucket_ts(1_700_000_040, 60) == 1_700_000_040
        assert bucket_ts(1_700_000_099, 60) == 1_700_000_040
        assert bucket_ts(1_700_000_100, 60) == 1_700_000_100

    def test_float_timestamp_truncates(self):
        assert bucket_ts(1_700_000_059.9, 60) == 1_700_000_040

    def test_invalid_interval(self):
        with pytest.raises(ValueError, match="positive"):
            bucket_ts(1, 0)

    def test_current_bucket_with_explicit_now(self):
        assert current_bucket(60, now=125.0) == 120

    def test_count_missing_buckets(self):
        candles = [
            Candle.from_price("MINT", ts, Decimal("1")) for ts in (0, 60, 240, 300)
        ]

        assert count_missing_buckets(candles, 60) == 2
        assert count_missing_buckets(candles[:2], 60) == 0
        assert count_missing_buckets([], 60) == 0

    @pytest.mark.parametrize(
        "interval,expected",
        [("30s", 30), ("1m", 60), ("5m", 300), ("1h", 3600), ("1d", 86400), ("90", 90), (60, 60)],
    )
    def test_parse_interval(self, interval, expected):
        assert parse_interval(interval) == expected

    @pytest.mark.parametrize("interval", ["1w", "m", "abc"])
    def test_parse_interval_rejects_unknown(self, interval):
        with pytest.raises(ValueError, match="Unsupported interval"):
            parse_interval(interval)


@pytest.mark.unit
class TestGetNested:
    def test_walks_sections(self):
        assert get_nested({"a": {"b": {"c": 3}}}, "a", "b", "c") == 3

    def test_missing_or_null_returns_default(self):
        assert get_nested({"a": {}}, "a", "b", default=7) == 7
        assert get_nested({"a": None}, "a", default=7) == 7
        assert get_nested({"a": 5}, "a", "b", default=7) == 7


@pytest.mark.unit
class TestSwapValidator:
    def test_valid_swap(self):
        validator = SwapValidator()

        is_valid, error = validator.validate_swap(make_swap(), now=1_700_000_000)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize(
        "price,volume,reason", [("0", "10", "Invalid price"), ("1", "0", "Invalid volume")]
    )
    def test_rejects_non_positive(self, price, volume, reason):
        validator = SwapValidator()

        is_valid, error = validator.validate_swap(make_swap(price, volume), now=1_700_000_000)

        assert is_valid is False
        assert reason in error
        assert validator.invalid_count == 1

    def test_rejects_future_timestamp(self):
        validator = SwapValidator(max_clock_skew_seconds=60)

        is_valid, error = validator.validate_swap(make_swap(timestamp=1_700_000_061), now=1_700_000_000)

        assert is_valid is False
        assert "Future timestamp" in error

    def test_spike_logged_not_rejected(self):
        validator = SwapValidator(spike_threshold_pct=50.0)
        validator.validate_swap(make_swap("1.0"), now=1_700_000_000)

        is_valid, _ = validator.validate_swap(make_swap("2.0"), now=1_700_000_000)

        assert is_valid is True
        assert validator.get_stats() == {"spike_count": 1, "invalid_count": 0, "mints_tracked": 1}


@pytest.mark.unit
class TestToDecimal:
    def test_float_goes_through_string_form(self):
        assert to_decimal(0.1) == Decimal("0.1")
        assert to_decimal(1.4e9) == Decimal("1400000000.0")

    def test_none_passes_through(self):
        assert to_decimal(None) is None
