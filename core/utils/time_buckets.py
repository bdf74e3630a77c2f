"""
Time bucket utilities for candle aggregation

Candles are keyed by bucket start in epoch seconds:
    bucket = ts - (ts % interval)

A trade at T and one at T + interval - 1 share a bucket; T + interval starts the next one.
"""

import time

from core.models.market_data import Candle


def bucket_ts(timestamp: int | float, interval_seconds: int) -> int:
    """
    Truncate a timestamp to the start of its bucket

    Args:
        timestamp: Epoch seconds
        interval_seconds: Bucket width (60 for 1m candles)

    Returns:
        Bucket start (epoch seconds)

    Example:
        >>> bucket_ts(1700000059, 60)
        1700000040
    """
    if interval_seconds <= 0:
        raise ValueError(f"Interval must be positive, got {interval_seconds}")
    ts = int(timestamp)
    return ts - (ts % interval_seconds)


def current_bucket(interval_seconds: int, now: float | None = None) -> int:
    """Bucket containing 'now' (defaults to wall clock)"""
    return bucket_ts(time.time() if now is None else now, interval_seconds)


def count_missing_buckets(candles: list[Candle], interval_seconds: int) -> int:
    """
    Count buckets missing between consecutive candles

    Args:
        candles: Candles sorted by bucket_ts ASC
        interval_seconds: Expected spacing

    Returns:
        Number of absent buckets inside the window (0 if contiguous)

    Example:
        >>> candles = [candle_at_0, candle_at_180]  # 60 and 120 missing
        >>> count_missing_buckets(candles, 60)
        2
    """
    missing = 0
    for prev, nxt in zip(candles, candles[1:]):
        delta = nxt.bucket_ts - prev.bucket_ts
        if delta > interval_seconds:
            missing += delta // interval_seconds - 1
    return missing


def parse_interval(interval: str | int) -> int:
    """
    Convert an interval string to seconds

    Args:
        interval: "30s", "1m", "5m", "1h", "1d" or a plain number of seconds

    Returns:
        Interval in seconds

    Raises:
        ValueError: If the unit is not supported

    Example:
        >>> parse_interval("1m")
        60
        >>> parse_interval("1h")
        3600
    """
    if isinstance(interval, int):
        return interval

    text = str(interval).strip().lower()
    if text.isdigit():
        return int(text)

    units = {"s": 1, "m": 60, "h": 3600, "d": 86400}
    unit = text[-1:]
    if unit not in units or not text[:-1].isdigit():
        raise ValueError(f"Unsupported interval: {interval}")
    return int(text[:-1]) * units[unit]
