"""
Candle aggregator - merges swaps into 1m OHLCV candles

bucket = trade_ts - (trade_ts % interval)

First trade in a bucket inserts o=h=l=c=price, v=volume; later trades merge
h=max, l=min, c=price (last arrival wins), v+=volume. The store performs the
merge atomically, so concurrent trades on one (mint, bucket) never lose an update.
"""

import logging
from decimal import Decimal

from core.interfaces.database import BaseSignalStore
from core.utils.time_buckets import bucket_ts

logger = logging.getLogger(__name__)


class CandleAggregator:
    """
    Example:
        >>> aggregator = CandleAggregator(store, interval_seconds=60)
        >>> await aggregator.ingest(mint, Decimal("0.0021"), Decimal("150"), 1700000042)
        1700000040
    """

    def __init__(self, store: BaseSignalStore, interval_seconds: int = 60):
        if interval_seconds <= 0:
            raise ValueError(f"Candle interval must be positive, got {interval_seconds}")
        self.store = store
        self.interval_seconds = interval_seconds
        self.ingested = 0

    async def ingest(
        self, mint: str, price: Decimal, volume_usd: Decimal, trade_ts: int
    ) -> int:
        """
        Merge one trade into its bucket

        Prices <= 0 are not rejected here; callers filter invalid trades.

        Returns:
            Bucket start of the touched candle

        Raises:
            PersistenceError: Store write failed
        """
        bucket = bucket_ts(trade_ts, self.interval_seconds)
        await self.store.upsert_candle(mint, bucket, Decimal(price), Decimal(volume_usd))
        self.ingested += 1
        return bucket
