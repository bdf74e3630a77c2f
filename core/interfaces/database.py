from abc import ABC, abstractmethod
from decimal import Decimal

from core.models.market_data import Candle, Pool, TrackedToken
from core.models.signals import MaintenanceReport, Signal


class BaseSignalStore(ABC):
    """
    Abstract interface for the pipeline store

    Owns five tables: pools, ohlcv (1m candles), signals, and the derived
    tracked_tokens and ohlcv_1h tables.

    Implementations:
    - PostgresSignalStore (providers/postgres/store.py)
    - InMemorySignalStore (providers/memory/store.py)

    All methods raise PersistenceError on failure.
    """

    @abstractmethod
    async def initialize(self, recreate_signals: bool = True) -> None:
        """
        Connect and create schema

        Schema creation is idempotent; the service passes recreate_signals=True,
        which drops and recreates the signals table. One-shot scripts keep it.

        Raises:
            PersistenceError: After exhausting startup attempts
        """

    @abstractmethod
    async def close(self) -> None:
        """Close connections"""

    # Pools

    @abstractmethod
    async def upsert_pool(
        self,
        mint: str,
        first_seen_ts: int,
        liq_usd: Decimal | None = None,
        fdv_usd: Decimal | None = None,
    ) -> None:
        """Insert a pool, or update liq/fdv keeping existing values where the new one is None"""

    @abstractmethod
    async def update_pool_metrics(
        self, mint: str, liq_usd: Decimal | None = None, fdv_usd: Decimal | None = None
    ) -> bool:
        """Update liq/fdv of an existing pool; returns False if the pool is unknown"""

    @abstractmethod
    async def get_pool(self, mint: str) -> Pool | None:
        """Pool by mint"""

    @abstractmethod
    async def get_pools_older_than(self, cutoff_ts: int) -> list[Pool]:
        """Pools first seen at or before cutoff_ts"""

    # Candles

    @abstractmethod
    async def upsert_candle(
        self, mint: str, bucket_ts: int, price: Decimal, volume: Decimal
    ) -> None:
        """
        Atomically merge one trade into (mint, bucket_ts)

        Insert o=h=l=c=price, v=volume if absent; otherwise h=max, l=min,
        c=price, v+=volume.
        """

    @abstractmethod
    async def insert_candle_if_absent(self, candle: Candle) -> bool:
        """Insert a candle unless (mint, bucket_ts) exists; True if inserted"""

    @abstractmethod
    async def has_candle(self, mint: str, bucket_ts: int) -> bool:
        """Whether (mint, bucket_ts) exists"""

    @abstractmethod
    async def get_last_close(self, mint: str) -> Decimal | None:
        """Close of the newest candle for mint, regardless of age"""

    @abstractmethod
    async def get_recent_candles(self, mint: str, limit: int) -> list[Candle]:
        """Newest `limit` candles, returned oldest -> newest"""

    # Signals

    @abstractmethod
    async def create_signal(
        self, mint: str, signal_ts: int, ema_cross: bool, vol_spike: float, rsi: float
    ) -> Signal:
        """Append a signal with notified=False"""

    @abstractmethod
    async def get_unnotified_signals(self) -> list[Signal]:
        """Signals with notified=False, oldest first"""

    @abstractmethod
    async def mark_signal_notified(self, signal_id: int) -> bool:
        """Flip notified false -> true; False if already notified or missing"""

    # Token catalog

    @abstractmethod
    async def upsert_tracked_tokens(self, tokens: list[TrackedToken]) -> int:
        """Insert or refresh catalog rows keyed by mint"""

    @abstractmethod
    async def get_tracked_tokens(self) -> list[TrackedToken]:
        """Tokens the gap filler keeps contiguous"""

    # Maintenance

    @abstractmethod
    async def rollup_hourly_candles(self, from_ts: int, to_ts: int) -> int:
        """Aggregate 1m candles in [from_ts, to_ts) into ohlcv_1h; returns rows written"""

    @abstractmethod
    async def cleanup_expired(
        self,
        candles_before: int,
        signals_before: int,
        tokens_before: int,
        rollups_before: int,
    ) -> MaintenanceReport:
        """Delete rows older than the given cutoffs (epoch seconds)"""
