"""
In-memory implementation of the signal store

Used for dry runs (STORE_BACKEND=memory) and for stateful tests. Mutations
run under a single asyncio.Lock, which gives the same per-key atomicity as
the PostgreSQL upsert.
"""

import asyncio
import itertools
import logging
from decimal import Decimal

from core.interfaces.database import BaseSignalStore
from core.models.market_data import Candle, Pool, TrackedToken
from core.models.signals import MaintenanceReport, Signal

logger = logging.getLogger(__name__)


class InMemorySignalStore(BaseSignalStore):
    """Process-local store, lost on restart"""

    def __init__(self):
        self.pools: dict[str, Pool] = {}
        self.candles: dict[tuple[str, int], Candle] = {}
        self.hourly: dict[tuple[str, int], Candle] = {}
        self.signals: dict[int, Signal] = {}
        self.tokens: dict[str, TrackedToken] = {}
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()

    async def initialize(self, recreate_signals: bool = True) -> None:
        if recreate_signals:
            self.signals.clear()
            self._ids = itertools.count(1)
        logger.info("✓ In-memory store ready (dry run, nothing is persisted)")

    async def close(self) -> None:
        pass

    # Pools

    async def upsert_pool(self, mint, first_seen_ts, liq_usd=None, fdv_usd=None) -> None:
        async with self._lock:
            existing = self.pools.get(mint)
            if existing is None:
                self.pools[mint] = Pool(
                    mint=mint, first_seen_ts=first_seen_ts, liq_usd=liq_usd, fdv_usd=fdv_usd
                )
                return
            self.pools[mint] = existing.model_copy(
                update={
                    "liq_usd": liq_usd if liq_usd is not None else existing.liq_usd,
                    "fdv_usd": fdv_usd if fdv_usd is not None else existing.fdv_usd,
                }
            )

    async def update_pool_metrics(self, mint, liq_usd=None, fdv_usd=None) -> bool:
        async with self._lock:
            existing = self.pools.get(mint)
            if existing is None:
                return False
            self.pools[mint] = existing.model_copy(
                update={
                    "liq_usd": liq_usd if liq_usd is not None else existing.liq_usd,
                    "fdv_usd": fdv_usd if fdv_usd is not None else existing.fdv_usd,
                }
            )
            return True

    async def get_pool(self, mint: str) -> Pool | None:
        return self.pools.get(mint)

    async def get_pools_older_than(self, cutoff_ts: int) -> list[Pool]:
        return sorted(
            (p for p in self.pools.values() if p.first_seen_ts <= cutoff_ts),
            key=lambda p: p.first_seen_ts,
        )

    # Candles

    async def upsert_candle(self, mint, bucket_ts, price, volume) -> None:
        price, volume = Decimal(price), Decimal(volume)
        async with self._lock:
            key = (mint, bucket_ts)
            existing = self.candles.get(key)
            if existing is None:
                self.candles[key] = Candle.from_price(mint, bucket_ts, price, volume)
            else:
                merged = existing.merge(price, volume)
                self.candles[key] = merged.model_copy(update={"is_synthetic": False})

    async def insert_candle_if_absent(self, candle: Candle) -> bool:
        async with self._lock:
            key = (candle.mint, candle.bucket_ts)
            if key in self.candles:
                return False
            self.candles[key] = candle
            return True

    async def has_candle(self, mint: str, bucket_ts: int) -> bool:
        return (mint, bucket_ts) in self.candles

    async def get_last_close(self, mint: str) -> Decimal | None:
        candles = [c for (m, _), c in self.candles.items() if m == mint]
        if not candles:
            return None
        return max(candles, key=lambda c: c.bucket_ts).close

    async def get_recent_candles(self, mint: str, limit: int) -> list[Candle]:
        candles = sorted(
            (c for (m, _), c in self.candles.items() if m == mint), key=lambda c: c.bucket_ts
        )
        return candles[-limit:] if limit > 0 else []

    # Signals

    async def create_signal(self, mint, signal_ts, ema_cross, vol_spike, rsi) -> Signal:
        async with self._lock:
            signal = Signal(
                id=next(self._ids),
                mint=mint,
                signal_ts=signal_ts,
                ema_cross=ema_cross,
                vol_spike=vol_spike,
                rsi=rsi,
            )
            self.signals[signal.id] = signal
            return signal

    async def get_unnotified_signals(self) -> list[Signal]:
        return sorted(
            (s for s in self.signals.values() if not s.notified),
            key=lambda s: (s.signal_ts, s.id),
        )

    async def mark_signal_notified(self, signal_id: int) -> bool:
        async with self._lock:
            signal = self.signals.get(signal_id)
            if signal is None or signal.notified:
                return False
            self.signals[signal_id] = signal.model_copy(update={"notified": True})
            return True

    # Token catalog

    async def upsert_tracked_tokens(self, tokens: list[TrackedToken]) -> int:
        async with self._lock:
            for token in tokens:
                self.tokens[token.mint] = token
        return len(tokens)

    async def get_tracked_tokens(self) -> list[TrackedToken]:
        return list(self.tokens.values())

    # Maintenance

    async def rollup_hourly_candles(self, from_ts: int, to_ts: int) -> int:
        if to_ts <= from_ts:
            return 0
        groups: dict[tuple[str, int], list[Candle]] = {}
        for (mint, ts), candle in sorted(self.candles.items(), key=lambda kv: kv[0][1]):
            if from_ts <= ts < to_ts:
                groups.setdefault((mint, ts - ts % 3600), []).append(candle)

        async with self._lock:
            for (mint, hour_ts), rows in groups.items():
                self.hourly[(mint, hour_ts)] = Candle(
                    mint=mint,
                    bucket_ts=hour_ts,
                    open=rows[0].open,
                    high=max(c.high for c in rows),
                    low=min(c.low for c in rows),
                    close=rows[-1].close,
                    volume=sum((c.volume for c in rows), Decimal(0)),
                )
        return len(groups)

    async def cleanup_expired(
        self, candles_before, signals_before, tokens_before, rollups_before
    ) -> MaintenanceReport:
        async with self._lock:
            report = MaintenanceReport(
                candles_deleted=_drop(self.candles, lambda c: c.bucket_ts < candles_before),
                signals_deleted=_drop(self.signals, lambda s: s.signal_ts < signals_before),
                tokens_deleted=_drop(self.tokens, lambda t: t.updated_ts < tokens_before),
                rollups_deleted=_drop(self.hourly, lambda c: c.bucket_ts < rollups_before),
            )
        return report


def _drop(table: dict, expired) -> int:
    keys = [k for k, v in table.items() if expired(v)]
    for k in keys:
        del table[k]
    return len(keys)
