"""
PostgreSQL implementation of the signal store

Tables:
- pools:          one row per mint, first_seen_ts immutable
- ohlcv:          1m candles, PK (mint, ts), merged with an atomic upsert
- signals:        append-only buy signals, dropped and recreated at startup
- tracked_tokens: CoinGecko catalog snapshot (retention-bounded)
- ohlcv_1h:       hourly rollup of ohlcv (retention-bounded)
"""

import asyncio
import logging
from decimal import Decimal
from typing import Any

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from config.settings import get_settings
from core.exceptions import PersistenceError
from core.interfaces.database import BaseSignalStore
from core.models.market_data import Candle, Pool, TrackedToken
from core.models.signals import MaintenanceReport, Signal

logger = logging.getLogger(__name__)


SCHEMA_SQL = [
    """
    CREATE TABLE IF NOT EXISTS pools (
        mint TEXT PRIMARY KEY,
        first_seen_ts BIGINT NOT NULL,
        liq_usd NUMERIC,
        fdv_usd NUMERIC
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_pools_first_seen ON pools (first_seen_ts)",
    """
    CREATE TABLE IF NOT EXISTS ohlcv (
        mint TEXT NOT NULL,
        ts BIGINT NOT NULL,
        o NUMERIC NOT NULL,
        h NUMERIC NOT NULL,
        l NUMERIC NOT NULL,
        c NUMERIC NOT NULL,
        v NUMERIC NOT NULL DEFAULT 0,
        synthetic BOOLEAN NOT NULL DEFAULT FALSE,
        PRIMARY KEY (mint, ts)
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_ohlcv_mint_ts ON ohlcv (mint, ts DESC)",
    """
    CREATE TABLE IF NOT EXISTS ohlcv_1h (
        mint TEXT NOT NULL,
        ts BIGINT NOT NULL,
        o NUMERIC NOT NULL,
        h NUMERIC NOT NULL,
        l NUMERIC NOT NULL,
        c NUMERIC NOT NULL,
        v NUMERIC NOT NULL DEFAULT 0,
        PRIMARY KEY (mint, ts)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS tracked_tokens (
        mint TEXT PRIMARY KEY,
        coin_id TEXT NOT NULL,
        symbol TEXT NOT NULL,
        name TEXT NOT NULL DEFAULT '',
        network TEXT NOT NULL DEFAULT 'solana',
        price NUMERIC,
        volume NUMERIC,
        market_cap NUMERIC,
        fdv NUMERIC,
        updated_ts BIGINT NOT NULL
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_tracked_tokens_updated ON tracked_tokens (updated_ts)",
    """
    CREATE TABLE IF NOT EXISTS signals (
        id SERIAL PRIMARY KEY,
        mint TEXT NOT NULL,
        signal_ts BIGINT NOT NULL,
        ema_cross BOOLEAN NOT NULL,
        vol_spike NUMERIC NOT NULL,
        rsi NUMERIC NOT NULL,
        notified BOOLEAN NOT NULL DEFAULT FALSE
    )
    """,
    "CREATE INDEX IF NOT EXISTS idx_signals_notified ON signals (notified, signal_ts)",
]

# Destructive migration run by the service at startup: signals never survive a restart
RESET_SIGNALS_SQL = "DROP TABLE IF EXISTS signals"

UPSERT_CANDLE_SQL = """
    INSERT INTO ohlcv (mint, ts, o, h, l, c, v, synthetic)
    VALUES (%(mint)s, %(ts)s, %(price)s, %(price)s, %(price)s, %(price)s, %(volume)s, FALSE)
    ON CONFLICT (mint, ts) DO UPDATE SET
        h = GREATEST(ohlcv.h, EXCLUDED.h),
        l = LEAST(ohlcv.l, EXCLUDED.l),
        c = EXCLUDED.c,
        v = ohlcv.v + EXCLUDED.v,
        synthetic = FALSE
"""

ROLLUP_SQL = """
    INSERT INTO ohlcv_1h (mint, ts, o, h, l, c, v)
    SELECT
        mint,
        ts - (ts %% 3600) AS hour_ts,
        (array_agg(o ORDER BY ts ASC))[1],
        MAX(h),
        MIN(l),
        (array_agg(c ORDER BY ts DESC))[1],
        SUM(v)
    FROM ohlcv
    WHERE ts >= %(from_ts)s AND ts < %(to_ts)s
    GROUP BY mint, hour_ts
    ON CONFLICT (mint, ts) DO UPDATE SET
        o = EXCLUDED.o,
        h = EXCLUDED.h,
        l = EXCLUDED.l,
        c = EXCLUDED.c,
        v = EXCLUDED.v
"""


class PostgresSignalStore(BaseSignalStore):
    """
    PostgreSQL store (psycopg 3, async connection pool)

    Features:
    - Atomic candle merge via INSERT ... ON CONFLICT DO UPDATE
    - Idempotent gap-fill inserts via ON CONFLICT DO NOTHING
    - Startup retries before initialization is fatal
    """

    def __init__(self, dsn: str | None = None):
        self.settings = get_settings()
        self.dsn = dsn or self.settings.postgres_dsn
        self.pool: AsyncConnectionPool | None = None

    async def initialize(self, recreate_signals: bool = True) -> None:
        """Open the pool and create schema, retrying a fixed number of times"""
        attempts = self.settings.POSTGRES_INIT_ATTEMPTS
        delay = self.settings.POSTGRES_INIT_RETRY_DELAY_SECONDS

        for attempt in range(1, attempts + 1):
            try:
                self.pool = AsyncConnectionPool(
                    conninfo=self.dsn,
                    min_size=self.settings.POSTGRES_POOL_MIN_SIZE,
                    max_size=self.settings.POSTGRES_POOL_MAX_SIZE,
                    kwargs={"row_factory": dict_row},
                    open=False,
                )
                await self.pool.open(wait=True, timeout=10)

                statements = [RESET_SIGNALS_SQL, *SCHEMA_SQL] if recreate_signals else SCHEMA_SQL
                async with self.pool.connection() as conn:
                    for statement in statements:
                        await conn.execute(statement)

                logger.info(
                    f"✓ Connected to PostgreSQL: {self.settings.POSTGRES_HOST}:"
                    f"{self.settings.POSTGRES_PORT} (schema ready"
                    f"{', signals table recreated' if recreate_signals else ''})"
                )
                return

            except psycopg.Error as e:
                logger.error(f"✗ Database init attempt {attempt}/{attempts} failed: {e}")
                await self.close()
                if attempt < attempts:
                    await asyncio.sleep(delay)

        raise PersistenceError(f"Database initialization failed after {attempts} attempts")

    async def close(self) -> None:
        """Close the connection pool"""
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def _execute(self, sql: str, params: Any = None) -> int:
        """Run a statement, returning the affected row count"""
        if self.pool is None:
            raise RuntimeError("PostgreSQL store not connected")
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(sql, params)
                return cur.rowcount
        except psycopg.Error as e:
            raise PersistenceError(f"PostgreSQL write failed: {e}") from e

    async def _fetch(self, sql: str, params: Any = None) -> list[dict]:
        """Run a query, returning rows as dicts"""
        if self.pool is None:
            raise RuntimeError("PostgreSQL store not connected")
        try:
            async with self.pool.connection() as conn:
                cur = await conn.execute(sql, params)
                return await cur.fetchall()
        except psycopg.Error as e:
            raise PersistenceError(f"PostgreSQL query failed: {e}") from e

    # ============================================
    # POOLS
    # ============================================
    async def upsert_pool(self, mint, first_seen_ts, liq_usd=None, fdv_usd=None) -> None:
        await self._execute(
            """
            INSERT INTO pools (mint, first_seen_ts, liq_usd, fdv_usd)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (mint) DO UPDATE SET
                liq_usd = COALESCE(EXCLUDED.liq_usd, pools.liq_usd),
                fdv_usd = COALESCE(EXCLUDED.fdv_usd, pools.fdv_usd)
            """,
            (mint, first_seen_ts, liq_usd, fdv_usd),
        )

    async def update_pool_metrics(self, mint, liq_usd=None, fdv_usd=None) -> bool:
        updated = await self._execute(
            """
            UPDATE pools SET
                liq_usd = COALESCE(%s, liq_usd),
                fdv_usd = COALESCE(%s, fdv_usd)
            WHERE mint = %s
            """,
            (liq_usd, fdv_usd, mint),
        )
        return updated > 0

    async def get_pool(self, mint: str) -> Pool | None:
        rows = await self._fetch(
            "SELECT mint, first_seen_ts, liq_usd, fdv_usd FROM pools WHERE mint = %s", (mint,)
        )
        return Pool(**rows[0]) if rows else None

    async def get_pools_older_than(self, cutoff_ts: int) -> list[Pool]:
        rows = await self._fetch(
            """
            SELECT mint, first_seen_ts, liq_usd, fdv_usd FROM pools
            WHERE first_seen_ts <= %s
            ORDER BY first_seen_ts ASC
            """,
            (cutoff_ts,),
        )
        return [Pool(**row) for row in rows]

    # ============================================
    # CANDLES
    # ============================================
    async def upsert_candle(self, mint, bucket_ts, price, volume) -> None:
        await self._execute(
            UPSERT_CANDLE_SQL, {"mint": mint, "ts": bucket_ts, "price": price, "volume": volume}
        )

    async def insert_candle_if_absent(self, candle: Candle) -> bool:
        inserted = await self._execute(
            """
            INSERT INTO ohlcv (mint, ts, o, h, l, c, v, synthetic)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s)
            ON CONFLICT (mint, ts) DO NOTHING
            """,
            (
                candle.mint,
                candle.bucket_ts,
                candle.open,
                candle.high,
                candle.low,
                candle.close,
                candle.volume,
                candle.is_synthetic,
            ),
        )
        return inserted > 0

    async def has_candle(self, mint: str, bucket_ts: int) -> bool:
        rows = await self._fetch(
            "SELECT 1 FROM ohlcv WHERE mint = %s AND ts = %s", (mint, bucket_ts)
        )
        return bool(rows)

    async def get_last_close(self, mint: str) -> Decimal | None:
        rows = await self._fetch(
            "SELECT c FROM ohlcv WHERE mint = %s ORDER BY ts DESC LIMIT 1", (mint,)
        )
        return rows[0]["c"] if rows else None

    async def get_recent_candles(self, mint: str, limit: int) -> list[Candle]:
        rows = await self._fetch(
            """
            SELECT mint, ts, o, h, l, c, v, synthetic FROM ohlcv
            WHERE mint = %s
            ORDER BY ts DESC
            LIMIT %s
            """,
            (mint, limit),
        )
        return [
            Candle(
                mint=row["mint"],
                bucket_ts=row["ts"],
                open=row["o"],
                high=row["h"],
                low=row["l"],
                close=row["c"],
                volume=row["v"],
                is_synthetic=row["synthetic"],
            )
            for row in reversed(rows)
        ]

    # ============================================
    # SIGNALS
    # ============================================
    async def create_signal(self, mint, signal_ts, ema_cross, vol_spike, rsi) -> Signal:
        rows = await self._fetch(
            """
            INSERT INTO signals (mint, signal_ts, ema_cross, vol_spike, rsi)
            VALUES (%s, %s, %s, %s, %s)
            RETURNING id
            """,
            (mint, signal_ts, ema_cross, vol_spike, rsi),
        )
        return Signal(
            id=rows[0]["id"],
            mint=mint,
            signal_ts=signal_ts,
            ema_cross=ema_cross,
            vol_spike=vol_spike,
            rsi=rsi,
        )

    async def get_unnotified_signals(self) -> list[Signal]:
        rows = await self._fetch(
            """
            SELECT id, mint, signal_ts, ema_cross, vol_spike, rsi, notified FROM signals
            WHERE notified = FALSE
            ORDER BY signal_ts ASC, id ASC
            """
        )
        return [
            Signal(**{**row, "vol_spike": float(row["vol_spike"]), "rsi": float(row["rsi"])})
            for row in rows
        ]

    async def mark_signal_notified(self, signal_id: int) -> bool:
        updated = await self._execute(
            "UPDATE signals SET notified = TRUE WHERE id = %s AND notified = FALSE",
            (signal_id,),
        )
        return updated == 1

    # ============================================
    # TOKEN CATALOG
    # ============================================
    async def upsert_tracked_tokens(self, tokens: list[TrackedToken]) -> int:
        if not tokens:
            return 0
        if self.pool is None:
            raise RuntimeError("PostgreSQL store not connected")

        rows = [
            (
                t.mint,
                t.coin_id,
                t.symbol,
                t.name,
                t.network,
                t.price,
                t.volume,
                t.market_cap,
                t.fdv,
                t.updated_ts,
            )
            for t in tokens
        ]
        try:
            async with self.pool.connection() as conn:
                async with conn.cursor() as cur:
                    await cur.executemany(
                        """
                        INSERT INTO tracked_tokens
                            (mint, coin_id, symbol, name, network, price, volume, market_cap, fdv, updated_ts)
                        VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s, %s)
                        ON CONFLICT (mint) DO UPDATE SET
                            coin_id = EXCLUDED.coin_id,
                            symbol = EXCLUDED.symbol,
                            name = EXCLUDED.name,
                            price = EXCLUDED.price,
                            volume = EXCLUDED.volume,
                            market_cap = EXCLUDED.market_cap,
                            fdv = EXCLUDED.fdv,
                            updated_ts = EXCLUDED.updated_ts
                        """,
                        rows,
                    )
        except psycopg.Error as e:
            raise PersistenceError(f"Token catalog upsert failed: {e}") from e

        logger.info(f"✓ Upserted {len(rows)} tracked tokens")
        return len(rows)

    async def get_tracked_tokens(self) -> list[TrackedToken]:
        rows = await self._fetch(
            """
            SELECT coin_id, mint, symbol, name, network, price, volume, market_cap, fdv, updated_ts
            FROM tracked_tokens
            ORDER BY market_cap DESC NULLS LAST
            """
        )
        return [TrackedToken(**row) for row in rows]

    # ============================================
    # MAINTENANCE
    # ============================================
    async def rollup_hourly_candles(self, from_ts: int, to_ts: int) -> int:
        if to_ts <= from_ts:
            return 0
        return await self._execute(ROLLUP_SQL, {"from_ts": from_ts, "to_ts": to_ts})

    async def cleanup_expired(
        self, candles_before, signals_before, tokens_before, rollups_before
    ) -> MaintenanceReport:
        return MaintenanceReport(
            candles_deleted=await self._execute(
                "DELETE FROM ohlcv WHERE ts < %s", (candles_before,)
            ),
            signals_deleted=await self._execute(
                "DELETE FROM signals WHERE signal_ts < %s", (signals_before,)
            ),
            tokens_deleted=await self._execute(
                "DELETE FROM tracked_tokens WHERE updated_ts < %s", (tokens_before,)
            ),
            rollups_deleted=await self._execute(
                "DELETE FROM ohlcv_1h WHERE ts < %s", (rollups_before,)
            ),
        )
