"""
Unit tests for maintenance jobs (rollup + retention, catalog refresh, activity report)
"""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.models.market_data import TrackedToken
from providers.memory.store import InMemorySignalStore
from services.maintenance import ActivityReporter, CatalogRefresher, MaintenanceJob, ceil_hour, floor_hour

HOUR = 3600
NOW = 1_700_006_400 + 25 * 60  # 25 minutes past an hour boundary


@pytest.mark.unit
class TestHourHelpers:
    def test_floor_and_ceil(self):
        assert floor_hour(7200) == 7200
        assert floor_hour(7201) == 7200
        assert ceil_hour(7200) == 7200
        assert ceil_hour(7201) == 10800


@pytest.mark.unit
class TestMaintenanceJob:
    @pytest.mark.asyncio
    async def test_rollup_then_cleanup(self):
        store = InMemorySignalStore()
        hour_start = floor_hour(NOW) - HOUR  # last complete hour
        for minute, price in enumerate(["1.0", "3.0", "0.5", "2.0"]):
            await store.upsert_candle("MINT", hour_start + minute * 60, Decimal(price), Decimal("10"))
        # Expired candle (older than 24h) and an expired signal
        await store.upsert_candle("MINT", NOW - 30 * HOUR, Decimal("9"), Decimal("1"))
        await store.create_signal("MINT", NOW - 25 * HOUR, True, 4.0, 30.0)
        await store.create_signal("MINT", NOW - 60, True, 4.0, 30.0)

        report = await MaintenanceJob(store, clock=lambda: NOW).run_cycle()

        rollup = store.hourly[("MINT", hour_start)]
        assert rollup.open == Decimal("1.0")
        assert rollup.high == Decimal("3.0")
        assert rollup.low == Decimal("0.5")
        assert rollup.close == Decimal("2.0")
        assert rollup.volume == Decimal("40")
        assert report.rolled_up == 1
        assert report.candles_deleted == 1
        assert report.signals_deleted == 1
        assert len(store.signals) == 1

    @pytest.mark.asyncio
    async def test_current_hour_is_not_rolled_up(self):
        store = InMemorySignalStore()
        await store.upsert_candle("MINT", floor_hour(NOW) + 60, Decimal("1"), Decimal("1"))

        report = await MaintenanceJob(store, clock=lambda: NOW).run_cycle()

        assert report.rolled_up == 0
        assert store.hourly == {}

    def test_cutoffs(self):
        job = MaintenanceJob(InMemorySignalStore(), clock=lambda: NOW)

        cutoffs = job.cutoffs(NOW)

        assert cutoffs["candles_before"] == NOW - 24 * HOUR
        assert cutoffs["signals_before"] == NOW - 24 * HOUR
        assert cutoffs["tokens_before"] == NOW - 72 * HOUR
        assert cutoffs["rollups_before"] == NOW - 30 * 24 * HOUR


@pytest.mark.unit
class TestCatalogRefresher:
    @pytest.mark.asyncio
    async def test_joins_catalog_with_top_markets(self):
        store = InMemorySignalStore()
        await store.upsert_pool("mint-bonk", 0, liq_usd=Decimal("50000"))

        prices = AsyncMock()
        prices.get_token_catalog.return_value = [
            TrackedToken(coin_id="bonk", mint="mint-bonk", symbol="bonk", name="Bonk"),
            TrackedToken(coin_id="wif", mint="mint-wif", symbol="wif", name="dogwifhat"),
            TrackedToken(coin_id="tiny", mint="mint-tiny", symbol="tiny", name="Tiny"),
        ]
        prices.get_top_markets.return_value = [
            {"id": "bonk", "current_price": 0.00002, "total_volume": 1e8, "market_cap": 1.5e9, "fully_diluted_valuation": 1.8e9},
            {"id": "wif", "current_price": 2.1, "total_volume": 3e8, "market_cap": 2e9, "fully_diluted_valuation": None},
            {"id": "not-on-solana", "current_price": 1.0},
        ]

        result = await CatalogRefresher(store, prices, top_tokens=500, clock=lambda: NOW).run_cycle()

        prices.get_top_markets.assert_awaited_once_with(500)
        assert result == {"tracked": 2, "pools_updated": 1}
        assert set(store.tokens) == {"mint-bonk", "mint-wif"}
        assert store.tokens["mint-bonk"].updated_ts == NOW
        assert store.pools["mint-bonk"].fdv_usd == Decimal("1800000000.0")
        assert store.pools["mint-bonk"].liq_usd == Decimal("50000")
        assert "mint-wif" not in store.pools


@pytest.mark.unit
class TestActivityReporter:
    @pytest.mark.asyncio
    async def test_merges_collectors(self):
        notifier = AsyncMock()
        notifier.send_activity_report.return_value = True
        reporter = ActivityReporter(notifier, [lambda: {"swaps": 3}, lambda: {"pools_upserted": 1}])

        assert await reporter.run_cycle() is True
        notifier.send_activity_report.assert_awaited_once_with({"swaps": 3, "pools_upserted": 1})
