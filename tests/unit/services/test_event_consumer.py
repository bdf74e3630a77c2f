"""
Unit tests for EventConsumer (queue → aggregator / pool upsert)
"""

import asyncio
import time
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from core.exceptions import PersistenceError
from core.models.market_data import PoolInitEvent, SwapEvent
from providers.memory.store import InMemorySignalStore
from services.market_data_ingestion.aggregator import CandleAggregator
from services.market_data_ingestion.event_consumer import EventConsumer

MINT = "MINT"


def make_swap(price="1.5", volume="20", ts=1_700_000_010, signature="sig") -> SwapEvent:
    return SwapEvent(
        signature=signature, mint=MINT, price=Decimal(price), volume_usd=Decimal(volume), timestamp=ts
    )


@pytest.fixture
def store():
    return InMemorySignalStore()


@pytest.fixture
def consumer(store):
    return EventConsumer(asyncio.Queue(), CandleAggregator(store, 60), store)


@pytest.mark.unit
class TestEventConsumer:
    @pytest.mark.asyncio
    async def test_swap_is_aggregated(self, consumer, store):
        await consumer.handle(make_swap())

        assert store.candles[(MINT, 1_699_999_980)].close == Decimal("1.5")
        assert consumer.swaps_ingested == 1

    @pytest.mark.asyncio
    async def test_invalid_swap_is_dropped(self, consumer, store):
        await consumer.handle(make_swap(price="0"))
        await consumer.handle(make_swap(volume="-1"))
        await consumer.handle(make_swap(ts=int(time.time()) + 3600))

        assert store.candles == {}
        assert consumer.rejected == 3

    @pytest.mark.asyncio
    async def test_pool_init_keeps_first_seen(self, consumer, store):
        await consumer.handle(PoolInitEvent(signature="a", mint=MINT, timestamp=100, liq_usd=Decimal("5000")))
        await consumer.handle(PoolInitEvent(signature="b", mint=MINT, timestamp=900, liq_usd=None))

        pool = store.pools[MINT]
        assert pool.first_seen_ts == 100
        assert pool.liq_usd == Decimal("5000")
        assert consumer.pools_upserted == 2

    @pytest.mark.asyncio
    async def test_run_survives_store_errors(self):
        store = AsyncMock()
        store.upsert_candle.side_effect = [PersistenceError("down"), None]
        queue: asyncio.Queue = asyncio.Queue()
        consumer = EventConsumer(queue, CandleAggregator(store, 60), store)

        await queue.put(make_swap(signature="a"))
        await queue.put(make_swap(signature="b", price="1.6"))
        task = asyncio.create_task(consumer.run())
        await asyncio.wait_for(queue.join(), timeout=1)
        consumer.stop()
        task.cancel()

        assert consumer.failed == 1
        assert consumer.swaps_ingested == 1
        assert store.upsert_candle.await_count == 2

    @pytest.mark.asyncio
    async def test_run_survives_unexpected_errors(self):
        store = AsyncMock()
        store.upsert_candle.side_effect = [RuntimeError("PostgreSQL store not connected"), None]
        queue: asyncio.Queue = asyncio.Queue()
        consumer = EventConsumer(queue, CandleAggregator(store, 60), store)

        await queue.put(make_swap(signature="a"))
        await queue.put(make_swap(signature="b", price="1.6"))
        task = asyncio.create_task(consumer.run())
        await asyncio.wait_for(queue.join(), timeout=1)
        consumer.stop()
        task.cancel()

        assert not task.done() or task.cancelled(), "consumer task must not die on a bad event"
        assert consumer.failed == 1
        assert consumer.swaps_ingested == 1

    def test_stats_include_validator(self, consumer):
        stats = consumer.get_stats()

        assert stats["swaps_ingested"] == 0
        assert "invalid_count" in stats
