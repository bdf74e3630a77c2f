"""
Event consumer - drains the event-source queue

Routes:
1. SwapEvent     → validation → CandleAggregator.ingest
2. PoolInitEvent → store.upsert_pool (first_seen_ts kept on conflict)

A single consumer task processes events in queue order.
"""

import asyncio
import logging
from typing import Any

from core.exceptions import PipelineError
from core.interfaces.database import BaseSignalStore
from core.interfaces.market_data import MarketEvent
from core.models.market_data import PoolInitEvent, SwapEvent
from core.validators.market_data import SwapValidator
from services.market_data_ingestion.aggregator import CandleAggregator

logger = logging.getLogger(__name__)


class EventConsumer:
    """
    Queue consumer feeding the candle store

    Per-event failures are logged and counted; the loop keeps running.
    """

    def __init__(
        self,
        queue: "asyncio.Queue[MarketEvent]",
        aggregator: CandleAggregator,
        store: BaseSignalStore,
        validator: SwapValidator | None = None,
    ):
        self.queue = queue
        self.aggregator = aggregator
        self.store = store
        self.validator = validator or SwapValidator()
        self.running = False

        self.swaps_ingested = 0
        self.pools_upserted = 0
        self.rejected = 0
        self.failed = 0

    async def handle(self, event: MarketEvent) -> None:
        """Apply one event to the store"""
        if isinstance(event, SwapEvent):
            is_valid, error = self.validator.validate_swap(event)
            if not is_valid:
                self.rejected += 1
                logger.debug(f"Dropped swap {event.signature[:16]}...: {error}")
                return
            await self.aggregator.ingest(event.mint, event.price, event.volume_usd, event.timestamp)
            self.swaps_ingested += 1

        elif isinstance(event, PoolInitEvent):
            await self.store.upsert_pool(
                event.mint, event.timestamp, liq_usd=event.liq_usd, fdv_usd=event.fdv_usd
            )
            self.pools_upserted += 1
            logger.info(f"🆕 Pool observed: {event.mint} (liq={event.liq_usd})")

        else:
            logger.warning(f"Unknown event type: {type(event).__name__}")

    async def run(self) -> None:
        """Consume until stop()"""
        self.running = True
        logger.info("✓ Event consumer started")

        while self.running:
            event = await self.queue.get()
            try:
                await self.handle(event)
            except PipelineError as e:
                self.failed += 1
                logger.error(f"✗ Failed to apply {event.kind} {event.mint}: {e}")
            except Exception as e:
                self.failed += 1
                logger.error(f"✗ Unexpected error applying {event.kind} {event.mint}: {e}", exc_info=True)
            finally:
                self.queue.task_done()

    def stop(self) -> None:
        self.running = False

    def get_stats(self) -> dict[str, Any]:
        return {
            "swaps_ingested": self.swaps_ingested,
            "pools_upserted": self.pools_upserted,
            "swaps_rejected": self.rejected,
            "apply_failures": self.failed,
            **self.validator.get_stats(),
        }
