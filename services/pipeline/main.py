"""
Signal Pipeline Service - Entry Point

Runs in one event loop:
- Event source (Helius logsSubscribe) → queue → EventConsumer → candles / pools
- Gap filler (60s), signal detection (60s), signal dispatch (20s)
- Catalog refresh (48h), maintenance (1h), activity report (10 min)

Steady-state errors never stop the process: per-item errors are logged,
per-cycle errors are logged and sent as Telegram alerts. Only a store that
cannot be initialized at startup is fatal.
"""

import asyncio
import logging
import os
import signal
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent.parent
sys.path.insert(0, str(project_root))

from config.settings import get_settings
from core.exceptions import PersistenceError
from factory.client_factory import (
    create_event_source,
    create_notifier,
    create_price_client,
    create_quote_client,
    create_signal_store,
)
from services.gap_filler.filler import GapFiller
from services.maintenance import ActivityReporter, CatalogRefresher, MaintenanceJob
from services.market_data_ingestion.aggregator import CandleAggregator
from services.market_data_ingestion.event_consumer import EventConsumer
from services.scheduler import PeriodicJob
from services.signal_service import SignalDetector, SignalDispatcher

# Configure logging
os.makedirs("data/logs", exist_ok=True)

_fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_console = logging.StreamHandler(sys.stdout)
_console.setLevel(logging.INFO)
_console.setFormatter(logging.Formatter(_fmt))

_file = RotatingFileHandler(
    "data/logs/signal_pipeline_errors.log",
    maxBytes=5 * 1024 * 1024,  # 5MB
    backupCount=3,
)
_file.setLevel(logging.ERROR)
_file.setFormatter(logging.Formatter(_fmt))

logging.basicConfig(level=get_settings().LOG_LEVEL, handlers=[_console, _file])
logger = logging.getLogger(__name__)


class PipelineService:
    """
    Wires every component and owns their lifecycle

    Flow:
    1. Initialize the store (fatal after the configured attempts)
    2. Connect HTTP clients
    3. Start event source, consumer and periodic jobs
    4. On SIGINT/SIGTERM: cancel tasks, close clients
    """

    def __init__(self):
        self.settings = get_settings()
        self.running = False
        self.exit_code = 0
        self.tasks: list[asyncio.Task] = []

        logger.info("🔧 Initializing clients...")
        self.store = create_signal_store()
        self.prices = create_price_client()
        self.quotes = create_quote_client()
        self.notifier = create_notifier()

        self.queue: asyncio.Queue = asyncio.Queue(maxsize=self.settings.EVENT_QUEUE_SIZE)
        self.event_source = create_event_source(self.queue, self.quotes)
        self.aggregator = CandleAggregator(self.store, self.settings.CANDLE_INTERVAL_SECONDS)
        self.consumer = EventConsumer(self.queue, self.aggregator, self.store)

        self.gap_filler = GapFiller(self.store, self.prices)
        self.detector = SignalDetector(self.store)
        self.dispatcher = SignalDispatcher(self.store, self.quotes, self.notifier)
        self.catalog = CatalogRefresher(self.store, self.prices)
        self.maintenance = MaintenanceJob(self.store)
        self.activity = ActivityReporter(
            self.notifier, [self.event_source.get_stats, self.consumer.get_stats]
        )
        self.jobs = self._build_jobs()

    def _build_jobs(self) -> list[PeriodicJob]:
        s = self.settings
        delay = s.SCHEDULER_INITIAL_DELAY_SECONDS
        return [
            PeriodicJob("catalog_refresh", s.CATALOG_REFRESH_INTERVAL_SECONDS, self.catalog.run_cycle, 0, self.alert),
            PeriodicJob("gap_filler", s.GAP_FILL_INTERVAL_SECONDS, self.gap_filler.run_cycle, delay, self.alert),
            PeriodicJob("signal_detection", s.DETECTION_INTERVAL_SECONDS, self.detector.run_cycle, delay, self.alert),
            PeriodicJob("signal_dispatch", s.DISPATCH_INTERVAL_SECONDS, self.dispatcher.run_cycle, delay, self.alert),
            PeriodicJob("maintenance", s.MAINTENANCE_INTERVAL_SECONDS, self.maintenance.run_cycle, delay, self.alert),
            PeriodicJob("activity_report", s.ACTIVITY_REPORT_INTERVAL_SECONDS, self.activity.run_cycle, s.ACTIVITY_REPORT_INTERVAL_SECONDS, self.alert),
        ]

    async def alert(self, job_name: str, error: Exception) -> None:
        """Operational alert for a failed cycle"""
        await self.notifier.send_alert(f"{job_name} cycle failed", f"{type(error).__name__}: {error}")

    async def start(self):
        """Start every component and block until a shutdown signal"""
        logger.info("=" * 60)
        logger.info("🚀 DEX Signal Pipeline starting")
        logger.info("=" * 60)
        logger.info(f"  Environment: {self.settings.ENVIRONMENT}")
        logger.info(f"  Store: {self.settings.STORE_BACKEND}")
        logger.info(f"  Candle interval: {self.settings.CANDLE_INTERVAL_SECONDS}s")
        for job in self.jobs:
            logger.info(f"  {job.name}: every {job.interval}s")
        logger.info("=" * 60)

        self.running = True

        try:
            await self.store.initialize()
            logger.info("✅ Store initialized")

            await self.prices.connect()
            await self.quotes.connect()
            await self.notifier.connect()
            logger.info("✅ HTTP clients connected")

            self.tasks = [
                asyncio.create_task(self.event_source.start(), name="event_source"),
                asyncio.create_task(self.consumer.run(), name="event_consumer"),
                *(asyncio.create_task(job.run(), name=job.name) for job in self.jobs),
            ]

            while self.running:
                await asyncio.sleep(1)
                for task in self.tasks:
                    if task.done() and not task.cancelled() and task.exception():
                        logger.error(f"❌ Task {task.get_name()} died: {task.exception()}")
                        self.exit_code = 1
                        self.running = False

        except PersistenceError as e:
            logger.error(f"❌ Store initialization failed, exiting: {e}")
            self.exit_code = 1
        except KeyboardInterrupt:
            logger.info("⚠️ Received interrupt signal")
        finally:
            await self.stop()

    async def stop(self):
        """Graceful shutdown"""
        logger.info("🛑 Stopping Signal Pipeline...")
        self.running = False

        for job in self.jobs:
            job.stop()
        self.consumer.stop()
        await self.event_source.stop()

        for task in self.tasks:
            task.cancel()
        await asyncio.gather(*self.tasks, return_exceptions=True)

        await self.prices.close()
        await self.quotes.close()
        await self.notifier.close()
        await self.store.close()

        logger.info("✅ Signal Pipeline stopped")


def signal_handler(service):
    """Handle SIGINT/SIGTERM"""

    def handler(signum, frame):
        logger.info(f"Received signal {signum}")
        service.running = False

    return handler


async def main() -> int:
    """Main entry point (returns the process exit code)"""
    service = PipelineService()

    signal.signal(signal.SIGINT, signal_handler(service))
    signal.signal(signal.SIGTERM, signal_handler(service))

    await service.start()
    return service.exit_code


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Goodbye!")
