#!/usr/bin/env python3
"""
Roll up 1m candles into ohlcv_1h and apply retention

Same work as the hourly maintenance job, for manual runs (e.g. after the
service was down for a while).

Usage:
    python scripts/rollup_candles.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from factory.client_factory import create_signal_store
from services.maintenance.retention import MaintenanceJob

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def main():
    """Main entry point"""
    store = create_signal_store()
    await store.initialize(recreate_signals=False)

    try:
        report = await MaintenanceJob(store).run_cycle()
    finally:
        await store.close()

    logger.info("Deleted rows:")
    logger.info(f"  candles:  {report.candles_deleted}")
    logger.info(f"  signals:  {report.signals_deleted}")
    logger.info(f"  tokens:   {report.tokens_deleted}")
    logger.info(f"  rollups:  {report.rollups_deleted}")
    logger.info(f"\n✅ Done! {report.rolled_up} hourly candles written")


if __name__ == "__main__":
    asyncio.run(main())
