#!/usr/bin/env python3
"""
Load the token catalog (CoinGecko → tracked_tokens)

Runs one catalog refresh outside the service: fetch the network's token
catalog, join it with the top markets, upsert tracked_tokens and push FDV
into pools that already exist.

Usage:
    python scripts/load_token_catalog.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from config.settings import get_settings
from factory.client_factory import create_price_client, create_signal_store
from services.maintenance.catalog import CatalogRefresher

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
logger = logging.getLogger(__name__)


async def main():
    """Main entry point"""
    settings = get_settings()
    logger.info(
        f"Loading top {settings.CATALOG_TOP_TOKENS} {settings.CATALOG_NETWORK} tokens from CoinGecko..."
    )

    store = create_signal_store()
    prices = create_price_client()
    await store.initialize(recreate_signals=False)
    await prices.connect()

    try:
        refresher = CatalogRefresher(store, prices)
        result = await refresher.run_cycle()

        tokens = await store.get_tracked_tokens()
        ranked = sorted(tokens, key=lambda t: t.market_cap or 0, reverse=True)
        logger.info("\nSample tokens:")
        for token in ranked[:10]:
            logger.info(f"  {token.symbol.upper():10s} {token.mint} (mcap {token.market_cap})")

    finally:
        await prices.close()
        await store.close()

    logger.info(
        f"\n✅ Done! {result['tracked']} tokens tracked, {result['pools_updated']} pools updated"
    )


if __name__ == "__main__":
    asyncio.run(main())
