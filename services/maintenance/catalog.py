"""
Catalog refresher - keeps tracked_tokens in sync with the market data source

Flow:
1. Token catalog (cached 24h, stale-on-error) filtered to the network
2. Top N markets by market cap
3. Join on coin id → TrackedToken rows with price, volume, market cap, FDV
4. Push FDV into pools that already exist (never creates pools)
"""

import logging
import time
from collections.abc import Callable

from config.settings import get_settings
from core.interfaces.database import BaseSignalStore
from core.interfaces.market_data import BasePriceSource
from core.models.market_data import TrackedToken
from core.utils.decimals import to_decimal

logger = logging.getLogger(__name__)


class CatalogRefresher:
    """Refresh the tracked token set"""

    def __init__(
        self,
        store: BaseSignalStore,
        prices: BasePriceSource,
        top_tokens: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = get_settings()
        self.store = store
        self.prices = prices
        self.top_tokens = top_tokens or self.settings.CATALOG_TOP_TOKENS
        self._clock = clock

    async def build_tokens(self) -> list[TrackedToken]:
        """Catalog entries that are among the top markets, enriched with market data"""
        catalog = await self.prices.get_token_catalog()
        markets = await self.prices.get_top_markets(self.top_tokens)
        by_id = {token.coin_id: token for token in catalog}
        now_ts = int(self._clock())

        tokens = []
        for row in markets:
            token = by_id.get(row.get("id"))
            if token is None:
                continue
            tokens.append(
                token.model_copy(
                    update={
                        "price": to_decimal(row.get("current_price")),
                        "volume": to_decimal(row.get("total_volume")),
                        "market_cap": to_decimal(row.get("market_cap")),
                        "fdv": to_decimal(row.get("fully_diluted_valuation")),
                        "updated_ts": now_ts,
                    }
                )
            )
        return tokens

    async def run_cycle(self) -> dict[str, int]:
        """
        Returns:
            {"tracked": rows upserted, "pools_updated": existing pools whose FDV changed}
        """
        tokens = await self.build_tokens()
        tracked = await self.store.upsert_tracked_tokens(tokens)

        pools_updated = 0
        for token in tokens:
            if token.fdv is None:
                continue
            if await self.store.update_pool_metrics(token.mint, fdv_usd=token.fdv):
                pools_updated += 1

        logger.info(f"✅ Catalog refresh: tracked={tracked} pools_updated={pools_updated}")
        return {"tracked": tracked, "pools_updated": pools_updated}
