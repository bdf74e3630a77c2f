"""
CoinGecko REST client for reference prices and the token catalog

Endpoints:
- /simple/price   batched USD prices by symbol (<= 250 per call)
- /coins/list     full catalog with platform addresses (24h cache, stale-on-error)
- /coins/markets  market cap, FDV and volume for the largest tokens on a network
"""

import logging
import time
from typing import Any

from core.exceptions import DataUnavailableError, TransientNetworkError
from core.interfaces.market_data import BasePriceSource
from core.models.market_data import PriceQuote, TrackedToken
from core.utils.decimals import to_decimal
from providers.http.cache import TTLCache
from providers.http.client import RateLimitedClient

logger = logging.getLogger(__name__)

MAX_IDS_PER_CALL = 250

# CoinGecko category slug per network
NETWORK_CATEGORIES = {
    "solana": "solana-ecosystem",
}


class CoinGeckoClient(BasePriceSource):
    """
    CoinGecko implementation

    Prices are keyed by lowercase symbol. Symbols are not unique on CoinGecko,
    so the price for a mint is a best-effort match and only used as the last
    resort for gap filling.

    Example:
        >>> client = CoinGeckoClient(http, network="solana")
        >>> prices = await client.get_prices_by_symbol(["BONK", "WIF"])
        >>> prices["bonk"].usd
        Decimal('0.0000213')
    """

    def __init__(
        self,
        http: RateLimitedClient,
        network: str = "solana",
        catalog_cache: TTLCache | None = None,
    ):
        self.http = http
        self.network = network
        self.catalog_cache = catalog_cache or TTLCache(http.config.cache_ttl_seconds)

    async def connect(self) -> None:
        await self.http.connect()

    async def close(self) -> None:
        await self.http.close()

    async def get_prices_by_symbol(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """
        USD price, 24h volume and market cap per symbol

        A failing batch is logged and skipped; QuotaExceededError stops the whole call.

        Args:
            symbols: Token symbols (any case, duplicates allowed)

        Returns:
            Dict keyed by lowercase symbol
        """
        unique = sorted({s.lower() for s in symbols if s})
        prices: dict[str, PriceQuote] = {}

        for start in range(0, len(unique), MAX_IDS_PER_CALL):
            batch = unique[start : start + MAX_IDS_PER_CALL]
            try:
                data = await self.http.get(
                    "/simple/price",
                    {
                        "symbols": ",".join(batch),
                        "vs_currencies": "usd",
                        "include_24hr_vol": "true",
                        "include_market_cap": "true",
                    },
                )
            except (TransientNetworkError, DataUnavailableError) as e:
                logger.error(f"✗ CoinGecko price batch {start // MAX_IDS_PER_CALL + 1} failed: {e}")
                continue

            for symbol, entry in (data or {}).items():
                usd = entry.get("usd") if isinstance(entry, dict) else None
                if usd is None:
                    continue
                prices[symbol.lower()] = PriceQuote(
                    usd=to_decimal(usd),
                    volume_24h=to_decimal(entry.get("usd_24h_vol")),
                    market_cap=to_decimal(entry.get("usd_market_cap")),
                )

        logger.info(f"📊 CoinGecko prices: {len(prices)}/{len(unique)} symbols resolved")
        return prices

    async def get_token_catalog(self) -> list[TrackedToken]:
        """Every catalog entry with an address on the configured network"""
        return await self.catalog_cache.get_or_load(f"catalog:{self.network}", self._fetch_catalog)

    async def _fetch_catalog(self) -> list[TrackedToken]:
        data = await self.http.get("/coins/list", {"include_platform": "true"})
        if not isinstance(data, list):
            raise DataUnavailableError("CoinGecko catalog: unexpected response shape")

        now = int(time.time())
        tokens = []
        for coin in data:
            mint = (coin.get("platforms") or {}).get(self.network)
            if not mint:
                continue
            tokens.append(
                TrackedToken(
                    coin_id=coin["id"],
                    mint=mint,
                    symbol=coin.get("symbol", ""),
                    name=coin.get("name", ""),
                    network=self.network,
                    updated_ts=now,
                )
            )

        logger.info(f"✓ CoinGecko catalog: {len(tokens)} {self.network} tokens")
        return tokens

    async def get_top_markets(self, limit: int) -> list[dict[str, Any]]:
        """
        Largest tokens on the network by market cap

        Returns:
            Rows with id, symbol, current_price, total_volume, market_cap,
            fully_diluted_valuation (as returned by CoinGecko)
        """
        category = NETWORK_CATEGORIES.get(self.network)
        if category is None:
            raise DataUnavailableError(f"No CoinGecko category for network '{self.network}'")

        rows: list[dict[str, Any]] = []
        page = 1
        while len(rows) < limit:
            data = await self.http.get(
                "/coins/markets",
                {
                    "vs_currency": "usd",
                    "category": category,
                    "order": "market_cap_desc",
                    "per_page": MAX_IDS_PER_CALL,
                    "page": page,
                },
            )
            if not data:
                break
            rows.extend(data)
            if len(data) < MAX_IDS_PER_CALL:
                break
            page += 1

        return rows[:limit]
