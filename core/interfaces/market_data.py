"""
Abstract base classes for on-chain market data sources

- BaseEventSource: subscription feed publishing typed events onto a queue
- BasePriceSource: batched reference prices and the token catalog
- BaseQuoteSource: swap quotes (price impact, USD price)
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from core.models.market_data import PoolInitEvent, PriceQuote, Quote, SwapEvent, TrackedToken

MarketEvent = SwapEvent | PoolInitEvent


class BaseEventSource(ABC):
    """
    Inbound event feed

    Publishes PoolInitEvent and SwapEvent onto an asyncio.Queue instead of
    invoking callbacks, so reconnection logic stays separate from aggregation.

    Implementations:
    - HeliusLogsSource (providers/helius/websocket.py)

    Example:
        >>> queue: asyncio.Queue = asyncio.Queue()
        >>> source = HeliusLogsSource(queue, resolver)
        >>> asyncio.create_task(source.start())
        >>> event = await queue.get()
    """

    def __init__(self, queue: "asyncio.Queue[MarketEvent]"):
        self.queue = queue
        self.running = False

    @abstractmethod
    async def start(self) -> None:
        """
        Run the subscription loop until stop() is called

        Reconnects on disconnect; never returns on a network error.
        """

    @abstractmethod
    async def stop(self) -> None:
        """Stop the loop and close the connection"""

    @abstractmethod
    def get_stats(self) -> dict[str, Any]:
        """Activity counters (messages, swaps, pool inits, errors)"""

    async def publish(self, event: MarketEvent) -> None:
        """Put an event on the queue (waits when the consumer is behind)"""
        await self.queue.put(event)


class BasePriceSource(ABC):
    """
    Reference price source

    Implementations:
    - CoinGeckoClient (providers/coingecko/rest_api.py)
    """

    async def connect(self) -> None:
        """Open connections (no-op by default)"""

    async def close(self) -> None:
        """Close connections (no-op by default)"""

    @abstractmethod
    async def get_prices_by_symbol(self, symbols: list[str]) -> dict[str, PriceQuote]:
        """
        Batched USD prices keyed by lowercase symbol

        Symbols that the source does not know are absent from the result.
        """

    @abstractmethod
    async def get_token_catalog(self) -> list[TrackedToken]:
        """Tokens with an address on the configured network (cached)"""

    @abstractmethod
    async def get_top_markets(self, limit: int) -> list[dict[str, Any]]:
        """Market rows (price, volume, market cap, FDV) for the largest tokens on the network"""


class BaseQuoteSource(ABC):
    """
    Swap quote source

    Implementations:
    - JupiterClient (providers/jupiter/rest_api.py)
    """

    async def connect(self) -> None:
        """Open connections (no-op by default)"""

    async def close(self) -> None:
        """Close connections (no-op by default)"""

    @abstractmethod
    async def get_quote(
        self, input_mint: str, output_mint: str, amount: int, slippage_bps: int = 50
    ) -> Quote:
        """
        Quote a swap of amount base units

        Raises:
            DataUnavailableError: No route / no quote
        """

    @abstractmethod
    async def get_price_impact(self, mint: str, amount_usd: float) -> float:
        """Price impact (percent) of buying mint with amount_usd of USDC"""

    @abstractmethod
    async def get_usd_price(self, mint: str, decimals: int, token_amount: float = 1.0) -> float:
        """USD price per token via a mint -> USDC quote"""
