"""
Market data models

Pydantic models for on-chain market data:
- Pool: AMM pool record, keyed by token mint
- Candle: OHLCV bucket for one mint
- SwapEvent / PoolInitEvent: normalized events from the event source
- TrackedToken: token catalog entry (CoinGecko snapshot)
- Quote / PriceQuote: responses from quote and price sources
"""

from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field


class Pool(BaseModel):
    """
    AMM pool record

    first_seen_ts is set once on the first pool-init observation and never changes.
    """

    mint: str = Field(description="Token mint address")
    first_seen_ts: int = Field(description="First observation (epoch seconds)")
    liq_usd: Decimal | None = Field(default=None, description="Last known liquidity (USD)")
    fdv_usd: Decimal | None = Field(default=None, description="Last known fully diluted valuation (USD)")

    def age_seconds(self, now_ts: int) -> int:
        """Seconds since the pool was first seen"""
        return now_ts - self.first_seen_ts


class Candle(BaseModel):
    """
    OHLCV candlestick

    One row per (mint, bucket_ts). Synthetic candles come from the gap filler
    and always carry zero volume.
    """

    mint: str = Field(description="Token mint address")
    bucket_ts: int = Field(description="Bucket start (epoch seconds)")
    open: Decimal = Field(description="Opening price")
    high: Decimal = Field(description="Highest price in bucket")
    low: Decimal = Field(description="Lowest price in bucket")
    close: Decimal = Field(description="Closing price (latest trade)")
    volume: Decimal = Field(default=Decimal(0), description="Traded volume (USD)")
    is_synthetic: bool = Field(default=False, description="Gap-filled candle")

    @classmethod
    def from_price(
        cls, mint: str, bucket_ts: int, price: Decimal, volume: Decimal = Decimal(0), **kwargs
    ) -> "Candle":
        """Single-price candle (first trade in a bucket, or a gap fill)"""
        return cls(
            mint=mint,
            bucket_ts=bucket_ts,
            open=price,
            high=price,
            low=price,
            close=price,
            volume=volume,
            **kwargs,
        )

    def merge(self, price: Decimal, volume: Decimal) -> "Candle":
        """Merge one trade into this candle (open is kept, close is the new price)"""
        return self.model_copy(
            update={
                "high": max(self.high, price),
                "low": min(self.low, price),
                "close": price,
                "volume": self.volume + volume,
            }
        )


class SwapEvent(BaseModel):
    """Normalized swap, ready for candle aggregation"""

    kind: Literal["swap"] = "swap"
    signature: str = Field(description="Transaction signature")
    mint: str = Field(description="Base token mint")
    price: Decimal = Field(description="Price in USD per base token")
    volume_usd: Decimal = Field(description="Swap notional (USD)")
    timestamp: int = Field(description="Block time (epoch seconds)")
    program: str | None = Field(default=None, description="AMM program that emitted the logs")


class PoolInitEvent(BaseModel):
    """Normalized pool initialization"""

    kind: Literal["pool_init"] = "pool_init"
    signature: str = Field(description="Transaction signature")
    mint: str = Field(description="Base token mint")
    timestamp: int = Field(description="Block time (epoch seconds)")
    liq_usd: Decimal | None = Field(default=None, description="Estimated initial liquidity")
    fdv_usd: Decimal | None = Field(default=None)
    program: str | None = Field(default=None)


class TrackedToken(BaseModel):
    """Token catalog entry used by the gap filler"""

    coin_id: str = Field(description="CoinGecko coin id")
    mint: str = Field(description="Solana mint address")
    symbol: str
    name: str = ""
    network: str = "solana"
    price: Decimal | None = None
    volume: Decimal | None = None
    market_cap: Decimal | None = None
    fdv: Decimal | None = None
    updated_ts: int = Field(default=0, description="Catalog snapshot time (epoch seconds)")


class PriceQuote(BaseModel):
    """Reference price from the market data source"""

    usd: Decimal
    volume_24h: Decimal | None = None
    market_cap: Decimal | None = None


class Quote(BaseModel):
    """Swap quote from the quoting source"""

    input_mint: str
    output_mint: str
    in_amount: int = Field(description="Input amount (base units)")
    out_amount: int = Field(description="Output amount (base units)")
    price_impact_pct: float = Field(description="Price impact in percent (1.0 == 1%)")
