"""
Jupiter quote client

Used for:
- Price-impact gating of buy signals (USDC -> token for a fixed notional)
- USD pricing of tokens via a token -> USDC round trip (e.g. SOL legs of swaps)

Quote API: https://quote-api.jup.ag/v6/quote
"""

import logging

from core.exceptions import DataUnavailableError
from core.interfaces.market_data import BaseQuoteSource
from core.models.market_data import Quote
from providers.http.client import RateLimitedClient

logger = logging.getLogger(__name__)

USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
USDC_DECIMALS = 6
SOL_MINT = "So11111111111111111111111111111111111111112"
SOL_DECIMALS = 9


class JupiterClient(BaseQuoteSource):
    """
    Jupiter v6 implementation

    Example:
        >>> jupiter = JupiterClient(http)
        >>> await jupiter.get_price_impact(mint, amount_usd=10)
        0.42
    """

    def __init__(self, http: RateLimitedClient, slippage_bps: int = 50):
        self.http = http
        self.slippage_bps = slippage_bps

    async def connect(self) -> None:
        await self.http.connect()

    async def close(self) -> None:
        await self.http.close()

    async def get_quote(
        self, input_mint: str, output_mint: str, amount: int, slippage_bps: int | None = None
    ) -> Quote:
        """
        Quote a swap

        Args:
            input_mint: Mint being sold
            output_mint: Mint being bought
            amount: Input amount in base units
            slippage_bps: Slippage tolerance (default 50 = 0.5%)

        Raises:
            DataUnavailableError: No route or malformed quote
        """
        if amount <= 0:
            raise ValueError(f"Quote amount must be positive, got {amount}")

        data = await self.http.get(
            "/quote",
            {
                "inputMint": input_mint,
                "outputMint": output_mint,
                "amount": int(amount),
                "slippageBps": slippage_bps if slippage_bps is not None else self.slippage_bps,
            },
        )
        if not data or "outAmount" not in data:
            raise DataUnavailableError(f"No Jupiter route {input_mint} -> {output_mint}")

        try:
            return Quote(
                input_mint=input_mint,
                output_mint=output_mint,
                in_amount=int(data.get("inAmount", amount)),
                out_amount=int(data["outAmount"]),
                # priceImpactPct is a fraction ("0.0123" == 1.23%)
                price_impact_pct=float(data.get("priceImpactPct") or 0) * 100,
            )
        except (TypeError, ValueError) as e:
            raise DataUnavailableError(f"Malformed Jupiter quote: {e}") from e

    async def get_price_impact(self, mint: str, amount_usd: float) -> float:
        """Price impact (percent) of buying mint with amount_usd USDC"""
        amount = int(amount_usd * 10**USDC_DECIMALS)
        quote = await self.get_quote(USDC_MINT, mint, amount)
        logger.debug(f"Price impact {mint[:8]}... ${amount_usd}: {quote.price_impact_pct:.3f}%")
        return quote.price_impact_pct

    async def get_usd_price(self, mint: str, decimals: int, token_amount: float = 1.0) -> float:
        """
        USD price per token via a mint -> USDC quote

        Raises:
            DataUnavailableError: No route or zero output
        """
        if mint == USDC_MINT:
            return 1.0

        amount = int(token_amount * 10**decimals)
        quote = await self.get_quote(mint, USDC_MINT, amount)
        if quote.out_amount <= 0:
            raise DataUnavailableError(f"Zero USDC output quoting {mint}")
        return quote.out_amount / 10**USDC_DECIMALS / token_amount
