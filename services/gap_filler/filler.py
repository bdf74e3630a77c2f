"""
Gap Filler - synthesizes candles for idle tokens

Fill price priority:
1. Close of the most recent stored candle (any age)
2. External reference price, looked up by symbol (batched, rate-limited)

Tokens without a positive price are skipped for the cycle. Inserts use
"insert if absent", so running twice in one bucket yields a single candle.
"""

import logging
import time
from collections.abc import Callable
from decimal import Decimal

from config.settings import get_settings
from core.exceptions import PipelineError, QuotaExceededError
from core.interfaces.database import BaseSignalStore
from core.interfaces.market_data import BasePriceSource
from core.models.market_data import Candle, TrackedToken
from core.models.signals import GapFillReport, Skipped, SkipReason
from core.utils.time_buckets import current_bucket

logger = logging.getLogger(__name__)


class GapFiller:
    """Fill the current bucket for every tracked token"""

    def __init__(
        self,
        store: BaseSignalStore,
        prices: BasePriceSource | None = None,
        interval_seconds: int | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = get_settings()
        self.store = store
        self.prices = prices
        self.interval_seconds = interval_seconds or self.settings.CANDLE_INTERVAL_SECONDS
        self._clock = clock

    async def run_cycle(self) -> GapFillReport:
        """
        One gap-fill pass over all tracked tokens

        Per-token failures are logged and counted; store failures while listing
        tokens propagate to the scheduler (cycle-level error).

        Returns:
            GapFillReport with processed / synthesized / price_fetched counts
        """
        tokens = await self.store.get_tracked_tokens()
        bucket = current_bucket(self.interval_seconds, self._clock())
        report = GapFillReport()
        needs_price: list[TrackedToken] = []

        for token in tokens:
            report.processed += 1
            try:
                if await self.store.has_candle(token.mint, bucket):
                    report.count_skip(Skipped(reason=SkipReason.CANDLE_EXISTS))
                    continue

                last_close = await self.store.get_last_close(token.mint)
                if last_close is not None and last_close > 0:
                    outcome = await self.fill(token.mint, bucket, last_close)
                    self._record(report, outcome)
                else:
                    needs_price.append(token)

            except PipelineError as e:
                report.failed += 1
                logger.error(f"✗ Gap fill failed for {token.symbol} ({token.mint}): {e}")

        if needs_price:
            await self._fill_from_reference_prices(needs_price, bucket, report)

        logger.info(
            f"✅ Gap fill @ {bucket}: processed={report.processed} "
            f"synthesized={report.synthesized} price_fetched={report.price_fetched} "
            f"failed={report.failed} skipped={report.skipped}"
        )
        return report

    async def _fill_from_reference_prices(
        self, tokens: list[TrackedToken], bucket: int, report: GapFillReport
    ) -> None:
        """Second pass for tokens with no stored candle"""
        quotes = {}
        if self.prices is not None:
            try:
                quotes = await self.prices.get_prices_by_symbol([t.symbol for t in tokens])
            except QuotaExceededError as e:
                logger.warning(f"⚠️ Reference prices skipped this cycle: {e}")

        for token in tokens:
            quote = quotes.get(token.symbol.lower())
            if quote is None or quote.usd <= 0:
                report.count_skip(Skipped(reason=SkipReason.NO_PRICE, detail=token.symbol))
                continue

            report.price_fetched += 1
            try:
                outcome = await self.fill(token.mint, bucket, quote.usd)
                self._record(report, outcome)
            except PipelineError as e:
                report.failed += 1
                logger.error(f"✗ Gap fill failed for {token.symbol} ({token.mint}): {e}")

    async def fill(self, mint: str, bucket: int, price: Decimal) -> Candle | Skipped:
        """
        Insert a zero-volume candle unless the bucket already has one

        Returns:
            The synthetic candle, or Skipped(CANDLE_EXISTS) if a trade won the race
        """
        candle = Candle.from_price(mint, bucket, Decimal(price), is_synthetic=True)
        if await self.store.insert_candle_if_absent(candle):
            return candle
        return Skipped(reason=SkipReason.CANDLE_EXISTS, detail="filled concurrently")

    @staticmethod
    def _record(report: GapFillReport, outcome: Candle | Skipped) -> None:
        if isinstance(outcome, Skipped):
            report.count_skip(outcome)
        else:
            report.synthesized += 1
