"""
Signal Dispatcher - Stage B of the signal cascade

For every unnotified signal, oldest first:
1. Pool liquidity >= minimum and FDV <= maximum
2. Price impact of the test notional <= maximum (quote must exist)
3. Deliver the notification, then mark the signal notified

Rejected signals stay unnotified and are retried every cycle until they pass
or retention removes them. If delivery succeeds but the mark fails, the next
cycle may deliver a duplicate.
"""

import logging

from config.settings import get_settings
from core.exceptions import PipelineError
from core.interfaces.database import BaseSignalStore
from core.interfaces.market_data import BaseQuoteSource
from core.interfaces.notifier import BaseNotifier
from core.models.signals import DispatchReport, Signal, Skipped, SkipReason
from domain.signals.rules import SignalThresholds, check_pool, check_price_impact

logger = logging.getLogger(__name__)


class SignalDispatcher:
    """Stage B sweep"""

    def __init__(
        self,
        store: BaseSignalStore,
        quotes: BaseQuoteSource,
        notifier: BaseNotifier,
        thresholds: SignalThresholds | None = None,
    ):
        self.settings = get_settings()
        self.store = store
        self.quotes = quotes
        self.notifier = notifier
        self.thresholds = thresholds or SignalThresholds.from_settings(self.settings)

    async def dispatch(self, signal: Signal) -> Signal | Skipped:
        """
        Filter and deliver one signal

        Returns:
            The signal (marked notified) or the Skipped outcome
        """
        pool = await self.store.get_pool(signal.mint)
        rejected = check_pool(pool, self.thresholds)
        if rejected is not None:
            return rejected

        try:
            impact = await self.quotes.get_price_impact(
                signal.mint, self.thresholds.price_impact_test_amount_usd
            )
        except PipelineError as e:
            return Skipped(reason=SkipReason.QUOTE_UNAVAILABLE, detail=str(e))

        rejected = check_price_impact(impact, self.thresholds)
        if rejected is not None:
            return rejected

        if not await self.notifier.send_buy_signal(signal, pool, impact):
            return Skipped(reason=SkipReason.DELIVERY_FAILED)

        if not await self.store.mark_signal_notified(signal.id):
            logger.warning(f"⚠️ Signal #{signal.id} was delivered but already marked notified")
        return signal.model_copy(update={"notified": True})

    async def run_cycle(self) -> DispatchReport:
        """
        One dispatch sweep (FIFO by signal time)

        Returns:
            DispatchReport (pending / delivered / skipped by reason / failed)
        """
        signals = await self.store.get_unnotified_signals()
        report = DispatchReport(pending=len(signals))

        for signal in signals:
            try:
                outcome = await self.dispatch(signal)
            except PipelineError as e:
                report.failed += 1
                logger.error(f"✗ Dispatch failed for signal #{signal.id} ({signal.mint}): {e}")
                continue

            if isinstance(outcome, Skipped):
                report.count_skip(outcome)
                logger.info(f"⏭️ Signal #{signal.id} {signal.mint} held back: {outcome}")
            else:
                report.delivered += 1

        if report.pending:
            logger.info(
                f"✅ Dispatch: pending={report.pending} delivered={report.delivered} "
                f"failed={report.failed} skipped={report.skipped}"
            )
        return report
