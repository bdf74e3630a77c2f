"""
Data quality validator for swap events

Validates:
- Price and volume sanity checks
- Timestamp validation
- Spike detection (logged, never rejected)

The candle aggregator does not validate; invalid swaps are dropped here
before they reach it.
"""

import logging
import time
from decimal import Decimal

from core.models.market_data import SwapEvent

logger = logging.getLogger(__name__)


class SwapValidator:
    """
    Real-time swap validation

    Features:
    - Rejects non-positive prices and volumes
    - Rejects block times in the future (clock skew allowance)
    - Logs price spikes between consecutive swaps of the same mint
    """

    def __init__(self, spike_threshold_pct: float = 50.0, max_clock_skew_seconds: int = 60):
        """
        Args:
            spike_threshold_pct: Jump between consecutive swaps that is logged as a spike
            max_clock_skew_seconds: Allowed block-time lead over the local clock
        """
        self.spike_threshold_pct = spike_threshold_pct
        self.max_clock_skew_seconds = max_clock_skew_seconds
        self.last_prices: dict[str, Decimal] = {}
        self.spike_count = 0
        self.invalid_count = 0

    def validate_swap(self, swap: SwapEvent, now: float | None = None) -> tuple[bool, str | None]:
        """
        Validate one swap

        Returns:
            (is_valid, error_message)
            - (True, None) if valid
            - (False, "error reason") if invalid

        Example:
            >>> validator = SwapValidator()
            >>> is_valid, error = validator.validate_swap(swap)
            >>> if not is_valid:
            ...     logger.debug(f"Dropped swap: {error}")
        """
        if swap.price <= 0:
            self.invalid_count += 1
            return False, f"Invalid price: {swap.price} (must be > 0)"

        if swap.volume_usd <= 0:
            self.invalid_count += 1
            return False, f"Invalid volume: {swap.volume_usd} (must be > 0)"

        now = time.time() if now is None else now
        if swap.timestamp > now + self.max_clock_skew_seconds:
            self.invalid_count += 1
            return False, f"Future timestamp: {swap.timestamp} (now: {int(now)})"

        last_price = self.last_prices.get(swap.mint)
        if last_price is not None:
            change_pct = abs((swap.price - last_price) / last_price * 100)
            if change_pct > self.spike_threshold_pct:
                self.spike_count += 1
                logger.warning(
                    f"⚠️ Price spike: {swap.mint[:8]}... {float(change_pct):.1f}% "
                    f"({float(last_price):.8g} → {float(swap.price):.8g})"
                )

        self.last_prices[swap.mint] = swap.price
        return True, None

    def get_stats(self) -> dict[str, int]:
        return {
            "spike_count": self.spike_count,
            "invalid_count": self.invalid_count,
            "mints_tracked": len(self.last_prices),
        }
