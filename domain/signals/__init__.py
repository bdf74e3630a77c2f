"""
Signal rules module

Threshold evaluation for the two-stage signal cascade.
"""

from domain.signals.rules import (
    SignalThresholds,
    check_pool,
    check_price_impact,
    check_snapshot,
)

__all__ = ["SignalThresholds", "check_snapshot", "check_pool", "check_price_impact"]
