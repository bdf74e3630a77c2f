"""
Signal Service - two-stage signal cascade

1. SignalDetector (Stage A): indicator thresholds over stored candles → new signals
2. SignalDispatcher (Stage B): liquidity / FDV / price-impact filters → notification,
   then the single notified=false → true flip
"""

from services.signal_service.detector import SignalDetector
from services.signal_service.dispatcher import SignalDispatcher

__all__ = ["SignalDetector", "SignalDispatcher"]
