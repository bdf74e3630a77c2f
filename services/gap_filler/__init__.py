"""
Gap Filler Service - keeps candle windows contiguous

Every cycle, each tracked token without a candle in the current bucket gets a
zero-volume synthetic candle at its last known price.
"""

from services.gap_filler.filler import GapFiller

__all__ = ["GapFiller"]
