"""
Validators module

Data quality validators for swap events
"""

from core.validators.market_data import SwapValidator

__all__ = ["SwapValidator"]
