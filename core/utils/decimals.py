"""
Decimal conversion helpers for provider payloads
"""

from decimal import Decimal
from typing import Any


def to_decimal(value: Any) -> Decimal | None:
    """
    Convert a JSON number to Decimal via its string form (None passes through)

    Example:
        >>> to_decimal(0.1)
        Decimal('0.1')
        >>> to_decimal(None) is None
        True
    """
    if value is None:
        return None
    return Decimal(str(value))
