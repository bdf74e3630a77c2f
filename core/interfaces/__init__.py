"""Interfaces module - Abstract base classes for stores, sources and sinks"""

from .database import BaseSignalStore
from .indicators import BaseIndicator
from .market_data import BaseEventSource, BasePriceSource, BaseQuoteSource, MarketEvent
from .notifier import BaseNotifier

__all__ = [
    "BaseSignalStore",
    "BaseIndicator",
    "BaseEventSource",
    "BasePriceSource",
    "BaseQuoteSource",
    "BaseNotifier",
    "MarketEvent",
]
