"""Factory package - Dependency injection for provider-agnostic code"""

from .client_factory import (
    create_event_source,
    create_notifier,
    create_price_client,
    create_quote_client,
    create_signal_store,
)

__all__ = [
    "create_signal_store",
    "create_price_client",
    "create_quote_client",
    "create_notifier",
    "create_event_source",
]
