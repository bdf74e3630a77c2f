"""
Abstract interface for outbound notifications
"""

from abc import ABC, abstractmethod
from typing import Any

from core.models.market_data import Pool
from core.models.signals import Signal


class BaseNotifier(ABC):
    """
    Fire-and-forget notification sink

    Methods return True on delivery and False on failure; they never raise,
    and failures are not retried synchronously.

    Implementations:
    - TelegramNotifier (providers/telegram/notifier.py)
    """

    async def connect(self) -> None:
        """Open connections (no-op by default)"""

    async def close(self) -> None:
        """Close connections (no-op by default)"""

    @abstractmethod
    async def send_buy_signal(self, signal: Signal, pool: Pool, price_impact: float) -> bool:
        """Deliver a buy signal"""

    @abstractmethod
    async def send_alert(self, title: str, message: str) -> bool:
        """Operational alert (failed cycle, startup problems)"""

    @abstractmethod
    async def send_activity_report(self, stats: dict[str, Any]) -> bool:
        """Periodic event-source activity summary"""
