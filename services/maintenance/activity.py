"""Activity reporter - sends event-source counters through the notifier"""

import logging
from collections.abc import Callable
from typing import Any

from core.interfaces.notifier import BaseNotifier

logger = logging.getLogger(__name__)


class ActivityReporter:
    """
    Collects stats from every registered component and sends one report

    Example:
        >>> reporter = ActivityReporter(notifier, [source.get_stats, consumer.get_stats])
        >>> await reporter.run_cycle()
    """

    def __init__(self, notifier: BaseNotifier, collectors: list[Callable[[], dict[str, Any]]]):
        self.notifier = notifier
        self.collectors = collectors

    def collect(self) -> dict[str, Any]:
        stats: dict[str, Any] = {}
        for collector in self.collectors:
            stats.update(collector())
        return stats

    async def run_cycle(self) -> bool:
        stats = self.collect()
        logger.info(f"📊 Activity: {stats}")
        return await self.notifier.send_activity_report(stats)
