"""
TTL cache with stale-on-error refresh

Used for slowly changing reference data (the token catalog): a value younger
than the TTL is served directly; an expired value is refreshed, and if the
refresh fails the previous value is served instead of the error.
"""

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

from core.exceptions import PipelineError

logger = logging.getLogger(__name__)


class TTLCache:
    """
    Example:
        >>> cache = TTLCache(ttl_seconds=86400)
        >>> catalog = await cache.get_or_load("catalog", fetch_catalog)
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    def get(self, key: str) -> Any | None:
        """Fresh value or None"""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            return None
        return value

    def put(self, key: str, value: Any) -> None:
        self._entries[key] = (self._clock(), value)

    async def get_or_load(self, key: str, loader: Callable[[], Awaitable[Any]]) -> Any:
        """
        Serve a fresh value, or refresh via loader

        Raises:
            PipelineError: If the refresh fails and nothing was cached before
        """
        fresh = self.get(key)
        if fresh is not None:
            return fresh

        try:
            value = await loader()
        except PipelineError as e:
            entry = self._entries.get(key)
            if entry is None:
                raise
            age_h = (self._clock() - entry[0]) / 3600
            logger.warning(f"⚠️ Refresh of '{key}' failed ({e}), serving {age_h:.1f}h old value")
            return entry[1]

        self.put(key, value)
        return value
