"""
Rate-limited HTTP client for external providers

Handles:
- Minimum spacing between requests (RequestGate)
- Daily quota, rejected locally before sending (DailyQuota)
- Bounded retries: long backoff on HTTP 429, short backoff on other transient errors
- Translation of aiohttp errors into the pipeline error taxonomy
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

import aiohttp

from config.loader import ProviderConfig
from core.exceptions import (
    DataUnavailableError,
    RateLimitedError,
    TransientNetworkError,
)
from providers.http.rate_limit import DailyQuota, RequestGate

logger = logging.getLogger(__name__)


class RateLimitedClient:
    """
    One client per provider

    The gate is held for the whole request including retries, so a provider
    never has two requests in flight even when several periodic jobs share it.

    Example:
        >>> client = RateLimitedClient(get_provider_config("jupiter"))
        >>> await client.connect()
        >>> quote = await client.get("/quote", {"inputMint": ..., "outputMint": ..., "amount": 10})
    """

    def __init__(
        self,
        config: ProviderConfig,
        headers: dict[str, str] | None = None,
        quota: DailyQuota | None = None,
        gate: RequestGate | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        secrets: list[str] | None = None,
    ):
        self.config = config
        self.name = config.name
        self.limits = config.rate_limits
        self.headers = headers or {}
        self.quota = quota or DailyQuota(config.name, self.limits.daily_quota)
        self.gate = gate or RequestGate(self.limits.min_interval_seconds, sleep=sleep)
        self._sleep = sleep
        self._secrets = [s for s in (secrets or []) if s]
        self.session: aiohttp.ClientSession | None = None

        self.request_count = 0
        self.error_count = 0

    async def connect(self) -> None:
        """Open the HTTP session"""
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                headers=self.headers,
                timeout=aiohttp.ClientTimeout(total=self.limits.timeout_seconds),
            )
            logger.info(f"✓ {self.name} client ready ({self._redact(self.config.base_url)})")

    async def close(self) -> None:
        """Close the HTTP session"""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None

    async def get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        return await self.request("GET", endpoint, params=params)

    async def post(
        self, endpoint: str, json: Any = None, params: dict[str, Any] | None = None
    ) -> Any:
        return await self.request("POST", endpoint, params=params, json=json)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """
        Send a request under the provider's pacing, quota and retry policy

        Returns:
            Parsed JSON body

        Raises:
            QuotaExceededError: Daily quota reached (no network call made)
            TransientNetworkError: Retries exhausted (last error)
            DataUnavailableError: Non-retryable 4xx response
        """
        async with self.gate:
            last_error: TransientNetworkError | None = None

            for attempt in range(self.limits.max_retries + 1):
                self.quota.check()
                await self.gate.wait_turn()
                self.quota.record()
                self.request_count += 1

                try:
                    return await self._send(method, endpoint, params, json)
                except RateLimitedError as e:
                    last_error = e
                    delay = self.limits.rate_limit_backoff_seconds
                except TransientNetworkError as e:
                    last_error = e
                    delay = self.limits.transient_backoff_seconds

                self.error_count += 1
                if attempt < self.limits.max_retries:
                    logger.warning(
                        f"⚠️ {self.name} {self._redact(endpoint)} failed ({last_error}), "
                        f"retry {attempt + 1}/{self.limits.max_retries} in {delay:.0f}s"
                    )
                    await self._sleep(delay)

            logger.error(f"✗ {self.name} {self._redact(endpoint)}: retries exhausted ({last_error})")
            raise last_error

    async def _send(
        self, method: str, endpoint: str, params: dict[str, Any] | None, json: Any
    ) -> Any:
        """Single HTTP round trip"""
        if self.session is None:
            raise RuntimeError(f"{self.name} client not connected")

        url = f"{self.config.base_url}{endpoint}"
        label = self._redact(f"{method} {endpoint}")
        try:
            async with self.session.request(method, url, params=params, json=json) as response:
                if response.status == 429:
                    raise RateLimitedError(f"{self.name}: HTTP 429 rate limited ({label})")
                if response.status >= 500:
                    raise TransientNetworkError(
                        f"{self.name}: HTTP {response.status}", status=response.status
                    )
                if response.status >= 400:
                    body = await response.text()
                    raise DataUnavailableError(
                        f"{self.name}: HTTP {response.status} for {label}: {self._redact(body[:200])}"
                    )
                return await response.json(content_type=None)

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransientNetworkError(f"{self.name} {label}: {self._redact(repr(e))}") from e

    def get_stats(self) -> dict[str, Any]:
        """Usage counters for activity reports"""
        return {
            "provider": self.name,
            "requests": self.request_count,
            "errors": self.error_count,
            "used_today": self.quota.used,
            "remaining_today": self.quota.remaining,
        }

    def _redact(self, text: str) -> str:
        """Mask secrets embedded in URLs (bot tokens, API keys)"""
        for secret in self._secrets:
            text = text.replace(secret, "***")
        return text
