"""
Helius WebSocket event source

Handles:
- logsSubscribe for every watched AMM program (commitment "confirmed")
- Keyword classification of log lines (pool init / swap)
- Signature resolution through the enhanced-transactions API
- Publishing typed events onto the ingestion queue
- Auto-reconnect on disconnect
"""

import asyncio
import json
import logging
import time
from decimal import Decimal
from typing import Any

from websockets import connect

from config.settings import get_settings
from core.exceptions import DataUnavailableError, PipelineError
from core.interfaces.market_data import BaseEventSource, BaseQuoteSource, MarketEvent
from providers.helius.parser import (
    EventKind,
    build_pool_init,
    build_swap,
    classify_logs,
    needs_sol_price,
    parse_logs_notification,
)
from providers.http.cache import TTLCache
from providers.http.client import RateLimitedClient
from providers.jupiter.rest_api import SOL_DECIMALS, SOL_MINT

logger = logging.getLogger(__name__)


class HeliusTransactionResolver:
    """
    Resolves a signature into a typed event

    SOL-quoted swaps are priced with a SOL -> USDC quote, cached for 60s.
    """

    def __init__(
        self,
        http: RateLimitedClient,
        api_key: str | None,
        quotes: BaseQuoteSource,
        sol_price_cache: TTLCache | None = None,
    ):
        self.http = http
        self.api_key = api_key
        self.quotes = quotes
        self.sol_price_cache = sol_price_cache or TTLCache(ttl_seconds=60)

    async def fetch_transaction(self, signature: str) -> dict[str, Any]:
        """Enhanced transaction for a signature"""
        data = await self.http.post(
            "/transactions", json={"transactions": [signature]}, params={"api-key": self.api_key or ""}
        )
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            raise DataUnavailableError(f"Helius returned no transaction for {signature}")
        return data[0]

    async def sol_usd(self) -> Decimal:
        async def load() -> Decimal:
            price = await self.quotes.get_usd_price(SOL_MINT, SOL_DECIMALS)
            return Decimal(str(price))

        return await self.sol_price_cache.get_or_load("sol_usd", load)

    async def resolve(
        self, signature: str, kind: EventKind, program: str | None = None
    ) -> MarketEvent | None:
        """
        Fetch and normalize a transaction

        Returns:
            SwapEvent / PoolInitEvent, or None when transfers are ambiguous

        Raises:
            PipelineError: Lookup or pricing failed
        """
        tx = await self.fetch_transaction(signature)
        sol_usd = await self.sol_usd() if needs_sol_price(tx) else None

        if kind is EventKind.POOL_INIT:
            return build_pool_init(tx, sol_usd, program)
        return build_swap(tx, sol_usd, program)


class HeliusLogsSource(BaseEventSource):
    """
    Helius logsSubscribe implementation

    The socket reader only classifies; resolution runs in a separate worker
    fed by a bounded internal queue, so slow lookups never stall the socket.
    A single worker keeps events in arrival order.

    WebSocket Documentation:
    https://docs.helius.dev/solana-rpc-nodes/websocket
    """

    def __init__(
        self,
        queue: "asyncio.Queue[MarketEvent]",
        resolver: HeliusTransactionResolver,
        programs: dict[str, str] | None = None,
        url: str | None = None,
    ):
        super().__init__(queue)
        self.settings = get_settings()
        self.resolver = resolver
        self.programs = programs or self.settings.AMM_PROGRAMS
        self.url = url or self.settings.HELIUS_WEBSOCKET_URL
        self.reconnect_delay = self.settings.EVENT_SOURCE_RECONNECT_SECONDS
        self.websocket = None

        self._pending: asyncio.Queue[tuple[str, EventKind, str | None]] = asyncio.Queue(
            maxsize=self.settings.EVENT_QUEUE_SIZE
        )
        self._request_programs: dict[int, str] = {}
        self._subscription_programs: dict[int, str] = {}

        self.stats = {
            "messages": 0,
            "swaps": 0,
            "pool_inits": 0,
            "published": 0,
            "ignored": 0,
            "resolve_errors": 0,
            "dropped": 0,
            "reconnects": 0,
        }
        self.started_at = time.time()

    async def start(self) -> None:
        """Run the socket reader and the resolver worker until stop()"""
        self.running = True
        self.started_at = time.time()
        await self.resolver.http.connect()
        await asyncio.gather(self._read_loop(), self._resolve_loop())

    async def _read_loop(self) -> None:
        """Socket loop with 5s reconnect"""
        while self.running:
            try:
                async with connect(self.url) as websocket:
                    self.websocket = websocket
                    await self._subscribe(websocket)
                    logger.info(f"✓ Connected to Helius WebSocket: {len(self.programs)} programs")

                    async for message in websocket:
                        if not self.running:
                            break

                        try:
                            self._handle_message(json.loads(message))
                        except Exception as e:
                            self.stats["resolve_errors"] += 1
                            logger.error(f"Error processing Helius message: {e}")
                            continue

            except Exception as e:
                logger.error(f"✗ Helius WebSocket connection error: {e}")
                if self.running:
                    self.stats["reconnects"] += 1
                    logger.info(f"Reconnecting in {self.reconnect_delay} seconds...")
                    await asyncio.sleep(self.reconnect_delay)

    async def _subscribe(self, websocket) -> None:
        self._request_programs.clear()
        self._subscription_programs.clear()
        for request_id, (label, program_id) in enumerate(self.programs.items(), start=1):
            self._request_programs[request_id] = label
            await websocket.send(
                json.dumps(
                    {
                        "jsonrpc": "2.0",
                        "id": request_id,
                        "method": "logsSubscribe",
                        "params": [
                            {"mentions": [program_id]},
                            {"commitment": self.settings.EVENT_SOURCE_COMMITMENT},
                        ],
                    }
                )
            )

    def _handle_message(self, data: dict) -> None:
        """
        Route one socket message

        Subscription confirmations map subscription ids to program labels;
        log notifications are classified and queued for resolution.
        """
        if "id" in data and "result" in data:
            label = self._request_programs.get(data["id"])
            if label is not None:
                self._subscription_programs[data["result"]] = label
                logger.info(f"✓ Subscribed to {label} logs (subscription {data['result']})")
            return

        parsed = parse_logs_notification(data)
        if parsed is None:
            return

        self.stats["messages"] += 1
        signature, logs = parsed
        kind = classify_logs(logs)
        if kind is None:
            self.stats["ignored"] += 1
            return

        if kind is EventKind.SWAP:
            self.stats["swaps"] += 1
        else:
            self.stats["pool_inits"] += 1

        program = self._subscription_programs.get(data.get("params", {}).get("subscription"))
        try:
            self._pending.put_nowait((signature, kind, program))
        except asyncio.QueueFull:
            self.stats["dropped"] += 1

    async def _resolve_loop(self) -> None:
        """Resolve queued signatures and publish typed events"""
        while self.running:
            signature, kind, program = await self._pending.get()
            try:
                event = await self.resolver.resolve(signature, kind, program)
                if event is None:
                    self.stats["ignored"] += 1
                    continue
                await self.publish(event)
                self.stats["published"] += 1
            except PipelineError as e:
                self.stats["resolve_errors"] += 1
                logger.warning(f"⚠️ Could not resolve {signature[:16]}... ({kind.value}): {e}")
            except Exception as e:
                self.stats["resolve_errors"] += 1
                logger.error(
                    f"✗ Unexpected error resolving {signature[:16]}... ({kind.value}): {e}",
                    exc_info=True,
                )
            finally:
                self._pending.task_done()

    async def stop(self) -> None:
        """Stop WebSocket connection and cleanup"""
        self.running = False
        if self.websocket:
            await self.websocket.close()
        await self.resolver.http.close()
        logger.info("✓ Helius event source stopped")

    def get_stats(self) -> dict[str, Any]:
        uptime_min = (time.time() - self.started_at) / 60
        return {**self.stats, "pending": self._pending.qsize(), "uptime_minutes": round(uptime_min, 1)}
