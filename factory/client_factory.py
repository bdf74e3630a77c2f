"""
Client factory - Auto-create clients based on configuration

Dependency injection pattern: services depend on the interfaces in
core/interfaces, the factory decides which implementation backs them.
"""

import asyncio
import logging

from config.loader import get_provider_config
from config.settings import get_settings
from core.interfaces.database import BaseSignalStore
from core.interfaces.market_data import (
    BaseEventSource,
    BasePriceSource,
    BaseQuoteSource,
    MarketEvent,
)
from core.interfaces.notifier import BaseNotifier
from providers.http.client import RateLimitedClient

logger = logging.getLogger(__name__)

COINGECKO_PRO_BASE_URL = "https://pro-api.coingecko.com/api/v3"


def create_signal_store() -> BaseSignalStore:
    """
    Create the pipeline store based on STORE_BACKEND config

    Returns:
        BaseSignalStore: PostgreSQL (postgres) or in-process dicts (memory)

    Examples:
        >>> # .env: STORE_BACKEND=postgres
        >>> store = create_signal_store()  # Returns PostgresSignalStore
        >>>
        >>> # .env: STORE_BACKEND=memory
        >>> store = create_signal_store()  # Returns InMemorySignalStore (dry run)
    """
    settings = get_settings()
    backend = settings.STORE_BACKEND.lower()

    if backend == "postgres":
        from providers.postgres.store import PostgresSignalStore

        logger.info("✓ Creating PostgresSignalStore")
        return PostgresSignalStore()

    elif backend == "memory":
        from providers.memory.store import InMemorySignalStore

        logger.info("✓ Creating InMemorySignalStore (dry run)")
        return InMemorySignalStore()

    else:
        raise ValueError(f"Unsupported store backend: {backend}. Supported: postgres, memory")


def create_price_client() -> BasePriceSource:
    """
    Create the reference price client (CoinGecko)

    The API key goes into x-cg-demo-api-key or x-cg-pro-api-key depending on
    COINGECKO_API_TIER; the pro tier also switches the base URL.
    """
    from providers.coingecko.rest_api import CoinGeckoClient

    settings = get_settings()
    config = get_provider_config("coingecko")
    headers = {}

    if settings.COINGECKO_API_KEY:
        if settings.COINGECKO_API_TIER.lower() == "pro":
            config = config.model_copy(update={"base_url": COINGECKO_PRO_BASE_URL})
            headers["x-cg-pro-api-key"] = settings.COINGECKO_API_KEY
        else:
            headers["x-cg-demo-api-key"] = settings.COINGECKO_API_KEY

    logger.info(f"✓ Creating CoinGeckoClient ({settings.COINGECKO_API_TIER})")
    http = RateLimitedClient(config, headers=headers, secrets=[settings.COINGECKO_API_KEY])
    return CoinGeckoClient(http, network=settings.CATALOG_NETWORK)


def create_quote_client() -> BaseQuoteSource:
    """Create the swap quote client (Jupiter)"""
    from providers.jupiter.rest_api import JupiterClient

    logger.info("✓ Creating JupiterClient")
    return JupiterClient(RateLimitedClient(get_provider_config("jupiter")))


def create_notifier() -> BaseNotifier:
    """
    Create the notification sink (Telegram)

    The bot token is part of the URL path, so it is registered as a secret
    and masked in every log line.
    """
    from providers.telegram.notifier import TelegramNotifier

    settings = get_settings()
    config = get_provider_config("telegram")
    token = settings.TELEGRAM_BOT_TOKEN or ""
    config = config.model_copy(update={"base_url": f"{config.base_url}/bot{token}"})

    logger.info("✓ Creating TelegramNotifier")
    http = RateLimitedClient(config, secrets=[token])
    return TelegramNotifier(http, chat_id=settings.TELEGRAM_CHAT_ID if token else None)


def create_event_source(
    queue: "asyncio.Queue[MarketEvent]", quotes: BaseQuoteSource
) -> BaseEventSource:
    """
    Create the on-chain event source (Helius logsSubscribe)

    Args:
        queue: Ingestion queue the source publishes typed events onto
        quotes: Quote client used to price SOL legs
    """
    from providers.helius.websocket import HeliusLogsSource, HeliusTransactionResolver

    settings = get_settings()
    http = RateLimitedClient(get_provider_config("helius"), secrets=[settings.HELIUS_API_KEY])
    resolver = HeliusTransactionResolver(http, settings.HELIUS_API_KEY, quotes)

    logger.info(f"✓ Creating HeliusLogsSource ({len(settings.AMM_PROGRAMS)} programs)")
    return HeliusLogsSource(queue, resolver)
