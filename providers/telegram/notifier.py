"""
Telegram notification sink

Sends Markdown messages to a single chat via the Bot API (sendMessage).
Delivery is fire-and-forget: failures are logged and reported as False,
never raised and never retried synchronously.
"""

import logging
import re
from datetime import UTC, datetime
from typing import Any

from core.exceptions import PipelineError
from core.interfaces.notifier import BaseNotifier
from core.models.market_data import Pool
from core.models.signals import Signal
from providers.http.client import RateLimitedClient

logger = logging.getLogger(__name__)


# Characters with meaning in legacy Telegram Markdown
_MARKDOWN_SPECIAL = re.compile(r"([_*`\[])")


def escape_markdown(text: str) -> str:
    """
    Escape free text for parse_mode=Markdown

    Telegram only honours escapes outside entities, so escaped text must not be
    placed inside bold or italic markers.

    Example:
        >>> escape_markdown("signal_dispatch cycle failed")
        'signal\\\\_dispatch cycle failed'
    """
    return _MARKDOWN_SPECIAL.sub(r"\\\1", str(text))


def format_alert(title: str, message: str) -> str:
    """Markdown body for an operational alert (error text in a pre block)"""
    body = str(message)[:3500].replace("```", "'''")
    return f"⚠️ {escape_markdown(title)}\n\n```\n{body}\n```"


def _usd(value) -> str:
    return "n/a" if value is None else f"${float(value):,.0f}"


def format_buy_signal(signal: Signal, pool: Pool, price_impact: float) -> str:
    """Markdown body for a buy signal"""
    signal_time = datetime.fromtimestamp(signal.signal_ts, tz=UTC).strftime("%Y-%m-%d %H:%M:%S UTC")
    return (
        "🚀 *BUY SIGNAL DETECTED* 🚀\n\n"
        f"🪙 *Token:* `{signal.mint}`\n"
        f"📊 *RSI:* {signal.rsi:.2f}\n"
        f"📈 *Volume Spike:* {signal.vol_spike:.2f}x\n"
        f"💧 *Liquidity:* {_usd(pool.liq_usd)}\n"
        f"💰 *FDV:* {_usd(pool.fdv_usd)}\n"
        f"🎯 *Price Impact:* {price_impact:.2f}%\n"
        f"⏰ *Time:* {signal_time}\n\n"
        f"🔗 [Birdeye](https://birdeye.so/token/{signal.mint}?chain=solana) | "
        f"[DEXScreener](https://dexscreener.com/solana/{signal.mint})"
    )


def format_activity_report(stats: dict[str, Any]) -> str:
    """Markdown body for an event-source activity summary"""
    lines = ["📊 *Activity Report*", ""]
    for key, value in stats.items():
        label = key.replace("_", " ").capitalize()
        lines.append(f"• {escape_markdown(label)}: {escape_markdown(value)}")
    return "\n".join(lines)


class TelegramNotifier(BaseNotifier):
    """
    Telegram Bot API implementation

    Example:
        >>> notifier = TelegramNotifier(http, chat_id="-100123")
        >>> await notifier.send_alert("Gap filler failed", "connection refused")
        True
    """

    def __init__(self, http: RateLimitedClient, chat_id: str | None):
        self.http = http
        self.chat_id = chat_id
        self.enabled = bool(chat_id)
        if not self.enabled:
            logger.warning("⚠️ Telegram chat id not configured, notifications disabled")

    async def connect(self) -> None:
        await self.http.connect()

    async def close(self) -> None:
        await self.http.close()

    async def send_message(self, text: str) -> bool:
        """Send one Markdown message; True on delivery"""
        if not self.enabled:
            logger.info(f"Telegram disabled, message dropped: {text[:80]!r}")
            return False

        try:
            response = await self.http.post(
                "/sendMessage",
                json={
                    "chat_id": self.chat_id,
                    "text": text,
                    "parse_mode": "Markdown",
                    "disable_web_page_preview": True,
                },
            )
        except PipelineError as e:
            logger.error(f"✗ Telegram delivery failed: {e}")
            return False

        if not isinstance(response, dict) or not response.get("ok"):
            logger.error(f"✗ Telegram rejected message: {response}")
            return False
        return True

    async def send_buy_signal(self, signal: Signal, pool: Pool, price_impact: float) -> bool:
        delivered = await self.send_message(format_buy_signal(signal, pool, price_impact))
        if delivered:
            logger.info(f"✅ Buy signal #{signal.id} sent for {signal.mint}")
        return delivered

    async def send_alert(self, title: str, message: str) -> bool:
        return await self.send_message(format_alert(title, message))

    async def send_activity_report(self, stats: dict[str, Any]) -> bool:
        return await self.send_message(format_activity_report(stats))
