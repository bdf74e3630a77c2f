"""
Unit tests for TelegramNotifier
"""

from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from core.exceptions import TransientNetworkError
from core.models.market_data import Pool
from core.models.signals import Signal
from providers.telegram.notifier import (
    TelegramNotifier,
    escape_markdown,
    format_activity_report,
    format_alert,
    format_buy_signal,
)

MINT = "7GCihgDB8fe6KNjn2MYtkzZcRjQy3t9GHdC8uHYmW2hr"


@pytest.fixture
def signal():
    return Signal(id=1, mint=MINT, signal_ts=1_700_000_000, ema_cross=True, vol_spike=4.0, rsi=31.3)


@pytest.fixture
def pool():
    return Pool(mint=MINT, first_seen_ts=0, liq_usd=Decimal("20000"), fdv_usd=None)


@pytest.fixture
def http():
    http = MagicMock()
    http.post = AsyncMock(return_value={"ok": True, "result": {"message_id": 1}})
    return http


@pytest.mark.unit
class TestFormatting:
    def test_buy_signal_message(self, signal, pool):
        text = format_buy_signal(signal, pool, 1.0)

        assert "BUY SIGNAL" in text
        assert MINT in text
        assert "31.30" in text
        assert "4.00x" in text
        assert "$20,000" in text
        assert "*FDV:* n/a" in text
        assert "1.00%" in text
        assert f"https://birdeye.so/token/{MINT}?chain=solana" in text
        assert f"https://dexscreener.com/solana/{MINT}" in text
        assert "2023-11-14 22:13:20 UTC" in text

    def test_escape_markdown(self):
        assert escape_markdown("ohlcv_1h *x* [y] `z`") == r"ohlcv\_1h \*x\* \[y] \`z\`"

    def test_alert_with_underscores_is_balanced(self):
        error = 'PersistenceError: relation "tracked_tokens" does not exist (see *_pg_log_*)'

        text = format_alert("signal_dispatch cycle failed", error)

        title, body = text.split("\n\n", 1)
        assert title == r"⚠️ signal\_dispatch cycle failed"
        assert body == f"```\n{error}\n```", "error text must be sent verbatim inside a pre block"
        assert "*" not in title

    def test_alert_cannot_close_its_pre_block(self):
        text = format_alert("x", "bad ```fence``` inside")

        assert text.count("```") == 2
        assert "'''fence'''" in text

    def test_activity_report(self):
        text = format_activity_report({"swaps_ingested": 12, "resolve_errors": 0})

        assert "Swaps ingested: 12" in text
        assert "Resolve errors: 0" in text


@pytest.mark.unit
class TestTelegramNotifier:
    @pytest.mark.asyncio
    async def test_send_buy_signal(self, http, signal, pool):
        notifier = TelegramNotifier(http, chat_id="-100123")

        assert await notifier.send_buy_signal(signal, pool, 1.0) is True

        endpoint = http.post.call_args.args[0]
        payload = http.post.call_args.kwargs["json"]
        assert endpoint == "/sendMessage"
        assert payload["chat_id"] == "-100123"
        assert payload["parse_mode"] == "Markdown"
        assert payload["disable_web_page_preview"] is True

    @pytest.mark.asyncio
    async def test_send_alert_uses_safe_markdown(self, http):
        notifier = TelegramNotifier(http, chat_id="-100123")

        assert await notifier.send_alert("gap_filler cycle failed", "KeyError: 'usd_24h_vol'") is True

        payload = http.post.call_args.kwargs["json"]
        assert payload["text"] == format_alert("gap_filler cycle failed", "KeyError: 'usd_24h_vol'")
        assert payload["parse_mode"] == "Markdown"

    @pytest.mark.asyncio
    async def test_delivery_error_returns_false(self, http, signal, pool):
        http.post.side_effect = TransientNetworkError("timeout")

        assert await TelegramNotifier(http, chat_id="-100123").send_buy_signal(signal, pool, 1.0) is False

    @pytest.mark.asyncio
    async def test_rejected_message_returns_false(self, http):
        http.post.return_value = {"ok": False, "description": "Bad Request: can't parse entities"}

        assert await TelegramNotifier(http, chat_id="-100123").send_alert("x", "y") is False

    @pytest.mark.asyncio
    async def test_disabled_without_chat_id(self, http):
        notifier = TelegramNotifier(http, chat_id=None)

        assert await notifier.send_alert("Gap filler failed", "boom") is False
        http.post.assert_not_called()
