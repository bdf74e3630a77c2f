"""
Helius message parsing

- classify_logs: keyword classification of program log lines
- parse_logs_notification: unwrap a logsSubscribe notification
- build_swap / build_pool_init: enhanced transaction -> typed event

Helius enhanced transaction (abridged):
{
    "signature": "5h3...",
    "timestamp": 1700000000,
    "tokenTransfers": [
        {"mint": "EPjF...", "tokenAmount": 25.0, "fromUserAccount": "...", "toUserAccount": "..."},
        {"mint": "DezX...", "tokenAmount": 1180000.0, ...}
    ]
}
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

from core.exceptions import DataUnavailableError
from core.models.market_data import PoolInitEvent, SwapEvent
from providers.jupiter.rest_api import SOL_MINT, USDC_MINT

POOL_INIT_KEYWORDS = ("InitializePool", "initialize")
SWAP_KEYWORDS = ("swap", "Swap")

# Quote assets in preference order
QUOTE_MINTS = (USDC_MINT, SOL_MINT)


class EventKind(str, Enum):
    POOL_INIT = "pool_init"
    SWAP = "swap"


def classify_logs(logs: list[str]) -> EventKind | None:
    """
    Classify a transaction by its log lines

    Pool initialization wins over swap when both keywords appear.

    Example:
        >>> classify_logs(["Program log: Instruction: Swap"])
        <EventKind.SWAP: 'swap'>
    """
    if any(keyword in line for line in logs for keyword in POOL_INIT_KEYWORDS):
        return EventKind.POOL_INIT
    if any(keyword in line for line in logs for keyword in SWAP_KEYWORDS):
        return EventKind.SWAP
    return None


def parse_logs_notification(data: dict[str, Any]) -> tuple[str, list[str]] | None:
    """
    Extract (signature, logs) from a logsNotification

    Returns None for other messages and for failed transactions.
    """
    if data.get("method") != "logsNotification":
        return None

    value = data.get("params", {}).get("result", {}).get("value", {})
    signature = value.get("signature")
    if not signature or value.get("err") is not None:
        return None
    return signature, value.get("logs") or []


def extract_legs(tx: dict[str, Any]) -> dict[str, Decimal]:
    """
    Largest transferred amount per mint (one leg per mint)

    Raises:
        DataUnavailableError: A transfer amount is not a finite number
    """
    legs: dict[str, Decimal] = {}
    for transfer in tx.get("tokenTransfers") or []:
        mint = transfer.get("mint")
        amount = transfer.get("tokenAmount")
        if not mint or amount is None:
            continue
        try:
            value = Decimal(str(amount))
        except InvalidOperation as e:
            raise DataUnavailableError(f"Malformed transfer amount for {mint}: {amount!r}") from e
        if not value.is_finite():
            raise DataUnavailableError(f"Malformed transfer amount for {mint}: {amount!r}")
        if value > legs.get(mint, Decimal(0)):
            legs[mint] = value
    return legs


def block_time(tx: dict[str, Any]) -> int:
    """
    Block time of an enhanced transaction

    Raises:
        DataUnavailableError: Timestamp missing or not numeric
    """
    try:
        return int(tx["timestamp"])
    except (KeyError, TypeError, ValueError) as e:
        raise DataUnavailableError(
            f"Transaction {tx.get('signature', '?')} has no usable timestamp: {tx.get('timestamp')!r}"
        ) from e


def _split_legs(
    legs: dict[str, Decimal],
) -> tuple[str, Decimal, str, Decimal] | None:
    """(base_mint, base_amount, quote_mint, quote_amount), or None when ambiguous"""
    base = [m for m in legs if m not in QUOTE_MINTS]
    quotes = [m for m in QUOTE_MINTS if m in legs]
    if len(base) != 1 or not quotes:
        return None
    base_mint, quote_mint = base[0], quotes[0]
    return base_mint, legs[base_mint], quote_mint, legs[quote_mint]


def _quote_usd(quote_mint: str, quote_amount: Decimal, sol_usd: Decimal | None) -> Decimal | None:
    if quote_mint == USDC_MINT:
        return quote_amount
    if sol_usd is None:
        return None
    return quote_amount * sol_usd


def needs_sol_price(tx: dict[str, Any]) -> bool:
    """Whether pricing this transaction requires the SOL/USD rate"""
    split = _split_legs(extract_legs(tx))
    return split is not None and split[2] == SOL_MINT


def build_swap(
    tx: dict[str, Any], sol_usd: Decimal | None = None, program: str | None = None
) -> SwapEvent | None:
    """
    Swap event from an enhanced transaction

    price = quote leg in USD / base amount; volume = quote leg in USD.
    Returns None if legs are ambiguous or cannot be priced.
    """
    split = _split_legs(extract_legs(tx))
    if split is None:
        return None
    base_mint, base_amount, quote_mint, quote_amount = split

    volume_usd = _quote_usd(quote_mint, quote_amount, sol_usd)
    if volume_usd is None or base_amount <= 0:
        return None

    return SwapEvent(
        signature=tx.get("signature", ""),
        mint=base_mint,
        price=volume_usd / base_amount,
        volume_usd=volume_usd,
        timestamp=block_time(tx),
        program=program,
    )


def build_pool_init(
    tx: dict[str, Any], sol_usd: Decimal | None = None, program: str | None = None
) -> PoolInitEvent | None:
    """
    Pool-init event from an enhanced transaction

    Liquidity is estimated as twice the quote-side deposit (both sides of a
    constant-product pool hold equal value).
    """
    legs = extract_legs(tx)
    split = _split_legs(legs)
    if split is not None:
        base_mint, _, quote_mint, quote_amount = split
        quote_usd = _quote_usd(quote_mint, quote_amount, sol_usd)
        liq_usd = quote_usd * 2 if quote_usd is not None else None
    else:
        base = [m for m in legs if m not in QUOTE_MINTS]
        if len(base) != 1:
            return None
        base_mint, liq_usd = base[0], None

    return PoolInitEvent(
        signature=tx.get("signature", ""),
        mint=base_mint,
        timestamp=block_time(tx),
        liq_usd=liq_usd,
        program=program,
    )
