"""Display helpers and id generation."""
import re
import threading
import time
from datetime import datetime
from decimal import Decimal
from typing import Optional, Union

from config.settings import settings
from tipping.models import CENT, to_decimal

_id_lock = threading.Lock()
_last_id = 0


def format_currency(amount: Union[Decimal, float, int, str],
                    symbol: Optional[str] = None) -> str:
    """Format an amount with two decimals and a currency symbol, e.g. ``$48.00``."""
    if symbol is None:
        symbol = settings.currency_symbol
    return f"{symbol}{to_decimal(amount).quantize(CENT)}"


def format_percentage(value: Union[Decimal, float, int, str]) -> str:
    """Format a percentage with one decimal, e.g. ``97.0%``."""
    return f"{to_decimal(value).quantize(Decimal('0.1'))}%"


def format_shift(hours: Union[Decimal, float, int, str]) -> str:
    """Format shift hours without trailing zeros, e.g. ``4.5h`` or ``6h``."""
    value = to_decimal(hours)
    text = f"{value:f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return f"{text}h"


def format_date(value: datetime) -> str:
    """Format a calculation date for lists, e.g. ``Oct 19, 2026, 02:30 PM``."""
    return value.strftime("%b %d, %Y, %I:%M %p")


def generate_calculation_id() -> str:
    """Return a time-based calculation id.

    The id is the current time in epoch milliseconds, bumped by one when
    two ids are requested within the same millisecond, so ids are unique
    and increasing within one process.
    """
    global _last_id
    with _id_lock:
        candidate = int(time.time() * 1000)
        if candidate <= _last_id:
            candidate = _last_id + 1
        _last_id = candidate
        return str(candidate)


def parse_amount_input(text: str) -> Optional[Decimal]:
    """Parse cash-register style amount entry.

    Every non-digit is dropped and the digits are read as cents, so
    ``"1234"`` becomes ``12.34`` and ``"$5.00"`` becomes ``5.00``.

    Returns:
        The amount, or None if the text holds no digits.
    """
    digits = re.sub(r"[^0-9]", "", text or "")
    if not digits:
        return None
    return (Decimal(int(digits)) / 100).quantize(CENT)
