"""Display formatting for money and percentages.

Amounts render the way Indonesian-locale reports show Rupiah: whole
numbers, ``.`` as the thousands separator, symbol in front::

    >>> format_currency(1325000000)
    'Rp 1.325.000.000'
    >>> format_percentage(21.456)
    '21.46%'
    >>> parse_currency("Rp 1.325.000.000")
    1325000000
    >>> parse_amount("-Rp 1.250")
    Decimal('-1250')
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from finance.utils import to_money

CURRENCY_SYMBOL = "Rp"
THOUSANDS_SEPARATOR = "."

_NON_DIGITS = re.compile(r"[^0-9]")
_GROUPED = re.compile(r"^\d{1,3}(\.\d{3})+$")
_PLAIN = re.compile(r"^\d+(\.\d+)?$")


def _whole_units(amount: Any) -> int:
    # ROUND_HALF_UP on Decimal rounds halves away from zero
    return int(to_money(amount).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def format_number(value: Any) -> str:
    """Grouped integer with no symbol, e.g. ``-1.250.000``."""
    units = _whole_units(value)
    grouped = f"{abs(units):,}".replace(",", THOUSANDS_SEPARATOR)
    return f"-{grouped}" if units < 0 else grouped


def format_currency(amount: Any, symbol: str = CURRENCY_SYMBOL) -> str:
    """Locale-grouped whole amount prefixed with the currency symbol."""
    units = _whole_units(amount)
    grouped = format_number(abs(units))
    sign = "-" if units < 0 else ""
    return f"{sign}{symbol} {grouped}"


def format_percentage(value: float) -> str:
    """Value with exactly two decimals followed by ``%``."""
    return f"{float(value):.2f}%"


def parse_currency(text: str) -> int:
    """Strip every non-digit and parse the rest; 0 when nothing is left.

    Only meant for reading back strings produced by :func:`format_currency`.
    User input goes through :func:`parse_amount`.
    """
    cleaned = _NON_DIGITS.sub("", str(text or ""))
    return int(cleaned) if cleaned else 0


def parse_amount(text: Any) -> Decimal:
    """Parse a user-supplied money amount, keeping its sign and decimals.

    Accepts plain numbers (``"-600000000"``, ``"50000000.5"``) and
    display-style amounts (``"Rp 50.000.000"``, ``"-Rp 1.250"``). A single
    ``.`` followed by exactly three digits is read as a thousands group.

    Raises
    ------
    ValueError
        For anything else, e.g. ``"1.234.567,50"`` or ``"12abc"``.
    """
    raw = str(text if text is not None else "").strip()
    sign = ""
    if raw.startswith("-"):
        sign, raw = "-", raw[1:].strip()
    if raw.startswith(CURRENCY_SYMBOL):
        raw = raw[len(CURRENCY_SYMBOL):].strip()

    if _GROUPED.match(raw):
        return Decimal(sign + raw.replace(THOUSANDS_SEPARATOR, ""))
    if _PLAIN.match(raw):
        return to_money(sign + raw)
    raise ValueError(f"Not a money amount: {text!r}")


__all__ = [
    "CURRENCY_SYMBOL",
    "format_currency",
    "format_number",
    "format_percentage",
    "parse_amount",
    "parse_currency",
]
