"""Consolidated utility functions for the finance module."""
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")


def as_float(v: Any, default: Optional[float] = None) -> Optional[float]:
    """Safely convert value to float with fallback."""
    if v is None:
        return default
    try:
        return float(v)
    except (ValueError, TypeError):
        return default


def as_int(v: Any, default: Optional[int] = None) -> Optional[int]:
    """Safely convert value to int with fallback."""
    if v is None:
        return default
    try:
        return int(v)
    except (ValueError, TypeError):
        return default


def to_money(v: Any) -> Decimal:
    """Convert a number (or numeric string) to Decimal without float noise.

    Floats go through ``str`` so 0.1 becomes Decimal("0.1"), not the
    binary expansion.
    """
    if isinstance(v, Decimal):
        return v
    if isinstance(v, bool):
        raise TypeError("bool is not a money amount")
    if isinstance(v, float):
        return Decimal(repr(v))
    try:
        return Decimal(v)
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a money amount: {v!r}") from exc


def rate(r: float) -> Decimal:
    """Rate as Decimal, for multiplying against money."""
    return Decimal(str(r))


def pct_to_decimal(raw: Optional[float]) -> Optional[float]:
    """
    Interpret a numeric as a percentage if > 1.0, otherwise as a decimal:
      17.8  -> 0.178
      0.178 -> 0.178
    """
    if raw is None:
        return None
    if raw > 1.0:
        return raw / 100.0
    return raw
