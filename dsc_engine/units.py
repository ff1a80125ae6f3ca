"""Conversions between fixed-point integers and human-readable amounts."""
from __future__ import annotations

from decimal import Decimal

from .constants import MAX_HEALTH_FACTOR, PRECISION


def to_base_units(amount: str | int | Decimal, decimals: int) -> int:
    """``"1.5"`` with 18 decimals -> ``1500000000000000000``."""
    return int(Decimal(str(amount)) * 10**decimals)


def from_base_units(amount: int, decimals: int) -> Decimal:
    return Decimal(amount) / Decimal(10**decimals)


def format_usd(value: int) -> str:
    return f"${from_base_units(value, 18):,.2f}"


def format_health_factor(ratio: int) -> str:
    if ratio == MAX_HEALTH_FACTOR:
        return "∞"
    return f"{Decimal(ratio) / Decimal(PRECISION):.4f}"
