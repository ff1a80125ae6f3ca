"""Data models (all frozen)."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Asset:
    """A registered collateral type."""

    symbol: str
    decimals: int
    feed_id: str


@dataclass(frozen=True)
class RawQuote:
    """Feed answer as reported upstream, before normalization."""

    answer: int
    decimals: int
    updated_at: int


@dataclass(frozen=True)
class PriceQuote:
    """USD per whole asset unit, 18-decimal fixed point."""

    price: int
    updated_at: int


@dataclass(frozen=True)
class AccountInformation:
    total_dsc_minted: int
    collateral_value_in_usd: int


@dataclass(frozen=True)
class LiquidationResult:
    liquidator: str
    target: str
    asset: str
    debt_covered: int
    collateral_seized: int
    bonus_collateral: int
    starting_health_factor: int
    ending_health_factor: int
