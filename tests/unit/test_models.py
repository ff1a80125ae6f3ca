"""Unit tests for data models and unit conversions."""
from __future__ import annotations

from decimal import Decimal

import pytest

from dsc_engine.constants import MAX_HEALTH_FACTOR, PRECISION
from dsc_engine.models import AccountInformation, Asset, PriceQuote
from dsc_engine.units import (
    format_health_factor,
    format_usd,
    from_base_units,
    to_base_units,
)


class TestModels:
    def test_asset_frozen(self) -> None:
        a = Asset(symbol="WETH", decimals=18, feed_id="ETH/USD")
        with pytest.raises(AttributeError):
            a.decimals = 8  # type: ignore[misc]

    def test_equality(self) -> None:
        assert PriceQuote(price=1, updated_at=2) == PriceQuote(price=1, updated_at=2)
        assert AccountInformation(0, 0) == AccountInformation(
            total_dsc_minted=0, collateral_value_in_usd=0
        )


class TestUnits:
    def test_to_base_units(self) -> None:
        assert to_base_units("1.5", 18) == 15 * 10**17
        assert to_base_units("0.01", 8) == 10**6
        assert to_base_units(3, 0) == 3

    def test_from_base_units(self) -> None:
        assert from_base_units(25 * 10**7, 8) == Decimal("2.5")

    def test_format_usd(self) -> None:
        assert format_usd(20_000 * PRECISION) == "$20,000.00"
        assert format_usd(PRECISION // 2) == "$0.50"

    def test_format_health_factor(self) -> None:
        assert format_health_factor(MAX_HEALTH_FACTOR) == "∞"
        assert format_health_factor(PRECISION) == "1.0000"
        assert format_health_factor(9 * PRECISION // 10) == "0.9000"
