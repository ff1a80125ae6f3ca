"""Price oracle with staleness-checked, fixed-point normalized asset prices."""
from __future__ import annotations

import logging
from typing import Callable, Mapping

from ..constants import STALENESS_WINDOW_SECONDS
from ..errors import StalePrice, UnknownAsset
from ..interfaces.price_feed import PriceFeed
from ..models import Asset, PriceQuote, RawQuote
from .static import system_clock

logger = logging.getLogger(__name__)

_PRECISION_DIGITS = 18


def normalize_answer(answer: int, decimals: int) -> int:
    """Rescale a feed answer with ``decimals`` fractional digits to 18 digits."""
    if decimals <= _PRECISION_DIGITS:
        return answer * 10 ** (_PRECISION_DIGITS - decimals)
    return answer // 10 ** (decimals - _PRECISION_DIGITS)


class PriceOracle:
    """Validates and normalizes quotes from the upstream feed.

    A quote is rejected with :class:`StalePrice` when it is older than the
    staleness window or non-positive; unregistered assets raise
    :class:`UnknownAsset`. The oracle never caches across calls: use
    :meth:`session` for a per-operation view.
    """

    def __init__(
        self,
        feed: PriceFeed,
        assets: Mapping[str, Asset],
        staleness_window: int = STALENESS_WINDOW_SECONDS,
        clock: Callable[[], int] = system_clock,
    ) -> None:
        self._feed = feed
        self._assets = dict(assets)
        self._staleness_window = staleness_window
        self._clock = clock

    @property
    def staleness_window(self) -> int:
        return self._staleness_window

    def feed_id(self, asset: str) -> str | None:
        registered = self._assets.get(asset)
        return registered.feed_id if registered else None

    async def price(self, asset: str) -> PriceQuote:
        registered = self._assets.get(asset)
        if registered is None:
            raise UnknownAsset(asset)

        raw = await self._feed.latest_quote(registered.feed_id)
        self._check(asset, raw)
        price = normalize_answer(raw.answer, raw.decimals)
        if price <= 0:
            logger.warning(
                "Rejecting %s: answer %s with %d decimals rounds to zero",
                asset, raw.answer, raw.decimals,
            )
            raise StalePrice(asset, "price rounds to zero")
        return PriceQuote(price=price, updated_at=raw.updated_at)

    def _check(self, asset: str, raw: RawQuote) -> None:
        if raw.answer <= 0:
            logger.warning("Rejecting non-positive price for %s: %s", asset, raw.answer)
            raise StalePrice(asset, f"invalid answer {raw.answer}")

        age = self._clock() - raw.updated_at
        if age > self._staleness_window:
            logger.warning("Rejecting stale price for %s (age %ds)", asset, age)
            raise StalePrice(asset, f"quote is {age}s old")

    def session(self) -> QuoteCache:
        return QuoteCache(self)


class QuoteCache:
    """Per-operation price view: each asset is read at most once."""

    def __init__(self, oracle: PriceOracle) -> None:
        self._oracle = oracle
        self._quotes: dict[str, PriceQuote] = {}

    async def price(self, asset: str) -> PriceQuote:
        quote = self._quotes.get(asset)
        if quote is None:
            quote = await self._oracle.price(asset)
            self._quotes[asset] = quote
        return quote

    async def usd_value(self, asset: Asset, amount: int) -> int:
        """USD value (18 decimals) of ``amount`` base units of ``asset``."""
        quote = await self.price(asset.symbol)
        return quote.price * amount // 10**asset.decimals

    async def token_amount(self, asset: Asset, usd_value: int) -> int:
        """Base units of ``asset`` worth ``usd_value`` (18 decimals)."""
        quote = await self.price(asset.symbol)
        return usd_value * 10**asset.decimals // quote.price
