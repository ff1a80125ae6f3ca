"""In-memory price feed with settable answers, plus a manual clock."""
from __future__ import annotations

import time
from decimal import Decimal
from typing import Callable

from ..errors import FeedUnavailable
from ..models import RawQuote


class ManualClock:
    """Clock returning a settable unix timestamp."""

    def __init__(self, now: int | None = None) -> None:
        self.now = int(time.time()) if now is None else now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


def system_clock() -> int:
    return int(time.time())


class StaticPriceFeed:
    """Price feed whose answers are set directly, e.g. from config or tests."""

    def __init__(self, decimals: int = 8, clock: Callable[[], int] = system_clock) -> None:
        self.decimals = decimals
        self._clock = clock
        self._quotes: dict[str, RawQuote] = {}

    def set_answer(self, feed_id: str, answer: int, updated_at: int | None = None) -> None:
        """Publish a raw answer (already scaled by ``decimals``)."""
        if updated_at is None:
            updated_at = self._clock()
        self._quotes[feed_id] = RawQuote(
            answer=answer, decimals=self.decimals, updated_at=updated_at
        )

    def set_price(self, feed_id: str, price: str | int | Decimal, updated_at: int | None = None) -> None:
        """Publish a human-readable USD price such as ``"2000.5"``."""
        answer = int(Decimal(str(price)) * 10**self.decimals)
        self.set_answer(feed_id, answer, updated_at)

    async def latest_quote(self, feed_id: str) -> RawQuote:
        try:
            return self._quotes[feed_id]
        except KeyError:
            raise FeedUnavailable(f"No answer published for feed {feed_id}") from None
