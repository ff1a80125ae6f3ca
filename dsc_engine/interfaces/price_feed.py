"""Price feed protocol for the upstream oracle network."""
from typing import Protocol

from ..models import RawQuote


class PriceFeed(Protocol):
    """Abstract interface for reading the latest answer of a price feed."""

    async def latest_quote(self, feed_id: str) -> RawQuote: ...
