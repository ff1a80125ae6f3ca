"""Pyth Network price feed adapter."""
from __future__ import annotations

import asyncio
import logging
import ssl

import aiohttp
import certifi

from ..config import PythConfig
from ..errors import FeedUnavailable
from ..models import RawQuote

logger = logging.getLogger(__name__)


def _normalize_id(feed_id: str) -> str:
    return feed_id.lower().removeprefix("0x")


def parse_price_item(item: dict) -> RawQuote:
    """Convert one Hermes ``parsed`` entry into a :class:`RawQuote`.

    Hermes reports ``price * 10**expo``; a negative exponent becomes the
    number of fractional digits of the answer.
    """
    price_data = item.get("price", {})
    answer = int(price_data.get("price", 0))
    expo = int(price_data.get("expo", 0))
    updated_at = int(price_data.get("publish_time", 0))

    if expo > 0:
        return RawQuote(answer=answer * 10**expo, decimals=0, updated_at=updated_at)
    return RawQuote(answer=answer, decimals=-expo, updated_at=updated_at)


class PythPriceFeed:
    """Read latest quotes from the Pyth Hermes API."""

    def __init__(self, config: PythConfig) -> None:
        self.hermes_url = config.hermes_url
        self.timeout = config.timeout

    async def fetch_quotes(self, feed_ids: list[str]) -> dict[str, RawQuote]:
        """Fetch the latest quotes for several feeds in one request.

        Raises:
            FeedUnavailable: on transport errors or a non-200 response.
        """
        if not feed_ids:
            return {}

        query_params = "&".join(f"ids[]={fid}" for fid in sorted(set(feed_ids)))
        url = f"{self.hermes_url}?{query_params}"

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.get(
                    url, timeout=aiohttp.ClientTimeout(total=self.timeout)
                ) as response:
                    if response.status != 200:
                        raise FeedUnavailable(
                            f"Pyth returned HTTP {response.status}"
                        )
                    data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError, ConnectionError, ValueError) as e:
            logger.error("Error fetching prices from Pyth: %s", e)
            raise FeedUnavailable(f"Pyth request failed: {e}") from e

        wanted = {_normalize_id(fid): fid for fid in feed_ids}
        quotes: dict[str, RawQuote] = {}
        try:
            for item in data.get("parsed", []):
                feed_id = wanted.get(_normalize_id(str(item.get("id", ""))))
                if feed_id is not None:
                    quotes[feed_id] = parse_price_item(item)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error("Malformed Pyth response: %s", e)
            raise FeedUnavailable(f"Malformed Pyth response: {e}") from e

        logger.debug("Fetched %d quotes from Pyth Network", len(quotes))
        return quotes

    async def latest_quote(self, feed_id: str) -> RawQuote:
        quotes = await self.fetch_quotes([feed_id])
        if feed_id not in quotes:
            raise FeedUnavailable(f"Pyth returned no quote for feed {feed_id}")
        return quotes[feed_id]
