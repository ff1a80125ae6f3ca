"""Price oracle and feed adapters."""
from .price_oracle import PriceOracle, QuoteCache
from .pyth import PythPriceFeed
from .static import ManualClock, StaticPriceFeed

__all__ = ["ManualClock", "PriceOracle", "PythPriceFeed", "QuoteCache", "StaticPriceFeed"]
