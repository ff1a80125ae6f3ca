"""Protocol interfaces for the DSC engine collaborators."""
from .notifier import Notifier
from .price_feed import PriceFeed
from .token import CollateralToken, LiabilityToken

__all__ = ["CollateralToken", "LiabilityToken", "Notifier", "PriceFeed"]
