"""In-memory token collaborators."""
from .erc20 import InMemoryToken, TokenClient
from .stablecoin import Minter, StableCoin

__all__ = ["InMemoryToken", "Minter", "StableCoin", "TokenClient"]
