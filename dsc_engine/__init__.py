"""Overcollateralized stablecoin engine: collateral accounting and liquidation."""
from .engine import DSCEngine

__all__ = ["DSCEngine"]

__version__ = "0.1.0"
