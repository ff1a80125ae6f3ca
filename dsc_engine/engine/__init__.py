"""Collateral accounting and liquidation engine."""
from .dsc_engine import DSCEngine
from .health import HealthFactorCalculator, health_factor
from .ledger import CollateralLedger, LedgerTransaction
from .liquidation import LiquidationEngine
from .positions import PositionManager

__all__ = [
    "CollateralLedger",
    "DSCEngine",
    "HealthFactorCalculator",
    "LedgerTransaction",
    "LiquidationEngine",
    "PositionManager",
    "health_factor",
]
