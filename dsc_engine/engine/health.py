"""Health factor computation. Pure, no I/O."""
from __future__ import annotations

from ..config import EngineSettings
from ..constants import (
    LIQUIDATION_PRECISION,
    LIQUIDATION_THRESHOLD,
    MAX_HEALTH_FACTOR,
    PRECISION,
)


def health_factor(
    debt: int,
    collateral_value: int,
    liquidation_threshold: int = LIQUIDATION_THRESHOLD,
    liquidation_precision: int = LIQUIDATION_PRECISION,
) -> int:
    """Threshold-adjusted collateral value over debt, 18-decimal fixed point.

    An account without debt can never be liquidated and reports
    ``MAX_HEALTH_FACTOR`` regardless of its collateral.
    """
    if debt == 0:
        return MAX_HEALTH_FACTOR
    adjusted = collateral_value * liquidation_threshold // liquidation_precision
    return adjusted * PRECISION // debt


class HealthFactorCalculator:
    """Health factor bound to one set of engine parameters."""

    def __init__(self, settings: EngineSettings) -> None:
        self._settings = settings

    def health_factor(self, debt: int, collateral_value: int) -> int:
        return health_factor(
            debt,
            collateral_value,
            self._settings.liquidation_threshold,
            self._settings.liquidation_precision,
        )

    def is_safe(self, ratio: int) -> bool:
        # Exactly MIN_HEALTH_FACTOR is still safe.
        return ratio >= self._settings.min_health_factor

    def max_mintable(self, collateral_value: int) -> int:
        """Largest total debt ``collateral_value`` can carry."""
        return (
            collateral_value
            * self._settings.liquidation_threshold
            // self._settings.liquidation_precision
        )
