"""Liquidation of under-collateralized accounts."""
from __future__ import annotations

import logging

from ..config import EngineSettings
from ..errors import HealthFactorNotImproved, HealthFactorOk, InsufficientCollateral
from ..models import LiquidationResult
from .health import HealthFactorCalculator
from .ledger import CollateralLedger, require_positive
from .positions import PositionManager

logger = logging.getLogger(__name__)


class LiquidationEngine:
    """Lets any account repay another account's debt for discounted collateral.

    The liquidator burns ``debt_to_cover`` DSC from its own balance and
    receives collateral worth that amount plus the liquidation bonus. If the
    target does not hold enough of the chosen asset the liquidation fails
    outright; seizures are never capped to the available balance.
    """

    def __init__(
        self,
        ledger: CollateralLedger,
        positions: PositionManager,
        calculator: HealthFactorCalculator,
        settings: EngineSettings,
    ) -> None:
        self._ledger = ledger
        self._positions = positions
        self._calculator = calculator
        self._settings = settings

    def bonus_for(self, token_amount: int) -> int:
        return (
            token_amount
            * self._settings.liquidation_bonus
            // self._settings.liquidation_precision
        )

    async def liquidate(
        self, liquidator: str, asset: str, target: str, debt_to_cover: int
    ) -> LiquidationResult:
        require_positive(debt_to_cover)
        registered = self._ledger.asset(asset)

        async with self._ledger.transaction(target, liquidator) as tx:
            starting = await self._positions.health_factor_of(tx, target)
            if self._calculator.is_safe(starting):
                raise HealthFactorOk(starting)

            token_amount = await tx.quotes.token_amount(registered, debt_to_cover)
            bonus = self.bonus_for(token_amount)
            seized = token_amount + bonus

            self._positions.apply_redeem(
                tx, target, asset, seized, recipient=liquidator, error=InsufficientCollateral
            )
            await self._positions.apply_burn(tx, target, debt_to_cover, dsc_from=liquidator)

            ending = await self._positions.health_factor_of(tx, target)
            if ending <= starting:
                logger.warning(
                    "Liquidation of %s by %s would not improve health (%d -> %d)",
                    target, liquidator, starting, ending,
                )
                raise HealthFactorNotImproved(starting, ending)

            await self._positions.require_healthy(tx, liquidator)
            tx.emit(
                "Liquidated",
                user=target,
                liquidator=liquidator,
                token=asset,
                debt_covered=debt_to_cover,
                collateral_seized=seized,
            )

        return LiquidationResult(
            liquidator=liquidator,
            target=target,
            asset=asset,
            debt_covered=debt_to_cover,
            collateral_seized=seized,
            bonus_collateral=bonus,
            starting_health_factor=starting,
            ending_health_factor=ending,
        )
