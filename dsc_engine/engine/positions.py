"""Position manager: deposit, mint, burn and redeem with health-factor gating."""
from __future__ import annotations

import logging

from ..errors import (
    BreaksHealthFactor,
    InsufficientCollateral,
    MintFailed,
    RedeemAmountExceedsCollateral,
    TransferFailed,
)
from ..interfaces.token import LiabilityToken
from .health import HealthFactorCalculator
from .ledger import CollateralLedger, LedgerTransaction, require_positive

logger = logging.getLogger(__name__)


class PositionManager:
    """User-facing position operations.

    Each public coroutine is one atomic unit: it either commits every ledger
    change and collaborator call, or raises with the ledger untouched.
    Minting and redeeming are checked against the *post*-operation state.
    """

    def __init__(
        self,
        ledger: CollateralLedger,
        dsc: LiabilityToken,
        calculator: HealthFactorCalculator,
    ) -> None:
        self._ledger = ledger
        self._dsc = dsc
        self._calculator = calculator

    # ------------------------------------------------------------------
    # Building blocks shared with liquidation
    # ------------------------------------------------------------------

    async def health_factor_of(self, tx: LedgerTransaction, account: str) -> int:
        debt = tx.record(account).debt
        if debt == 0:
            return self._calculator.health_factor(0, 0)
        return self._calculator.health_factor(debt, await tx.collateral_value(account))

    async def require_healthy(self, tx: LedgerTransaction, account: str) -> None:
        ratio = await self.health_factor_of(tx, account)
        if not self._calculator.is_safe(ratio):
            logger.warning("Rejecting operation on %s: health factor %d", account, ratio)
            raise BreaksHealthFactor(ratio)

    def apply_mint(self, tx: LedgerTransaction, account: str, amount: int) -> None:
        require_positive(amount)
        tx.add_debt(account, amount)
        tx.defer(
            f"mint of {amount} DSC to {account}",
            lambda: self._dsc.mint(account, amount),
            undo=lambda: self._dsc.retract(account, amount),
            error=MintFailed,
        )
        tx.emit("DscMinted", user=account, amount=amount)

    async def apply_burn(
        self, tx: LedgerTransaction, on_behalf_of: str, amount: int, dsc_from: str
    ) -> None:
        """Pay down ``on_behalf_of``'s debt with DSC held by ``dsc_from``."""
        require_positive(amount)
        tx.remove_debt(on_behalf_of, amount)
        if not await self._dsc.transfer_approval_check(dsc_from, amount):
            raise TransferFailed(f"{dsc_from} has not approved {amount} DSC for burning")
        tx.defer(
            f"burn of {amount} DSC from {dsc_from}",
            lambda: self._dsc.burn_from(dsc_from, amount),
            undo=lambda: self._dsc.unburn(dsc_from, amount),
        )
        tx.emit("DscBurned", on_behalf_of=on_behalf_of, dsc_from=dsc_from, amount=amount)

    def apply_redeem(
        self,
        tx: LedgerTransaction,
        account: str,
        asset: str,
        amount: int,
        recipient: str | None = None,
        error: type[InsufficientCollateral] = RedeemAmountExceedsCollateral,
    ) -> None:
        self._ledger.withdraw(tx, account, asset, amount, recipient, error)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def deposit_collateral(self, account: str, asset: str, amount: int) -> None:
        async with self._ledger.transaction(account) as tx:
            self._ledger.deposit(tx, account, asset, amount)

    async def mint_dsc(self, account: str, amount: int) -> None:
        async with self._ledger.transaction(account) as tx:
            self.apply_mint(tx, account, amount)
            await self.require_healthy(tx, account)

    async def deposit_collateral_and_mint_dsc(
        self, account: str, asset: str, amount: int, mint_amount: int
    ) -> None:
        async with self._ledger.transaction(account) as tx:
            self._ledger.deposit(tx, account, asset, amount)
            self.apply_mint(tx, account, mint_amount)
            await self.require_healthy(tx, account)

    async def burn_dsc(self, account: str, amount: int) -> None:
        # Burning only lowers debt, no health check needed.
        async with self._ledger.transaction(account) as tx:
            await self.apply_burn(tx, account, amount, dsc_from=account)

    async def redeem_collateral(self, account: str, asset: str, amount: int) -> None:
        async with self._ledger.transaction(account) as tx:
            self.apply_redeem(tx, account, asset, amount)
            await self.require_healthy(tx, account)

    async def redeem_collateral_and_mint_dsc(
        self, account: str, asset: str, amount: int, mint_amount: int
    ) -> None:
        async with self._ledger.transaction(account) as tx:
            self.apply_redeem(tx, account, asset, amount)
            self.apply_mint(tx, account, mint_amount)
            await self.require_healthy(tx, account)

    async def redeem_collateral_for_dsc(
        self, account: str, asset: str, amount: int, burn_amount: int
    ) -> None:
        """Burn DSC and take collateral back in one step."""
        async with self._ledger.transaction(account) as tx:
            await self.apply_burn(tx, account, burn_amount, dsc_from=account)
            self.apply_redeem(tx, account, asset, amount)
            await self.require_healthy(tx, account)
