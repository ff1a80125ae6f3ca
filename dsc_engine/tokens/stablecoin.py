"""Pegged liability token and the minting capability handed to the engine."""
from __future__ import annotations

from ..constants import DSC_DECIMALS
from .erc20 import InMemoryToken


class StableCoin(InMemoryToken):
    """DSC token. Supply changes only through the single :class:`Minter`."""

    def __init__(self, symbol: str = "DSC") -> None:
        super().__init__(symbol, DSC_DECIMALS)
        self._minter: Minter | None = None

    def grant_minter(self, holder: str) -> Minter:
        """Issue the mint/burn capability. Can be called once."""
        if self._minter is not None:
            raise PermissionError(
                f"{self.symbol} minter already granted to {self._minter.holder}"
            )
        self._minter = Minter(self, holder)
        return self._minter


class Minter:
    """Exclusive mint/burn handle over a :class:`StableCoin`.

    Burning pulls tokens the owner approved to ``holder`` and retires them.
    """

    def __init__(self, token: StableCoin, holder: str) -> None:
        self._token = token
        self.holder = holder

    async def mint(self, account: str, amount: int) -> bool:
        if amount <= 0:
            return False
        self._token._credit(account, amount)
        return True

    async def transfer_approval_check(self, owner: str, amount: int) -> bool:
        return (
            self._token.balance_of(owner) >= amount
            and self._token.allowance(owner, self.holder) >= amount
        )

    async def burn_from(self, account: str, amount: int) -> bool:
        if amount <= 0 or not await self.transfer_approval_check(account, amount):
            return False
        if not self._token.transfer_from(self.holder, account, self.holder, amount):
            return False
        return self._token._debit(self.holder, amount)

    async def retract(self, account: str, amount: int) -> bool:
        """Undo a mint issued earlier in the same operation."""
        return self._token._debit(account, amount)

    async def unburn(self, account: str, amount: int) -> bool:
        """Undo a burn_from: reissue the tokens and restore the allowance it spent."""
        if amount <= 0:
            return False
        self._token._credit(account, amount)
        self._token._allowances[(account, self.holder)] += amount
        return True

    async def balance_of(self, account: str) -> int:
        return self._token.balance_of(account)
