"""Collateral custody and liability token protocols."""
from typing import Protocol


class CollateralToken(Protocol):
    """Transfer handle for one collateral asset, bound to the engine's custody address.

    ``transfer_from`` pulls funds the owner approved to the custody address;
    ``transfer`` pays out of custody. Both report failure by returning False.
    """

    @property
    def symbol(self) -> str: ...

    @property
    def decimals(self) -> int: ...

    async def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...

    async def transfer(self, recipient: str, amount: int) -> bool: ...


class LiabilityToken(Protocol):
    """Mint/burn capability over the pegged liability token."""

    async def mint(self, account: str, amount: int) -> bool: ...

    async def burn_from(self, account: str, amount: int) -> bool: ...

    async def retract(self, account: str, amount: int) -> bool: ...

    async def unburn(self, account: str, amount: int) -> bool: ...

    async def balance_of(self, account: str) -> int: ...

    async def transfer_approval_check(self, owner: str, amount: int) -> bool: ...
