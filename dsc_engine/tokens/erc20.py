"""Minimal in-memory fungible token with balances and allowances."""
from __future__ import annotations

import logging
from collections import defaultdict

logger = logging.getLogger(__name__)


class InMemoryToken:
    """Fungible token ledger. Every mutating call names its caller explicitly."""

    def __init__(self, symbol: str, decimals: int = 18) -> None:
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self._balances: dict[str, int] = defaultdict(int)
        self._allowances: dict[tuple[str, str], int] = defaultdict(int)

    def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        if amount < 0:
            return False
        self._allowances[(owner, spender)] = amount
        return True

    def faucet(self, account: str, amount: int) -> None:
        """Create ``amount`` units out of thin air for ``account``."""
        self._credit(account, amount)

    def transfer(self, caller: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(caller) < amount:
            logger.debug("%s transfer %s -> %s of %d refused", self.symbol, caller, recipient, amount)
            return False
        self._balances[caller] -= amount
        self._balances[recipient] += amount
        return True

    def transfer_from(self, caller: str, sender: str, recipient: str, amount: int) -> bool:
        if amount < 0 or self.allowance(sender, caller) < amount:
            logger.debug("%s transfer_from by %s: allowance too low", self.symbol, caller)
            return False
        if self.balance_of(sender) < amount:
            return False
        self._allowances[(sender, caller)] -= amount
        self._balances[sender] -= amount
        self._balances[recipient] += amount
        return True

    def connect(self, caller: str) -> TokenClient:
        return TokenClient(self, caller)

    def _credit(self, account: str, amount: int) -> None:
        self._balances[account] += amount
        self.total_supply += amount

    def _debit(self, account: str, amount: int) -> bool:
        if amount < 0 or self.balance_of(account) < amount:
            return False
        self._balances[account] -= amount
        self.total_supply -= amount
        return True


class TokenClient:
    """Async transfer handle bound to one caller address."""

    def __init__(self, token: InMemoryToken, caller: str) -> None:
        self._token = token
        self.caller = caller

    @property
    def symbol(self) -> str:
        return self._token.symbol

    @property
    def decimals(self) -> int:
        return self._token.decimals

    async def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        return self._token.transfer_from(self.caller, sender, recipient, amount)

    async def transfer(self, recipient: str, amount: int) -> bool:
        return self._token.transfer(self.caller, recipient, amount)

    async def balance_of(self, account: str) -> int:
        return self._token.balance_of(account)
