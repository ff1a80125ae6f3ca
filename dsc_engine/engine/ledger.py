"""Collateral ledger: per-account collateral and debt records.

The ledger is the only owner of account state. Every mutation runs inside a
:class:`LedgerTransaction`: changes are made on working copies of the locked
accounts, collaborator calls (custody transfers, mint/burn) are deferred until
all checks have passed, and the working copies are published only once every
collaborator call succeeded. Readers outside a transaction therefore only ever
see committed state.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import AsyncIterator, Awaitable, Callable, Mapping

from ..errors import (
    BurnAmountExceedsBalance,
    CollaboratorError,
    InsufficientCollateral,
    NeedsMoreThanZero,
    TokenNotAllowed,
    TransferFailed,
)
from ..interfaces.token import CollateralToken
from ..models import Asset
from ..oracles.price_oracle import PriceOracle, QuoteCache
from .locks import AccountLocks

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[bool]]


def require_positive(amount: int) -> None:
    if amount <= 0:
        raise NeedsMoreThanZero(amount)


@dataclass
class AccountRecord:
    collateral: dict[str, int] = field(default_factory=dict)
    debt: int = 0

    def copy(self) -> AccountRecord:
        return AccountRecord(collateral=dict(self.collateral), debt=self.debt)

    def is_empty(self) -> bool:
        return self.debt == 0 and not any(self.collateral.values())


@dataclass
class _Effect:
    description: str
    action: Action
    undo: Action | None
    error: type[CollaboratorError]


class LedgerTransaction:
    """Working view of the locked accounts for one operation."""

    def __init__(
        self, ledger: CollateralLedger, accounts: tuple[str, ...], quotes: QuoteCache
    ) -> None:
        self._ledger = ledger
        self._working = {a: ledger.snapshot(a) for a in accounts}
        self._effects: list[_Effect] = []
        self._events: list[tuple[str, dict[str, object]]] = []
        self.quotes = quotes

    def record(self, account: str) -> AccountRecord:
        try:
            return self._working[account]
        except KeyError:
            raise RuntimeError(f"Account {account} is not part of this transaction") from None

    # -- collateral ---------------------------------------------------------

    def credit_collateral(self, account: str, asset: str, amount: int) -> None:
        rec = self.record(account)
        rec.collateral[asset] = rec.collateral.get(asset, 0) + amount

    def debit_collateral(
        self,
        account: str,
        asset: str,
        amount: int,
        error: type[InsufficientCollateral] = InsufficientCollateral,
    ) -> None:
        rec = self.record(account)
        available = rec.collateral.get(asset, 0)
        if amount > available:
            raise error(account, asset, amount, available)
        rec.collateral[asset] = available - amount

    # -- debt ---------------------------------------------------------------

    def add_debt(self, account: str, amount: int) -> None:
        self.record(account).debt += amount

    def remove_debt(self, account: str, amount: int) -> None:
        rec = self.record(account)
        if amount > rec.debt:
            raise BurnAmountExceedsBalance(account, amount, rec.debt)
        rec.debt -= amount

    # -- valuation ----------------------------------------------------------

    async def collateral_value(self, account: str) -> int:
        return await self._ledger.value_of(self.record(account), self.quotes)

    # -- effects ------------------------------------------------------------

    def defer(
        self,
        description: str,
        action: Action,
        undo: Action | None = None,
        error: type[CollaboratorError] = TransferFailed,
    ) -> None:
        """Schedule a collaborator call for commit time.

        Effects with an ``undo`` run first, in scheduling order; irreversible
        effects run last so a later failure never strands one.
        """
        self._effects.append(_Effect(description, action, undo, error))

    def emit(self, event: str, **fields: object) -> None:
        self._events.append((event, fields))

    async def _run_effects(self) -> None:
        ordered = [e for e in self._effects if e.undo is not None]
        ordered += [e for e in self._effects if e.undo is None]

        done: list[_Effect] = []
        for effect in ordered:
            try:
                ok = await effect.action()
            except Exception:
                await self._compensate(done)
                raise
            if ok:
                done.append(effect)
                continue
            logger.warning("Collaborator call failed: %s", effect.description)
            await self._compensate(done)
            raise effect.error(f"{effect.description} failed")

    @staticmethod
    async def _compensate(done: list[_Effect]) -> None:
        for effect in reversed(done):
            if effect.undo is None or not await effect.undo():
                logger.error("Could not compensate: %s", effect.description)

    async def commit(self) -> None:
        await self._run_effects()
        self._ledger._publish(self._working)
        for event, fields in self._events:
            logger.info(
                "%s %s", event, " ".join(f"{k}={v}" for k, v in fields.items())
            )


class CollateralLedger:
    """Account bookkeeping over a fixed set of collateral assets."""

    def __init__(
        self,
        assets: Mapping[str, Asset],
        tokens: Mapping[str, CollateralToken],
        oracle: PriceOracle,
        custody: str,
    ) -> None:
        self.assets = dict(assets)
        self._tokens = dict(tokens)
        self._oracle = oracle
        self.custody = custody
        self._records: dict[str, AccountRecord] = {}
        self._locks = AccountLocks()

    # ------------------------------------------------------------------
    # Committed reads
    # ------------------------------------------------------------------

    def asset(self, symbol: str) -> Asset:
        registered = self.assets.get(symbol)
        if registered is None:
            raise TokenNotAllowed(symbol)
        return registered

    def snapshot(self, account: str) -> AccountRecord:
        rec = self._records.get(account)
        return rec.copy() if rec else AccountRecord()

    def collateral_of(self, account: str, asset: str) -> int:
        rec = self._records.get(account)
        return rec.collateral.get(asset, 0) if rec else 0

    def debt_of(self, account: str) -> int:
        rec = self._records.get(account)
        return rec.debt if rec else 0

    def accounts(self) -> list[str]:
        return sorted(self._records)

    def total_debt(self) -> int:
        return sum(rec.debt for rec in self._records.values())

    def total_collateral(self) -> dict[str, int]:
        totals = {symbol: 0 for symbol in self.assets}
        for rec in self._records.values():
            for asset, amount in rec.collateral.items():
                totals[asset] += amount
        return totals

    # ------------------------------------------------------------------
    # Valuation
    # ------------------------------------------------------------------

    async def value_of(self, record: AccountRecord, quotes: QuoteCache) -> int:
        """USD value of a record; any oracle failure on a held asset propagates."""
        total = 0
        for symbol, amount in sorted(record.collateral.items()):
            if amount:
                total += await quotes.usd_value(self.assets[symbol], amount)
        return total

    async def collateral_value(self, account: str, quotes: QuoteCache | None = None) -> int:
        return await self.value_of(self.snapshot(account), quotes or self._oracle.session())

    async def token_amount_from_usd_value(
        self, asset: str, usd_value: int, quotes: QuoteCache | None = None
    ) -> int:
        quotes = quotes or self._oracle.session()
        return await quotes.token_amount(self.asset(asset), usd_value)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def transaction(self, *accounts: str) -> AsyncIterator[LedgerTransaction]:
        """Lock ``accounts`` and yield a transaction committed on clean exit.

        If the body raises, nothing is published and no collaborator has been
        called.
        """
        async with self._locks.hold(*accounts):
            tx = LedgerTransaction(self, tuple(accounts), self._oracle.session())
            yield tx
            await tx.commit()

    def deposit(self, tx: LedgerTransaction, account: str, asset: str, amount: int) -> None:
        require_positive(amount)
        self.asset(asset)
        token = self._tokens[asset]

        tx.credit_collateral(account, asset, amount)
        tx.defer(
            f"transfer of {amount} {asset} from {account} into custody",
            lambda: token.transfer_from(account, self.custody, amount),
            undo=lambda: token.transfer(account, amount),
        )
        tx.emit("CollateralDeposited", user=account, token=asset, amount=amount)

    def withdraw(
        self,
        tx: LedgerTransaction,
        account: str,
        asset: str,
        amount: int,
        recipient: str | None = None,
        error: type[InsufficientCollateral] = InsufficientCollateral,
    ) -> None:
        require_positive(amount)
        self.asset(asset)
        token = self._tokens[asset]
        recipient = recipient or account

        tx.debit_collateral(account, asset, amount, error)
        tx.defer(
            f"release of {amount} {asset} from custody to {recipient}",
            lambda: token.transfer(recipient, amount),
        )
        tx.emit(
            "CollateralRedeemed",
            redeemed_from=account,
            redeemed_to=recipient,
            token=asset,
            amount=amount,
        )

    def _publish(self, working: Mapping[str, AccountRecord]) -> None:
        for account, rec in working.items():
            rec.collateral = {a: v for a, v in rec.collateral.items() if v}
            if rec.is_empty():
                self._records.pop(account, None)
            else:
                self._records[account] = rec
