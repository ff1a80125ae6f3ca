"""Per-account mutual exclusion for ledger mutations."""
from __future__ import annotations

import asyncio
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

from ..errors import ReentrantCall


class AccountLocks:
    """One ``asyncio.Lock`` per account with a holder or waiter.

    Several accounts are always acquired in sorted order so two multi-account
    operations cannot deadlock. A task that already holds an account and asks
    for it again gets :class:`ReentrantCall` instead of waiting on itself.
    A lock is dropped as soon as its last holder or waiter lets go.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}
        self._holders: dict[str, asyncio.Task | None] = {}

    def __len__(self) -> int:
        return len(self._locks)

    def locked(self, account: str) -> bool:
        lock = self._locks.get(account)
        return lock is not None and lock.locked()

    def _acquire_ref(self, account: str) -> asyncio.Lock:
        self._users[account] = self._users.get(account, 0) + 1
        return self._locks.setdefault(account, asyncio.Lock())

    def _release_ref(self, account: str) -> None:
        self._users[account] -= 1
        if self._users[account] == 0:
            del self._users[account]
            del self._locks[account]

    @asynccontextmanager
    async def hold(self, *accounts: str) -> AsyncIterator[None]:
        task = asyncio.current_task()
        ordered = sorted(set(accounts))
        for account in ordered:
            if account in self._holders and self._holders[account] is task:
                raise ReentrantCall(account)

        async with AsyncExitStack() as stack:
            for account in ordered:
                # Registered before waiting so a cancelled waiter still lets go.
                lock = self._acquire_ref(account)
                stack.callback(self._release_ref, account)
                await stack.enter_async_context(lock)
                self._holders[account] = task
                stack.callback(self._holders.pop, account, None)
            yield
