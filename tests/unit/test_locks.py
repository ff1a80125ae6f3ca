"""Unit tests for per-account locking."""
from __future__ import annotations

import asyncio

import pytest

from dsc_engine.engine.locks import AccountLocks
from dsc_engine.errors import ReentrantCall


class TestAccountLocks:
    @pytest.mark.asyncio
    async def test_same_account_is_serialized(self) -> None:
        locks = AccountLocks()
        events: list[str] = []

        async def op(name: str) -> None:
            async with locks.hold("alice"):
                events.append(f"{name}-start")
                await asyncio.sleep(0)
                await asyncio.sleep(0)
                events.append(f"{name}-end")

        await asyncio.gather(op("a"), op("b"))
        assert events == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_disjoint_accounts_interleave(self) -> None:
        locks = AccountLocks()
        events: list[str] = []

        async def op(account: str) -> None:
            async with locks.hold(account):
                events.append(f"{account}-start")
                await asyncio.sleep(0)
                events.append(f"{account}-end")

        await asyncio.gather(op("alice"), op("bob"))
        assert events.index("bob-start") < events.index("alice-end")

    @pytest.mark.asyncio
    async def test_reentry_raises(self) -> None:
        locks = AccountLocks()
        async with locks.hold("alice"):
            with pytest.raises(ReentrantCall):
                async with locks.hold("bob", "alice"):
                    pass
        assert not locks.locked("alice")
        assert not locks.locked("bob")

    @pytest.mark.asyncio
    async def test_released_after_error(self) -> None:
        locks = AccountLocks()
        with pytest.raises(RuntimeError):
            async with locks.hold("alice"):
                raise RuntimeError("boom")
        assert not locks.locked("alice")
        async with locks.hold("alice"):
            pass

    @pytest.mark.asyncio
    async def test_opposite_order_does_not_deadlock(self) -> None:
        locks = AccountLocks()

        async def op(*accounts: str) -> None:
            async with locks.hold(*accounts):
                await asyncio.sleep(0)

        await asyncio.wait_for(
            asyncio.gather(op("alice", "bob"), op("bob", "alice")), timeout=1
        )

    @pytest.mark.asyncio
    async def test_lock_dropped_after_release(self) -> None:
        locks = AccountLocks()
        async with locks.hold("alice", "bob"):
            assert len(locks) == 2
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_lock_kept_while_others_wait(self) -> None:
        locks = AccountLocks()
        entered = asyncio.Event()
        release = asyncio.Event()

        async def first() -> None:
            async with locks.hold("alice"):
                entered.set()
                await release.wait()

        async def second() -> None:
            async with locks.hold("alice"):
                assert locks.locked("alice")

        t1 = asyncio.create_task(first())
        await entered.wait()
        t2 = asyncio.create_task(second())
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(t1, t2)
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_no_locks_left_after_failures(self) -> None:
        locks = AccountLocks()
        for i in range(100):
            with pytest.raises(RuntimeError):
                async with locks.hold(f"ghost{i}"):
                    raise RuntimeError("rejected")
        async with locks.hold("alice"):
            with pytest.raises(ReentrantCall):
                async with locks.hold("alice"):
                    pass
        assert len(locks) == 0

    @pytest.mark.asyncio
    async def test_cancelled_waiter_releases_its_entry(self) -> None:
        locks = AccountLocks()
        async with locks.hold("alice"):
            waiter = asyncio.create_task(locks.hold("alice").__aenter__())
            await asyncio.sleep(0)
            waiter.cancel()
            with pytest.raises(asyncio.CancelledError):
                await waiter
        assert len(locks) == 0
