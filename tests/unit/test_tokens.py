"""Unit tests for the in-memory token collaborators."""
from __future__ import annotations

import pytest

from dsc_engine.tokens import InMemoryToken, StableCoin


class TestInMemoryToken:
    def test_transfer(self) -> None:
        token = InMemoryToken("WETH")
        token.faucet("alice", 10)
        assert token.transfer("alice", "bob", 4)
        assert token.balance_of("alice") == 6
        assert token.balance_of("bob") == 4

    def test_transfer_more_than_balance_fails(self) -> None:
        token = InMemoryToken("WETH")
        token.faucet("alice", 1)
        assert not token.transfer("alice", "bob", 2)
        assert token.balance_of("alice") == 1

    def test_transfer_from_requires_allowance(self) -> None:
        token = InMemoryToken("WETH")
        token.faucet("alice", 10)
        assert not token.transfer_from("engine", "alice", "engine", 5)

        token.approve("alice", "engine", 5)
        assert token.transfer_from("engine", "alice", "engine", 5)
        assert token.allowance("alice", "engine") == 0
        assert token.balance_of("engine") == 5

    @pytest.mark.asyncio
    async def test_client_is_bound_to_caller(self) -> None:
        token = InMemoryToken("WBTC", 8)
        token.faucet("alice", 100)
        token.approve("alice", "engine", 100)
        client = token.connect("engine")

        assert client.symbol == "WBTC"
        assert client.decimals == 8
        assert await client.transfer_from("alice", "engine", 60)
        assert await client.transfer("bob", 10)
        assert token.balance_of("engine") == 50
        assert token.balance_of("bob") == 10


class TestStableCoin:
    def test_minter_granted_once(self) -> None:
        dsc = StableCoin()
        dsc.grant_minter("engine")
        with pytest.raises(PermissionError):
            dsc.grant_minter("attacker")

    @pytest.mark.asyncio
    async def test_mint_and_burn(self) -> None:
        dsc = StableCoin()
        minter = dsc.grant_minter("engine")

        assert await minter.mint("alice", 100)
        assert dsc.total_supply == 100
        assert not await minter.burn_from("alice", 40)  # not approved

        dsc.approve("alice", "engine", 40)
        assert await minter.transfer_approval_check("alice", 40)
        assert await minter.burn_from("alice", 40)
        assert await minter.balance_of("alice") == 60
        assert dsc.total_supply == 60

    @pytest.mark.asyncio
    async def test_mint_rejects_zero(self) -> None:
        minter = StableCoin().grant_minter("engine")
        assert not await minter.mint("alice", 0)

    @pytest.mark.asyncio
    async def test_retract_undoes_mint(self) -> None:
        dsc = StableCoin()
        minter = dsc.grant_minter("engine")
        await minter.mint("alice", 100)
        assert await minter.retract("alice", 100)
        assert dsc.balance_of("alice") == 0
        assert dsc.total_supply == 0

    @pytest.mark.asyncio
    async def test_unburn_restores_balance_and_allowance(self) -> None:
        dsc = StableCoin()
        minter = dsc.grant_minter("engine")
        await minter.mint("alice", 100)
        dsc.approve("alice", "engine", 100)
        await minter.burn_from("alice", 100)

        assert await minter.unburn("alice", 100)
        assert dsc.balance_of("alice") == 100
        assert dsc.allowance("alice", "engine") == 100
        assert dsc.total_supply == 100
