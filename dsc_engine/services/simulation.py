"""Engine wiring from config and scripted scenario replay."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable

import yaml

from .. import errors
from ..config import AppConfig
from ..engine import DSCEngine
from ..interfaces.price_feed import PriceFeed
from ..oracles import ManualClock, PythPriceFeed, StaticPriceFeed
from ..oracles.static import system_clock
from ..tokens import InMemoryToken, StableCoin
from ..units import format_health_factor, to_base_units

logger = logging.getLogger(__name__)

ENGINE_ADDRESS = "dsc-engine"


class ScenarioError(Exception):
    """A scenario step is malformed or did not behave as expected."""


@dataclass
class Deployment:
    engine: DSCEngine
    dsc: StableCoin
    tokens: dict[str, InMemoryToken]
    feed: PriceFeed
    clock: Callable[[], int]


def build_price_feed(config: AppConfig, clock: Callable[[], int]) -> PriceFeed:
    oracle_cfg = config.price_oracle
    if oracle_cfg.provider == "pyth":
        return PythPriceFeed(oracle_cfg.pyth)

    feed = StaticPriceFeed(decimals=oracle_cfg.static.decimals, clock=clock)
    for asset in config.assets:
        feed.set_price(asset.feed_id, oracle_cfg.static.prices[asset.symbol])
    return feed


def build_engine(config: AppConfig, clock: Callable[[], int] | None = None) -> Deployment:
    """Deploy an engine over in-memory collateral tokens and a fresh DSC."""
    if clock is None:
        clock = system_clock if config.price_oracle.provider == "pyth" else ManualClock()
    dsc = StableCoin()
    tokens = {a.symbol: InMemoryToken(a.symbol, a.decimals) for a in config.assets}
    feed = build_price_feed(config, clock)

    engine = DSCEngine(
        collateral_tokens=[tokens[a.symbol].connect(ENGINE_ADDRESS) for a in config.assets],
        price_feed_ids=[a.feed_id for a in config.assets],
        price_feed=feed,
        dsc=dsc.grant_minter(ENGINE_ADDRESS),
        settings=config.engine,
        clock=clock,
        address=ENGINE_ADDRESS,
    )
    return Deployment(engine=engine, dsc=dsc, tokens=tokens, feed=feed, clock=clock)


@dataclass
class StepResult:
    index: int
    action: str
    ok: bool
    error: str = ""
    details: dict[str, Any] = field(default_factory=dict)


class ScenarioRunner:
    """Replays a list of steps against a :class:`Deployment`.

    Amounts are human-readable decimal strings converted with the token's
    decimals. A step may name an ``expect_error`` (an engine exception class
    name); the scenario fails if the step raises anything else or succeeds.
    """

    def __init__(self, deployment: Deployment) -> None:
        self._d = deployment
        self._actions: dict[str, Callable[[dict[str, Any]], Any]] = {
            "faucet": self._faucet,
            "approve": self._approve,
            "transfer": self._transfer,
            "deposit": self._deposit,
            "mint": self._mint,
            "deposit_and_mint": self._deposit_and_mint,
            "burn": self._burn,
            "redeem": self._redeem,
            "redeem_and_mint": self._redeem_and_mint,
            "redeem_for_dsc": self._redeem_for_dsc,
            "liquidate": self._liquidate,
            "set_price": self._set_price,
            "advance_time": self._advance_time,
        }

    @staticmethod
    def load(path: str | Path) -> list[dict[str, Any]]:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Scenario file not found: {path}")
        with open(path) as f:
            raw = yaml.safe_load(f) or {}
        steps = raw.get("steps", [])
        if not isinstance(steps, list):
            raise ScenarioError("'steps' must be a list")
        return steps

    # ------------------------------------------------------------------
    # Amount helpers
    # ------------------------------------------------------------------

    def _token(self, symbol: str) -> InMemoryToken:
        if symbol == self._d.dsc.symbol:
            return self._d.dsc
        try:
            return self._d.tokens[symbol]
        except KeyError:
            raise ScenarioError(f"Unknown token '{symbol}'") from None

    def _amount(self, step: dict[str, Any], key: str = "amount", symbol: str | None = None) -> int:
        if key not in step:
            raise ScenarioError(f"Step is missing '{key}'")
        symbol = symbol or step["asset"]
        # Unregistered symbols still parse so the engine can reject them itself.
        token = self._d.tokens.get(symbol)
        decimals = token.decimals if token else self._d.dsc.decimals
        return to_base_units(step[key], decimals)

    def _dsc_amount(self, step: dict[str, Any], key: str) -> int:
        return self._amount(step, key, self._d.dsc.symbol)

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    async def _faucet(self, step: dict[str, Any]) -> None:
        if step["asset"] == self._d.dsc.symbol:
            raise ScenarioError("DSC can only be obtained by minting")
        self._token(step["asset"]).faucet(step["account"], self._amount(step))

    async def _approve(self, step: dict[str, Any]) -> None:
        spender = step.get("spender", ENGINE_ADDRESS)
        self._token(step["asset"]).approve(step["account"], spender, self._amount(step))

    async def _transfer(self, step: dict[str, Any]) -> None:
        if not self._token(step["asset"]).transfer(step["account"], step["to"], self._amount(step)):
            raise errors.TransferFailed(f"{step['account']} could not transfer {step['asset']}")

    async def _deposit(self, step: dict[str, Any]) -> None:
        await self._d.engine.deposit_collateral(step["account"], step["asset"], self._amount(step))

    async def _mint(self, step: dict[str, Any]) -> None:
        await self._d.engine.mint_dsc(step["account"], self._dsc_amount(step, "amount"))

    async def _deposit_and_mint(self, step: dict[str, Any]) -> None:
        await self._d.engine.deposit_collateral_and_mint_dsc(
            step["account"], step["asset"], self._amount(step), self._dsc_amount(step, "mint")
        )

    async def _burn(self, step: dict[str, Any]) -> None:
        await self._d.engine.burn_dsc(step["account"], self._dsc_amount(step, "amount"))

    async def _redeem(self, step: dict[str, Any]) -> None:
        await self._d.engine.redeem_collateral(step["account"], step["asset"], self._amount(step))

    async def _redeem_and_mint(self, step: dict[str, Any]) -> None:
        await self._d.engine.redeem_collateral_and_mint_dsc(
            step["account"], step["asset"], self._amount(step), self._dsc_amount(step, "mint")
        )

    async def _redeem_for_dsc(self, step: dict[str, Any]) -> None:
        await self._d.engine.redeem_collateral_for_dsc(
            step["account"], step["asset"], self._amount(step), self._dsc_amount(step, "burn")
        )

    async def _liquidate(self, step: dict[str, Any]) -> dict[str, Any]:
        result = await self._d.engine.liquidate(
            step["account"], step["asset"], step["target"], self._dsc_amount(step, "amount")
        )
        return {
            "collateral_seized": result.collateral_seized,
            "bonus_collateral": result.bonus_collateral,
            "health_factor": format_health_factor(result.ending_health_factor),
        }

    async def _set_price(self, step: dict[str, Any]) -> None:
        feed = self._d.feed
        if not isinstance(feed, StaticPriceFeed):
            raise ScenarioError("set_price requires the static price oracle")
        feed_id = self._d.engine.get_collateral_token_price_feed(step["asset"])
        if feed_id is None:
            raise ScenarioError(f"No price feed for '{step['asset']}'")
        feed.set_price(feed_id, step["price"])

    async def _advance_time(self, step: dict[str, Any]) -> None:
        clock = self._d.clock
        if not isinstance(clock, ManualClock):
            raise ScenarioError("advance_time requires a manual clock")
        clock.advance(int(step["seconds"]))

    # ------------------------------------------------------------------
    # Replay
    # ------------------------------------------------------------------

    async def run_step(self, index: int, step: dict[str, Any]) -> StepResult:
        action_name = step.get("action", "")
        action = self._actions.get(action_name)
        if action is None:
            raise ScenarioError(f"Step {index}: unknown action '{action_name}'")

        expected = step.get("expect_error")
        try:
            details = await action(step) or {}
        except errors.EngineError as e:
            name = type(e).__name__
            if expected is None:
                logger.warning("Step %d (%s) failed: %s", index, action_name, e)
                return StepResult(index, action_name, ok=False, error=name)
            expected_cls = getattr(errors, expected, None)
            if expected_cls is None or not isinstance(e, expected_cls):
                raise ScenarioError(
                    f"Step {index}: expected {expected}, got {name}: {e}"
                ) from e
            logger.info("Step %d (%s) failed as expected: %s", index, action_name, name)
            return StepResult(index, action_name, ok=True, error=name)
        except KeyError as e:
            raise ScenarioError(f"Step {index}: missing field {e}") from None

        if expected is not None:
            raise ScenarioError(f"Step {index}: expected {expected}, but it succeeded")

        logger.info("Step %d (%s) ok %s", index, action_name, details or "")
        return StepResult(index, action_name, ok=True, details=details)

    async def run(self, steps: list[dict[str, Any]]) -> list[StepResult]:
        return [await self.run_step(i, step) for i, step in enumerate(steps, start=1)]
