"""DSC engine facade: construction, operations and read-only accessors."""
from __future__ import annotations

import logging
from typing import Callable, Sequence

from ..config import EngineSettings
from ..constants import PRECISION
from ..errors import TokenAddressesAndPriceFeedAddressesMustBeEqual, UnknownAsset
from ..interfaces.price_feed import PriceFeed
from ..interfaces.token import CollateralToken, LiabilityToken
from ..models import AccountInformation, Asset, LiquidationResult
from ..oracles.price_oracle import PriceOracle
from ..oracles.static import system_clock
from .health import HealthFactorCalculator
from .ledger import CollateralLedger
from .liquidation import LiquidationEngine
from .positions import PositionManager

logger = logging.getLogger(__name__)


class DSCEngine:
    """Overcollateralized stablecoin engine.

    Args:
        collateral_tokens: transfer handles for each supported collateral,
            bound to ``address`` (the custody account).
        price_feed_ids: feed identifier for each token, same order.
        price_feed: upstream oracle network.
        dsc: the liability-token mint capability.
        settings: protocol parameters.
        clock: unix-seconds clock used for staleness checks.
        address: custody account holding deposited collateral.
    """

    def __init__(
        self,
        collateral_tokens: Sequence[CollateralToken],
        price_feed_ids: Sequence[str],
        price_feed: PriceFeed,
        dsc: LiabilityToken,
        settings: EngineSettings | None = None,
        clock: Callable[[], int] = system_clock,
        address: str = "dsc-engine",
    ) -> None:
        if len(collateral_tokens) != len(price_feed_ids):
            raise TokenAddressesAndPriceFeedAddressesMustBeEqual(
                len(collateral_tokens), len(price_feed_ids)
            )

        self._settings = settings or EngineSettings()
        self.address = address

        assets: dict[str, Asset] = {}
        tokens: dict[str, CollateralToken] = {}
        for token, feed_id in zip(collateral_tokens, price_feed_ids):
            if token.symbol in assets:
                raise ValueError(f"Collateral token '{token.symbol}' registered twice")
            assets[token.symbol] = Asset(token.symbol, token.decimals, feed_id)
            tokens[token.symbol] = token

        self._oracle = PriceOracle(
            price_feed, assets, self._settings.staleness_window_seconds, clock
        )
        self._ledger = CollateralLedger(assets, tokens, self._oracle, custody=address)
        self._calculator = HealthFactorCalculator(self._settings)
        self._positions = PositionManager(self._ledger, dsc, self._calculator)
        self._liquidations = LiquidationEngine(
            self._ledger, self._positions, self._calculator, self._settings
        )
        logger.info(
            "DSC engine ready with collateral: %s", ", ".join(sorted(assets)) or "none"
        )

    # ------------------------------------------------------------------
    # Position operations
    # ------------------------------------------------------------------

    async def deposit_collateral(self, account: str, asset: str, amount: int) -> None:
        await self._positions.deposit_collateral(account, asset, amount)

    async def mint_dsc(self, account: str, amount: int) -> None:
        await self._positions.mint_dsc(account, amount)

    async def deposit_collateral_and_mint_dsc(
        self, account: str, asset: str, amount: int, mint_amount: int
    ) -> None:
        await self._positions.deposit_collateral_and_mint_dsc(
            account, asset, amount, mint_amount
        )

    async def burn_dsc(self, account: str, amount: int) -> None:
        await self._positions.burn_dsc(account, amount)

    async def redeem_collateral(self, account: str, asset: str, amount: int) -> None:
        await self._positions.redeem_collateral(account, asset, amount)

    async def redeem_collateral_and_mint_dsc(
        self, account: str, asset: str, amount: int, mint_amount: int
    ) -> None:
        await self._positions.redeem_collateral_and_mint_dsc(
            account, asset, amount, mint_amount
        )

    async def redeem_collateral_for_dsc(
        self, account: str, asset: str, amount: int, burn_amount: int
    ) -> None:
        await self._positions.redeem_collateral_for_dsc(
            account, asset, amount, burn_amount
        )

    async def liquidate(
        self, liquidator: str, asset: str, target: str, debt_to_cover: int
    ) -> LiquidationResult:
        return await self._liquidations.liquidate(liquidator, asset, target, debt_to_cover)

    # ------------------------------------------------------------------
    # Read-only accessors
    # ------------------------------------------------------------------

    def _registered(self, asset: str) -> Asset:
        registered = self._ledger.assets.get(asset)
        if registered is None:
            raise UnknownAsset(asset)
        return registered

    async def get_account_information(self, account: str) -> AccountInformation:
        record = self._ledger.snapshot(account)
        value = await self._ledger.value_of(record, self._oracle.session())
        return AccountInformation(
            total_dsc_minted=record.debt, collateral_value_in_usd=value
        )

    async def get_health_factor(self, account: str) -> int:
        record = self._ledger.snapshot(account)
        if record.debt == 0:
            return self._calculator.health_factor(0, 0)
        value = await self._ledger.value_of(record, self._oracle.session())
        return self._calculator.health_factor(record.debt, value)

    async def get_usd_value(self, asset: str, amount: int) -> int:
        return await self._oracle.session().usd_value(self._registered(asset), amount)

    async def get_token_amount_from_usd(self, asset: str, usd_value: int) -> int:
        return await self._oracle.session().token_amount(self._registered(asset), usd_value)

    async def get_total_collateral_value(self) -> int:
        quotes = self._oracle.session()
        total = 0
        for symbol, amount in self._ledger.total_collateral().items():
            if amount:
                total += await quotes.usd_value(self._ledger.assets[symbol], amount)
        return total

    def calculate_health_factor(self, total_dsc_minted: int, collateral_value_in_usd: int) -> int:
        return self._calculator.health_factor(total_dsc_minted, collateral_value_in_usd)

    def get_collateral_token_price_feed(self, asset: str) -> str | None:
        return self._oracle.feed_id(asset)

    def get_collateral_tokens(self) -> list[str]:
        return list(self._ledger.assets)

    def get_collateral_balance_of_user(self, account: str, asset: str) -> int:
        return self._ledger.collateral_of(account, asset)

    def get_dsc_minted(self, account: str) -> int:
        return self._ledger.debt_of(account)

    def get_total_debt(self) -> int:
        return self._ledger.total_debt()

    def get_accounts(self) -> list[str]:
        return self._ledger.accounts()

    def get_precision(self) -> int:
        return PRECISION

    def get_liquidation_threshold(self) -> int:
        return self._settings.liquidation_threshold

    def get_liquidation_precision(self) -> int:
        return self._settings.liquidation_precision

    def get_liquidation_bonus(self) -> int:
        return self._settings.liquidation_bonus

    def get_min_health_factor(self) -> int:
        return self._settings.min_health_factor

    def get_staleness_window(self) -> int:
        return self._oracle.staleness_window
