"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from dsc_engine.config import (
    AppConfig,
    AssetConfig,
    EngineSettings,
    MonitorConfig,
    NotificationsConfig,
    PriceOracleConfig,
    StaticFeedConfig,
    TelegramConfig,
)
from dsc_engine.engine import DSCEngine
from dsc_engine.oracles import ManualClock, StaticPriceFeed
from dsc_engine.tokens import InMemoryToken, StableCoin

ENGINE = "dsc-engine"
USER = "alice"
LIQUIDATOR = "bob"

ETH_FEED = "ETH/USD"
BTC_FEED = "BTC/USD"
ETH_USD_PRICE = "2000"
BTC_USD_PRICE = "1000"

ETHER = 10**18
COLLATERAL_AMOUNT = 10 * ETHER  # 10 WETH = $20,000
AMOUNT_TO_MINT = 100 * ETHER
STARTING_BALANCE = 100 * ETHER

GENESIS = 1_700_000_000


# ---------------------------------------------------------------------------
# Collaborator fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> ManualClock:
    return ManualClock(GENESIS)


@pytest.fixture()
def price_feed(clock: ManualClock) -> StaticPriceFeed:
    feed = StaticPriceFeed(decimals=8, clock=clock)
    feed.set_price(ETH_FEED, ETH_USD_PRICE)
    feed.set_price(BTC_FEED, BTC_USD_PRICE)
    return feed


@pytest.fixture()
def weth() -> InMemoryToken:
    token = InMemoryToken("WETH", 18)
    for account in (USER, LIQUIDATOR):
        token.faucet(account, STARTING_BALANCE)
        token.approve(account, ENGINE, STARTING_BALANCE)
    return token


@pytest.fixture()
def wbtc() -> InMemoryToken:
    token = InMemoryToken("WBTC", 8)
    for account in (USER, LIQUIDATOR):
        token.faucet(account, 100 * 10**8)
        token.approve(account, ENGINE, 100 * 10**8)
    return token


@pytest.fixture()
def dsc() -> StableCoin:
    return StableCoin()


@pytest.fixture()
def engine(
    weth: InMemoryToken,
    wbtc: InMemoryToken,
    dsc: StableCoin,
    price_feed: StaticPriceFeed,
    clock: ManualClock,
) -> DSCEngine:
    return DSCEngine(
        collateral_tokens=[weth.connect(ENGINE), wbtc.connect(ENGINE)],
        price_feed_ids=[ETH_FEED, BTC_FEED],
        price_feed=price_feed,
        dsc=dsc.grant_minter(ENGINE),
        clock=clock,
        address=ENGINE,
    )


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def sample_app_config() -> AppConfig:
    return AppConfig(
        engine=EngineSettings(),
        assets=(
            AssetConfig(symbol="WETH", decimals=18, feed_id=ETH_FEED),
            AssetConfig(symbol="WBTC", decimals=8, feed_id=BTC_FEED),
        ),
        price_oracle=PriceOracleConfig(
            provider="static",
            static=StaticFeedConfig(
                decimals=8, prices={"WETH": ETH_USD_PRICE, "WBTC": BTC_USD_PRICE}
            ),
        ),
        monitor=MonitorConfig(check_interval_minutes=5, warning_health_factor="1.5"),
        notifications=NotificationsConfig(
            telegram=TelegramConfig(
                enabled=True,
                alert_bot_token="fake-alert-token",
                log_bot_token="fake-log-token",
                chat_id="12345",
            ),
        ),
    )


SAMPLE_YAML = textwrap.dedent("""\
    engine:
      liquidation_threshold: 50
      liquidation_precision: 100
      liquidation_bonus: 10
      staleness_window_seconds: 10800
    assets:
      - symbol: WETH
        decimals: 18
        feed_id: "ETH/USD"
      - symbol: WBTC
        decimals: 8
        feed_id: "BTC/USD"
    price_oracle:
      provider: static
      static:
        decimals: 8
        prices: {WETH: "2000", WBTC: "1000"}
    monitor:
      check_interval_minutes: 5
      warning_health_factor: "1.2"
      accounts: [alice]
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: "999"
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file
