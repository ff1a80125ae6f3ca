"""Integration tests for the HealthMonitor service."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from dsc_engine.config import MonitorConfig
from dsc_engine.constants import STALENESS_WINDOW_SECONDS
from dsc_engine.engine import DSCEngine
from dsc_engine.oracles import ManualClock, StaticPriceFeed
from dsc_engine.services import HealthMonitor
from dsc_engine.services.monitor import HEALTHY, LIQUIDATABLE, NO_DEBT, WARNING
from tests.conftest import AMOUNT_TO_MINT, COLLATERAL_AMOUNT, ETH_FEED, ETHER, LIQUIDATOR, USER


@pytest.fixture()
def notifier() -> AsyncMock:
    return AsyncMock()


@pytest.fixture()
def monitor(engine: DSCEngine, notifier: AsyncMock) -> HealthMonitor:
    return HealthMonitor(engine, MonitorConfig(warning_health_factor="1.5"), [notifier])


class TestClassify:
    def test_thresholds(self, monitor: HealthMonitor) -> None:
        assert monitor.classify(0, 0) == NO_DEBT
        assert monitor.classify(ETHER, ETHER * 9 // 10) == LIQUIDATABLE
        assert monitor.classify(ETHER, ETHER) == WARNING
        assert monitor.classify(ETHER, 2 * ETHER) == HEALTHY


class TestCheckAndAlert:
    @pytest.mark.asyncio
    async def test_healthy_position_sends_log_only(
        self, engine: DSCEngine, monitor: HealthMonitor, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, AMOUNT_TO_MINT
        )

        results = await monitor.check_and_alert()

        assert [r.status for r in results] == [HEALTHY]
        notifier.send_log.assert_called_once()
        log_msg = notifier.send_log.call_args[0][0]
        assert USER in log_msg
        assert "$20,000.00" in log_msg
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_liquidatable_position_sends_critical_alert(
        self,
        engine: DSCEngine,
        monitor: HealthMonitor,
        notifier: AsyncMock,
        price_feed: StaticPriceFeed,
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, 10_000 * ETHER
        )
        price_feed.set_price(ETH_FEED, "1800")

        results = await monitor.check_and_alert()

        assert results[0].status == LIQUIDATABLE
        notifier.send_alert.assert_called_once()
        assert "CRITICAL" in notifier.send_alert.call_args.kwargs["subject"]
        assert "0.9000" in notifier.send_alert.call_args[0][0]

    @pytest.mark.asyncio
    async def test_position_at_limit_warns(
        self, engine: DSCEngine, monitor: HealthMonitor, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, 10_000 * ETHER
        )

        results = await monitor.check_and_alert()

        assert results[0].status == WARNING
        assert "WARNING" in notifier.send_alert.call_args.kwargs["subject"]

    @pytest.mark.asyncio
    async def test_debt_free_account(
        self, engine: DSCEngine, monitor: HealthMonitor, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral(LIQUIDATOR, "WETH", COLLATERAL_AMOUNT)

        results = await monitor.check_and_alert()

        assert results[0].account == LIQUIDATOR
        assert results[0].status == NO_DEBT
        notifier.send_alert.assert_not_called()

    @pytest.mark.asyncio
    async def test_oracle_failure_alerts_and_continues(
        self,
        engine: DSCEngine,
        monitor: HealthMonitor,
        notifier: AsyncMock,
        clock: ManualClock,
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, AMOUNT_TO_MINT
        )
        clock.advance(STALENESS_WINDOW_SECONDS + 1)

        results = await monitor.check_and_alert()

        assert results == []
        notifier.send_alert.assert_called_once()
        assert "Oracle failure" in notifier.send_alert.call_args.kwargs["subject"]

    @pytest.mark.asyncio
    async def test_notifier_error_does_not_stop_scan(
        self, engine: DSCEngine, monitor: HealthMonitor, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, AMOUNT_TO_MINT
        )
        await engine.deposit_collateral(LIQUIDATOR, "WETH", COLLATERAL_AMOUNT)
        notifier.send_log.side_effect = RuntimeError("network down")

        results = await monitor.check_and_alert()

        assert [r.account for r in results] == [USER, LIQUIDATOR]
        assert notifier.send_log.call_count == 2

    @pytest.mark.asyncio
    async def test_configured_accounts_only(
        self, engine: DSCEngine, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral(USER, "WETH", COLLATERAL_AMOUNT)
        await engine.deposit_collateral(LIQUIDATOR, "WETH", COLLATERAL_AMOUNT)
        monitor = HealthMonitor(engine, MonitorConfig(accounts=(LIQUIDATOR,)), [notifier])

        results = await monitor.check_and_alert()

        assert [r.account for r in results] == [LIQUIDATOR]


class TestReport:
    @pytest.mark.asyncio
    async def test_report_contains_totals(
        self, engine: DSCEngine, monitor: HealthMonitor, notifier: AsyncMock
    ) -> None:
        await engine.deposit_collateral_and_mint_dsc(
            USER, "WETH", COLLATERAL_AMOUNT, AMOUNT_TO_MINT
        )

        report = await monitor.generate_report()

        assert "Total collateral: $20,000.00" in report
        assert "Total debt: $100.00" in report
        assert USER in report
        notifier.send_alert.assert_called_once_with(report, subject="")

    @pytest.mark.asyncio
    async def test_empty_report(self, monitor: HealthMonitor) -> None:
        report = await monitor.generate_report()
        assert "No open positions." in report


class TestRunContinuous:
    @pytest.mark.asyncio
    async def test_loop_checks_then_sleeps(self, monitor: HealthMonitor) -> None:
        with patch.object(monitor, "check_and_alert", AsyncMock(return_value=[])) as check:
            with patch(
                "dsc_engine.services.monitor.asyncio.sleep",
                AsyncMock(side_effect=asyncio.CancelledError),
            ) as sleep:
                with pytest.raises(asyncio.CancelledError):
                    await monitor.run_continuous(check_interval_minutes=2)

        check.assert_awaited_once()
        sleep.assert_awaited_once_with(120)
