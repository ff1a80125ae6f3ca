"""Health monitoring. Scans accounts and alerts on liquidation risk."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from ..config import MonitorConfig
from ..constants import MAX_HEALTH_FACTOR, PRECISION
from ..engine import DSCEngine
from ..errors import OracleError
from ..interfaces.notifier import Notifier
from ..units import format_health_factor, format_usd

logger = logging.getLogger(__name__)

LIQUIDATABLE = "🚨 LIQUIDATABLE"
WARNING = "⚠️ WARNING"
HEALTHY = "✅ Healthy"
NO_DEBT = "✅ No debt"


@dataclass(frozen=True)
class PositionStatus:
    account: str
    debt: int
    collateral_value: int
    health_factor: int
    status: str


class HealthMonitor:
    """Periodically values accounts and notifies when they approach liquidation."""

    def __init__(
        self,
        engine: DSCEngine,
        config: MonitorConfig,
        notifiers: list[Notifier] | None = None,
    ) -> None:
        self._engine = engine
        self._config = config
        self._notifiers = notifiers or []
        self._warning_health_factor = int(
            Decimal(config.warning_health_factor) * PRECISION
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    def _accounts(self) -> list[str]:
        return list(self._config.accounts) or self._engine.get_accounts()

    def classify(self, debt: int, health_factor: int) -> str:
        if debt == 0 or health_factor == MAX_HEALTH_FACTOR:
            return NO_DEBT
        if health_factor < self._engine.get_min_health_factor():
            return LIQUIDATABLE
        if health_factor < self._warning_health_factor:
            return WARNING
        return HEALTHY

    async def position_status(self, account: str) -> PositionStatus:
        info = await self._engine.get_account_information(account)
        ratio = self._engine.calculate_health_factor(
            info.total_dsc_minted, info.collateral_value_in_usd
        )
        return PositionStatus(
            account=account,
            debt=info.total_dsc_minted,
            collateral_value=info.collateral_value_in_usd,
            health_factor=ratio,
            status=self.classify(info.total_dsc_minted, ratio),
        )

    @staticmethod
    def _describe(position: PositionStatus) -> str:
        return (
            f"{position.status} · {position.account}\n"
            f"Collateral: {format_usd(position.collateral_value)}\n"
            f"Debt: {format_usd(position.debt)}\n"
            f"HF: {format_health_factor(position.health_factor)}"
        )

    async def _send_log(self, message: str) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=True)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    async def check_and_alert(self) -> list[PositionStatus]:
        """Value every watched account; alert on liquidatable and warning ones."""
        results: list[PositionStatus] = []

        for account in self._accounts():
            try:
                position = await self.position_status(account)
            except OracleError as e:
                logger.error("Cannot value %s: %s", account, e)
                await self._send_alert(
                    f"{account}\n\nPrice unavailable: {e}\n\n{self._now_str()} UTC",
                    subject="⚠️ Oracle failure",
                )
                continue

            results.append(position)
            logger.info(
                "Position — %s · Collateral: %s  Debt: %s  HF: %s  %s",
                account,
                format_usd(position.collateral_value),
                format_usd(position.debt),
                format_health_factor(position.health_factor),
                position.status,
            )
            await self._send_log(self._describe(position))

            if position.status == LIQUIDATABLE:
                await self._send_alert(
                    f"{self._describe(position)}\n\n"
                    f"Position can be liquidated now.\n"
                    f"{self._now_str()} UTC",
                    subject="🚨 CRITICAL: Liquidatable position",
                )
            elif position.status == WARNING:
                await self._send_alert(
                    f"{self._describe(position)}\n\n"
                    f"Add collateral or repay DSC.\n"
                    f"{self._now_str()} UTC",
                    subject="⚠️ WARNING: Low health factor",
                )

        return results

    async def generate_report(self) -> str:
        """Protocol-wide summary plus one line per account."""
        total_debt = self._engine.get_total_debt()
        total_value = await self._engine.get_total_collateral_value()

        lines = [
            f"{p.account}: {p.status} · HF {format_health_factor(p.health_factor)}"
            for p in [await self.position_status(a) for a in self._accounts()]
        ]
        body = "\n".join(lines) if lines else "No open positions."

        report = (
            f"📋 DSC Protocol Report\n"
            f"\n"
            f"Total collateral: {format_usd(total_value)}\n"
            f"Total debt: {format_usd(total_debt)}\n"
            f"\n"
            f"{body}\n"
            f"\n"
            f"{self._now_str()} UTC"
        )
        await self._send_alert(report)
        logger.info("Protocol report sent")
        return report

    async def run_continuous(self, check_interval_minutes: int | None = None) -> None:
        """Run the monitoring loop until cancelled."""
        interval = check_interval_minutes or self._config.check_interval_minutes
        logger.info("Starting health monitoring (checking every %d minutes)", interval)

        while True:
            try:
                await self.check_and_alert()
                await asyncio.sleep(interval * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
