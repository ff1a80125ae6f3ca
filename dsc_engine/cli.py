"""Command-line interface for the DSC engine."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import AppConfig, load_config
from .interfaces.notifier import Notifier
from .logging_setup import configure_logging
from .models import Asset
from .notifications import TelegramNotifier
from .oracles import PriceOracle
from .oracles.static import system_clock
from .services import HealthMonitor, ScenarioRunner, build_engine
from .services.simulation import Deployment, build_price_feed
from .units import format_health_factor, format_usd


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="dsc-engine",
        description="Overcollateralized stablecoin engine",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("prices", help="Print validated oracle prices for all collateral")

    simulate_parser = sub.add_parser("simulate", help="Replay a scenario file")
    simulate_parser.add_argument("scenario", help="Path to scenario YAML")
    simulate_parser.add_argument(
        "--alert",
        action="store_true",
        help="Send monitor notifications after the replay",
    )

    report_parser = sub.add_parser(
        "report", help="Replay a scenario and send a protocol report"
    )
    report_parser.add_argument("scenario", help="Path to scenario YAML")

    monitor_parser = sub.add_parser(
        "monitor", help="Replay a scenario, then monitor its positions continuously"
    )
    monitor_parser.add_argument("scenario", help="Path to scenario YAML")
    monitor_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


def _notifiers(config: AppConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.notifications.telegram.enabled:
        notifiers.append(TelegramNotifier(config.notifications.telegram))
    return notifiers


async def _prices(config: AppConfig) -> None:
    assets = {a.symbol: Asset(a.symbol, a.decimals, a.feed_id) for a in config.assets}
    feed = build_price_feed(config, system_clock)
    oracle = PriceOracle(feed, assets, config.engine.staleness_window_seconds)
    for symbol in assets:
        quote = await oracle.price(symbol)
        print(f"{symbol:>8}  {format_usd(quote.price)}  (updated {quote.updated_at})")


async def _replay(config: AppConfig, scenario: str) -> Deployment:
    deployment = build_engine(config)
    steps = ScenarioRunner.load(scenario)
    results = await ScenarioRunner(deployment).run(steps)

    for r in results:
        marker = "ok" if r.ok else "FAILED"
        suffix = f" ({r.error})" if r.error else ""
        print(f"[{r.index:>3}] {r.action:<18} {marker}{suffix}")
    return deployment


async def _simulate(config: AppConfig, scenario: str, alert: bool) -> None:
    deployment = await _replay(config, scenario)

    monitor = HealthMonitor(
        deployment.engine, config.monitor, _notifiers(config) if alert else []
    )
    for position in await monitor.check_and_alert():
        print(
            f"{position.account:<16} {position.status:<16} "
            f"collateral {format_usd(position.collateral_value)}  "
            f"debt {format_usd(position.debt)}  "
            f"HF {format_health_factor(position.health_factor)}"
        )



async def _report(config: AppConfig, scenario: str) -> None:
    deployment = await _replay(config, scenario)
    monitor = HealthMonitor(deployment.engine, config.monitor, _notifiers(config))
    print(await monitor.generate_report())


async def _monitor(config: AppConfig, scenario: str, interval: int | None) -> None:
    deployment = await _replay(config, scenario)
    monitor = HealthMonitor(deployment.engine, config.monitor, _notifiers(config))
    await monitor.run_continuous(interval)


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)

    if args.command == "prices":
        await _prices(config)
    elif args.command == "simulate":
        await _simulate(config, args.scenario, args.alert)
    elif args.command == "report":
        await _report(config, args.scenario)
    elif args.command == "monitor":
        await _monitor(config, args.scenario, args.interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    asyncio.run(_run(args))


if __name__ == "__main__":
    main()
