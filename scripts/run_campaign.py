#!/usr/bin/env python3
"""Run a seeded distress campaign and export its records.

This script simulates a winery whose cash runs dry and exports the
resulting loans, transactions, prestige events, notifications, warnings
and restructure offers to:
- Console (--console)
- JSON files (--output-dir)
- Kafka topics (--kafka-bootstrap)
"""

import argparse
import logging
import sys
import time
from decimal import Decimal
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from winery_finance.config import EngineConfig
from winery_finance.exceptions import WineryFinanceError
from winery_finance.logging import setup_logging
from winery_finance.scenarios import DistressCampaignScenario
from winery_finance.sinks import ConsoleSink, JsonFileSink, KafkaSink
from winery_finance.sinks.kafka import ProducerConfig

logger = logging.getLogger(__name__)


def print_summary(summary: dict, elapsed: float) -> None:
    """Print campaign summary."""
    print("\n" + "=" * 60)
    print("CAMPAIGN SUMMARY")
    print("=" * 60)
    for key, value in summary.items():
        if isinstance(value, dict):
            print(f"  {key}:")
            for sub_key, sub_value in sorted(value.items()):
                print(f"    {sub_key}: {sub_value}")
        else:
            print(f"  {key}: {value}")
    print("-" * 60)
    print(f"  Elapsed: {elapsed:.2f}s")
    print("=" * 60)


def main() -> int:
    """Main entry point."""
    config = EngineConfig.from_env()

    parser = argparse.ArgumentParser(description="Run a winery loan distress campaign")
    parser.add_argument(
        "--weeks",
        type=int,
        default=144,
        help="Number of weeks to simulate (default: 144, three years)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=config.seed if config.seed is not None else 42,
        help="Random seed for reproducibility (default: 42)",
    )
    parser.add_argument(
        "--vineyards",
        type=int,
        default=4,
        help="Vineyards owned at the start (default: 4)",
    )
    parser.add_argument(
        "--starting-money",
        type=Decimal,
        default=Decimal("25000"),
        help="Opening cash (default: 25000)",
    )
    parser.add_argument(
        "--weekly-wages",
        type=Decimal,
        default=Decimal("4500"),
        help="Cash spent every week (default: 4500)",
    )
    parser.add_argument(
        "--decline-restructure",
        action="store_true",
        help="Decline restructure offers instead of accepting them",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Write JSON files to this directory",
    )
    parser.add_argument(
        "--kafka-bootstrap",
        type=str,
        default=None,
        help="Publish records to Kafka at these bootstrap servers",
    )
    parser.add_argument(
        "--console",
        action="store_true",
        help="Print records to the console",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=config.log_level,
        help="Log level (default: INFO)",
    )
    parser.add_argument(
        "--log-format",
        choices=["standard", "json"],
        default="standard",
        help="Log output format (default: standard)",
    )
    args = parser.parse_args()

    setup_logging(level=args.log_level, format_type=args.log_format)

    logger.info("=" * 60)
    logger.info("Winery Finance - Distress Campaign")
    logger.info("=" * 60)
    logger.info("Weeks: %d", args.weeks)
    logger.info("Seed: %d", args.seed)
    logger.info("Restructure policy: %s", "decline" if args.decline_restructure else "accept")
    logger.info("=" * 60)

    start = time.perf_counter()
    scenario = DistressCampaignScenario(
        weeks=args.weeks,
        num_vineyards=args.vineyards,
        starting_money=args.starting_money,
        weekly_wages=args.weekly_wages,
        auto_accept_restructure=not args.decline_restructure,
        seed=args.seed,
        config=config,
    )

    sinks = []
    try:
        scenario.generate()

        if args.console:
            sinks.append(ConsoleSink(pretty=True, max_records=5))
        if args.output_dir is not None:
            sinks.append(JsonFileSink(args.output_dir, pretty=config.output.pretty_json))
        if args.kafka_bootstrap:
            producer_config = ProducerConfig.from_kafka_config(config.kafka)
            producer_config.bootstrap_servers = args.kafka_bootstrap
            sinks.append(KafkaSink(producer_config))

        scenario.export(sinks)
    except WineryFinanceError:
        logger.exception("Campaign failed")
        return 1
    finally:
        for sink in sinks:
            sink.close()

    print_summary(scenario.get_summary(), time.perf_counter() - start)
    return 0


if __name__ == "__main__":
    sys.exit(main())
