#!/usr/bin/env python3
"""
Commission engine operator CLI.

Runs engine operations by hand, e.g. to replay a missed sweep or fix a
user's hierarchy.

Usage:
    python scripts/commission_cli.py sweep                      # Previous day
    python scripts/commission_cli.py sweep --at 2025-01-15T18:00:00+05:00
    python scripts/commission_cli.py daily-bonus 42
    python scripts/commission_cli.py referral-reward 42 2
    python scripts/commission_cli.py build 42
    python scripts/commission_cli.py repair
    python scripts/commission_cli.py stats 7
"""

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger

from referral_engine.config.database import async_engine, async_session_maker
from referral_engine.config.rate_table import PositionTier
from referral_engine.config.settings import settings
from referral_engine.models.enums import REFERRAL_LEVELS
from referral_engine.services.commission_service import CommissionService
from referral_engine.utils.datetime_utils import end_of_previous_day, utc_now
from referral_engine.utils.logging import setup_logging


def _parse_at(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _parse_tier(value: str) -> int:
    """Accept a tier ordinal (2) or name (P2, Intern)."""
    if value.isdigit():
        return int(value)
    return int(PositionTier.from_name(value))


async def run(args: argparse.Namespace) -> int:
    """Execute the selected command. Returns the exit code."""
    async with async_session_maker() as session:
        service = CommissionService(session)

        if args.command == "sweep":
            at = _parse_at(args.at) or end_of_previous_day(
                utc_now(), settings.tzinfo
            )
            sweep = await service.process_daily_bonus_sweep(at)
            logger.info(
                f"Sweep for {at.isoformat()}: {sweep.processed} processed, "
                f"{sweep.succeeded} paid, {sweep.failed} failed, "
                f"total {sweep.total_distributed}"
            )
            for error in sweep.errors:
                logger.error(error)
            return 1 if sweep.failed else 0

        if args.command == "daily-bonus":
            result = await service.process_daily_bonus(
                args.user_id, _parse_at(args.at)
            )
            logger.info(
                f"User {args.user_id} ({result.task_date}): "
                f"success={result.success} reason={result.reason} "
                f"total={result.total_distributed}"
            )
            for reward in result.rewards:
                logger.info(
                    f"  {reward.level.value}: {reward.amount} -> user {reward.referrer_id}"
                )
            return 0

        if args.command == "referral-reward":
            result = await service.distribute_referral_reward(
                args.user_id, args.tier
            )
            for level, outcome in result.outcomes.items():
                logger.info(
                    f"  {level.value}: {outcome.status}"
                    f"{f' ({outcome.reason})' if outcome.reason else ''}"
                )
            logger.info(f"Total distributed: {result.total_distributed}")
            failed = any(o.status == "failed" for o in result.outcomes.values())
            return 1 if failed else 0

        if args.command == "build":
            edges = await service.build_hierarchy(args.user_id)
            for edge in edges:
                logger.info(f"  {edge.level.value}: user {edge.referrer_id}")
            logger.info(f"Hierarchy for user {args.user_id}: {len(edges)} levels")
            return 0

        if args.command == "repair":
            report = await service.repair_hierarchies()
            logger.info(
                f"Repair: {report.processed} processed, {report.rebuilt} rebuilt, "
                f"{report.failed} failed"
            )
            for error in report.errors:
                logger.error(error)
            return 1 if report.failed else 0

        if args.command == "stats":
            stats = await service.get_hierarchy_stats(args.user_id)
            for level in REFERRAL_LEVELS:
                logger.info(
                    f"  {level.value}: {stats.downline[level]} users, "
                    f"referral {stats.referral_rewards[level]}, "
                    f"bonus {stats.management_bonuses[level]}"
                )
            logger.info(
                f"Total: {stats.total_downline} users, "
                f"earnings {stats.total_earnings}"
            )
            return 0

    return 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Commission engine operations")
    parser.add_argument(
        "--log-file", help="Also write rotating logs to this file"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sweep = sub.add_parser("sweep", help="Run the daily bonus sweep")
    sweep.add_argument(
        "--at", help="ISO datetime ending the task window (default: end of yesterday)"
    )

    daily = sub.add_parser("daily-bonus", help="Process one user's daily bonus")
    daily.add_argument("user_id", type=int)
    daily.add_argument("--at", help="ISO datetime ending the task window")

    reward = sub.add_parser(
        "referral-reward", help="Distribute referral rewards for a position change"
    )
    reward.add_argument("user_id", type=int)
    reward.add_argument("tier", type=_parse_tier, help="Tier ordinal or name (P2)")

    build = sub.add_parser("build", help="Rebuild a user's hierarchy")
    build.add_argument("user_id", type=int)

    sub.add_parser("repair", help="Build hierarchies missing for referred users")

    stats = sub.add_parser("stats", help="Show a referrer's hierarchy stats")
    stats.add_argument("user_id", type=int)

    return parser


async def main_async(args: argparse.Namespace) -> int:
    try:
        return await run(args)
    finally:
        await async_engine.dispose()


def main() -> None:
    args = build_parser().parse_args()
    setup_logging(args.log_file)
    sys.exit(asyncio.run(main_async(args)))


if __name__ == "__main__":
    main()
