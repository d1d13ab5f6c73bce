"""
Daily bonus task.

Runs the daily override commission sweep once per day for the task day that
just ended. Guarded by a Redis lock keyed by task date.
"""

from datetime import datetime

import dramatiq
from loguru import logger

from jobs.async_runner import run_async
from jobs.utils.database import task_session_maker
from referral_engine.config.settings import settings
from referral_engine.services.commission_service import CommissionService
from referral_engine.utils.datetime_utils import (
    end_of_previous_day,
    local_date,
    utc_now,
)
from referral_engine.utils.distributed_lock import DistributedLock
from referral_engine.utils.redis_utils import get_redis_client


@dramatiq.actor(max_retries=3, time_limit=900_000)  # 15 min (> lock timeout)
def process_daily_bonus_sweep(at: str | None = None) -> None:
    """
    Process daily bonuses for every user active in a task day.

    Args:
        at: ISO datetime ending the task window. Defaults to the last
            instant of the previous local day.
    """
    if not settings.daily_bonus_sweep_enabled:
        logger.info("Daily bonus sweep disabled, skipping")
        return

    moment = (
        datetime.fromisoformat(at)
        if at
        else end_of_previous_day(utc_now(), settings.tzinfo)
    )

    logger.info(f"Starting daily bonus sweep for {moment.isoformat()}...")

    result = run_async(_process_daily_bonus_sweep_async(moment))

    if result["skipped"]:
        logger.info("Daily bonus sweep already running elsewhere, skipped")
    else:
        logger.info(
            f"Daily bonus sweep complete: {result['processed']} processed, "
            f"{result['succeeded']} paid, {result['failed']} failed, "
            f"total: {result['total_distributed']}"
        )


async def _process_daily_bonus_sweep_async(moment: datetime) -> dict:
    """Async implementation of the daily bonus sweep."""
    redis_client = None
    try:
        redis_client = get_redis_client()
    except Exception as e:
        logger.warning(f"Failed to create Redis client for lock: {e}")

    lock = DistributedLock(redis_client=redis_client)
    task_date = local_date(moment, settings.tzinfo)
    lock_key = f"daily_bonus_sweep_{task_date.isoformat()}"

    try:
        async with lock.lock(
            lock_key, timeout=settings.daily_bonus_lock_timeout
        ) as acquired:
            if not acquired:
                return {"skipped": True}

            async with task_session_maker() as session:
                service = CommissionService(session)
                sweep = await service.process_daily_bonus_sweep(moment)

            return {
                "skipped": False,
                "processed": sweep.processed,
                "succeeded": sweep.succeeded,
                "failed": sweep.failed,
                "total_distributed": str(sweep.total_distributed),
            }
    finally:
        if redis_client is not None:
            await redis_client.aclose()
