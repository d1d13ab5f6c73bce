"""
Referral hierarchy tasks.

Event-driven actors: hierarchy build at registration, referral rewards on
position change, and bulk repair of missing hierarchies.
"""

import dramatiq
from loguru import logger

from jobs.async_runner import run_async
from jobs.utils.database import task_session_maker
from referral_engine.services.commission_service import CommissionService


@dramatiq.actor(max_retries=3, time_limit=60_000)
def build_referral_hierarchy(user_id: int) -> None:
    """
    Rebuild a user's A/B/C ancestor edges.

    Args:
        user_id: User ID
    """
    edges = run_async(_build_referral_hierarchy_async(user_id))
    logger.info(f"Referral hierarchy for user {user_id}: {edges} levels")


async def _build_referral_hierarchy_async(user_id: int) -> int:
    async with task_session_maker() as session:
        service = CommissionService(session)
        edges = await service.build_hierarchy(user_id)
    return len(edges)


@dramatiq.actor(max_retries=5, time_limit=60_000)
def distribute_referral_reward(new_user_id: int, new_position_tier: int) -> None:
    """
    Pay one-time referral rewards after a position change.

    Retrying is safe: credits already applied are skipped by their
    idempotency keys.

    Args:
        new_user_id: User who changed position
        new_position_tier: Tier ordinal reached
    """
    result = run_async(
        _distribute_referral_reward_async(new_user_id, new_position_tier)
    )

    failed = {
        level.value: outcome
        for level, outcome in result.outcomes.items()
        if outcome.status == "failed"
    }
    retryable = [level for level, outcome in failed.items() if outcome.retryable]
    if retryable:
        # Let dramatiq retry the failed levels
        raise RuntimeError(
            f"Referral reward failed for user {new_user_id} at levels {retryable}"
        )
    for level, outcome in failed.items():
        logger.error(
            f"Referral reward for user {new_user_id} at {level} "
            f"failed permanently: {outcome.reason}"
        )

    logger.info(
        f"Referral rewards for user {new_user_id}: "
        f"total {result.total_distributed}"
    )


async def _distribute_referral_reward_async(
    new_user_id: int, new_position_tier: int
):
    async with task_session_maker() as session:
        service = CommissionService(session)
        return await service.distribute_referral_reward(
            new_user_id, new_position_tier
        )


@dramatiq.actor(max_retries=0, time_limit=1_800_000)  # 30 min
def repair_referral_hierarchies() -> None:
    """Build hierarchies for users who have a referrer but no edges."""
    logger.info("Starting referral hierarchy repair...")
    report = run_async(_repair_referral_hierarchies_async())
    logger.info(
        f"Referral hierarchy repair complete: {report.processed} processed, "
        f"{report.rebuilt} rebuilt, {report.failed} failed"
    )


async def _repair_referral_hierarchies_async():
    async with task_session_maker() as session:
        service = CommissionService(session)
        return await service.repair_hierarchies()
