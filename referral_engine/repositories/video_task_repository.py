"""
Video task repository.

Data access layer for UserVideoTask model.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.video_task import UserVideoTask
from referral_engine.repositories.base import BaseRepository
from referral_engine.repositories.protocols import TaskDaySummary


class VideoTaskRepository(BaseRepository[UserVideoTask]):
    """Completed task queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize video task repository."""
        super().__init__(UserVideoTask, session)

    async def get_completed_tasks(
        self, user_id: int, window_start: datetime, window_end: datetime
    ) -> TaskDaySummary:
        """
        Count verified tasks and sum their earnings in [start, end).

        Uses SQL aggregation instead of loading rows.

        Args:
            user_id: User ID
            window_start: Inclusive start
            window_end: Exclusive end

        Returns:
            TaskDaySummary with count and total earnings
        """
        stmt = select(
            func.count(UserVideoTask.id).label("count"),
            func.coalesce(
                func.sum(UserVideoTask.reward_earned), Decimal("0")
            ).label("total_earnings"),
        ).where(
            UserVideoTask.user_id == user_id,
            UserVideoTask.is_verified == True,  # noqa: E712
            UserVideoTask.watched_at >= window_start,
            UserVideoTask.watched_at < window_end,
        )
        result = await self.session.execute(stmt)
        row = result.one()
        return TaskDaySummary(
            count=row.count or 0,
            total_earnings=Decimal(row.total_earnings or 0),
        )

    async def get_active_user_ids(
        self, window_start: datetime, window_end: datetime
    ) -> list[int]:
        """
        Get users with at least one verified task in [start, end).

        Args:
            window_start: Inclusive start
            window_end: Exclusive end

        Returns:
            Distinct user IDs ordered by ID
        """
        stmt = (
            select(UserVideoTask.user_id)
            .where(
                UserVideoTask.is_verified == True,  # noqa: E712
                UserVideoTask.watched_at >= window_start,
                UserVideoTask.watched_at < window_end,
            )
            .distinct()
            .order_by(UserVideoTask.user_id)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
