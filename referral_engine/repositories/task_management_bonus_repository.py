"""
TaskManagementBonus repository.

Data access layer for daily bonus records.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import ReferralLevel
from referral_engine.models.task_management_bonus import TaskManagementBonus
from referral_engine.repositories.base import BaseRepository


class TaskManagementBonusRepository(BaseRepository[TaskManagementBonus]):
    """Repository for daily bonus records."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository."""
        super().__init__(TaskManagementBonus, session)

    async def get_recorded_levels(
        self, subordinate_id: int, task_date: date
    ) -> set[ReferralLevel | None]:
        """
        Get the levels already recorded for a subordinate's day.

        Args:
            subordinate_id: User whose task day generated the bonus
            task_date: Task calendar date

        Returns:
            Recorded levels; None stands for the entry-tier marker row
        """
        stmt = select(TaskManagementBonus.level).where(
            TaskManagementBonus.subordinate_id == subordinate_id,
            TaskManagementBonus.task_date == task_date,
        )
        result = await self.session.execute(stmt)
        return {
            ReferralLevel(level) if level is not None else None
            for level in result.scalars().all()
        }

    async def mark_processed(
        self, subordinate_id: int, task_date: date, daily_income: Decimal
    ) -> None:
        """
        Record a day as processed without distributing anything.

        Args:
            subordinate_id: User whose day was processed
            task_date: Task calendar date
            daily_income: Subordinate's earnings for the day
        """
        self.session.add(
            TaskManagementBonus(
                referrer_id=None,
                subordinate_id=subordinate_id,
                level=None,
                task_date=task_date,
                bonus_amount=Decimal("0"),
                subordinate_daily_income=daily_income,
            )
        )
        await self.session.flush()

