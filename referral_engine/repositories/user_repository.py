"""
User repository.

Data access layer for User model and the position/plan lookups the
commission engines need.
"""

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import PlanStatus
from referral_engine.models.plan import Plan, UserPlan
from referral_engine.models.position_level import PositionLevel
from referral_engine.models.referral_hierarchy import ReferralHierarchy
from referral_engine.models.user import User
from referral_engine.repositories.base import BaseRepository
from referral_engine.repositories.protocols import CurrentPosition


class UserRepository(BaseRepository[User]):
    """User repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize user repository."""
        super().__init__(User, session)

    async def get_referrer_id(self, user_id: int) -> int | None:
        """
        Get the user's direct inviter.

        Args:
            user_id: User ID

        Returns:
            Inviter user ID, or None if no inviter or no such user
        """
        stmt = select(User.referred_by_id).where(User.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_current_position(
        self, user_id: int
    ) -> CurrentPosition | None:
        """
        Get user's current position tier and daily quota.

        Args:
            user_id: User ID

        Returns:
            CurrentPosition or None if user holds no position
        """
        stmt = (
            select(
                PositionLevel.level,
                PositionLevel.tasks_per_day,
                PositionLevel.name,
            )
            .join(User, User.position_level_id == PositionLevel.id)
            .where(User.id == user_id)
        )
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        return CurrentPosition(
            tier=row.level,
            tasks_per_day=row.tasks_per_day,
            name=row.name,
        )

    async def get_active_daily_quota(self, user_id: int) -> int | None:
        """
        Get daily task limit of the user's active subscription plan.

        Args:
            user_id: User ID

        Returns:
            Plan daily video limit, or None without an active plan
        """
        stmt = (
            select(Plan.daily_video_limit)
            .join(UserPlan, UserPlan.plan_id == Plan.id)
            .where(
                UserPlan.user_id == user_id,
                UserPlan.status == PlanStatus.ACTIVE.value,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def is_user_active(self, user_id: int) -> bool:
        """
        Check if user may receive commissions.

        Suspended, banned and earnings-blocked users are not active.

        Args:
            user_id: User ID

        Returns:
            True if active
        """
        stmt = select(
            User.is_active, User.is_banned, User.earnings_blocked
        ).where(User.id == user_id)
        result = await self.session.execute(stmt)
        row = result.one_or_none()
        if row is None:
            return False
        return bool(row.is_active and not row.is_banned and not row.earnings_blocked)

    async def is_intern(self, user_id: int) -> bool:
        """
        Check intern flag.

        Unknown users are treated as interns so they never pay out.

        Args:
            user_id: User ID

        Returns:
            True if user is flagged intern
        """
        stmt = select(User.is_intern).where(User.id == user_id)
        result = await self.session.execute(stmt)
        flag = result.scalar_one_or_none()
        return True if flag is None else bool(flag)

    async def lock_user(self, user_id: int) -> bool:
        """
        Lock user row for the current transaction (SELECT FOR UPDATE).

        Args:
            user_id: User ID

        Returns:
            True if the user exists
        """
        stmt = select(User.id).where(User.id == user_id).with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def get_user_ids_without_hierarchy(self) -> list[int]:
        """
        Get users who have an inviter but no hierarchy edges.

        Returns:
            List of user IDs ordered by ID
        """
        has_edges = exists().where(ReferralHierarchy.user_id == User.id)
        stmt = (
            select(User.id)
            .where(User.referred_by_id.is_not(None), ~has_edges)
            .order_by(User.id)
        )
        result = await self.session.execute(stmt)
        return [row[0] for row in result.all()]
