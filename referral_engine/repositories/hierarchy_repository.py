"""
Referral hierarchy repository.

Data access layer for ReferralHierarchy model.
"""

from collections.abc import Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import REFERRAL_LEVELS, ReferralLevel
from referral_engine.models.referral_hierarchy import ReferralHierarchy
from referral_engine.repositories.base import BaseRepository
from referral_engine.repositories.protocols import HierarchyEdge


class HierarchyRepository(BaseRepository[ReferralHierarchy]):
    """Hierarchy edge repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize hierarchy repository."""
        super().__init__(ReferralHierarchy, session)

    async def find_edges(self, user_id: int) -> list[HierarchyEdge]:
        """
        Get ancestor edges of a user, ordered A, B, C.

        Args:
            user_id: User ID

        Returns:
            List of edges (empty if user has no ancestors)
        """
        stmt = (
            select(ReferralHierarchy)
            .where(ReferralHierarchy.user_id == user_id)
            .order_by(ReferralHierarchy.level.asc())
        )
        result = await self.session.execute(stmt)
        return [
            HierarchyEdge(
                user_id=row.user_id,
                referrer_id=row.referrer_id,
                level=ReferralLevel(row.level),
            )
            for row in result.scalars().all()
        ]

    async def replace_edges(
        self, user_id: int, edges: Sequence[HierarchyEdge]
    ) -> None:
        """
        Replace all edges of a user (delete, then insert).

        Runs inside the caller's transaction; the caller commits.

        Args:
            user_id: User ID
            edges: New edge set
        """
        await self.session.execute(
            delete(ReferralHierarchy).where(ReferralHierarchy.user_id == user_id)
        )
        self.session.add_all(
            ReferralHierarchy(
                user_id=user_id,
                referrer_id=edge.referrer_id,
                level=edge.level.value,
            )
            for edge in edges
        )
        await self.session.flush()

    async def count_by_level(self, referrer_id: int) -> dict[ReferralLevel, int]:
        """
        Count downline of a referrer per level in a single query.

        Args:
            referrer_id: Referrer user ID

        Returns:
            Dict mapping every level to its count
        """
        stmt = (
            select(
                ReferralHierarchy.level,
                func.count(ReferralHierarchy.id).label("count"),
            )
            .where(ReferralHierarchy.referrer_id == referrer_id)
            .group_by(ReferralHierarchy.level)
        )
        result = await self.session.execute(stmt)

        counts = {level: 0 for level in REFERRAL_LEVELS}
        for row in result.all():
            counts[ReferralLevel(row.level)] = row.count
        return counts
