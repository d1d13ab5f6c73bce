"""
Referral hierarchy builder.

Recomputes a user's A/B/C ancestor edges from the invite chain and repairs
users whose edges were never written.
"""

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import REFERRAL_LEVELS
from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.protocols import (
    HierarchyEdge,
    HierarchyStore,
    UserStore,
)
from referral_engine.repositories.user_repository import UserRepository
from referral_engine.utils.db_decorators import with_rollback_on_error


@dataclass
class HierarchyRepairReport:
    """Result of a bulk hierarchy repair."""

    processed: int = 0
    rebuilt: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)


class HierarchyBuilder:
    """Builds per-user ancestor edges by a bounded upward walk."""

    def __init__(
        self,
        session: AsyncSession,
        user_store: UserStore | None = None,
        hierarchy_store: HierarchyStore | None = None,
    ) -> None:
        """
        Initialize hierarchy builder.

        Args:
            session: Async database session
            user_store: User lookups (defaults to UserRepository)
            hierarchy_store: Edge storage (defaults to HierarchyRepository)
        """
        self.session = session
        self.user_store = user_store or UserRepository(session)
        self.hierarchy_store = hierarchy_store or HierarchyRepository(session)

    async def walk(self, user_id: int) -> list[HierarchyEdge]:
        """
        Compute edges without writing them.

        Stops at the first missing referrer or at a referrer already on the
        path (self-referral and cycles).

        Args:
            user_id: User ID

        Returns:
            Edges ordered A, B, C (0 to 3 of them)
        """
        edges: list[HierarchyEdge] = []
        visited = {user_id}
        current = user_id

        for level in REFERRAL_LEVELS:
            referrer_id = await self.user_store.get_referrer_id(current)
            if referrer_id is None:
                break
            if referrer_id in visited:
                logger.warning(
                    "Referral cycle detected, hierarchy truncated",
                    extra={
                        "user_id": user_id,
                        "referrer_id": referrer_id,
                        "level": level.value,
                    },
                )
                break

            edges.append(
                HierarchyEdge(user_id=user_id, referrer_id=referrer_id, level=level)
            )
            visited.add(referrer_id)
            current = referrer_id

        return edges

    @with_rollback_on_error
    async def build(self, user_id: int) -> list[HierarchyEdge]:
        """
        Rebuild a user's hierarchy (full replace, one transaction).

        Existing edges are always cleared, so a user without a referrer
        ends up with none.

        Args:
            user_id: User ID

        Returns:
            Edges written
        """
        # Serialise concurrent rebuilds of the same user
        await self.user_store.lock_user(user_id)

        edges = await self.walk(user_id)
        await self.hierarchy_store.replace_edges(user_id, edges)
        await self.session.commit()

        logger.info(
            "Referral hierarchy built",
            extra={
                "user_id": user_id,
                "levels": len(edges),
                "referrers": [edge.referrer_id for edge in edges],
            },
        )
        return edges

    async def repair_missing(self) -> HierarchyRepairReport:
        """
        Build hierarchies for users who have a referrer but no edges.

        Continues past per-user failures.

        Returns:
            HierarchyRepairReport
        """
        report = HierarchyRepairReport()
        user_ids = await self.user_store.get_user_ids_without_hierarchy()

        logger.info(
            "Repairing missing referral hierarchies",
            extra={"users": len(user_ids)},
        )

        for user_id in user_ids:
            report.processed += 1
            try:
                edges = await self.build(user_id)
            except Exception as e:
                report.failed += 1
                report.errors.append(f"User {user_id}: {e}")
                logger.exception(
                    f"Failed to repair hierarchy for user {user_id}: {e}",
                    extra={"user_id": user_id},
                )
                continue

            if edges:
                report.rebuilt += 1

        logger.info(
            "Referral hierarchy repair complete",
            extra={
                "processed": report.processed,
                "rebuilt": report.rebuilt,
                "failed": report.failed,
            },
        )
        return report
