"""
Commission service.

Facade over the referral and daily bonus engines. One instance per session;
all engines share the session and the rate table.
"""

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.config.rate_table import DEFAULT_RATE_TABLE, RateTable
from referral_engine.repositories.protocols import HierarchyEdge
from referral_engine.services.bonus.daily_bonus_engine import (
    DailyBonusEngine,
    DailyBonusResult,
    DailyBonusSweepResult,
)
from referral_engine.services.ledger.ledger_writer import LedgerWriter
from referral_engine.services.referral.hierarchy_builder import (
    HierarchyBuilder,
    HierarchyRepairReport,
)
from referral_engine.services.referral.referral_reward_engine import (
    ReferralRewardEngine,
    ReferralRewardResult,
)
from referral_engine.services.referral.statistics import (
    HierarchyStatistics,
    HierarchyStats,
)


class CommissionService:
    """
    Commission engine entry point.

    Delegates to specialized engines:
    - HierarchyBuilder: ancestor edges
    - ReferralRewardEngine: one-time rewards on position change
    - DailyBonusEngine: daily override commissions
    - HierarchyStatistics: downline and earnings stats
    """

    def __init__(
        self, session: AsyncSession, rate_table: RateTable = DEFAULT_RATE_TABLE
    ) -> None:
        """
        Initialize commission service.

        Args:
            session: Async database session
            rate_table: Rate table injected into the engines
        """
        self.session = session
        self.rate_table = rate_table

        ledger = LedgerWriter(session)
        self._hierarchy_builder = HierarchyBuilder(session)
        self._referral_engine = ReferralRewardEngine(
            session, rate_table, ledger=ledger
        )
        self._daily_bonus_engine = DailyBonusEngine(
            session, rate_table, ledger=ledger
        )
        self._statistics = HierarchyStatistics(session)

    async def build_hierarchy(self, user_id: int) -> list[HierarchyEdge]:
        """Rebuild a user's A/B/C edges."""
        return await self._hierarchy_builder.build(user_id)

    async def repair_hierarchies(self) -> HierarchyRepairReport:
        """Build edges for users with a referrer but no hierarchy."""
        return await self._hierarchy_builder.repair_missing()

    async def distribute_referral_reward(
        self, new_user_id: int, new_position_tier: int
    ) -> ReferralRewardResult:
        """Pay one-time referral rewards for a position change."""
        return await self._referral_engine.distribute_referral_reward(
            new_user_id, new_position_tier
        )

    async def process_daily_bonus(
        self, user_id: int, at: datetime | None = None
    ) -> DailyBonusResult:
        """Pay daily override commissions for one user."""
        return await self._daily_bonus_engine.process_daily_bonus(user_id, at)

    async def process_daily_bonus_sweep(
        self, at: datetime | None = None
    ) -> DailyBonusSweepResult:
        """Pay daily override commissions for every user active in the day."""
        return await self._daily_bonus_engine.process_daily_bonus_sweep(at)

    async def get_hierarchy_stats(self, referrer_id: int) -> HierarchyStats:
        """Downline counts and earnings per level."""
        return await self._statistics.get_hierarchy_stats(referrer_id)
