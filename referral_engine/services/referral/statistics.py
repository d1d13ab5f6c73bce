"""
Referral hierarchy statistics.

Read-only downline counts and commission earnings per level for a referrer.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import (
    MANAGEMENT_BONUS_TYPES,
    REFERRAL_LEVELS,
    REFERRAL_REWARD_TYPES,
    ReferralLevel,
)
from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.protocols import HierarchyStore, LedgerStore
from referral_engine.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)


@dataclass
class HierarchyStats:
    """Downline and earnings of a referrer."""

    referrer_id: int
    downline: dict[ReferralLevel, int] = field(default_factory=dict)
    referral_rewards: dict[ReferralLevel, Decimal] = field(default_factory=dict)
    management_bonuses: dict[ReferralLevel, Decimal] = field(default_factory=dict)

    @property
    def total_downline(self) -> int:
        return sum(self.downline.values())

    @property
    def total_referral_rewards(self) -> Decimal:
        return sum(self.referral_rewards.values(), Decimal("0"))

    @property
    def total_management_bonuses(self) -> Decimal:
        return sum(self.management_bonuses.values(), Decimal("0"))

    @property
    def total_earnings(self) -> Decimal:
        return self.total_referral_rewards + self.total_management_bonuses


class HierarchyStatistics:
    """Computes hierarchy statistics."""

    def __init__(
        self,
        session: AsyncSession,
        hierarchy_store: HierarchyStore | None = None,
        ledger_store: LedgerStore | None = None,
    ) -> None:
        """Initialize statistics."""
        self.session = session
        self.hierarchy_store = hierarchy_store or HierarchyRepository(session)
        self.ledger_store = ledger_store or WalletTransactionRepository(session)

    async def get_hierarchy_stats(self, referrer_id: int) -> HierarchyStats:
        """
        Get downline counts and earnings per level.

        Args:
            referrer_id: Referrer user ID

        Returns:
            HierarchyStats with every level present
        """
        counts = await self.hierarchy_store.count_by_level(referrer_id)
        rewards = await self.ledger_store.sum_by_type(
            referrer_id, REFERRAL_REWARD_TYPES
        )
        bonuses = await self.ledger_store.sum_by_type(
            referrer_id, MANAGEMENT_BONUS_TYPES
        )

        stats = HierarchyStats(referrer_id=referrer_id)
        for level in REFERRAL_LEVELS:
            stats.downline[level] = counts.get(level, 0)
        for tx_type, amount in rewards.items():
            stats.referral_rewards[tx_type.level] = amount
        for tx_type, amount in bonuses.items():
            stats.management_bonuses[tx_type.level] = amount
        for level in REFERRAL_LEVELS:
            stats.referral_rewards.setdefault(level, Decimal("0"))
            stats.management_bonuses.setdefault(level, Decimal("0"))

        return stats
