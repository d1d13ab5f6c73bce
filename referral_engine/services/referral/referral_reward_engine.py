"""
Referral reward engine.

Pays one-time rewards to up to three ancestors when a user reaches a paid
position tier. Amounts come from the referrer's tier, not the new user's.
When the new user lands above the referrer's tier only the direct referrer
(A level) is paid.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Literal

from loguru import logger
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.config.rate_table import (
    DEFAULT_RATE_TABLE,
    ENTRY_TIER,
    RateTable,
)
from referral_engine.models.enums import ReferralLevel, TransactionType
from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.protocols import (
    HierarchyEdge,
    HierarchyStore,
    LedgerCreditor,
    UserStore,
)
from referral_engine.repositories.user_repository import UserRepository
from referral_engine.services.ledger.ledger_writer import LedgerWriter
from referral_engine.utils.exceptions import PersistenceFailure, is_retryable


OutcomeStatus = Literal["credited", "duplicate", "skipped", "failed"]


@dataclass(frozen=True)
class LevelReward:
    """Reward credited at one level."""

    referrer_id: int
    amount: Decimal
    referrer_tier: int


@dataclass(frozen=True)
class LevelOutcome:
    """What happened at one level."""

    status: OutcomeStatus
    reason: str | None = None
    retryable: bool = False


@dataclass
class ReferralRewardResult:
    """Result of a referral reward distribution."""

    total_distributed: Decimal = Decimal("0")
    breakdown: dict[ReferralLevel, LevelReward] = field(default_factory=dict)
    outcomes: dict[ReferralLevel, LevelOutcome] = field(default_factory=dict)


def referral_reward_key(level: ReferralLevel, new_user_id: int) -> str:
    """Idempotency key of a one-time referral reward."""
    return f"REFERRAL_{level.value}_{new_user_id}"


class ReferralRewardEngine:
    """Distributes one-time referral rewards on position change."""

    def __init__(
        self,
        session: AsyncSession,
        rate_table: RateTable = DEFAULT_RATE_TABLE,
        user_store: UserStore | None = None,
        hierarchy_store: HierarchyStore | None = None,
        ledger: LedgerCreditor | None = None,
    ) -> None:
        """
        Initialize referral reward engine.

        Args:
            session: Async database session
            rate_table: Payout table
            user_store: User lookups (defaults to UserRepository)
            hierarchy_store: Edge lookups (defaults to HierarchyRepository)
            ledger: Crediting primitive (defaults to LedgerWriter)
        """
        self.session = session
        self.rate_table = rate_table
        self.user_store = user_store or UserRepository(session)
        self.hierarchy_store = hierarchy_store or HierarchyRepository(session)
        self.ledger = ledger or LedgerWriter(session)

    async def _referrer_tier(self, referrer_id: int) -> int:
        position = await self.user_store.get_current_position(referrer_id)
        return position.tier if position else ENTRY_TIER

    async def distribute_referral_reward(
        self, new_user_id: int, new_position_tier: int
    ) -> ReferralRewardResult:
        """
        Pay one-time rewards for a user who reached a position tier.

        Safe to call repeatedly: already paid levels come back as duplicates
        and are not counted again.

        Args:
            new_user_id: User who changed position
            new_position_tier: Tier ordinal the user reached

        Returns:
            ReferralRewardResult with total, credited breakdown and
            per-level outcomes
        """
        result = ReferralRewardResult()

        if new_position_tier <= ENTRY_TIER or await self.user_store.is_intern(
            new_user_id
        ):
            logger.debug(
                "Entry tier user, no referral rewards",
                extra={"user_id": new_user_id, "tier": new_position_tier},
            )
            return result

        edges = await self.hierarchy_store.find_edges(new_user_id)
        if not edges:
            logger.debug(
                "No referral hierarchy for user",
                extra={"user_id": new_user_id},
            )
            return result

        for edge in edges:
            level = edge.level
            try:
                outcome, reward = await self._reward_edge(
                    new_user_id, new_position_tier, edge
                )
            except (PersistenceFailure, SQLAlchemyError) as e:
                await self.session.rollback()
                result.outcomes[level] = LevelOutcome(
                    "failed", str(e), retryable=is_retryable(e)
                )
                logger.error(
                    f"Referral reward failed: {e}",
                    extra={
                        "user_id": new_user_id,
                        "referrer_id": edge.referrer_id,
                        "level": level.value,
                        "event": "referral_reward",
                    },
                )
                continue

            result.outcomes[level] = outcome
            if reward is not None:
                result.breakdown[level] = reward
                result.total_distributed += reward.amount

        logger.info(
            "Referral rewards distributed",
            extra={
                "user_id": new_user_id,
                "tier": int(new_position_tier),
                "total_distributed": str(result.total_distributed),
                "credited_levels": [lvl.value for lvl in result.breakdown],
            },
        )
        return result

    async def _reward_edge(
        self, new_user_id: int, new_position_tier: int, edge: HierarchyEdge
    ) -> tuple[LevelOutcome, LevelReward | None]:
        """Check one ancestor's eligibility and credit its reward."""
        level = edge.level
        referrer_id = edge.referrer_id

        if await self.user_store.is_intern(referrer_id):
            return LevelOutcome("skipped", "referrer_intern"), None
        if not await self.user_store.is_user_active(referrer_id):
            logger.debug(
                "Inactive referrer skipped",
                extra={"user_id": new_user_id, "referrer_id": referrer_id},
            )
            return LevelOutcome("skipped", "referrer_inactive"), None

        referrer_tier = await self._referrer_tier(referrer_id)
        if referrer_tier <= ENTRY_TIER:
            return LevelOutcome("skipped", "referrer_intern"), None

        # Invitee overtook the referrer: only the direct referrer earns
        if new_position_tier > referrer_tier and level is not ReferralLevel.A_LEVEL:
            return LevelOutcome("skipped", "upward_invite"), None

        amount = self.rate_table.one_time_reward(referrer_tier, level)
        if amount <= 0:
            return LevelOutcome("skipped", "zero_amount"), None

        credit = await self.ledger.credit(
            user_id=referrer_id,
            amount=amount,
            transaction_type=TransactionType.referral_reward(level),
            idempotency_key=referral_reward_key(level, new_user_id),
            metadata={
                "new_user_id": new_user_id,
                "new_position_tier": int(new_position_tier),
                "referrer_tier": int(referrer_tier),
                "level": level.value,
            },
            description=f"Referral reward {level.letter} for user {new_user_id}",
        )
        if credit.duplicate:
            return LevelOutcome("duplicate", "already_paid"), None

        reward = LevelReward(
            referrer_id=referrer_id,
            amount=credit.amount,
            referrer_tier=int(referrer_tier),
        )
        return LevelOutcome("credited"), reward
