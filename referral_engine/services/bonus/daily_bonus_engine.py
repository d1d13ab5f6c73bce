"""
Daily bonus engine.

Pays override commissions (8% / 3% / 1% of the day's task earnings) to the
A/B/C ancestors of a user who completed 100% of the day's task quota.
Each level of a subordinate day is paid at most once.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, tzinfo
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
from referral_engine.config.settings import settings
from referral_engine.models.enums import ReferralLevel, TransactionType
from referral_engine.models.task_management_bonus import TaskManagementBonus
from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.protocols import (
    DailyBonusStore,
    HierarchyEdge,
    HierarchyStore,
    LedgerCreditor,
    TaskStore,
    UserStore,
)
from referral_engine.repositories.task_management_bonus_repository import (
    TaskManagementBonusRepository,
)
from referral_engine.repositories.user_repository import UserRepository
from referral_engine.repositories.video_task_repository import VideoTaskRepository
from referral_engine.services.ledger.ledger_writer import (
    LedgerWriter,
    quantize_amount,
)
from referral_engine.utils.datetime_utils import (
    local_date,
    task_day_window,
    utc_now,
)
from referral_engine.utils.exceptions import (
    PersistenceFailure,
    is_retryable,
    must_raise,
)


DailyBonusReason = Literal[
    "NOT_COMPLETE",
    "NOTHING_TO_DISTRIBUTE",
    "ALREADY_PROCESSED",
    "INTERN_NO_COMMISSION",
    "NO_HIERARCHY",
]


@dataclass(frozen=True)
class TaskCompletionStatus:
    """A user's task progress for a day."""

    user_id: int
    task_date: date
    tasks_required: int
    tasks_completed: int
    completion_percentage: float
    daily_earnings: Decimal

    @property
    def is_complete(self) -> bool:
        """True when 100% of the quota is done."""
        return self.completion_percentage >= 100


@dataclass(frozen=True)
class DailyBonusReward:
    """Override commission credited to one ancestor."""

    referrer_id: int
    level: ReferralLevel
    amount: Decimal


@dataclass
class DailyBonusResult:
    """Result of processing one user's task day."""

    user_id: int
    success: bool
    reason: DailyBonusReason | None = None
    task_date: date | None = None
    rewards: list[DailyBonusReward] = field(default_factory=list)
    failures: dict[ReferralLevel, str] = field(default_factory=dict)

    @property
    def total_distributed(self) -> Decimal:
        """Sum of credited rewards."""
        return sum((r.amount for r in self.rewards), Decimal("0"))


@dataclass
class DailyBonusSweepResult:
    """Result of a sweep over all users active in a day."""

    processed: int = 0
    succeeded: int = 0
    failed: int = 0
    total_distributed: Decimal = Decimal("0")
    errors: list[str] = field(default_factory=list)


def daily_bonus_key(level: ReferralLevel, user_id: int, task_date: date) -> str:
    """Idempotency key of a daily override commission."""
    return f"TASK_BONUS_{level.value}_{user_id}_{task_date.isoformat()}"


class DailyBonusEngine:
    """Distributes daily override commissions."""

    def __init__(
        self,
        session: AsyncSession,
        rate_table: RateTable = DEFAULT_RATE_TABLE,
        user_store: UserStore | None = None,
        hierarchy_store: HierarchyStore | None = None,
        task_store: TaskStore | None = None,
        bonus_store: DailyBonusStore | None = None,
        ledger: LedgerCreditor | None = None,
        tz: tzinfo | None = None,
        default_quota: int | None = None,
    ) -> None:
        """
        Initialize daily bonus engine.

        Args:
            session: Async database session
            rate_table: Rate table providing the daily percentages
            user_store: User lookups (defaults to UserRepository)
            hierarchy_store: Edge lookups (defaults to HierarchyRepository)
            task_store: Completed task lookups (defaults to VideoTaskRepository)
            bonus_store: Daily bonus records
                (defaults to TaskManagementBonusRepository)
            ledger: Crediting primitive (defaults to LedgerWriter)
            tz: Timezone defining the task day (defaults to settings)
            default_quota: Quota without plan or position (defaults to settings)
        """
        self.session = session
        self.rate_table = rate_table
        self.user_store = user_store or UserRepository(session)
        self.hierarchy_store = hierarchy_store or HierarchyRepository(session)
        self.task_store = task_store or VideoTaskRepository(session)
        self.bonus_store = bonus_store or TaskManagementBonusRepository(session)
        self.ledger = ledger or LedgerWriter(session)
        self.tz = tz or settings.tzinfo
        self.default_quota = default_quota or settings.default_daily_task_quota

    async def _tasks_required(self, user_id: int) -> int:
        """Active plan limit, else position quota, else default."""
        plan_quota = await self.user_store.get_active_daily_quota(user_id)
        if plan_quota is not None:
            return plan_quota

        position = await self.user_store.get_current_position(user_id)
        if position is not None:
            return position.tasks_per_day

        return self.default_quota

    async def _is_entry_tier(self, user_id: int) -> bool:
        if await self.user_store.is_intern(user_id):
            return True
        position = await self.user_store.get_current_position(user_id)
        return position is None or position.tier <= ENTRY_TIER

    async def check_daily_task_completion(
        self, user_id: int, at: datetime | None = None
    ) -> TaskCompletionStatus:
        """
        Check how much of today's quota a user completed.

        Args:
            user_id: User ID
            at: End of the task window (defaults to now)

        Returns:
            TaskCompletionStatus
        """
        at = at or utc_now()
        window_start, window_end = task_day_window(at, self.tz)

        tasks_required = await self._tasks_required(user_id)
        summary = await self.task_store.get_completed_tasks(
            user_id, window_start, window_end
        )

        if tasks_required <= 0:
            percentage = 0.0
        else:
            percentage = summary.count / tasks_required * 100

        return TaskCompletionStatus(
            user_id=user_id,
            task_date=local_date(at, self.tz),
            tasks_required=tasks_required,
            tasks_completed=summary.count,
            completion_percentage=percentage,
            daily_earnings=summary.total_earnings,
        )

    async def process_daily_bonus(
        self, user_id: int, at: datetime | None = None
    ) -> DailyBonusResult:
        """
        Pay override commissions for a user's completed task day.

        Levels already recorded for the day are not paid again, so a call
        after a partial failure only pays the missing levels.

        Args:
            user_id: User who completed tasks
            at: Moment of processing (defaults to now)

        Returns:
            DailyBonusResult
        """
        status = await self.check_daily_task_completion(user_id, at)
        task_date = status.task_date

        if not status.is_complete:
            logger.debug(
                "Daily tasks not complete",
                extra={
                    "user_id": user_id,
                    "completed": status.tasks_completed,
                    "required": status.tasks_required,
                },
            )
            return DailyBonusResult(
                user_id, success=False, reason="NOT_COMPLETE", task_date=task_date
            )

        daily_earnings = status.daily_earnings
        if daily_earnings <= 0:
            return DailyBonusResult(
                user_id,
                success=False,
                reason="NOTHING_TO_DISTRIBUTE",
                task_date=task_date,
            )

        recorded = await self.bonus_store.get_recorded_levels(user_id, task_date)
        if None in recorded:
            return self._already_processed(user_id, task_date)

        if await self._is_entry_tier(user_id):
            if recorded:
                return self._already_processed(user_id, task_date)
            await self.bonus_store.mark_processed(user_id, task_date, daily_earnings)
            await self.session.commit()
            logger.debug(
                "Intern task day marked processed, no commission",
                extra={"user_id": user_id, "task_date": task_date.isoformat()},
            )
            return DailyBonusResult(
                user_id,
                success=True,
                reason="INTERN_NO_COMMISSION",
                task_date=task_date,
            )

        edges = await self.hierarchy_store.find_edges(user_id)
        if not edges:
            return DailyBonusResult(
                user_id, success=False, reason="NO_HIERARCHY", task_date=task_date
            )

        pending = [edge for edge in edges if edge.level not in recorded]
        if not pending:
            return self._already_processed(user_id, task_date)
        if recorded:
            logger.info(
                "Retrying unpaid daily bonus levels",
                extra={
                    "user_id": user_id,
                    "task_date": task_date.isoformat(),
                    "levels": [edge.level.value for edge in pending],
                },
            )

        result = DailyBonusResult(user_id, success=True, task_date=task_date)

        for edge in pending:
            try:
                reward = await self._pay_edge(
                    user_id, task_date, daily_earnings, edge
                )
            except (PersistenceFailure, SQLAlchemyError) as e:
                await self.session.rollback()
                result.failures[edge.level] = str(e)
                logger.error(
                    f"Daily bonus failed: {e}",
                    extra={
                        "user_id": user_id,
                        "referrer_id": edge.referrer_id,
                        "level": edge.level.value,
                        "retryable": is_retryable(e),
                        "event": "daily_bonus",
                    },
                )
                continue

            if reward is not None:
                result.rewards.append(reward)

        if recorded and not result.rewards and not result.failures:
            return self._already_processed(user_id, task_date)

        logger.info(
            "Daily bonus processed",
            extra={
                "user_id": user_id,
                "task_date": task_date.isoformat(),
                "daily_earnings": str(daily_earnings),
                "total_distributed": str(result.total_distributed),
                "rewards": len(result.rewards),
                "failures": len(result.failures),
            },
        )
        return result

    def _already_processed(self, user_id: int, task_date: date) -> DailyBonusResult:
        logger.debug(
            "Daily bonus already processed",
            extra={"user_id": user_id, "task_date": task_date.isoformat()},
        )
        return DailyBonusResult(
            user_id,
            success=False,
            reason="ALREADY_PROCESSED",
            task_date=task_date,
        )

    async def _pay_edge(
        self,
        user_id: int,
        task_date: date,
        daily_earnings: Decimal,
        edge: HierarchyEdge,
    ) -> DailyBonusReward | None:
        """Credit one ancestor's override commission, None when skipped."""
        level = edge.level
        referrer_id = edge.referrer_id

        if await self.user_store.is_intern(
            referrer_id
        ) or not await self.user_store.is_user_active(referrer_id):
            logger.debug(
                "Referrer not eligible for daily bonus",
                extra={"user_id": user_id, "referrer_id": referrer_id},
            )
            return None

        amount = quantize_amount(
            daily_earnings * self.rate_table.daily_bonus_rate(level)
        )
        if amount <= 0:
            return None

        record = TaskManagementBonus(
            referrer_id=referrer_id,
            subordinate_id=user_id,
            level=level.value,
            task_date=task_date,
            bonus_amount=amount,
            subordinate_daily_income=daily_earnings,
        )
        credit = await self.ledger.credit(
            user_id=referrer_id,
            amount=amount,
            transaction_type=TransactionType.management_bonus(level),
            idempotency_key=daily_bonus_key(level, user_id, task_date),
            metadata={
                "subordinate_id": user_id,
                "task_date": task_date.isoformat(),
                "daily_earnings": str(daily_earnings),
                "level": level.value,
            },
            description=(
                f"Daily management bonus {level.letter} "
                f"from user {user_id} for {task_date.isoformat()}"
            ),
            companions=(record,),
        )
        if credit.duplicate:
            return None

        return DailyBonusReward(
            referrer_id=referrer_id, level=level, amount=credit.amount
        )

    async def process_daily_bonus_sweep(
        self, at: datetime | None = None
    ) -> DailyBonusSweepResult:
        """
        Process the daily bonus for every user with tasks in the day.

        Continues past per-user failures. A user with any failed level is
        counted as failed; the next sweep of the day pays what is missing.

        Args:
            at: End of the task window (defaults to now)

        Returns:
            DailyBonusSweepResult
        """
        at = at or utc_now()
        window_start, window_end = task_day_window(at, self.tz)
        user_ids = await self.task_store.get_active_user_ids(
            window_start, window_end
        )

        logger.info(
            "Starting daily bonus sweep",
            extra={
                "task_date": local_date(at, self.tz).isoformat(),
                "users": len(user_ids),
            },
        )

        sweep = DailyBonusSweepResult()
        for user_id in user_ids:
            sweep.processed += 1
            try:
                result = await self.process_daily_bonus(user_id, at)
            except Exception as e:
                await self.session.rollback()
                if must_raise(e):
                    raise
                sweep.failed += 1
                sweep.errors.append(f"User {user_id}: {e}")
                logger.exception(
                    f"Daily bonus failed for user {user_id}: {e}",
                    extra={"user_id": user_id, "event": "daily_bonus_sweep"},
                )
                continue

            sweep.total_distributed += result.total_distributed
            if result.failures:
                sweep.failed += 1
                levels = ", ".join(level.value for level in result.failures)
                sweep.errors.append(f"User {user_id}: failed levels {levels}")
            elif result.rewards:
                sweep.succeeded += 1

        logger.info(
            "Daily bonus sweep complete",
            extra={
                "processed": sweep.processed,
                "succeeded": sweep.succeeded,
                "failed": sweep.failed,
                "total_distributed": str(sweep.total_distributed),
            },
        )
        return sweep
