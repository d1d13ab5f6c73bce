"""
Shared fixtures for unit tests.

This module provides in-memory implementations of the repository protocols:
- FakeWorld: users, edges, tasks, bonus records and ledger in dicts
- Fake stores bound to a FakeWorld
- FakeLedgerWriter enforcing idempotency keys
"""

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy.exc import OperationalError

from referral_engine.config.rate_table import DEFAULT_TASKS_PER_DAY
from referral_engine.models.enums import REFERRAL_LEVELS, ReferralLevel, TransactionType
from referral_engine.models.task_management_bonus import TaskManagementBonus
from referral_engine.repositories.protocols import (
    CreditResult,
    CurrentPosition,
    HierarchyEdge,
    TaskDaySummary,
)
from referral_engine.services.ledger.ledger_writer import quantize_amount
from referral_engine.utils.exceptions import PersistenceFailure


KARACHI = ZoneInfo("Asia/Karachi")


@dataclass
class FakeUser:
    """User row."""

    id: int
    referrer_id: int | None = None
    tier: int | None = None
    plan_quota: int | None = None
    is_intern: bool = False
    is_active: bool = True
    is_banned: bool = False
    earnings_blocked: bool = False


@dataclass
class FakeTask:
    """Completed task row."""

    user_id: int
    watched_at: datetime
    reward: Decimal
    is_verified: bool = True


@dataclass
class FakeWorld:
    """In-memory database."""

    users: dict[int, FakeUser] = field(default_factory=dict)
    edges: dict[int, list[HierarchyEdge]] = field(default_factory=dict)
    tasks: list[FakeTask] = field(default_factory=list)
    bonus_records: list[object] = field(default_factory=list)
    ledger: dict[str, tuple[int, Decimal, TransactionType]] = field(default_factory=dict)
    locked: list[int] = field(default_factory=list)

    def add_user(self, user_id: int, **kwargs) -> FakeUser:
        user = FakeUser(id=user_id, **kwargs)
        self.users[user_id] = user
        return user

    def add_tasks(
        self, user_id: int, count: int, reward: Decimal, at: datetime
    ) -> None:
        for _ in range(count):
            self.tasks.append(FakeTask(user_id=user_id, watched_at=at, reward=reward))

    def set_chain(self, user_id: int, *referrer_ids: int) -> None:
        """Set precomputed A/B/C edges for user_id."""
        self.edges[user_id] = [
            HierarchyEdge(user_id=user_id, referrer_id=ref, level=level)
            for ref, level in zip(referrer_ids, REFERRAL_LEVELS)
        ]

    def credited(self, user_id: int) -> Decimal:
        """Total ledger amount credited to a user."""
        return sum(
            (amount for uid, amount, _ in self.ledger.values() if uid == user_id),
            Decimal("0"),
        )


class FakeUserStore:
    def __init__(self, world: FakeWorld) -> None:
        self.world = world
        self.fail_for: set[int] = set()

    async def get_referrer_id(self, user_id: int) -> int | None:
        user = self.world.users.get(user_id)
        return user.referrer_id if user else None

    async def get_current_position(self, user_id: int) -> CurrentPosition | None:
        user = self.world.users.get(user_id)
        if user is None or user.tier is None:
            return None
        return CurrentPosition(
            tier=user.tier, tasks_per_day=DEFAULT_TASKS_PER_DAY[user.tier]
        )

    async def get_active_daily_quota(self, user_id: int) -> int | None:
        user = self.world.users.get(user_id)
        return user.plan_quota if user else None

    async def is_user_active(self, user_id: int) -> bool:
        if user_id in self.fail_for:
            raise OperationalError("SELECT users", {}, Exception("connection reset"))
        user = self.world.users.get(user_id)
        if user is None:
            return False
        return user.is_active and not user.is_banned and not user.earnings_blocked

    async def is_intern(self, user_id: int) -> bool:
        user = self.world.users.get(user_id)
        return True if user is None else user.is_intern

    async def lock_user(self, user_id: int) -> bool:
        self.world.locked.append(user_id)
        return user_id in self.world.users

    async def get_user_ids_without_hierarchy(self) -> list[int]:
        return sorted(
            uid
            for uid, user in self.world.users.items()
            if user.referrer_id is not None and not self.world.edges.get(uid)
        )


class FakeHierarchyStore:
    def __init__(self, world: FakeWorld) -> None:
        self.world = world

    async def find_edges(self, user_id: int) -> list[HierarchyEdge]:
        return list(self.world.edges.get(user_id, []))

    async def replace_edges(
        self, user_id: int, edges: Sequence[HierarchyEdge]
    ) -> None:
        self.world.edges[user_id] = list(edges)

    async def count_by_level(self, referrer_id: int) -> dict[ReferralLevel, int]:
        counts = {level: 0 for level in REFERRAL_LEVELS}
        for edges in self.world.edges.values():
            for edge in edges:
                if edge.referrer_id == referrer_id:
                    counts[edge.level] += 1
        return counts


class FakeTaskStore:
    def __init__(self, world: FakeWorld) -> None:
        self.world = world

    def _in_window(self, task: FakeTask, start: datetime, end: datetime) -> bool:
        return task.is_verified and start <= task.watched_at < end

    async def get_completed_tasks(
        self, user_id: int, window_start: datetime, window_end: datetime
    ) -> TaskDaySummary:
        tasks = [
            t
            for t in self.world.tasks
            if t.user_id == user_id and self._in_window(t, window_start, window_end)
        ]
        return TaskDaySummary(
            count=len(tasks),
            total_earnings=sum((t.reward for t in tasks), Decimal("0")),
        )

    async def get_active_user_ids(
        self, window_start: datetime, window_end: datetime
    ) -> list[int]:
        return sorted(
            {
                t.user_id
                for t in self.world.tasks
                if self._in_window(t, window_start, window_end)
            }
        )


class FakeDailyBonusStore:
    def __init__(self, world: FakeWorld) -> None:
        self.world = world

    async def get_recorded_levels(
        self, subordinate_id: int, task_date: date
    ) -> set[ReferralLevel | None]:
        return {
            ReferralLevel(r.level) if r.level is not None else None
            for r in self.world.bonus_records
            if r.subordinate_id == subordinate_id and r.task_date == task_date
        }

    async def mark_processed(
        self, subordinate_id: int, task_date: date, daily_income: Decimal
    ) -> None:
        self.world.bonus_records.append(
            TaskManagementBonus(
                referrer_id=None,
                subordinate_id=subordinate_id,
                level=None,
                task_date=task_date,
                bonus_amount=Decimal("0"),
                subordinate_daily_income=daily_income,
            )
        )


class FakeLedgerStore:
    def __init__(self, world: FakeWorld) -> None:
        self.world = world

    async def exists_by_reference(self, reference_id: str) -> bool:
        return reference_id in self.world.ledger

    async def sum_by_type(
        self, user_id: int, types: Sequence[TransactionType]
    ) -> dict[TransactionType, Decimal]:
        totals = {t: Decimal("0") for t in types}
        for uid, amount, tx_type in self.world.ledger.values():
            if uid == user_id and tx_type in totals:
                totals[tx_type] += amount
        return totals


class FakeLedgerWriter:
    """Ledger creditor with key idempotency and failure injection."""

    def __init__(self, world: FakeWorld) -> None:
        self.world = world
        self.fail_for: set[int] = set()
        self.calls: list[dict] = []

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
        idempotency_key: str,
        metadata: dict | None = None,
        description: str | None = None,
        companions: Sequence[object] = (),
    ) -> CreditResult:
        self.calls.append(
            {
                "user_id": user_id,
                "amount": amount,
                "type": transaction_type,
                "key": idempotency_key,
            }
        )
        if amount <= 0:
            raise ValueError("amount must be positive")
        amount = quantize_amount(amount)

        if idempotency_key in self.world.ledger:
            return CreditResult(
                user_id=user_id,
                idempotency_key=idempotency_key,
                amount=amount,
                duplicate=True,
            )
        if user_id in self.fail_for:
            raise PersistenceFailure(
                "simulated outage", user_id=user_id, idempotency_key=idempotency_key
            )

        self.world.ledger[idempotency_key] = (user_id, amount, transaction_type)
        self.world.bonus_records.extend(companions)
        return CreditResult(
            user_id=user_id,
            idempotency_key=idempotency_key,
            amount=amount,
            transaction_id=len(self.world.ledger),
            balance_after=self.world.credited(user_id),
        )


@pytest.fixture
def world():
    """Empty in-memory database."""
    return FakeWorld()


@pytest.fixture
def user_store(world):
    return FakeUserStore(world)


@pytest.fixture
def hierarchy_store(world):
    return FakeHierarchyStore(world)


@pytest.fixture
def task_store(world):
    return FakeTaskStore(world)


@pytest.fixture
def bonus_store(world):
    return FakeDailyBonusStore(world)


@pytest.fixture
def ledger_store(world):
    return FakeLedgerStore(world)


@pytest.fixture
def ledger(world):
    return FakeLedgerWriter(world)
