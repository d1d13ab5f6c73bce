"""
Repository contracts consumed by the commission engines.

The engines depend only on these protocols. The SQLAlchemy repositories in
this package implement them; tests substitute in-memory stores.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Protocol

from referral_engine.models.enums import ReferralLevel, TransactionType


@dataclass(frozen=True)
class HierarchyEdge:
    """Ancestor of a user at a level."""

    user_id: int
    referrer_id: int
    level: ReferralLevel


@dataclass(frozen=True)
class CurrentPosition:
    """User's current position tier and its daily quota."""

    tier: int
    tasks_per_day: int
    name: str | None = None


@dataclass(frozen=True)
class TaskDaySummary:
    """Verified tasks completed in a window."""

    count: int
    total_earnings: Decimal


class UserStore(Protocol):
    """Read access to users for the commission engines."""

    async def get_referrer_id(self, user_id: int) -> int | None: ...

    async def get_current_position(self, user_id: int) -> CurrentPosition | None: ...

    async def get_active_daily_quota(self, user_id: int) -> int | None: ...

    async def is_user_active(self, user_id: int) -> bool: ...

    async def is_intern(self, user_id: int) -> bool: ...

    async def lock_user(self, user_id: int) -> bool: ...

    async def get_user_ids_without_hierarchy(self) -> list[int]: ...


class HierarchyStore(Protocol):
    """Per-user A/B/C ancestor edges."""

    async def find_edges(self, user_id: int) -> list[HierarchyEdge]: ...

    async def replace_edges(
        self, user_id: int, edges: Sequence[HierarchyEdge]
    ) -> None: ...

    async def count_by_level(self, referrer_id: int) -> dict[ReferralLevel, int]: ...


class TaskStore(Protocol):
    """Completed task lookups."""

    async def get_completed_tasks(
        self, user_id: int, window_start: datetime, window_end: datetime
    ) -> TaskDaySummary: ...

    async def get_active_user_ids(
        self, window_start: datetime, window_end: datetime
    ) -> list[int]: ...


class DailyBonusStore(Protocol):
    """Daily bonus records (per-level double payment gate)."""

    async def get_recorded_levels(
        self, subordinate_id: int, task_date: date
    ) -> set[ReferralLevel | None]: ...

    async def mark_processed(
        self, subordinate_id: int, task_date: date, daily_income: Decimal
    ) -> None: ...


class LedgerStore(Protocol):
    """Read access to the ledger."""

    async def exists_by_reference(self, reference_id: str) -> bool: ...

    async def sum_by_type(
        self, user_id: int, types: Sequence[TransactionType]
    ) -> dict[TransactionType, Decimal]: ...


@dataclass(frozen=True)
class CreditResult:
    """Outcome of one ledger credit."""

    user_id: int
    idempotency_key: str
    amount: Decimal
    duplicate: bool = False
    transaction_id: int | None = None
    balance_after: Decimal | None = None


class LedgerCreditor(Protocol):
    """Atomic, idempotent balance credit."""

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
        idempotency_key: str,
        metadata: dict | None = None,
        description: str | None = None,
        companions: Sequence[object] = (),
    ) -> CreditResult: ...
