"""
Unit tests for SQL repositories.

Statements are captured from a mock session and compiled for PostgreSQL.

Tests cover:
- Half-open [start, end) task windows on verified tasks
- Hierarchy edge replacement and per-level counts
- User lookups (unknown users, row locks, missing hierarchies)
- Daily bonus recorded levels and ledger sums
"""

from datetime import UTC, date, datetime
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from sqlalchemy.dialects import postgresql

from referral_engine.models.enums import ReferralLevel, TransactionType
from referral_engine.models.referral_hierarchy import ReferralHierarchy
from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.protocols import HierarchyEdge
from referral_engine.repositories.task_management_bonus_repository import (
    TaskManagementBonusRepository,
)
from referral_engine.repositories.user_repository import UserRepository
from referral_engine.repositories.video_task_repository import VideoTaskRepository
from referral_engine.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)


A, B, C = ReferralLevel.A_LEVEL, ReferralLevel.B_LEVEL, ReferralLevel.C_LEVEL

WINDOW_START = datetime(2025, 1, 14, 19, 0, tzinfo=UTC)
WINDOW_END = datetime(2025, 1, 15, 13, 0, tzinfo=UTC)


def _compiled(mock_session, call=-1):
    stmt = mock_session.execute.call_args_list[call].args[0]
    return stmt.compile(dialect=postgresql.dialect())


def _result(**methods):
    result = MagicMock()
    for name, value in methods.items():
        getattr(result, name).return_value = value
    return result


class TestVideoTaskRepository:
    """Test completed task queries."""

    @pytest.mark.asyncio
    async def test_completed_tasks_window(self, mock_session):
        """Test verified tasks counted in a half-open window."""
        mock_session.execute.return_value = _result(
            one=SimpleNamespace(count=10, total_earnings=Decimal("1000.00"))
        )
        repo = VideoTaskRepository(mock_session)

        summary = await repo.get_completed_tasks(7, WINDOW_START, WINDOW_END)

        compiled = _compiled(mock_session)
        sql = str(compiled)
        assert "user_video_tasks.watched_at >= %(watched_at_1)s" in sql
        assert "user_video_tasks.watched_at < %(watched_at_2)s" in sql
        assert "<=" not in sql
        assert "user_video_tasks.is_verified" in sql
        assert "coalesce(sum(user_video_tasks.reward_earned)" in sql
        assert compiled.params["watched_at_1"] == WINDOW_START
        assert compiled.params["watched_at_2"] == WINDOW_END
        assert compiled.params["user_id_1"] == 7
        assert summary.count == 10
        assert summary.total_earnings == Decimal("1000.00")

    @pytest.mark.asyncio
    async def test_completed_tasks_empty_day(self, mock_session):
        """Test NULL aggregates become zero."""
        mock_session.execute.return_value = _result(
            one=SimpleNamespace(count=None, total_earnings=None)
        )
        repo = VideoTaskRepository(mock_session)

        summary = await repo.get_completed_tasks(7, WINDOW_START, WINDOW_END)

        assert summary.count == 0
        assert summary.total_earnings == Decimal("0")

    @pytest.mark.asyncio
    async def test_active_user_ids(self, mock_session):
        """Test distinct users with verified tasks in the window."""
        mock_session.execute.return_value = _result(all=[(3,), (10,)])
        repo = VideoTaskRepository(mock_session)

        user_ids = await repo.get_active_user_ids(WINDOW_START, WINDOW_END)

        sql = str(_compiled(mock_session))
        assert sql.startswith("SELECT DISTINCT user_video_tasks.user_id")
        assert "user_video_tasks.watched_at < %(watched_at_2)s" in sql
        assert user_ids == [3, 10]


class TestHierarchyRepository:
    """Test edge queries."""

    @pytest.mark.asyncio
    async def test_replace_edges(self, mock_session):
        """Test delete of old edges, then insert of the new set."""
        repo = HierarchyRepository(mock_session)
        edges = [
            HierarchyEdge(user_id=10, referrer_id=3, level=A),
            HierarchyEdge(user_id=10, referrer_id=2, level=B),
        ]

        await repo.replace_edges(10, edges)

        compiled = _compiled(mock_session)
        assert str(compiled).startswith(
            "DELETE FROM referral_hierarchy WHERE referral_hierarchy.user_id ="
        )
        assert compiled.params["user_id_1"] == 10

        rows = list(mock_session.add_all.call_args.args[0])
        assert all(isinstance(row, ReferralHierarchy) for row in rows)
        assert [(r.user_id, r.referrer_id, r.level) for r in rows] == [
            (10, 3, "A_LEVEL"),
            (10, 2, "B_LEVEL"),
        ]
        mock_session.flush.assert_awaited_once()
        mock_session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_replace_with_no_edges(self, mock_session):
        """Test clearing all edges."""
        repo = HierarchyRepository(mock_session)

        await repo.replace_edges(10, [])

        assert list(mock_session.add_all.call_args.args[0]) == []
        mock_session.execute.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_find_edges_ordered(self, mock_session):
        """Test rows mapped to edges in level order."""
        rows = [
            SimpleNamespace(user_id=10, referrer_id=3, level="A_LEVEL"),
            SimpleNamespace(user_id=10, referrer_id=2, level="B_LEVEL"),
        ]
        result = MagicMock()
        result.scalars.return_value.all.return_value = rows
        mock_session.execute.return_value = result
        repo = HierarchyRepository(mock_session)

        edges = await repo.find_edges(10)

        assert "ORDER BY referral_hierarchy.level ASC" in str(_compiled(mock_session))
        assert [(e.referrer_id, e.level) for e in edges] == [(3, A), (2, B)]

    @pytest.mark.asyncio
    async def test_count_by_level_fills_missing(self, mock_session):
        """Test levels without rows count zero."""
        mock_session.execute.return_value = _result(
            all=[SimpleNamespace(level="A_LEVEL", count=4)]
        )
        repo = HierarchyRepository(mock_session)

        counts = await repo.count_by_level(1)

        assert "GROUP BY referral_hierarchy.level" in str(_compiled(mock_session))
        assert counts == {A: 4, B: 0, C: 0}


class TestUserRepository:
    """Test user lookups."""

    @pytest.mark.asyncio
    async def test_unknown_user_is_intern(self, mock_session):
        """Test missing row counts as intern."""
        mock_session.execute.return_value = _result(scalar_one_or_none=None)
        repo = UserRepository(mock_session)

        assert await repo.is_intern(404)

    @pytest.mark.asyncio
    async def test_intern_flag(self, mock_session):
        """Test stored flag is returned."""
        mock_session.execute.return_value = _result(scalar_one_or_none=False)
        repo = UserRepository(mock_session)

        assert not await repo.is_intern(7)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("row", "expected"),
        [
            (SimpleNamespace(is_active=True, is_banned=False, earnings_blocked=False), True),
            (SimpleNamespace(is_active=False, is_banned=False, earnings_blocked=False), False),
            (SimpleNamespace(is_active=True, is_banned=True, earnings_blocked=False), False),
            (SimpleNamespace(is_active=True, is_banned=False, earnings_blocked=True), False),
            (None, False),
        ],
    )
    async def test_is_user_active(self, mock_session, row, expected):
        """Test suspended, banned and blocked users are inactive."""
        mock_session.execute.return_value = _result(one_or_none=row)
        repo = UserRepository(mock_session)

        assert await repo.is_user_active(7) is expected

    @pytest.mark.asyncio
    async def test_lock_user_for_update(self, mock_session):
        """Test row lock statement."""
        mock_session.execute.return_value = _result(scalar_one_or_none=7)
        repo = UserRepository(mock_session)

        assert await repo.lock_user(7)
        assert str(_compiled(mock_session)).endswith("FOR UPDATE")

    @pytest.mark.asyncio
    async def test_users_without_hierarchy(self, mock_session):
        """Test referred users lacking edges are selected."""
        mock_session.execute.return_value = _result(all=[(4,), (9,)])
        repo = UserRepository(mock_session)

        user_ids = await repo.get_user_ids_without_hierarchy()

        sql = str(_compiled(mock_session))
        assert "users.referred_by_id IS NOT NULL" in sql
        assert "NOT (EXISTS" in sql or "NOT EXISTS" in sql
        assert "referral_hierarchy.user_id = users.id" in sql
        assert user_ids == [4, 9]

    @pytest.mark.asyncio
    async def test_current_position(self, mock_session):
        """Test position row mapped to tier and quota."""
        mock_session.execute.return_value = _result(
            one_or_none=SimpleNamespace(level=3, tasks_per_day=10, name="P3")
        )
        repo = UserRepository(mock_session)

        position = await repo.get_current_position(7)

        assert (position.tier, position.tasks_per_day, position.name) == (3, 10, "P3")
        assert "JOIN users ON users.position_level_id = position_levels.id" in str(
            _compiled(mock_session)
        )

    @pytest.mark.asyncio
    async def test_no_position(self, mock_session):
        """Test user without position."""
        mock_session.execute.return_value = _result(one_or_none=None)
        repo = UserRepository(mock_session)

        assert await repo.get_current_position(7) is None


class TestTaskManagementBonusRepository:
    """Test daily bonus records."""

    @pytest.mark.asyncio
    async def test_recorded_levels(self, mock_session):
        """Test levels and the marker row are reported."""
        result = MagicMock()
        result.scalars.return_value.all.return_value = ["A_LEVEL", None]
        mock_session.execute.return_value = result
        repo = TaskManagementBonusRepository(mock_session)

        levels = await repo.get_recorded_levels(10, date(2025, 1, 15))

        compiled = _compiled(mock_session)
        assert compiled.params["subordinate_id_1"] == 10
        assert compiled.params["task_date_1"] == date(2025, 1, 15)
        assert levels == {A, None}

    @pytest.mark.asyncio
    async def test_mark_processed(self, mock_session):
        """Test marker row without referrer or level."""
        repo = TaskManagementBonusRepository(mock_session)

        await repo.mark_processed(10, date(2025, 1, 15), Decimal("0.50"))

        marker = mock_session.add.call_args.args[0]
        assert marker.referrer_id is None
        assert marker.level is None
        assert marker.bonus_amount == Decimal("0")
        assert marker.subordinate_daily_income == Decimal("0.50")
        mock_session.flush.assert_awaited_once()


class TestWalletTransactionRepository:
    """Test ledger queries."""

    @pytest.mark.asyncio
    async def test_sum_by_type_fills_missing(self, mock_session):
        """Test every requested type is present."""
        mock_session.execute.return_value = _result(
            all=[SimpleNamespace(type="REFERRAL_REWARD_A", total=Decimal("312.00"))]
        )
        repo = WalletTransactionRepository(mock_session)

        totals = await repo.sum_by_type(
            3, [TransactionType.REFERRAL_REWARD_A, TransactionType.REFERRAL_REWARD_B]
        )

        assert "GROUP BY wallet_transactions.type" in str(_compiled(mock_session))
        assert totals == {
            TransactionType.REFERRAL_REWARD_A: Decimal("312.00"),
            TransactionType.REFERRAL_REWARD_B: Decimal("0"),
        }

    @pytest.mark.asyncio
    async def test_exists_by_reference(self, mock_session):
        """Test key lookup."""
        mock_session.execute.return_value = _result(scalar_one_or_none=None)
        repo = WalletTransactionRepository(mock_session)

        assert not await repo.exists_by_reference("REFERRAL_A_LEVEL_10")
        assert _compiled(mock_session).params["reference_id_1"] == "REFERRAL_A_LEVEL_10"
