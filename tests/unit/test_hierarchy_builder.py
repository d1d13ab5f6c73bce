"""
Unit tests for HierarchyBuilder.

Tests cover:
- A/B/C assignment from the invite chain
- Partial chains and users without referrer
- Self-referral and cycles
- Idempotent rebuild
- Bulk repair
"""

import pytest

from referral_engine.models.enums import ReferralLevel
from referral_engine.services.referral.hierarchy_builder import HierarchyBuilder


@pytest.fixture
def builder(mock_session, user_store, hierarchy_store):
    """Create HierarchyBuilder with in-memory stores."""
    return HierarchyBuilder(
        mock_session, user_store=user_store, hierarchy_store=hierarchy_store
    )


def _chain(world, *links):
    """Create users where each links[i] was invited by links[i + 1]."""
    for user_id, referrer_id in zip(links, links[1:] + (None,)):
        world.add_user(user_id, referrer_id=referrer_id)


def _refs(edges):
    return [(e.level, e.referrer_id) for e in edges]


class TestBuild:
    """Test single-user build."""

    @pytest.mark.asyncio
    async def test_full_chain(self, builder, world, mock_session):
        """Test D <- C <- B <- A yields three edges."""
        _chain(world, 4, 3, 2, 1)

        edges = await builder.build(4)

        assert _refs(edges) == [
            (ReferralLevel.A_LEVEL, 3),
            (ReferralLevel.B_LEVEL, 2),
            (ReferralLevel.C_LEVEL, 1),
        ]
        assert world.edges[4] == edges
        assert world.locked == [4]
        mock_session.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_walk_stops_at_three_levels(self, builder, world):
        """Test ancestors beyond C are ignored."""
        _chain(world, 6, 5, 4, 3, 2, 1)

        edges = await builder.build(6)

        assert [e.referrer_id for e in edges] == [5, 4, 3]

    @pytest.mark.asyncio
    async def test_partial_chain(self, builder, world):
        """Test chain of two yields A and B only."""
        _chain(world, 3, 2, 1)

        edges = await builder.build(3)

        assert _refs(edges) == [
            (ReferralLevel.A_LEVEL, 2),
            (ReferralLevel.B_LEVEL, 1),
        ]

    @pytest.mark.asyncio
    async def test_no_referrer_clears_edges(self, builder, world):
        """Test stale edges are removed when the user has no referrer."""
        world.add_user(1)
        world.set_chain(1, 99)

        edges = await builder.build(1)

        assert edges == []
        assert world.edges[1] == []

    @pytest.mark.asyncio
    async def test_unknown_user(self, builder, world):
        """Test unknown user yields no edges."""
        assert await builder.build(404) == []

    @pytest.mark.asyncio
    async def test_self_referral(self, builder, world):
        """Test user referring themselves creates no edge."""
        world.add_user(1, referrer_id=1)

        assert await builder.build(1) == []

    @pytest.mark.asyncio
    async def test_cycle_is_truncated(self, builder, world):
        """Test 1 -> 2 -> 3 -> 1 stops before repeating a user."""
        world.add_user(1, referrer_id=2)
        world.add_user(2, referrer_id=3)
        world.add_user(3, referrer_id=1)

        edges = await builder.build(1)

        assert [e.referrer_id for e in edges] == [2, 3]
        referrers = [e.referrer_id for e in edges]
        assert len(referrers) == len(set(referrers))

    @pytest.mark.asyncio
    async def test_two_cycle(self, builder, world):
        """Test mutual referral yields a single edge."""
        world.add_user(1, referrer_id=2)
        world.add_user(2, referrer_id=1)

        edges = await builder.build(1)

        assert [e.referrer_id for e in edges] == [2]

    @pytest.mark.asyncio
    async def test_rebuild_is_idempotent(self, builder, world):
        """Test building twice gives the same edge set."""
        _chain(world, 4, 3, 2, 1)

        first = await builder.build(4)
        second = await builder.build(4)

        assert first == second
        assert world.edges[4] == second

    @pytest.mark.asyncio
    async def test_rebuild_follows_new_chain(self, builder, world):
        """Test rebuild reflects a changed referrer."""
        _chain(world, 3, 2, 1)
        await builder.build(3)

        world.add_user(7)
        world.users[3].referrer_id = 7
        edges = await builder.build(3)

        assert _refs(edges) == [(ReferralLevel.A_LEVEL, 7)]

    @pytest.mark.asyncio
    async def test_failure_rolls_back(self, builder, hierarchy_store, world, mock_session):
        """Test session is rolled back when writing edges fails."""
        _chain(world, 2, 1)

        async def broken(user_id, edges):
            raise RuntimeError("disk full")

        hierarchy_store.replace_edges = broken

        with pytest.raises(RuntimeError):
            await builder.build(2)

        mock_session.rollback.assert_awaited()
        mock_session.commit.assert_not_awaited()


class TestRepairMissing:
    """Test bulk repair."""

    @pytest.mark.asyncio
    async def test_repairs_users_without_edges(self, builder, world):
        """Test only referred users without edges are rebuilt."""
        _chain(world, 3, 2, 1)
        world.set_chain(2, 1)  # already has edges

        report = await builder.repair_missing()

        assert report.processed == 1
        assert report.rebuilt == 1
        assert report.failed == 0
        assert [e.referrer_id for e in world.edges[3]] == [2, 1]

    @pytest.mark.asyncio
    async def test_continues_past_failures(self, builder, hierarchy_store, world):
        """Test one failing user does not stop the repair."""
        world.add_user(1)
        world.add_user(2, referrer_id=1)
        world.add_user(3, referrer_id=1)

        original = hierarchy_store.replace_edges

        async def flaky(user_id, edges):
            if user_id == 2:
                raise RuntimeError("boom")
            await original(user_id, edges)

        hierarchy_store.replace_edges = flaky

        report = await builder.repair_missing()

        assert report.processed == 2
        assert report.rebuilt == 1
        assert report.failed == 1
        assert "User 2" in report.errors[0]
        assert [e.referrer_id for e in world.edges[3]] == [1]

    @pytest.mark.asyncio
    async def test_nothing_to_repair(self, builder, world):
        """Test empty report when all hierarchies exist."""
        world.add_user(1)

        report = await builder.repair_missing()

        assert report.processed == 0
        assert report.errors == []
