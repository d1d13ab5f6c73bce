"""
Unit tests for DistributedLock.

Tests cover:
- Non-blocking acquire and release
- Lock held elsewhere
- Lock expired before release
- Degraded mode without Redis
"""

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import LockNotOwnedError

from referral_engine.utils.distributed_lock import DistributedLock


class TestDistributedLock:
    """Test Redis lock behaviour."""

    @pytest.mark.asyncio
    async def test_acquire_and_release(self, mock_redis):
        """Test non-blocking lock with expiry, released after the block."""
        lock = DistributedLock(redis_client=mock_redis)

        async with lock.lock("daily_bonus_sweep_2025-01-15", timeout=600) as acquired:
            assert acquired

        mock_redis.lock.assert_called_once_with(
            "lock:daily_bonus_sweep_2025-01-15", timeout=600, blocking=False
        )
        mock_redis.lock.return_value.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_held_elsewhere(self, mock_redis):
        """Test lock not acquired and not released."""
        mock_redis.lock.return_value.acquire.return_value = False
        lock = DistributedLock(redis_client=mock_redis)

        async with lock.lock("job") as acquired:
            assert not acquired

        mock_redis.lock.return_value.release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_released_on_error(self, mock_redis):
        """Test lock released when the body raises."""
        lock = DistributedLock(redis_client=mock_redis)

        with pytest.raises(RuntimeError):
            async with lock.lock("job"):
                raise RuntimeError("boom")

        mock_redis.lock.return_value.release.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_expired_before_release(self, mock_redis):
        """Test losing the lock to expiry does not fail the job."""
        mock_redis.lock.return_value.release.side_effect = LockNotOwnedError(
            "Cannot release a lock that's no longer owned"
        )
        lock = DistributedLock(redis_client=mock_redis)

        async with lock.lock("job") as acquired:
            assert acquired

    @pytest.mark.asyncio
    async def test_without_redis(self):
        """Test lock degrades to a no-op."""
        lock = DistributedLock(redis_client=None)

        async with lock.lock("job") as acquired:
            assert acquired

    @pytest.mark.asyncio
    async def test_redis_unavailable(self, mock_redis):
        """Test connection error degrades to a no-op."""
        mock_redis.lock.return_value.acquire.side_effect = RedisConnectionError(
            "refused"
        )
        lock = DistributedLock(redis_client=mock_redis)

        async with lock.lock("job") as acquired:
            assert acquired

        mock_redis.lock.return_value.release.assert_not_awaited()
