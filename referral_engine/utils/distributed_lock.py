"""
Distributed lock.

Redis-based lock that keeps two workers from running the same batch job at
once. Without Redis the lock degrades to a local no-op; correctness of the
commission engine never depends on it because every credit is idempotent.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from loguru import logger
from redis.exceptions import LockError, RedisError


class DistributedLock:
    """Non-blocking wrapper around redis-py's token lock."""

    def __init__(self, redis_client: Any | None = None, prefix: str = "lock:") -> None:
        """
        Initialize lock.

        Args:
            redis_client: redis.asyncio client, or None to disable locking
            prefix: Key prefix for lock keys
        """
        self.redis_client = redis_client
        self.prefix = prefix

    @asynccontextmanager
    async def lock(self, key: str, timeout: int = 60) -> AsyncIterator[bool]:
        """
        Acquire lock for the duration of the block.

        Args:
            key: Lock name
            timeout: Expiry in seconds, so a crashed holder cannot block forever

        Yields:
            True if the lock is held (or locking is disabled), False if
            another holder owns it
        """
        if self.redis_client is None:
            logger.warning(
                "Distributed lock disabled (no Redis client)",
                extra={"lock_key": key},
            )
            yield True
            return

        full_key = f"{self.prefix}{key}"
        redis_lock = self.redis_client.lock(full_key, timeout=timeout, blocking=False)

        try:
            acquired = await redis_lock.acquire()
        except RedisError as e:
            logger.warning(
                f"Redis unavailable for lock {full_key}, continuing without lock: {e}"
            )
            yield True
            return

        if not acquired:
            logger.info(
                "Lock already held, skipping",
                extra={"lock_key": full_key},
            )
            yield False
            return

        try:
            yield True
        finally:
            try:
                await redis_lock.release()
            except LockError as e:
                # Expired and possibly taken over by another holder
                logger.warning(f"Lock {full_key} lost before release: {e}")
            except RedisError as e:
                logger.warning(f"Failed to release lock {full_key}: {e}")
