#!/usr/bin/env python3
"""Initialize database tables and seed position levels."""

import asyncio
import sys
from decimal import Decimal
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger
from sqlalchemy import select

from referral_engine.config.database import async_engine, async_session_maker
from referral_engine.config.rate_table import DEFAULT_TASKS_PER_DAY, PositionTier
from referral_engine.models import Base, PositionLevel

# Configure logger for script
logger.remove()
logger.add(sys.stderr, level="INFO")


# Unit price and deposit per tier
POSITION_PRICING: dict[int, tuple[Decimal, Decimal]] = {
    PositionTier.INTERN: (Decimal("13"), Decimal("0")),
    PositionTier.P1: (Decimal("13"), Decimal("2000")),
    PositionTier.P2: (Decimal("21"), Decimal("5000")),
    PositionTier.P3: (Decimal("72"), Decimal("20000")),
    PositionTier.P4: (Decimal("123"), Decimal("50000")),
    PositionTier.P5: (Decimal("192"), Decimal("100000")),
    PositionTier.P6: (Decimal("454"), Decimal("250000")),
    PositionTier.P7: (Decimal("836"), Decimal("500000")),
    PositionTier.P8: (Decimal("1611"), Decimal("1000000")),
    PositionTier.P9: (Decimal("3033"), Decimal("2000000")),
    PositionTier.P10: (Decimal("6129"), Decimal("4000000")),
}


async def seed_position_levels() -> int:
    """Insert missing position levels. Returns the number inserted."""
    inserted = 0
    async with async_session_maker() as session:
        result = await session.execute(select(PositionLevel.level))
        existing = set(result.scalars().all())

        for tier in PositionTier:
            if tier.value in existing:
                continue
            unit_price, deposit = POSITION_PRICING[tier]
            session.add(
                PositionLevel(
                    name=tier.display_name,
                    level=tier.value,
                    tasks_per_day=DEFAULT_TASKS_PER_DAY[tier],
                    unit_price=unit_price,
                    deposit=deposit,
                )
            )
            inserted += 1

        await session.commit()
    return inserted


async def init_database() -> None:
    """Create all database tables."""
    logger.info("Connecting to database...")

    async with async_engine.begin() as conn:
        logger.info("Creating tables (checkfirst=True)...")
        await conn.run_sync(Base.metadata.create_all, checkfirst=True)

    inserted = await seed_position_levels()
    logger.info(f"Position levels seeded: {inserted} inserted")

    await async_engine.dispose()
    logger.success("Database initialized successfully!")


if __name__ == "__main__":
    asyncio.run(init_database())
