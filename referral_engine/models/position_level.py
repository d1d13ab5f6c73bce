"""
PositionLevel model.

Position tiers a user can hold, with their daily task quota.
"""

from decimal import Decimal

from sqlalchemy import DECIMAL, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.models.base import Base


class PositionLevel(Base):
    """
    PositionLevel entity.

    Attributes:
        id: Primary key
        name: Display name ("Intern", "P1" ... "P10")
        level: Tier ordinal (0 = Intern)
        tasks_per_day: Daily task quota for this position
        unit_price: Earnings per completed task
        deposit: Deposit required to hold the position
    """

    __tablename__ = "position_levels"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(
        String(50), nullable=False, unique=True
    )
    level: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True, index=True,
        comment="Tier ordinal, 0 = Intern",
    )
    tasks_per_day: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    unit_price: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False, default=Decimal("0")
    )
    deposit: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False, default=Decimal("0")
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PositionLevel(id={self.id}, name={self.name}, "
            f"level={self.level}, tasks_per_day={self.tasks_per_day})>"
        )
