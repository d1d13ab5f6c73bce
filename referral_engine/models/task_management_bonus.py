"""
TaskManagementBonus model.

One daily override commission paid to an ancestor for a subordinate's task
day. The (referrer, subordinate, date) uniqueness is the double-payment
gate for a day.
"""

from datetime import UTC, date, datetime
from decimal import Decimal

from sqlalchemy import (
    DECIMAL,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.models.base import Base


class TaskManagementBonus(Base):
    """
    Daily bonus record.

    A row with NULL referrer_id and level marks a day processed for an
    entry-tier subordinate without any distribution.
    """

    __tablename__ = "task_management_bonuses"
    __table_args__ = (
        UniqueConstraint(
            "referrer_id",
            "subordinate_id",
            "task_date",
            name="uq_task_management_bonus_referrer_subordinate_date",
        ),
        Index("idx_task_management_bonus_subordinate_date", "subordinate_id", "task_date"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    referrer_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )
    subordinate_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    level: Mapped[str | None] = mapped_column(String(10), nullable=True)
    task_date: Mapped[date] = mapped_column(
        Date, nullable=False,
        comment="Calendar day in the configured timezone",
    )
    bonus_amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False, default=Decimal("0")
    )
    subordinate_daily_income: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False, default=Decimal("0")
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<TaskManagementBonus(id={self.id}, referrer_id={self.referrer_id}, "
            f"subordinate_id={self.subordinate_id}, level={self.level}, "
            f"task_date={self.task_date}, amount={self.bonus_amount})>"
        )
