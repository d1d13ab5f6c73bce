"""
Plan and UserPlan models.

A subscription plan overrides the position's daily task quota while active.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import DECIMAL, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_engine.models.base import Base
from referral_engine.models.enums import PlanStatus

if TYPE_CHECKING:
    from referral_engine.models.user import User


class Plan(Base):
    """Subscription plan."""

    __tablename__ = "plans"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    price: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False, default=Decimal("0")
    )
    daily_video_limit: Mapped[int] = mapped_column(
        Integer, nullable=False,
        comment="Tasks required per day while the plan is active",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Plan(id={self.id}, name={self.name}, "
            f"daily_video_limit={self.daily_video_limit})>"
        )


class UserPlan(Base):
    """User's subscription to a plan (at most one per user)."""

    __tablename__ = "user_plans"

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )
    plan_id: Mapped[int] = mapped_column(
        ForeignKey("plans.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PlanStatus.ACTIVE.value,
        index=True,
    )
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Relationships
    user: Mapped["User"] = relationship("User", back_populates="user_plan")
    plan: Mapped["Plan"] = relationship("Plan")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserPlan(id={self.id}, user_id={self.user_id}, "
            f"plan_id={self.plan_id}, status={self.status})>"
        )
