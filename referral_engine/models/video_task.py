"""
UserVideoTask model.

One watched task video. Only verified rows count toward the daily quota.
"""

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DECIMAL, Boolean, DateTime, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.models.base import Base


class UserVideoTask(Base):
    """Completed task record."""

    __tablename__ = "user_video_tasks"
    __table_args__ = (
        Index("idx_user_video_tasks_user_watched", "user_id", "watched_at"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    video_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    watched_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
        index=True,
    )
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    reward_earned: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), default=Decimal("0"), nullable=False
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<UserVideoTask(id={self.id}, user_id={self.user_id}, "
            f"verified={self.is_verified}, reward={self.reward_earned})>"
        )
