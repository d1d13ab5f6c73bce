"""
ReferralHierarchy model.

Edges from a user to up to three ancestor referrers (A/B/C levels).
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_engine.models.base import Base
from referral_engine.models.enums import ReferralLevel

if TYPE_CHECKING:
    from referral_engine.models.user import User


class ReferralHierarchy(Base):
    """Hierarchy edge - one ancestor of a user at a given level."""

    __tablename__ = "referral_hierarchy"
    __table_args__ = (
        UniqueConstraint("user_id", "level", name="uq_referral_hierarchy_user_level"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # User whose ancestors this row describes
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # Ancestor referrer
    referrer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )

    # A_LEVEL = direct, B_LEVEL = second, C_LEVEL = third
    level: Mapped[str] = mapped_column(
        String(10), nullable=False, index=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    user: Mapped["User"] = relationship(
        "User",
        foreign_keys=[user_id],
        back_populates="hierarchy_edges",
    )
    referrer: Mapped["User"] = relationship(
        "User",
        foreign_keys=[referrer_id],
    )

    @property
    def referral_level(self) -> ReferralLevel:
        """Level as enum."""
        return ReferralLevel(self.level)

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralHierarchy(id={self.id}, user_id={self.user_id}, "
            f"referrer_id={self.referrer_id}, level={self.level})>"
        )
