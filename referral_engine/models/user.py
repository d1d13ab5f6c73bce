"""
User model.

Represents a platform user with referral link and commission balances.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    DECIMAL,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from referral_engine.models.base import Base

if TYPE_CHECKING:
    from referral_engine.models.plan import UserPlan
    from referral_engine.models.position_level import PositionLevel
    from referral_engine.models.referral_hierarchy import ReferralHierarchy


class User(Base):
    """User model - task earners and referrers."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint(
            'wallet_balance >= 0', name='check_user_wallet_balance_non_negative'
        ),
        CheckConstraint(
            'commission_balance >= 0',
            name='check_user_commission_balance_non_negative'
        ),
        CheckConstraint(
            'total_earnings >= 0',
            name='check_user_total_earnings_non_negative'
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(
        String(50), nullable=True, unique=True, index=True
    )
    referral_code: Mapped[str | None] = mapped_column(
        String(20), nullable=True, unique=True, index=True
    )

    # Invite chain back-reference
    referred_by_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Position
    position_level_id: Mapped[int | None] = mapped_column(
        ForeignKey("position_levels.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    position_start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    position_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_intern: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Entry-tier users never trigger or receive commissions",
    )

    # Balances
    wallet_balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), default=Decimal("0"), nullable=False
    )
    commission_balance: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), default=Decimal("0"), nullable=False
    )
    total_earnings: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), default=Decimal("0"), nullable=False
    )

    # Status flags
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    is_banned: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    earnings_blocked: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False
    )

    # Relationships
    referred_by: Mapped[Optional["User"]] = relationship(
        "User",
        remote_side=[id],
        back_populates="referrals",
        foreign_keys=[referred_by_id],
    )
    referrals: Mapped[list["User"]] = relationship(
        "User",
        back_populates="referred_by",
        foreign_keys=[referred_by_id],
    )
    current_position: Mapped["PositionLevel | None"] = relationship(
        "PositionLevel",
        foreign_keys=[position_level_id],
    )
    user_plan: Mapped["UserPlan | None"] = relationship(
        "UserPlan",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )
    hierarchy_edges: Mapped[list["ReferralHierarchy"]] = relationship(
        "ReferralHierarchy",
        back_populates="user",
        cascade="all, delete-orphan",
        foreign_keys="ReferralHierarchy.user_id",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<User(id={self.id}, referred_by_id={self.referred_by_id}, "
            f"position_level_id={self.position_level_id}, "
            f"is_intern={self.is_intern})>"
        )
