"""
WalletTransaction model.

Append-only ledger of balance-affecting commission credits.
"""

from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    DECIMAL,
    JSON,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from referral_engine.models.base import Base
from referral_engine.models.enums import TransactionStatus


class WalletTransaction(Base):
    """
    Ledger transaction.

    Attributes:
        id: Primary key
        user_id: Recipient
        type: TransactionType value
        amount: Credited amount
        balance_after: Balance snapshot after the credit
        reference_id: Idempotency key (unique)
        status: TransactionStatus value
        description: Human readable description
        meta: Free-form metadata (column "metadata")
        created_at: When the credit was applied
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index("idx_wallet_transactions_user_type", "user_id", "type"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False
    )
    balance_after: Mapped[Decimal] = mapped_column(
        DECIMAL(18, 2), nullable=False
    )
    reference_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="Deterministic idempotency key",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=TransactionStatus.COMPLETED.value,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    meta: Mapped[dict[str, Any] | None] = mapped_column(
        "metadata", JSON, nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<WalletTransaction(id={self.id}, user_id={self.user_id}, "
            f"type={self.type}, amount={self.amount}, "
            f"reference_id={self.reference_id})>"
        )
