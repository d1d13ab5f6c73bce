"""
Wallet transaction repository.

Data access layer for the append-only ledger.
"""

from collections.abc import Sequence
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import TransactionType
from referral_engine.models.wallet_transaction import WalletTransaction
from referral_engine.repositories.base import BaseRepository


class WalletTransactionRepository(BaseRepository[WalletTransaction]):
    """Ledger queries. Rows are only ever inserted, never updated."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize wallet transaction repository."""
        super().__init__(WalletTransaction, session)

    async def exists_by_reference(self, reference_id: str) -> bool:
        """
        Check if a credit with this idempotency key was applied.

        Args:
            reference_id: Idempotency key

        Returns:
            True if the key exists
        """
        stmt = (
            select(WalletTransaction.id)
            .where(WalletTransaction.reference_id == reference_id)
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def sum_by_type(
        self, user_id: int, types: Sequence[TransactionType]
    ) -> dict[TransactionType, Decimal]:
        """
        Sum credited amounts per transaction type in a single query.

        Args:
            user_id: Recipient user ID
            types: Transaction types to include

        Returns:
            Dict mapping every requested type to its sum (0 if none)
        """
        stmt = (
            select(
                WalletTransaction.type,
                func.coalesce(
                    func.sum(WalletTransaction.amount), Decimal("0")
                ).label("total"),
            )
            .where(
                WalletTransaction.user_id == user_id,
                WalletTransaction.type.in_([t.value for t in types]),
            )
            .group_by(WalletTransaction.type)
        )
        result = await self.session.execute(stmt)

        totals = {t: Decimal("0") for t in types}
        for row in result.all():
            totals[TransactionType(row.type)] = Decimal(row.total)
        return totals
