"""
Ledger writer.

Atomic, idempotent balance credits. Every commission payout goes through
LedgerWriter.credit(): the balance increment, the ledger row and any
companion rows are committed together or not at all, and a deterministic
idempotency key makes retries no-ops.
"""

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from loguru import logger
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from referral_engine.models.enums import TransactionStatus, TransactionType
from referral_engine.models.user import User
from referral_engine.models.wallet_transaction import WalletTransaction
from referral_engine.repositories.protocols import CreditResult
from referral_engine.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)
from referral_engine.utils.exceptions import PersistenceFailure, is_unique_violation


AMOUNT_QUANTUM = Decimal("0.01")


def quantize_amount(amount: Decimal) -> Decimal:
    """Round a money amount to cents."""
    return Decimal(amount).quantize(AMOUNT_QUANTUM, rounding=ROUND_HALF_UP)


def balance_fields(transaction_type: TransactionType) -> tuple[str, ...]:
    """
    User balance columns incremented by a transaction type.

    The first field is the one snapshotted into balance_after.

    Args:
        transaction_type: Ledger transaction type

    Returns:
        Tuple of User column names
    """
    if transaction_type.is_referral_reward:
        return ("wallet_balance", "total_earnings")
    return ("commission_balance", "total_earnings")


class LedgerWriter:
    """Credits balances and appends ledger rows in one transaction."""

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize ledger writer.

        Args:
            session: Async database session (committed by credit())
        """
        self.session = session
        self.transaction_repo = WalletTransactionRepository(session)

    async def credit(
        self,
        user_id: int,
        amount: Decimal,
        transaction_type: TransactionType,
        idempotency_key: str,
        metadata: dict | None = None,
        description: str | None = None,
        companions: Sequence[object] = (),
    ) -> CreditResult:
        """
        Credit a user's balance exactly once per idempotency key.

        Args:
            user_id: Recipient user ID
            amount: Positive amount (rounded to cents)
            transaction_type: Ledger transaction type
            idempotency_key: Deterministic key of the payout event
            metadata: Optional JSON metadata stored on the ledger row
            description: Optional human readable description
            companions: ORM rows committed in the same transaction

        Returns:
            CreditResult (duplicate=True if the key was already applied)

        Raises:
            ValueError: If amount is not positive
            PersistenceFailure: If the recipient is missing or the
                database rejected the write
        """
        if amount <= 0:
            raise ValueError(f"Credit amount must be positive, got {amount}")
        amount = quantize_amount(amount)

        try:
            if await self.transaction_repo.exists_by_reference(idempotency_key):
                logger.warning(
                    "Duplicate credit skipped",
                    extra={
                        "user_id": user_id,
                        "idempotency_key": idempotency_key,
                    },
                )
                return CreditResult(
                    user_id=user_id,
                    idempotency_key=idempotency_key,
                    amount=amount,
                    duplicate=True,
                )

            snapshot_field, *other_fields = balance_fields(transaction_type)
            values = {
                name: getattr(User, name) + amount
                for name in (snapshot_field, *other_fields)
            }
            stmt = (
                update(User)
                .where(User.id == user_id)
                .values(**values)
                .returning(getattr(User, snapshot_field))
            )
            result = await self.session.execute(stmt)
            balance_after = result.scalar_one_or_none()

            if balance_after is None:
                await self.session.rollback()
                raise PersistenceFailure(
                    f"Recipient user {user_id} not found",
                    user_id=user_id,
                    idempotency_key=idempotency_key,
                )

            transaction = WalletTransaction(
                user_id=user_id,
                type=transaction_type.value,
                amount=amount,
                balance_after=balance_after,
                reference_id=idempotency_key,
                status=TransactionStatus.COMPLETED.value,
                description=description,
                meta=metadata,
            )
            self.session.add(transaction)
            for row in companions:
                self.session.add(row)

            await self.session.flush()
            await self.session.commit()

        except IntegrityError as e:
            await self.session.rollback()
            # A concurrent writer committed the same key first
            if is_unique_violation(
                e, "reference_id"
            ) or await self.transaction_repo.exists_by_reference(idempotency_key):
                logger.warning(
                    "Duplicate credit detected on commit",
                    extra={
                        "user_id": user_id,
                        "idempotency_key": idempotency_key,
                    },
                )
                return CreditResult(
                    user_id=user_id,
                    idempotency_key=idempotency_key,
                    amount=amount,
                    duplicate=True,
                )
            raise PersistenceFailure(
                f"Integrity error crediting user {user_id}: {e.orig}",
                user_id=user_id,
                idempotency_key=idempotency_key,
            ) from e

        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(
                f"Database error while crediting balance: {e}",
                extra={
                    "user_id": user_id,
                    "idempotency_key": idempotency_key,
                },
            )
            raise PersistenceFailure(
                f"Database error crediting user {user_id}",
                user_id=user_id,
                idempotency_key=idempotency_key,
            ) from e

        logger.info(
            "Balance credited",
            extra={
                "user_id": user_id,
                "type": transaction_type.value,
                "amount": str(amount),
                "balance_after": str(balance_after),
                "idempotency_key": idempotency_key,
            },
        )

        return CreditResult(
            user_id=user_id,
            idempotency_key=idempotency_key,
            amount=amount,
            transaction_id=transaction.id,
            balance_after=balance_after,
        )
