"""
Exception handling utilities.

Defines the commission engine exceptions and categorizes database errors
by handling strategy.
"""

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError


class CommissionEngineError(Exception):
    """Base class for commission engine errors."""
    pass


class PersistenceFailure(CommissionEngineError):
    """
    Raised when an atomic credit could not be completed.

    Safe to retry: the idempotency key guarantees a retry never pays twice.
    """

    def __init__(
        self,
        message: str,
        *,
        user_id: int | None = None,
        idempotency_key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.user_id = user_id
        self.idempotency_key = idempotency_key


# Exception categories based on handling strategy

# Must log but can retry later - storage unavailable, deadlocks, timeouts
RETRYABLE = (
    OperationalError,
    PersistenceFailure,
)

# Must raise - programming or validation errors
MUST_RAISE = (
    ValueError,
    TypeError,
)


def is_retryable(exc: Exception) -> bool:
    """
    Check if a failed credit can be retried.

    Args:
        exc: Exception to check

    Returns:
        True if exception is transient
    """
    if isinstance(exc, RETRYABLE):
        return True
    # Connection invalidated mid-transaction
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def must_raise(exc: Exception) -> bool:
    """
    Check if exception must be raised.

    Args:
        exc: Exception to check

    Returns:
        True if exception must be raised
    """
    return isinstance(exc, MUST_RAISE)


def is_unique_violation(exc: Exception, constraint: str | None = None) -> bool:
    """
    Check if exception is a unique constraint violation.

    Args:
        exc: Exception to check
        constraint: Optional constraint or column name expected in the message

    Returns:
        True if exception is an IntegrityError for that constraint
    """
    if not isinstance(exc, IntegrityError):
        return False
    if constraint is None:
        return True
    return constraint in str(exc.orig)
