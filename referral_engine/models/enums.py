"""
Model enums.

String enums persisted as plain strings in the database.
"""

from enum import Enum


class ReferralLevel(str, Enum):
    """Depth of an ancestor in a user's invite chain."""

    A_LEVEL = "A_LEVEL"  # Direct referrer
    B_LEVEL = "B_LEVEL"  # Referrer's referrer
    C_LEVEL = "C_LEVEL"  # Third level

    @property
    def depth(self) -> int:
        """Hop count from the user (1-3)."""
        return _LEVEL_DEPTH[self]

    @property
    def letter(self) -> str:
        """Short level letter used in transaction types."""
        return self.value[0]

    @classmethod
    def for_depth(cls, depth: int) -> "ReferralLevel":
        """Level for hop count 1-3."""
        for level, level_depth in _LEVEL_DEPTH.items():
            if level_depth == depth:
                return level
        raise ValueError(f"Referral depth out of range: {depth}")


_LEVEL_DEPTH = {
    ReferralLevel.A_LEVEL: 1,
    ReferralLevel.B_LEVEL: 2,
    ReferralLevel.C_LEVEL: 3,
}

# Levels in walk order
REFERRAL_LEVELS = (
    ReferralLevel.A_LEVEL,
    ReferralLevel.B_LEVEL,
    ReferralLevel.C_LEVEL,
)


class TransactionType(str, Enum):
    """Ledger transaction types written by the commission engine."""

    REFERRAL_REWARD_A = "REFERRAL_REWARD_A"
    REFERRAL_REWARD_B = "REFERRAL_REWARD_B"
    REFERRAL_REWARD_C = "REFERRAL_REWARD_C"
    MANAGEMENT_BONUS_A = "MANAGEMENT_BONUS_A"
    MANAGEMENT_BONUS_B = "MANAGEMENT_BONUS_B"
    MANAGEMENT_BONUS_C = "MANAGEMENT_BONUS_C"

    @classmethod
    def referral_reward(cls, level: ReferralLevel) -> "TransactionType":
        """One-time referral reward type for level."""
        return cls(f"REFERRAL_REWARD_{level.letter}")

    @classmethod
    def management_bonus(cls, level: ReferralLevel) -> "TransactionType":
        """Daily override commission type for level."""
        return cls(f"MANAGEMENT_BONUS_{level.letter}")

    @property
    def is_referral_reward(self) -> bool:
        """True for one-time referral rewards."""
        return self.value.startswith("REFERRAL_REWARD_")

    @property
    def level(self) -> ReferralLevel:
        """Hierarchy level the transaction pays for."""
        return ReferralLevel(f"{self.value[-1]}_LEVEL")


REFERRAL_REWARD_TYPES = tuple(t for t in TransactionType if t.is_referral_reward)
MANAGEMENT_BONUS_TYPES = tuple(t for t in TransactionType if not t.is_referral_reward)


class TransactionStatus(str, Enum):
    """Ledger transaction status."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


class PlanStatus(str, Enum):
    """Subscription plan status of a user."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
