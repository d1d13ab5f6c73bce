"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from referral_engine.models.base import Base
from referral_engine.models.enums import (
    PlanStatus,
    ReferralLevel,
    TransactionStatus,
    TransactionType,
)
from referral_engine.models.plan import Plan, UserPlan
from referral_engine.models.position_level import PositionLevel
from referral_engine.models.referral_hierarchy import ReferralHierarchy
from referral_engine.models.task_management_bonus import TaskManagementBonus

# Core Models
from referral_engine.models.user import User
from referral_engine.models.video_task import UserVideoTask
from referral_engine.models.wallet_transaction import WalletTransaction

__all__ = [
    # Base
    "Base",
    # Enums
    "PlanStatus",
    "ReferralLevel",
    "TransactionStatus",
    "TransactionType",
    # Core Models
    "User",
    "PositionLevel",
    "Plan",
    "UserPlan",
    "UserVideoTask",
    # Commission Models
    "ReferralHierarchy",
    "WalletTransaction",
    "TaskManagementBonus",
]
