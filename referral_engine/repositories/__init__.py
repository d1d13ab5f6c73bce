"""
Repositories.

SQLAlchemy implementations of the repository contracts in
referral_engine.repositories.protocols.
"""

from referral_engine.repositories.hierarchy_repository import HierarchyRepository
from referral_engine.repositories.task_management_bonus_repository import (
    TaskManagementBonusRepository,
)
from referral_engine.repositories.user_repository import UserRepository
from referral_engine.repositories.video_task_repository import VideoTaskRepository
from referral_engine.repositories.wallet_transaction_repository import (
    WalletTransactionRepository,
)

__all__ = [
    "HierarchyRepository",
    "TaskManagementBonusRepository",
    "UserRepository",
    "VideoTaskRepository",
    "WalletTransactionRepository",
]
