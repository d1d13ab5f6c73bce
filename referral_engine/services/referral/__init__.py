"""
Referral hierarchy services.

Hierarchy construction, one-time referral rewards and statistics.
"""

from referral_engine.services.referral.hierarchy_builder import (
    HierarchyBuilder,
    HierarchyRepairReport,
)
from referral_engine.services.referral.referral_reward_engine import (
    LevelOutcome,
    LevelReward,
    ReferralRewardEngine,
    ReferralRewardResult,
    referral_reward_key,
)
from referral_engine.services.referral.statistics import (
    HierarchyStatistics,
    HierarchyStats,
)

__all__ = [
    "HierarchyBuilder",
    "HierarchyRepairReport",
    "HierarchyStatistics",
    "HierarchyStats",
    "LevelOutcome",
    "LevelReward",
    "ReferralRewardEngine",
    "ReferralRewardResult",
    "referral_reward_key",
]
