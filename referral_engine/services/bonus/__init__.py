"""Daily override commissions."""

from referral_engine.services.bonus.daily_bonus_engine import (
    DailyBonusEngine,
    DailyBonusResult,
    DailyBonusReward,
    DailyBonusSweepResult,
    TaskCompletionStatus,
    daily_bonus_key,
)

__all__ = [
    "DailyBonusEngine",
    "DailyBonusResult",
    "DailyBonusReward",
    "DailyBonusSweepResult",
    "TaskCompletionStatus",
    "daily_bonus_key",
]
