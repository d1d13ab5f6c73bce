"""
Referral and daily bonus rate configuration.

Single source of truth for position tiers, one-time referral payouts and the
daily override commission percentages. The table is an immutable value
passed into the engines, so alternate tables can be injected.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from enum import IntEnum
from types import MappingProxyType
from typing import NamedTuple

from referral_engine.models.enums import ReferralLevel


class PositionTier(IntEnum):
    """Position tiers. INTERN is the entry tier with no payouts."""

    INTERN = 0
    P1 = 1
    P2 = 2
    P3 = 3
    P4 = 4
    P5 = 5
    P6 = 6
    P7 = 7
    P8 = 8
    P9 = 9
    P10 = 10

    @property
    def display_name(self) -> str:
        """Name used for the position level row ("Intern", "P1", ...)."""
        return "Intern" if self is PositionTier.INTERN else self.name

    @classmethod
    def from_name(cls, name: str) -> "PositionTier":
        """
        Resolve tier from a position name.

        Unknown names resolve to INTERN so they never pay out.
        """
        if name.lower() == "intern":
            return cls.INTERN
        try:
            return cls[name.upper()]
        except KeyError:
            return cls.INTERN


ENTRY_TIER = PositionTier.INTERN
MAX_TIER = PositionTier.P10


class RateTableEntry(NamedTuple):
    """One-time referral payouts for a tier."""

    a: Decimal  # Direct referrer
    b: Decimal  # Second level
    c: Decimal  # Third level

    def for_level(self, level: ReferralLevel) -> Decimal:
        """Amount for hierarchy level."""
        if level is ReferralLevel.A_LEVEL:
            return self.a
        if level is ReferralLevel.B_LEVEL:
            return self.b
        return self.c


DEFAULT_ONE_TIME_REWARDS: dict[int, RateTableEntry] = {
    PositionTier.P1: RateTableEntry(Decimal("312"), Decimal("117"), Decimal("39")),
    PositionTier.P2: RateTableEntry(Decimal("1440"), Decimal("540"), Decimal("180")),
    PositionTier.P3: RateTableEntry(Decimal("4160"), Decimal("1560"), Decimal("520")),
    PositionTier.P4: RateTableEntry(Decimal("9600"), Decimal("3600"), Decimal("1200")),
    PositionTier.P5: RateTableEntry(Decimal("20000"), Decimal("7500"), Decimal("2500")),
    PositionTier.P6: RateTableEntry(Decimal("44000"), Decimal("16500"), Decimal("5500")),
    PositionTier.P7: RateTableEntry(Decimal("88000"), Decimal("33000"), Decimal("11000")),
    PositionTier.P8: RateTableEntry(Decimal("176000"), Decimal("66000"), Decimal("22000")),
    PositionTier.P9: RateTableEntry(Decimal("320000"), Decimal("120000"), Decimal("40000")),
    PositionTier.P10: RateTableEntry(Decimal("560000"), Decimal("210000"), Decimal("70000")),
}

# Override commission on a downline's daily task earnings
DEFAULT_DAILY_BONUS_RATES: dict[ReferralLevel, Decimal] = {
    ReferralLevel.A_LEVEL: Decimal("0.08"),  # 8% direct
    ReferralLevel.B_LEVEL: Decimal("0.03"),  # 3% second level
    ReferralLevel.C_LEVEL: Decimal("0.01"),  # 1% third level
}

# Default tasks per day for each position (used when seeding position_levels)
DEFAULT_TASKS_PER_DAY: dict[int, int] = {
    PositionTier.INTERN: 5,
    PositionTier.P1: 5,
    PositionTier.P2: 8,
    PositionTier.P3: 10,
    PositionTier.P4: 15,
    PositionTier.P5: 20,
    PositionTier.P6: 22,
    PositionTier.P7: 25,
    PositionTier.P8: 27,
    PositionTier.P9: 30,
    PositionTier.P10: 31,
}


@dataclass(frozen=True)
class RateTable:
    """
    Immutable rate lookup.

    Attributes:
        one_time_rewards: Tier ordinal -> (A, B, C) referral payouts
        daily_bonus_rates: Level -> fraction of daily task earnings
    """

    one_time_rewards: Mapping[int, RateTableEntry] = field(
        default_factory=lambda: DEFAULT_ONE_TIME_REWARDS
    )
    daily_bonus_rates: Mapping[ReferralLevel, Decimal] = field(
        default_factory=lambda: DEFAULT_DAILY_BONUS_RATES
    )

    def __post_init__(self) -> None:
        # Freeze caller-supplied dicts so the table cannot change at runtime
        object.__setattr__(
            self,
            "one_time_rewards",
            MappingProxyType({int(k): v for k, v in self.one_time_rewards.items()}),
        )
        object.__setattr__(
            self,
            "daily_bonus_rates",
            MappingProxyType(dict(self.daily_bonus_rates)),
        )

    def one_time_reward(self, tier: int, level: ReferralLevel) -> Decimal:
        """
        One-time referral payout for a referrer tier and hierarchy level.

        Args:
            tier: Referrer position tier ordinal
            level: Hierarchy level of the edge

        Returns:
            Payout amount (0 for entry tier or unknown tier)
        """
        if tier <= ENTRY_TIER:
            return Decimal("0")
        entry = self.one_time_rewards.get(int(tier))
        if entry is None:
            return Decimal("0")
        return entry.for_level(level)

    def daily_bonus_rate(self, level: ReferralLevel, tier: int | None = None) -> Decimal:
        """
        Daily override commission rate for a level.

        Args:
            level: Hierarchy level
            tier: Optional tier of the earning user; entry tier yields 0

        Returns:
            Rate as a fraction (Decimal("0.08") for 8%)
        """
        if tier is not None and tier <= ENTRY_TIER:
            return Decimal("0")
        return self.daily_bonus_rates.get(level, Decimal("0"))


DEFAULT_RATE_TABLE = RateTable()
