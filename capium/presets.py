"""Low / Recommended / High tiers for a bucket, and what each tier buys.

Emergency-fund duration options say how long each tier takes to reach a
target; investment projections say what each tier grows to.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from capium import config
from capium.detectors import max_safe_allocation, recommended_minimum
from capium.domain import Bucket


class PresetTier(str, Enum):
    LOW = "low"
    RECOMMENDED = "recommended"
    HIGH = "high"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class PresetValue:
    amount: float
    percentage: float  # of monthly income


@dataclass(frozen=True)
class PresetOptions:
    low: PresetValue
    recommended: PresetValue
    high: PresetValue

    def value(self, tier: PresetTier) -> PresetValue:
        return getattr(self, tier.value)


def preset_options(low: float, recommended: float, high: float, total_income: float) -> PresetOptions:
    def _value(amount):
        pct = amount / total_income * 100 if total_income > 0 else 0.0
        return PresetValue(amount=amount, percentage=pct)
    return PresetOptions(low=_value(low), recommended=_value(recommended), high=_value(high))


def bucket_presets(bucket: Bucket, buckets: Sequence[Bucket], total_income: float) -> PresetOptions:
    """Recommended minimum, the current amount, and the safe maximum, kept in order."""
    low = recommended_minimum(bucket, total_income)
    high = max_safe_allocation(bucket, buckets, total_income)
    recommended = min(max(bucket.allocated_amount, low), max(high, low))
    return preset_options(min(low, recommended), recommended, max(high, recommended), total_income)


@dataclass(frozen=True)
class EmergencyFundDurationOption:
    months: int              # 3, 6 or 12
    target_amount: float
    shortfall: float         # target minus what is already saved
    monthly_contribution: PresetOptions
    is_recommended: bool

    @property
    def is_goal_met(self) -> bool:
        return self.shortfall <= 0

    def time_to_goal(self, tier: PresetTier) -> Optional[int]:
        contribution = self.monthly_contribution.value(tier).amount
        if contribution <= 0 or self.shortfall <= 0:
            return None
        return math.ceil(self.shortfall / contribution)


EMERGENCY_DURATIONS = (3, 6, 12)


def emergency_fund_options(
    essential_spending: float,
    current_balance: float,
    contributions: PresetOptions,
    recommended_months: int = 6,
) -> tuple[EmergencyFundDurationOption, ...]:
    return tuple(
        EmergencyFundDurationOption(
            months=months,
            target_amount=essential_spending * months,
            shortfall=essential_spending * months - current_balance,
            monthly_contribution=contributions,
            is_recommended=months == recommended_months,
        )
        for months in EMERGENCY_DURATIONS
    )


PROJECTION_YEARS = (10, 20, 30)


@dataclass(frozen=True)
class ProjectionTimeline:
    monthly_contribution: float
    year10: float
    year20: float
    year30: float

    def _value_at(self, years: int) -> Optional[float]:
        return {10: self.year10, 20: self.year20, 30: self.year30}.get(years)

    def total_gain(self, years: int) -> float:
        value = self._value_at(years)
        if value is None:
            return 0.0
        return value - self.monthly_contribution * 12 * years

    def roi(self, years: int) -> float:
        value = self._value_at(years)
        contributions = self.monthly_contribution * 12 * years
        if value is None or contributions <= 0:
            return 0.0
        return (value - contributions) / contributions * 100


@dataclass(frozen=True)
class InvestmentProjection:
    current_balance: float
    low: ProjectionTimeline
    recommended: ProjectionTimeline
    high: ProjectionTimeline

    def timeline(self, tier: PresetTier) -> ProjectionTimeline:
        return getattr(self, tier.value)


def future_value(current_balance: float, monthly_contribution: float, years: int, annual_return: float) -> float:
    months = years * 12
    rate = annual_return / 12
    if rate == 0:
        return current_balance + monthly_contribution * months
    growth = (1 + rate) ** months
    return current_balance * growth + monthly_contribution * (growth - 1) / rate


def project_investments(
    current_balance: float,
    contributions: PresetOptions,
    annual_return: Optional[float] = None,
) -> InvestmentProjection:
    if annual_return is None:
        annual_return = config.ANNUAL_RETURN

    def _timeline(tier):
        monthly = contributions.value(tier).amount
        y10, y20, y30 = (
            future_value(current_balance, monthly, years, annual_return) for years in PROJECTION_YEARS
        )
        return ProjectionTimeline(monthly_contribution=monthly, year10=y10, year20=y20, year30=y30)

    return InvestmentProjection(
        current_balance=current_balance,
        low=_timeline(PresetTier.LOW),
        recommended=_timeline(PresetTier.RECOMMENDED),
        high=_timeline(PresetTier.HIGH),
    )
