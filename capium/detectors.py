"""Advisory checks on a plan.

These never change allocations; they only report what the planner should
warn about.
"""

from enum import Enum
from typing import Sequence

from capium import config
from capium.domain import Bucket, BucketKind, Detection
from capium.functional import find_kind


def _percentage(buckets: Sequence[Bucket], kind: BucketKind, total_income: float):
    if total_income <= 0:
        return None
    return find_kind(buckets, kind).map(lambda b: b.percentage_of_income(total_income)).get_or_else(None)


def detect_high_essential_spending(buckets: Sequence[Bucket], total_income: float) -> Detection:
    pct = _percentage(buckets, BucketKind.ESSENTIAL_SPENDING, total_income)
    if pct is None:
        return Detection(flag=False, percentage=0.0)
    return Detection(flag=pct > config.HIGH_ESSENTIAL_PERCENT, percentage=pct)


def detect_low_discretionary_spending(buckets: Sequence[Bucket], total_income: float) -> Detection:
    pct = _percentage(buckets, BucketKind.DISCRETIONARY_SPENDING, total_income)
    if pct is None:
        return Detection(flag=False, percentage=0.0)
    return Detection(flag=pct < config.LOW_DISCRETIONARY_PERCENT, percentage=pct)


def detect_insufficient_emergency_fund(buckets: Sequence[Bucket], total_income: float) -> Detection:
    pct = _percentage(buckets, BucketKind.EMERGENCY_FUND, total_income)
    if pct is None:
        return Detection(flag=False, percentage=0.0)
    return Detection(flag=pct < config.LOW_EMERGENCY_PERCENT, percentage=pct)


class DiscretionaryStatus(str, Enum):
    VALID = "valid"
    WARNING = "warning"
    HARD_LIMIT = "hard_limit"


def validate_discretionary_spending(bucket: Bucket, total_income: float) -> tuple[DiscretionaryStatus, str]:
    """Return the status of a discretionary bucket and the message to show for it."""
    if bucket.kind != BucketKind.DISCRETIONARY_SPENDING or total_income <= 0:
        return DiscretionaryStatus.VALID, ""

    pct = bucket.percentage_of_income(total_income)
    if pct >= config.DISCRETIONARY_LIMIT_PERCENT:
        return DiscretionaryStatus.HARD_LIMIT, (
            f"Discretionary spending limit exceeded ({int(pct)}%). "
            f"Please reduce to {int(config.DISCRETIONARY_LIMIT_PERCENT)}% or less of your income."
        )
    if pct >= config.DISCRETIONARY_WARNING_PERCENT:
        return DiscretionaryStatus.WARNING, (
            f"Discretionary spending is at {int(pct)}%. Consider keeping it below "
            f"{int(config.DISCRETIONARY_WARNING_PERCENT)}% for better financial health."
        )
    return DiscretionaryStatus.VALID, ""


def recommended_minimum(bucket: Bucket, total_income: float) -> float:
    return total_income * bucket.kind.recommended_minimum_percentage / 100


def max_safe_allocation(bucket: Bucket, buckets: Sequence[Bucket], total_income: float) -> float:
    """Largest amount this bucket can take while every other bucket keeps its recommended minimum."""
    if total_income <= 0:
        return 0.0
    if bucket.kind == BucketKind.ESSENTIAL_SPENDING:
        return bucket.allocated_amount

    minimum_for_others = sum(recommended_minimum(b, total_income) for b in buckets if b.id != bucket.id)
    maximum = max(0.0, total_income - minimum_for_others)
    if bucket.kind == BucketKind.DISCRETIONARY_SPENDING:
        return min(maximum, total_income * config.DISCRETIONARY_LIMIT_PERCENT / 100)
    return maximum


def emergency_fund_duration(bucket: Bucket, essential_spending: float) -> int:
    # months of essential spending the target covers, snapped to 3 / 6 / 12
    if bucket.kind != BucketKind.EMERGENCY_FUND or bucket.target_amount is None or essential_spending <= 0:
        return 6
    months = round(bucket.target_amount / essential_spending)
    if months <= 4:
        return 3
    if months <= 9:
        return 6
    return 12
