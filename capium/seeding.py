"""Builds a first allocation plan from categorized transaction history."""

import logging
from collections import defaultdict
from functools import lru_cache

from capium import config
from capium.domain import Bucket, BucketKind, CategorizedAmount
from capium.rebalancer import finalize_to_exact_total

logger = logging.getLogger(__name__)

_SEEDED_KINDS = (
    BucketKind.ESSENTIAL_SPENDING,
    BucketKind.DISCRETIONARY_SPENDING,
    BucketKind.DEBT_PAYDOWN,
)


def kind_for_category(category: str):
    for kind in _SEEDED_KINDS:
        if category in kind.default_categories:
            return kind
    return None


@lru_cache(maxsize=None)
def average_monthly_spend(kind: BucketKind, records: tuple[CategorizedAmount, ...]) -> float:
    monthly = defaultdict(float)
    months = set()

    for r in records:
        month = r.date[:7]
        months.add(month)
        if kind_for_category(r.category) == kind:
            monthly[month] += abs(r.amount)

    if not months:
        return 0.0

    return sum(monthly.values()) / len(months)


def generate_plan(records: tuple[CategorizedAmount, ...], monthly_income: float) -> tuple[Bucket, ...]:
    """Seed the five buckets from history.

    Essential, discretionary and debt paydown start at their monthly averages.
    When those exceed income, discretionary is trimmed first. Whatever is left
    is split between the emergency fund and investments.
    """
    records = tuple(records)
    essential = average_monthly_spend(BucketKind.ESSENTIAL_SPENDING, records)
    discretionary = average_monthly_spend(BucketKind.DISCRETIONARY_SPENDING, records)
    debt = average_monthly_spend(BucketKind.DEBT_PAYDOWN, records)

    income = max(0.0, monthly_income)
    overflow = essential + discretionary + debt - income
    if overflow > 0:
        trimmed = min(discretionary, overflow)
        discretionary -= trimmed
        logger.info("History exceeds income; discretionary trimmed by %.2f", trimmed)

    remainder = max(0.0, income - essential - discretionary - debt)
    emergency = remainder * config.EMERGENCY_SHARE
    investments = remainder - emergency

    buckets = (
        Bucket(
            id="essential_spending",
            kind=BucketKind.ESSENTIAL_SPENDING,
            allocated_amount=essential,
            explanation="Average monthly spend on housing, utilities, groceries and other essentials",
        ),
        Bucket(
            id="discretionary_spending",
            kind=BucketKind.DISCRETIONARY_SPENDING,
            allocated_amount=discretionary,
            explanation="Dining, entertainment, shopping and other flexible spending",
        ),
        Bucket(
            id="emergency_fund",
            kind=BucketKind.EMERGENCY_FUND,
            allocated_amount=emergency,
            target_amount=essential * 6,
            explanation="Six months of essential spending as a safety net",
        ),
        Bucket(
            id="investments",
            kind=BucketKind.INVESTMENTS,
            allocated_amount=investments,
            explanation="Long-term wealth building",
        ),
        Bucket(
            id="debt_paydown",
            kind=BucketKind.DEBT_PAYDOWN,
            allocated_amount=debt,
            explanation="Current loan and credit card payments",
        ),
    )

    if remainder > 0:
        # absorb rounding so the plan starts at exactly 100%
        buckets = finalize_to_exact_total(buckets, income).get_or_else(buckets)
    return buckets
