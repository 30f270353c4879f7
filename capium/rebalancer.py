"""Keeps a plan's bucket allocations summing to monthly income.

Every function here takes an immutable snapshot (a tuple of buckets) and
returns a new one wrapped in ``Right``, or a ``Left(AllocationError)`` when
the edit cannot be honoured. Inputs are never mutated, so a failed call
leaves the caller holding the previous valid snapshot.
"""

import logging
import math
from dataclasses import replace
from typing import Sequence

from capium import config
from capium.domain import (
    Adjustment,
    AllocationError,
    Bucket,
    ErrorCode,
    RebalanceRequest,
    RebalanceResult,
    ValidationResult,
)
from capium.functional import Either, Left, Right, find_bucket

logger = logging.getLogger(__name__)


def _largest(buckets: Sequence[Bucket]) -> Bucket:
    # max() keeps the first of equal keys
    return max(buckets, key=lambda b: b.allocated_amount)


def rebalance(request: RebalanceRequest) -> Either[AllocationError, RebalanceResult]:
    """Apply one bucket edit and spread the difference over the other buckets.

    The delta is shared among absorbers (modifiable, unlocked buckets other
    than the edited one) in proportion to their current amounts, or equally
    when they are all empty. Absorbers are floored at zero and whatever the
    floor swallowed is charged to the largest absorber. If that bucket cannot
    take it without going negative the edit is infeasible.
    """
    eps = config.EPSILON
    snapshot = tuple(request.current_buckets)

    found = find_bucket(snapshot, request.bucket_id)
    if found.is_none():
        return Left(AllocationError(
            code=ErrorCode.UNKNOWN_BUCKET,
            message=f"Bucket with ID {request.bucket_id} does not exist",
            bucket_id=request.bucket_id,
        ))
    edited = found.get_or_else(None)

    new_amount = request.new_amount
    if math.isnan(new_amount) or new_amount < 0:
        return Left(AllocationError(
            code=ErrorCode.INVALID_AMOUNT,
            message=f"Amount for {edited.display_name} cannot be negative",
            bucket_id=edited.id,
            details={"new_amount": new_amount},
        ))

    if not edited.is_modifiable:
        return Left(AllocationError(
            code=ErrorCode.BUCKET_NOT_MODIFIABLE,
            message=f"{edited.display_name} is calculated from your spending and cannot be edited",
            bucket_id=edited.id,
        ))

    income = request.total_monthly_income
    if income <= 0:
        logger.debug("Income is %s, nothing to allocate", income)
        return Right(RebalanceResult(updated_buckets=snapshot))

    old_amount = edited.allocated_amount
    delta = new_amount - old_amount
    logger.debug(
        "%s changed: %.2f -> %.2f (delta %+.2f)",
        edited.display_name, old_amount, new_amount, delta,
    )

    amounts = {b.id: b.allocated_amount for b in snapshot}
    amounts[edited.id] = new_amount

    if abs(delta) < eps:
        return Right(RebalanceResult(updated_buckets=_apply(snapshot, amounts)))

    absorbers = [b for b in snapshot if b.id != edited.id and b.can_absorb]
    if not absorbers:
        logger.debug("No unlocked buckets left to absorb %+.2f", delta)
        return Right(RebalanceResult(updated_buckets=_apply(snapshot, amounts)))

    pool = sum(b.allocated_amount for b in absorbers)
    if pool < eps:
        share = -delta / len(absorbers)
        for b in absorbers:
            amounts[b.id] = max(0.0, b.allocated_amount + share)
    else:
        for b in absorbers:
            adjustment = -delta * (b.allocated_amount / pool)
            amounts[b.id] = max(0.0, b.allocated_amount + adjustment)

    residual = income - sum(amounts.values())
    if abs(residual) > eps:
        slack = max(absorbers, key=lambda b: amounts[b.id])
        corrected = amounts[slack.id] + residual
        if corrected < -eps:
            logger.warning(
                "Cannot rebalance %s to %.2f: %.2f short in the other buckets",
                edited.display_name, new_amount, -corrected,
            )
            return Left(AllocationError(
                code=ErrorCode.REBALANCE_INFEASIBLE,
                message=(
                    f"Reduce {edited.display_name}: there is not enough room "
                    f"in the other buckets to cover ${abs(delta):,.2f}"
                ),
                bucket_id=edited.id,
                details={"shortfall": -corrected, "delta": delta},
            ))
        logger.debug("Residual %+.2f charged to %s", residual, slack.display_name)
        amounts[slack.id] = max(0.0, corrected)

    adjustments = tuple(
        Adjustment(
            bucket_id=b.id,
            kind=b.kind,
            previous_amount=b.allocated_amount,
            new_amount=amounts[b.id],
        )
        for b in absorbers
        if abs(amounts[b.id] - b.allocated_amount) > eps
    )
    return Right(RebalanceResult(
        updated_buckets=_apply(snapshot, amounts),
        adjustments=adjustments,
    ))


def _apply(snapshot: tuple[Bucket, ...], amounts: dict[str, float]) -> tuple[Bucket, ...]:
    return tuple(
        b if amounts[b.id] == b.allocated_amount else replace(b, allocated_amount=amounts[b.id])
        for b in snapshot
    )


def finalize_to_exact_total(
    buckets: Sequence[Bucket], total_monthly_income: float
) -> Either[AllocationError, tuple[Bucket, ...]]:
    """Give the largest modifiable bucket exactly what is left of income.

    Run once when a plan is confirmed, to remove floating-point drift
    accumulated over many edits.
    """
    snapshot = tuple(buckets)
    modifiable = [b for b in snapshot if b.is_modifiable]
    if not modifiable:
        return Right(snapshot)

    largest = _largest(modifiable)
    other_total = sum(b.allocated_amount for b in snapshot if b.id != largest.id)
    remaining = total_monthly_income - other_total
    if remaining < 0:
        logger.warning(
            "Final adjustment would make %s negative (%.2f)",
            largest.display_name, remaining,
        )
        return Left(AllocationError(
            code=ErrorCode.NEGATIVE_FINAL_AMOUNT,
            message=(
                f"{largest.display_name} would drop to ${remaining:,.2f}. "
                "Reduce other allocations before saving."
            ),
            bucket_id=largest.id,
            details={"amount": remaining},
        ))

    finalized = tuple(
        replace(b, allocated_amount=remaining) if b.id == largest.id else b
        for b in snapshot
    )
    for b in finalized:
        if b.allocated_amount < 0:
            return Left(AllocationError(
                code=ErrorCode.NEGATIVE_FINAL_AMOUNT,
                message=f"{b.display_name} has an invalid negative value. Please adjust allocations.",
                bucket_id=b.id,
                details={"amount": b.allocated_amount},
            ))
    return Right(finalized)


def validate_total(buckets: Sequence[Bucket], total_monthly_income: float) -> ValidationResult:
    total = sum(b.allocated_amount for b in buckets)
    difference = total - total_monthly_income
    if total_monthly_income <= 0:
        tolerance = config.EPSILON
    else:
        tolerance = total_monthly_income * config.TOTAL_TOLERANCE_PERCENT / 100

    if abs(difference) < tolerance:
        return ValidationResult(is_valid=True, difference=difference)
    return ValidationResult(
        is_valid=False,
        difference=difference,
        classification="over" if difference > 0 else "under",
    )
