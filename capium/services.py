import logging
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from capium.detectors import (
    DiscretionaryStatus,
    detect_high_essential_spending,
    detect_insufficient_emergency_fund,
    detect_low_discretionary_spending,
    validate_discretionary_spending,
)
from capium.domain import AllocationError, Bucket, BucketKind, ErrorCode, RebalanceRequest, RebalanceResult
from capium.events import (
    PLAN_CONFIRMED,
    REBALANCE_FAILED,
    SNAPSHOT_REPLACED,
    EventBus,
    register_default_handlers,
)
from capium.functional import Either, Left, Right, find_bucket, find_kind
from capium.rebalancer import finalize_to_exact_total, rebalance, validate_total
from capium.transforms import amounts_by_id, changes_from, set_locked, total_allocated

logger = logging.getLogger(__name__)

Check = Callable[[Sequence[Bucket], float], Dict[str, Any]]


def check_total(buckets, income):
    result = validate_total(buckets, income)
    return {"total": {
        "valid": result.is_valid,
        "difference": result.difference,
        "classification": result.classification,
        "message": result.message,
    }}


def check_high_essential(buckets, income):
    return {"high_essential_spending": detect_high_essential_spending(buckets, income)}


def check_low_discretionary(buckets, income):
    return {"low_discretionary_spending": detect_low_discretionary_spending(buckets, income)}


def check_emergency_fund(buckets, income):
    return {"insufficient_emergency_fund": detect_insufficient_emergency_fund(buckets, income)}


def check_discretionary_limit(buckets, income):
    bucket = find_kind(buckets, BucketKind.DISCRETIONARY_SPENDING)
    if bucket.is_none():
        return {"discretionary_status": DiscretionaryStatus.VALID, "discretionary_message": ""}
    status, message = validate_discretionary_spending(bucket.get_or_else(None), income)
    return {"discretionary_status": status, "discretionary_message": message}


DEFAULT_CHECKS = (
    check_total,
    check_high_essential,
    check_low_discretionary,
    check_emergency_fund,
    check_discretionary_limit,
)


class PlanReviewService:
    """Runs injected checks over a plan and collects their output.

    checks: sequence of functions taking (buckets, income) -> dict (partial results)
    """

    def __init__(self, checks: Sequence[Check] = DEFAULT_CHECKS):
        self.checks = checks

    def review(self, buckets: Sequence[Bucket], income: float) -> Dict[str, Any]:
        report = {"income": income, "checks": [], "result": {}}
        acc = {}
        for check in self.checks:
            name = getattr(check, "__name__", str(check))
            try:
                out = check(buckets, income)
            except Exception as e:
                logger.exception("Plan check %s failed", name)
                out = {"check_error": f"{name}: {e}"}
            report["checks"].append({"check": name, "output": out})
            if isinstance(out, dict):
                acc.update(out)
        report["result"] = acc
        return report


class AllocationEditor:
    """Editing session over one plan.

    Holds the current snapshot and replaces it wholesale after every
    successful edit, so readers never see a half-rebalanced plan. Outcomes
    are published on the event bus; handler results of the last publish are
    kept in ``notices`` for the presentation layer.
    """

    def __init__(self, buckets: Iterable[Bucket], monthly_income: float, bus: Optional[EventBus] = None):
        self.monthly_income = monthly_income
        self.buckets: tuple[Bucket, ...] = tuple(buckets)
        self.original_amounts = amounts_by_id(self.buckets)
        self.bus = bus if bus is not None else register_default_handlers(EventBus())
        self.reviewer = PlanReviewService()
        self.notices: List[dict] = []

    @property
    def total_allocated(self) -> float:
        return total_allocated(self.buckets)

    def allocation_percentage(self) -> float:
        if self.monthly_income <= 0:
            return 0.0
        return self.total_allocated / self.monthly_income * 100

    def update_bucket(self, bucket_id: str, new_amount: float) -> Either[AllocationError, RebalanceResult]:
        outcome = rebalance(RebalanceRequest(
            bucket_id=bucket_id,
            new_amount=new_amount,
            total_monthly_income=self.monthly_income,
            current_buckets=self.buckets,
        ))
        if outcome.is_left():
            self._fail(outcome.get_error())
            return outcome

        result = outcome.get_or_else(None)
        self.buckets = result.updated_buckets
        self.notices = self.bus.publish(SNAPSHOT_REPLACED, {
            "bucket_id": bucket_id,
            "buckets": result.updated_buckets,
            "adjustments": result.adjustments,
        })
        return outcome

    def reset_bucket(self, bucket_id: str) -> Either[AllocationError, RebalanceResult]:
        # unknown ids fall through to rebalance, which reports them
        return self.update_bucket(bucket_id, self.original_amounts.get(bucket_id, 0.0))

    def set_locked(self, bucket_id: str, locked: bool) -> Either[AllocationError, tuple[Bucket, ...]]:
        if find_bucket(self.buckets, bucket_id).is_none():
            error = AllocationError(
                code=ErrorCode.UNKNOWN_BUCKET,
                message=f"Bucket with ID {bucket_id} does not exist",
                bucket_id=bucket_id,
            )
            self._fail(error)
            return Left(error)
        self.buckets = set_locked(self.buckets, bucket_id, locked)
        self.notices = []
        return Right(self.buckets)

    def change_from_original(self, bucket_id: str) -> float:
        return changes_from(self.buckets, self.original_amounts).get(bucket_id, 0.0)

    def is_valid(self) -> bool:
        result = self.reviewer.review(self.buckets, self.monthly_income)["result"]
        return (
            result["total"]["valid"]
            and result["discretionary_status"] != DiscretionaryStatus.HARD_LIMIT
        )

    def warnings(self) -> List[dict]:
        result = self.reviewer.review(self.buckets, self.monthly_income)["result"]
        banners = []

        high = result["high_essential_spending"]
        if high.flag:
            banners.append({
                "title": "High Essential Spending",
                "message": (
                    f"Your essential expenses are {int(high.percentage)}% of income. Consider "
                    "reviewing your essential categories to find savings opportunities."
                ),
                "percentage": high.percentage,
            })

        low = result["low_discretionary_spending"]
        if low.flag:
            banners.append({
                "title": "Low Discretionary Spending",
                "message": (
                    f"You've allocated only {int(low.percentage)}% for discretionary spending. "
                    "Make sure you have enough flexibility for quality of life."
                ),
                "percentage": low.percentage,
            })

        emergency = result["insufficient_emergency_fund"]
        if emergency.flag:
            banners.append({
                "title": "Low Emergency Fund Allocation",
                "message": (
                    f"Your emergency fund allocation is only {int(emergency.percentage)}% of income. "
                    "Consider increasing this to build financial security faster."
                ),
                "percentage": emergency.percentage,
            })

        if result["discretionary_message"]:
            banners.append({
                "title": "Discretionary Spending Limit",
                "message": result["discretionary_message"],
                "percentage": None,
            })
        return banners

    def confirm_plan(self) -> Either[AllocationError, tuple[Bucket, ...]]:
        outcome = finalize_to_exact_total(self.buckets, self.monthly_income)
        if outcome.is_left():
            self._fail(outcome.get_error())
            return outcome

        self.buckets = outcome.get_or_else(self.buckets)
        self.original_amounts = amounts_by_id(self.buckets)
        self.notices = self.bus.publish(PLAN_CONFIRMED, {"buckets": self.buckets})
        logger.info("Plan confirmed: %d buckets, total %.2f", len(self.buckets), self.total_allocated)
        return outcome

    def _fail(self, error: AllocationError) -> None:
        logger.warning("%s: %s", error.code.value, error.message)
        self.notices = self.bus.publish(REBALANCE_FAILED, {"error": error})
