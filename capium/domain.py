from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class BucketKind(str, Enum):
    ESSENTIAL_SPENDING = "essential_spending"
    DISCRETIONARY_SPENDING = "discretionary_spending"
    EMERGENCY_FUND = "emergency_fund"
    INVESTMENTS = "investments"
    DEBT_PAYDOWN = "debt_paydown"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @property
    def recommended_minimum_percentage(self) -> float:
        return _RECOMMENDED_MINIMUMS[self]

    @property
    def default_categories(self) -> tuple[str, ...]:
        return _DEFAULT_CATEGORIES[self]


_DISPLAY_NAMES = {
    BucketKind.ESSENTIAL_SPENDING: "Essential Spending",
    BucketKind.DISCRETIONARY_SPENDING: "Discretionary Spending",
    BucketKind.EMERGENCY_FUND: "Emergency Fund",
    BucketKind.INVESTMENTS: "Investments",
    BucketKind.DEBT_PAYDOWN: "Debt Paydown",
}

# percent of income
_RECOMMENDED_MINIMUMS = {
    BucketKind.ESSENTIAL_SPENDING: 0.0,
    BucketKind.DISCRETIONARY_SPENDING: 0.0,
    BucketKind.EMERGENCY_FUND: 10.0,
    BucketKind.INVESTMENTS: 5.0,
    BucketKind.DEBT_PAYDOWN: 0.0,
}

_DEFAULT_CATEGORIES = {
    BucketKind.ESSENTIAL_SPENDING: (
        "Groceries", "Rent", "Utilities", "Transportation",
        "Insurance", "Healthcare", "Childcare",
    ),
    BucketKind.DISCRETIONARY_SPENDING: (
        "Entertainment", "Dining", "Shopping", "Travel", "Hobbies", "Subscriptions",
    ),
    BucketKind.EMERGENCY_FUND: (),
    BucketKind.INVESTMENTS: (),
    BucketKind.DEBT_PAYDOWN: ("Debt Payments", "Loan Payments", "Credit Card Payments"),
}


@dataclass(frozen=True)
class Bucket:
    id: str
    kind: BucketKind
    allocated_amount: float          # monthly allocation
    is_modifiable: Optional[bool] = None  # None -> derived from kind
    is_locked: bool = False          # protected from auto-adjustment
    target_amount: Optional[float] = None  # emergency fund goal
    explanation: str = ""

    def __post_init__(self):
        if self.is_modifiable is None:
            object.__setattr__(
                self, "is_modifiable", self.kind != BucketKind.ESSENTIAL_SPENDING
            )

    @property
    def display_name(self) -> str:
        return self.kind.display_name

    @property
    def can_absorb(self) -> bool:
        return bool(self.is_modifiable) and not self.is_locked

    def percentage_of_income(self, total_income: float) -> float:
        if total_income <= 0:
            return 0.0
        return self.allocated_amount / total_income * 100


@dataclass(frozen=True)
class RebalanceRequest:
    bucket_id: str
    new_amount: float
    total_monthly_income: float
    current_buckets: tuple[Bucket, ...]


@dataclass(frozen=True)
class Adjustment:
    bucket_id: str
    kind: BucketKind
    previous_amount: float
    new_amount: float

    @property
    def amount_changed(self) -> float:
        return self.new_amount - self.previous_amount

    @property
    def is_increase(self) -> bool:
        return self.amount_changed > 0


@dataclass(frozen=True)
class RebalanceResult:
    updated_buckets: tuple[Bucket, ...]
    adjustments: tuple[Adjustment, ...] = ()


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    difference: float = 0.0          # allocated total minus income
    classification: Optional[str] = None  # "over" | "under"

    @property
    def message(self) -> str:
        if self.is_valid:
            return ""
        if self.classification == "over":
            return f"Over-allocated by ${abs(self.difference):,.2f}"
        return f"Under-allocated by ${abs(self.difference):,.2f}"


@dataclass(frozen=True)
class Detection:
    flag: bool
    percentage: float


# One categorized line from the transaction history
@dataclass(frozen=True)
class CategorizedAmount:
    amount: float    # positive spend
    category: str
    date: str        # "2025-09-01"


class ErrorCode(str, Enum):
    UNKNOWN_BUCKET = "unknown_bucket"
    INVALID_AMOUNT = "invalid_amount"
    BUCKET_NOT_MODIFIABLE = "bucket_not_modifiable"
    REBALANCE_INFEASIBLE = "rebalance_infeasible"
    NEGATIVE_FINAL_AMOUNT = "negative_final_amount"


@dataclass(frozen=True)
class AllocationError:
    code: ErrorCode
    message: str
    bucket_id: Optional[str] = None
    details: dict = field(default_factory=dict, compare=False, hash=False)
