import json

import pytest

from capium import config
from capium.domain import Bucket, BucketKind, CategorizedAmount
from capium.rebalancer import validate_total
from capium.seeding import average_monthly_spend, generate_plan, kind_for_category
from capium.transforms import (
    amounts_by_id,
    changes_from,
    load_seed,
    set_locked,
    total_allocated,
)


def test_load_seed():
    income, records = load_seed(config.SEED_PATH)

    assert income == 5000.0
    assert len(records) >= 20
    assert all(isinstance(r, CategorizedAmount) for r in records)


def test_load_seed_from_tmp_file(tmp_path):
    path = tmp_path / "seed.json"
    path.write_text(json.dumps({
        "monthly_income": 1200,
        "transactions": [{"amount": 40, "category": "Dining", "date": "2025-01-03"}],
    }), encoding="utf-8")

    income, records = load_seed(path)
    assert income == 1200.0
    assert records == (CategorizedAmount(40, "Dining", "2025-01-03"),)


def test_kind_for_category():
    assert kind_for_category("Rent") == BucketKind.ESSENTIAL_SPENDING
    assert kind_for_category("Travel") == BucketKind.DISCRETIONARY_SPENDING
    assert kind_for_category("Loan Payments") == BucketKind.DEBT_PAYDOWN
    assert kind_for_category("Gifts") is None


def test_average_monthly_spend_uses_every_month_seen():
    records = (
        CategorizedAmount(300.0, "Dining", "2025-01-05"),
        CategorizedAmount(100.0, "Rent", "2025-02-01"),
    )
    assert average_monthly_spend(BucketKind.DISCRETIONARY_SPENDING, records) == pytest.approx(150.0)
    assert average_monthly_spend(BucketKind.INVESTMENTS, records) == 0.0
    assert average_monthly_spend(BucketKind.ESSENTIAL_SPENDING, ()) == 0.0


def test_generate_plan_from_seed():
    income, records = load_seed(config.SEED_PATH)
    buckets = generate_plan(records, income)
    got = amounts_by_id(buckets)

    assert [b.kind for b in buckets] == [
        BucketKind.ESSENTIAL_SPENDING,
        BucketKind.DISCRETIONARY_SPENDING,
        BucketKind.EMERGENCY_FUND,
        BucketKind.INVESTMENTS,
        BucketKind.DEBT_PAYDOWN,
    ]
    assert got["essential_spending"] == pytest.approx(2830.0)
    assert got["debt_paydown"] == pytest.approx(300.0)
    assert got["emergency_fund"] == pytest.approx(got["investments"], abs=0.01)
    assert total_allocated(buckets) == pytest.approx(5000.0, abs=1e-6)
    assert validate_total(buckets, income).is_valid
    assert all(b.allocated_amount >= 0 for b in buckets)


def test_generate_plan_trims_discretionary_first():
    _, records = load_seed(config.SEED_PATH)
    buckets = generate_plan(records, 3500.0)
    got = amounts_by_id(buckets)

    assert got["essential_spending"] == pytest.approx(2830.0)
    assert got["discretionary_spending"] == pytest.approx(370.0)
    assert got["emergency_fund"] == pytest.approx(0.0, abs=0.01)
    assert got["investments"] == pytest.approx(0.0, abs=0.01)
    assert total_allocated(buckets) == pytest.approx(3500.0, abs=0.01)


def test_generate_plan_over_allocated_history():
    _, records = load_seed(config.SEED_PATH)
    buckets = generate_plan(records, 3000.0)

    assert amounts_by_id(buckets)["discretionary_spending"] == 0.0
    assert validate_total(buckets, 3000.0).classification == "over"


def test_snapshot_helpers_do_not_mutate():
    buckets = (
        Bucket("a", BucketKind.EMERGENCY_FUND, 100.0),
        Bucket("b", BucketKind.INVESTMENTS, 200.0),
    )
    replaced = (Bucket("a", BucketKind.EMERGENCY_FUND, 150.0),) + buckets[1:]
    locked = set_locked(buckets, "b", True)

    assert locked[1].is_locked and not buckets[1].is_locked
    assert changes_from(replaced, amounts_by_id(buckets)) == {"a": 50.0, "b": 0.0}
