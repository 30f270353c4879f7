import pytest

from capium.detectors import (
    DiscretionaryStatus,
    detect_high_essential_spending,
    detect_insufficient_emergency_fund,
    detect_low_discretionary_spending,
    emergency_fund_duration,
    max_safe_allocation,
    recommended_minimum,
    validate_discretionary_spending,
)
from capium.domain import Bucket, BucketKind


def plan(essential=3200.0, emergency=500.0, discretionary=800.0, investments=500.0):
    return (
        Bucket("essential", BucketKind.ESSENTIAL_SPENDING, essential),
        Bucket("emergency", BucketKind.EMERGENCY_FUND, emergency),
        Bucket("discretionary", BucketKind.DISCRETIONARY_SPENDING, discretionary),
        Bucket("investments", BucketKind.INVESTMENTS, investments),
    )


def test_high_essential_spending():
    flagged = detect_high_essential_spending(plan(essential=3600.0), 5000.0)
    assert flagged.flag
    assert flagged.percentage == pytest.approx(72.0)

    fine = detect_high_essential_spending(plan(), 5000.0)
    assert not fine.flag
    assert fine.percentage == pytest.approx(64.0)


def test_low_discretionary_spending():
    assert detect_low_discretionary_spending(plan(discretionary=200.0), 5000.0).flag
    assert not detect_low_discretionary_spending(plan(), 5000.0).flag


def test_insufficient_emergency_fund():
    detection = detect_insufficient_emergency_fund(plan(emergency=200.0), 5000.0)
    assert detection.flag
    assert detection.percentage == pytest.approx(4.0)


def test_detectors_without_bucket_or_income():
    only_essential = plan()[:1]
    assert detect_low_discretionary_spending(only_essential, 5000.0).flag is False
    assert detect_insufficient_emergency_fund(only_essential, 5000.0).percentage == 0.0
    assert detect_high_essential_spending(plan(), 0.0).flag is False


def test_detectors_do_not_mutate():
    buckets = plan()
    detect_high_essential_spending(buckets, 5000.0)
    detect_low_discretionary_spending(buckets, 5000.0)
    assert buckets == plan()


def test_discretionary_spending_status():
    discretionary = lambda amount: Bucket("d", BucketKind.DISCRETIONARY_SPENDING, amount)

    assert validate_discretionary_spending(discretionary(1000.0), 5000.0)[0] == DiscretionaryStatus.VALID

    status, message = validate_discretionary_spending(discretionary(1800.0), 5000.0)
    assert status == DiscretionaryStatus.WARNING
    assert "36%" in message

    status, message = validate_discretionary_spending(discretionary(2500.0), 5000.0)
    assert status == DiscretionaryStatus.HARD_LIMIT
    assert "50% or less" in message

    other = Bucket("i", BucketKind.INVESTMENTS, 4000.0)
    assert validate_discretionary_spending(other, 5000.0) == (DiscretionaryStatus.VALID, "")


def test_recommended_minimum():
    buckets = plan()
    assert recommended_minimum(buckets[1], 5000.0) == pytest.approx(500.0)
    assert recommended_minimum(buckets[3], 5000.0) == pytest.approx(250.0)
    assert recommended_minimum(buckets[0], 5000.0) == 0.0


def test_max_safe_allocation():
    buckets = plan()
    essential, emergency, discretionary, investments = buckets

    assert max_safe_allocation(investments, buckets, 5000.0) == pytest.approx(4500.0)
    assert max_safe_allocation(discretionary, buckets, 5000.0) == pytest.approx(2500.0)
    assert max_safe_allocation(essential, buckets, 5000.0) == 3200.0
    assert max_safe_allocation(emergency, buckets, 0.0) == 0.0


def test_emergency_fund_duration():
    fund = lambda target: Bucket("e", BucketKind.EMERGENCY_FUND, 500.0, target_amount=target)

    assert emergency_fund_duration(fund(9600.0), 3200.0) == 3
    assert emergency_fund_duration(fund(19200.0), 3200.0) == 6
    assert emergency_fund_duration(fund(38400.0), 3200.0) == 12
    assert emergency_fund_duration(fund(None), 3200.0) == 6
    assert emergency_fund_duration(fund(9600.0), 0.0) == 6
