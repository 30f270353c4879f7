from pathlib import Path

import pytest
from streamlit.testing.v1 import AppTest

APP = Path(__file__).resolve().parents[1] / "app" / "main.py"


def slider(at, label):
    return next(s for s in at.slider if s.label == label)


def stored_amount(at, bucket_id):
    return next(b.allocated_amount for b in at.session_state["editor"].buckets if b.id == bucket_id)


def start():
    at = AppTest.from_file(str(APP), default_timeout=10)
    at.run()
    assert not at.exception
    return at


def test_edit_rebalances_and_shows_notice():
    at = start()

    slider(at, "Emergency Fund").set_value(stored_amount(at, "emergency_fund") + 100.0).run()

    assert not at.exception
    assert any("Auto-adjusted" in i.value for i in at.info)
    assert sum(b.allocated_amount for b in at.session_state["editor"].buckets) == pytest.approx(5000.0, abs=0.01)


def test_locking_hides_stale_adjustment_notice():
    at = start()
    slider(at, "Emergency Fund").set_value(stored_amount(at, "emergency_fund") + 100.0).run()

    at.checkbox(key="lock_investments").check().run()

    assert not at.exception
    assert not any("Auto-adjusted" in i.value for i in at.info)


def test_rejected_edit_snaps_slider_back():
    at = start()
    at.checkbox(key="lock_emergency_fund").check().run()
    at.checkbox(key="lock_investments").check().run()
    before = stored_amount(at, "discretionary_spending")

    slider(at, "Discretionary Spending").set_value(4900.0).run()

    assert not at.exception
    assert any("Reduce Discretionary Spending" in e.value for e in at.error)
    assert stored_amount(at, "discretionary_spending") == before
    assert slider(at, "Discretionary Spending").value == pytest.approx(before)
