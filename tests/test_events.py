from capium.domain import Adjustment, AllocationError, BucketKind, ErrorCode
from capium.events import (
    PLAN_CONFIRMED,
    REBALANCE_FAILED,
    SNAPSHOT_REPLACED,
    Event,
    EventBus,
    adjustment_notice_handler,
    failure_notice_handler,
    register_default_handlers,
)


def test_subscribe_publish_unsubscribe():
    bus = EventBus()
    seen = []

    def handler(event: Event, payload: dict) -> dict:
        seen.append(event.name)
        return {"ok": True}

    bus.subscribe(SNAPSHOT_REPLACED, handler)
    assert bus.publish(SNAPSHOT_REPLACED, {}) == [{"ok": True}]
    assert seen == [SNAPSHOT_REPLACED]

    bus.unsubscribe(SNAPSHOT_REPLACED, handler)
    assert bus.publish(SNAPSHOT_REPLACED, {}) == []
    assert bus.publish(PLAN_CONFIRMED, {}) == []


def test_adjustment_notice_lines():
    adjustments = (
        Adjustment("d", BucketKind.DISCRETIONARY_SPENDING, 800.0, 676.92),
        Adjustment("i", BucketKind.INVESTMENTS, 500.0, 550.0),
    )
    event = Event(SNAPSHOT_REPLACED, "2025-09-01T10:00:00", {"adjustments": adjustments})
    notice = adjustment_notice_handler(event, event.payload)

    assert notice["lines"] == [
        "Discretionary Spending ↓ $123.08",
        "Investments ↑ $50.00",
    ]
    assert adjustment_notice_handler(event, {"adjustments": ()}) == {}


def test_failure_notice():
    error = AllocationError(ErrorCode.REBALANCE_INFEASIBLE, "not enough room", bucket_id="e")
    event = Event(REBALANCE_FAILED, "2025-09-01T10:00:00", {"error": error})

    assert failure_notice_handler(event, event.payload) == {
        "alert": "not enough room",
        "code": "rebalance_infeasible",
        "bucket_id": "e",
    }


def test_default_handlers_registered():
    bus = register_default_handlers(EventBus())
    results = bus.publish(PLAN_CONFIRMED, {"buckets": ()})

    assert results == [{"saved": 0, "total": 0}]
