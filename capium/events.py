from collections import defaultdict
from datetime import datetime
from typing import Callable, Dict, List, NamedTuple

__all__ = [
    'EventBus', 'Event',
    'SNAPSHOT_REPLACED', 'REBALANCE_FAILED', 'PLAN_CONFIRMED',
    'adjustment_notice_handler', 'failure_notice_handler', 'confirmation_handler',
    'register_default_handlers',
]


class Event(NamedTuple):
    name: str
    ts: str
    payload: dict


Handler = Callable[[Event, dict], dict]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = defaultdict(list)

    def subscribe(self, name: str, handler: Handler) -> None:
        self._subscribers[name].append(handler)

    def unsubscribe(self, name: str, handler: Handler) -> None:
        if handler in self._subscribers.get(name, ()):
            self._subscribers[name].remove(handler)

    def publish(self, name: str, payload: dict) -> List[dict]:
        handlers = list(self._subscribers.get(name, ()))
        if not handlers:
            return []
        event = Event(name=name, ts=datetime.now().isoformat(), payload=payload)
        return [handler(event, payload) for handler in handlers]


SNAPSHOT_REPLACED = "SNAPSHOT_REPLACED"
REBALANCE_FAILED = "REBALANCE_FAILED"
PLAN_CONFIRMED = "PLAN_CONFIRMED"


def adjustment_notice_handler(event: Event, payload: dict) -> dict:
    """Turn the adjustments of a rebalance into the "auto-adjusted" notice lines."""
    adjustments = payload.get("adjustments", ())
    if not adjustments:
        return {}
    lines = []
    for a in adjustments:
        arrow = "↑" if a.is_increase else "↓"
        lines.append(f"{a.kind.display_name} {arrow} ${abs(a.amount_changed):,.2f}")
    return {"notice": "Auto-adjusted to keep your total at 100%", "lines": lines}


def failure_notice_handler(event: Event, payload: dict) -> dict:
    error = payload.get("error")
    if error is None:
        return {}
    return {"alert": error.message, "code": error.code.value, "bucket_id": error.bucket_id}


def confirmation_handler(event: Event, payload: dict) -> dict:
    buckets = payload.get("buckets", ())
    return {"saved": len(buckets), "total": sum(b.allocated_amount for b in buckets)}


def register_default_handlers(bus: EventBus) -> EventBus:
    bus.subscribe(SNAPSHOT_REPLACED, adjustment_notice_handler)
    bus.subscribe(REBALANCE_FAILED, failure_notice_handler)
    bus.subscribe(PLAN_CONFIRMED, confirmation_handler)
    return bus
