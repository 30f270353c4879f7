import json
from dataclasses import replace
from functools import reduce
from typing import Mapping, Tuple

from capium.domain import Bucket, CategorizedAmount


def load_seed(path) -> Tuple[float, Tuple[CategorizedAmount, ...]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    income = float(data["monthly_income"])
    records = tuple(CategorizedAmount(**r) for r in data["transactions"])
    return income, records


def total_allocated(buckets: Tuple[Bucket, ...]) -> float:
    return reduce(lambda acc, b: acc + b.allocated_amount, buckets, 0.0)


def set_locked(buckets: Tuple[Bucket, ...], bucket_id: str, locked: bool) -> Tuple[Bucket, ...]:
    return tuple(
        replace(b, is_locked=locked) if b.id == bucket_id else b
        for b in buckets
    )


def amounts_by_id(buckets: Tuple[Bucket, ...]) -> dict[str, float]:
    return {b.id: b.allocated_amount for b in buckets}


def changes_from(buckets: Tuple[Bucket, ...], originals: Mapping[str, float]) -> dict[str, float]:
    return {
        b.id: b.allocated_amount - originals.get(b.id, b.allocated_amount)
        for b in buckets
    }
