"""Configuration for the allocation core.

Thresholds and tolerances live here so the rebalancer, the detectors and the
planner app agree on them. Every value can be overridden through an
environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

_PROJECT_ROOT = Path(__file__).parent.parent.resolve()


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return float(raw)


# Smallest amount (currency units) treated as a real change
EPSILON = _float_env("CAPIUM_EPSILON", 0.01)

# Allowed gap between allocated total and income, as a percent of income
TOTAL_TOLERANCE_PERCENT = _float_env("CAPIUM_TOTAL_TOLERANCE_PERCENT", 0.1)

# Advisory banners
HIGH_ESSENTIAL_PERCENT = _float_env("CAPIUM_HIGH_ESSENTIAL_PERCENT", 70.0)
LOW_DISCRETIONARY_PERCENT = _float_env("CAPIUM_LOW_DISCRETIONARY_PERCENT", 5.0)
LOW_EMERGENCY_PERCENT = _float_env("CAPIUM_LOW_EMERGENCY_PERCENT", 5.0)

# Discretionary spending policy
DISCRETIONARY_WARNING_PERCENT = _float_env("CAPIUM_DISCRETIONARY_WARNING_PERCENT", 35.0)
DISCRETIONARY_LIMIT_PERCENT = _float_env("CAPIUM_DISCRETIONARY_LIMIT_PERCENT", 50.0)

# Share of leftover income that a generated plan sends to the emergency fund
EMERGENCY_SHARE = _float_env("CAPIUM_EMERGENCY_SHARE", 0.5)

SEED_PATH = Path(os.getenv("CAPIUM_SEED_PATH", _PROJECT_ROOT / "data" / "seed.json"))

# Expected yearly return used for investment projections
ANNUAL_RETURN = _float_env("CAPIUM_ANNUAL_RETURN", 0.07)
