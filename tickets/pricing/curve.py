"""
Demand curve.

Pure integer functions; all divisions truncate toward zero (inputs are
non-negative so this equals floor division).

    demand_unit       = max(max_supply // 5, 1)
    thresholds_passed = minted // demand_unit
    effective_base    = base + base * premium_bps // 10000
    demand_price      = effective_base + effective_base * rate_bps * thresholds_passed // 10000
    adjusted          = demand_price * multiplier // 10000
    price             = clamp(adjusted, floor, ceiling)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from ..constants import (
    AB_TEST_A_RATE_BPS,
    AB_TEST_B_PREMIUM_BPS,
    AB_TEST_B_RATE_BPS,
    BPS_DENOMINATOR,
    DEMAND_THRESHOLDS,
    ORACLE_PRECISION,
    STANDARD_RATE_BPS,
)
from ..types.core import PricingStrategy


@dataclass(frozen=True)
class StrategyParams:
    rate_bps: int
    premium_bps: int = 0


STRATEGIES: Dict[PricingStrategy, StrategyParams] = {
    PricingStrategy.STANDARD: StrategyParams(rate_bps=STANDARD_RATE_BPS),
    PricingStrategy.AB_TEST_A: StrategyParams(rate_bps=AB_TEST_A_RATE_BPS),
    PricingStrategy.AB_TEST_B: StrategyParams(
        rate_bps=AB_TEST_B_RATE_BPS, premium_bps=AB_TEST_B_PREMIUM_BPS
    ),
}


def demand_unit(max_supply: int) -> int:
    return max(max_supply // DEMAND_THRESHOLDS, 1)


def thresholds_passed(minted: int, max_supply: int) -> int:
    return minted // demand_unit(max_supply)


def effective_base(base_price: int, strategy: PricingStrategy) -> int:
    p = STRATEGIES[strategy]
    return base_price + base_price * p.premium_bps // BPS_DENOMINATOR


def demand_price(base_price: int, minted: int, max_supply: int, strategy: PricingStrategy) -> int:
    """Price before the oracle multiplier and the floor/ceiling clamp."""
    eb = effective_base(base_price, strategy)
    rate = STRATEGIES[strategy].rate_bps
    return eb + eb * rate * thresholds_passed(minted, max_supply) // BPS_DENOMINATOR


def apply_multiplier(price: int, multiplier: int) -> int:
    return price * multiplier // ORACLE_PRECISION


def clamp(price: int, floor: int, ceiling: int) -> int:
    return max(floor, min(price, ceiling))


__all__ = [
    "StrategyParams",
    "STRATEGIES",
    "demand_unit",
    "thresholds_passed",
    "effective_base",
    "demand_price",
    "apply_multiplier",
    "clamp",
]
