"""
Ticketing constants.

This module centralizes:
- Fixed-point denominators for basis-point rates and oracle multipliers
- Integer bounds mirroring the ledger's i128 prices and u32 counters
- Demand-curve shape (number of thresholds per tier)
- Commit–reveal sizes

Operational knobs (floor/ceiling, oracle addresses, freshness) live in
`tickets.config.PricingConfig`; code that needs stable compile-time values
imports from here.
"""

from __future__ import annotations

# -----------------------------
# Fixed-point denominators
# -----------------------------
# Basis points: 10000 bps == 100%.
BPS_DENOMINATOR: int = 10_000

# Oracle multiplier denominator: 10000 == 1.0000x.
ORACLE_PRECISION: int = 10_000
NEUTRAL_MULTIPLIER: int = ORACLE_PRECISION

# -----------------------------
# Integer bounds
# -----------------------------
I128_MIN: int = -(1 << 127)
I128_MAX: int = (1 << 127) - 1
U32_MAX: int = (1 << 32) - 1
U64_MAX: int = (1 << 64) - 1

# -----------------------------
# Demand curve
# -----------------------------
# Capacity is discretized into this many demand thresholds.
DEMAND_THRESHOLDS: int = 5

# Per-strategy rates (bps per threshold) and up-front premiums (bps).
STANDARD_RATE_BPS: int = 500
AB_TEST_A_RATE_BPS: int = 1_000
AB_TEST_B_RATE_BPS: int = 500
AB_TEST_B_PREMIUM_BPS: int = 2_000

# -----------------------------
# Oracle defaults
# -----------------------------
DEFAULT_MAX_ORACLE_AGE_S: int = 3_600
DEFAULT_FEED_TIMEOUT_S: float = 2.0

# -----------------------------
# Commit–reveal
# -----------------------------
SEED_LEN: int = 32
DIGEST_LEN: int = 32
NONCE_LEN: int = 4

# Tier keys follow the ledger's short-symbol alphabet.
TIER_KEY_MAX_LEN: int = 32

__all__ = [
    "BPS_DENOMINATOR",
    "ORACLE_PRECISION",
    "NEUTRAL_MULTIPLIER",
    "I128_MIN",
    "I128_MAX",
    "U32_MAX",
    "U64_MAX",
    "DEMAND_THRESHOLDS",
    "STANDARD_RATE_BPS",
    "AB_TEST_A_RATE_BPS",
    "AB_TEST_B_RATE_BPS",
    "AB_TEST_B_PREMIUM_BPS",
    "DEFAULT_MAX_ORACLE_AGE_S",
    "DEFAULT_FEED_TIMEOUT_S",
    "SEED_LEN",
    "DIGEST_LEN",
    "NONCE_LEN",
    "TIER_KEY_MAX_LEN",
]
