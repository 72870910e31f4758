"""
Soulbound ticket sales.

This package provides:
- a tiered dynamic pricing engine (demand curve, strategy variants, external
  price-feed multiplier, admin freeze and price bounds),
- a commit–reveal primitive for verifiable lottery randomness,
- a thin sale orchestration layer (purchase, refund, batch mint) over
  pluggable authorization, payment and storage collaborators.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

try:
    from .version import __version__  # type: ignore
except Exception:  # pragma: no cover
    __version__ = "0.0.0+dev"

__all__ = ["__version__"]
