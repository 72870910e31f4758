"""
tickets.pricing
===============

Demand-curve pricing (`curve`) and the stateful per-sale engine (`engine`).

    from tickets.pricing import TierPricingEngine
    engine = TierPricingEngine(store, oracle)
    engine.create_tier("GA", "General Admission", 100, 10)
    engine.current_price("GA")   # 100
"""

from __future__ import annotations

from .engine import MintReceipt, PriceQuote, TierPricingEngine  # noqa: F401

__all__ = ["TierPricingEngine", "PriceQuote", "MintReceipt"]
