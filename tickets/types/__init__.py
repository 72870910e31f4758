"""
Ticketing: types package

Re-exports the canonical records so callers can write:
    from tickets.types import Tier, PricingStrategy, Commitment, Reveal
"""

from __future__ import annotations

from .core import (  # noqa: F401
    Commitment,
    EventInfo,
    PricingStrategy,
    Reveal,
    Ticket,
    Tier,
)

__all__ = [
    "Commitment",
    "EventInfo",
    "PricingStrategy",
    "Reveal",
    "Ticket",
    "Tier",
]
