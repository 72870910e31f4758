"""
tickets.oracle
==============

Price-feed protocol and the adapter that turns feed observations into a
pricing multiplier (denominator 10000, neutral 10000).

Feeds are external and untrusted: a feed that is missing, unreachable,
stale or returns a non-positive price never fails a price computation. The
adapter falls back to the secondary feed and finally to the neutral
multiplier.

Typical usage
-------------
    from tickets.oracle import StaticPriceFeed, StaticFeedResolver, OracleAdapter

    feed = StaticPriceFeed({"XLM/USD": 110_000_000}, observed_at=1_000)
    resolver = StaticFeedResolver({"oracle-1": feed})
    adapter = OracleAdapter(resolver, clock)
    adapter.multiplier(config)   # 11000 with reference 100_000_000
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

# --- Public protocol & error -----------------------------------------------------


@dataclass(frozen=True)
class FeedObservation:
    """One price observation: integer price and the time it was observed."""

    price: int
    observed_at: int


class PriceFeed(Protocol):
    """Minimal price-feed protocol."""

    def get_price(self, pair_id: str) -> FeedObservation:  # pragma: no cover - protocol
        """Return the latest observation for `pair_id`, or raise FeedUnavailable."""
        ...


class FeedResolver(Protocol):
    """Maps a configured feed address to a PriceFeed (None if unknown)."""

    def resolve(self, address: str) -> Optional[PriceFeed]:  # pragma: no cover - protocol
        ...


class FeedUnavailable(RuntimeError):
    """Raised by feeds when no observation can be produced."""


from .feeds import HTTPFeedResolver, HTTPPriceFeed, StaticFeedResolver, StaticPriceFeed  # noqa: E402
from .adapter import OracleAdapter  # noqa: E402

__all__ = [
    "FeedObservation",
    "PriceFeed",
    "FeedResolver",
    "FeedUnavailable",
    "StaticPriceFeed",
    "HTTPPriceFeed",
    "StaticFeedResolver",
    "HTTPFeedResolver",
    "OracleAdapter",
]
