"""
Prometheus metrics for ticket sales.

This module defines counters for the core pipeline:
  • price_quotes:    price computations per multiplier source
  • oracle_queries:  feed queries per feed (primary/fallback) and outcome
  • minted:          tickets minted per kind (admin/purchase)
  • refunds:         refunded tickets
  • reveals:         commitment openings per outcome

Label cardinality is intentionally low: every label has a small, finite
vocabulary and unknown values fold into "invalid". No per-tier labels.

Usage
-----
    from tickets.metrics import METRICS

    METRICS.record_quote("primary")
    METRICS.record_oracle_query("fallback", "stale")
    METRICS.record_mint("purchase", 1)

If you need a custom Prometheus registry (tests, multiple sales in one
process), construct your own `Metrics` instance and inject it.
"""

from __future__ import annotations

from prometheus_client import REGISTRY, Counter

# --------- Vocabularies (kept small for bounded cardinality) ---------

_QUOTE_SOURCES = (
    "primary",   # multiplier from a fresh primary feed observation
    "fallback",  # multiplier from the fallback spot-price feed
    "neutral",   # no usable feed; 1.0x
    "frozen",    # oracle suppressed by emergency freeze
)

_FEEDS = ("primary", "fallback")

_QUERY_OUTCOMES = (
    "ok",           # observation accepted
    "unavailable",  # feed missing or unreachable
    "stale",        # older than max_oracle_age_seconds
    "invalid",      # malformed / non-positive price
)

_MINT_KINDS = (
    "admin",     # free batch mint by the organizer
    "purchase",  # paid purchase
)

_REVEAL_OUTCOMES = (
    "accepted",    # reveal matched and within window
    "too_early",   # before the reveal window opens
    "too_late",    # after the reveal window closes
    "bad_reveal",  # hash mismatch vs commitment
    "duplicate",   # commitment already revealed
    "invalid",     # malformed / failed validation
)


class Metrics:
    """
    Container for all ticketing Prometheus instruments.

    Args:
        namespace: Prometheus metric namespace (prefix).
        subsystem: Prometheus metric subsystem.
        registry:  Prometheus registry to register the metrics with.
    """

    def __init__(
        self,
        *,
        namespace: str = "tickets",
        subsystem: str = "",
        registry=REGISTRY,
    ) -> None:
        self.price_quotes_total = Counter(
            "price_quotes_total",
            "Number of ticket price computations, labeled by multiplier source.",
            labelnames=("source",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.oracle_queries_total = Counter(
            "oracle_queries_total",
            "Number of price-feed queries, labeled by feed and outcome.",
            labelnames=("feed", "outcome"),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.minted_total = Counter(
            "minted_total",
            "Number of tickets minted, labeled by kind.",
            labelnames=("kind",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.refunds_total = Counter(
            "refunds_total",
            "Number of tickets refunded.",
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )
        self.reveals_total = Counter(
            "reveals_total",
            "Number of commitment openings, labeled by outcome.",
            labelnames=("outcome",),
            namespace=namespace,
            subsystem=subsystem,
            registry=registry,
        )

    # ----- Recording helpers -------------------------------------------------

    def record_quote(self, source: str) -> None:
        if source not in _QUOTE_SOURCES:
            source = "neutral"
        self.price_quotes_total.labels(source=source).inc()

    def record_oracle_query(self, feed: str, outcome: str) -> None:
        if feed not in _FEEDS:
            feed = "primary"
        if outcome not in _QUERY_OUTCOMES:
            outcome = "invalid"
        self.oracle_queries_total.labels(feed=feed, outcome=outcome).inc()

    def record_mint(self, kind: str, quantity: int = 1) -> None:
        if kind not in _MINT_KINDS:
            kind = "admin"
        self.minted_total.labels(kind=kind).inc(quantity)

    def record_refund(self) -> None:
        self.refunds_total.inc()

    def record_reveal(self, outcome: str) -> None:
        if outcome not in _REVEAL_OUTCOMES:
            outcome = "invalid"
        self.reveals_total.labels(outcome=outcome).inc()


# Singleton used by most components
METRICS = Metrics()

__all__ = [
    "Metrics",
    "METRICS",
]
