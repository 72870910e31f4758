"""
Oracle multiplier derivation.

Decision order for one price computation:

  1. oracle_address unconfigured            → neutral (10000)
  2. primary feed: ok, price > 0, fresh     → primary
  3. fallback feed: ok, price > 0           → fallback (no freshness check)
  4. otherwise                              → neutral

    multiplier = observed_price * 10000 // oracle_reference_price

A non-positive reference price also yields neutral. Feed failures are logged
and counted, never raised.
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

from ..config import PricingConfig, is_unconfigured_address
from ..constants import NEUTRAL_MULTIPLIER, ORACLE_PRECISION
from ..metrics import METRICS, Metrics
from ..utils.time import Clock
from . import FeedObservation, FeedResolver, FeedUnavailable

logger = logging.getLogger(__name__)

SOURCE_PRIMARY = "primary"
SOURCE_FALLBACK = "fallback"
SOURCE_NEUTRAL = "neutral"


class OracleAdapter:
    """
    Derive the pricing multiplier from the configured feeds.

    Args:
        resolver: maps PricingConfig addresses to PriceFeed instances.
        clock: supplies `now` for the primary-feed freshness check.
        metrics: Metrics sink (defaults to the process singleton).
    """

    def __init__(self, resolver: FeedResolver, clock: Clock, *, metrics: Optional[Metrics] = None) -> None:
        self.resolver = resolver
        self.clock = clock
        self.metrics = metrics or METRICS

    def multiplier(self, config: PricingConfig) -> int:
        return self.observe(config)[0]

    def observe(self, config: PricingConfig) -> Tuple[int, str]:
        """Return (multiplier, source) where source is primary/fallback/neutral."""
        if not config.oracle_enabled:
            return NEUTRAL_MULTIPLIER, SOURCE_NEUTRAL
        if config.oracle_reference_price <= 0:
            logger.warning("oracle configured without a positive reference price; using neutral")
            return NEUTRAL_MULTIPLIER, SOURCE_NEUTRAL

        obs = self._query("primary", config.oracle_address, config.oracle_pair_id)
        if obs is not None:
            age = self.clock.now() - obs.observed_at
            if age > config.max_oracle_age_seconds:
                logger.warning(
                    "primary feed stale pair=%s age=%ds max=%ds",
                    config.oracle_pair_id,
                    age,
                    config.max_oracle_age_seconds,
                )
                self.metrics.record_oracle_query("primary", "stale")
            else:
                self.metrics.record_oracle_query("primary", "ok")
                return self._to_multiplier(obs.price, config), SOURCE_PRIMARY

        if not is_unconfigured_address(config.dex_fallback_address):
            fb = self._query("fallback", config.dex_fallback_address, config.oracle_pair_id)
            if fb is not None:
                self.metrics.record_oracle_query("fallback", "ok")
                logger.warning("using fallback feed pair=%s price=%d", config.oracle_pair_id, fb.price)
                return self._to_multiplier(fb.price, config), SOURCE_FALLBACK

        logger.warning("no usable price feed for pair=%s; using neutral multiplier", config.oracle_pair_id)
        return NEUTRAL_MULTIPLIER, SOURCE_NEUTRAL

    # ----- internals ---------------------------------------------------------

    def _query(self, feed_name: str, address: Optional[str], pair_id: str) -> Optional[FeedObservation]:
        """Resolve and query one feed; None on any failure or non-positive price."""
        try:
            feed = self.resolver.resolve(address) if address is not None else None
            if feed is None:
                logger.debug("%s feed address %r did not resolve", feed_name, address)
                self.metrics.record_oracle_query(feed_name, "unavailable")
                return None
            obs = feed.get_price(pair_id)
        except FeedUnavailable as e:
            logger.warning("%s feed unavailable pair=%s: %s", feed_name, pair_id, e)
            self.metrics.record_oracle_query(feed_name, "unavailable")
            return None
        except Exception:  # pluggable feed code; pricing continues on neutral
            logger.exception("%s feed raised pair=%s", feed_name, pair_id)
            self.metrics.record_oracle_query(feed_name, "unavailable")
            return None
        if isinstance(obs.price, bool) or not isinstance(obs.price, int) or obs.price <= 0:
            logger.warning("%s feed returned invalid price pair=%s price=%r", feed_name, pair_id, obs.price)
            self.metrics.record_oracle_query(feed_name, "invalid")
            return None
        return obs

    @staticmethod
    def _to_multiplier(price: int, config: PricingConfig) -> int:
        return price * ORACLE_PRECISION // config.oracle_reference_price


__all__ = ["OracleAdapter", "SOURCE_PRIMARY", "SOURCE_FALLBACK", "SOURCE_NEUTRAL"]
