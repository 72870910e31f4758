"""
Price-feed implementations.

- StaticPriceFeed : in-process feed with settable prices (tests, dry runs).
- HTTPPriceFeed   : fetch an observation from an HTTP(S) feed service.

HTTP convention
---------------
    GET {base}/prices/{pair_id}
    200 → {"price": <int>, "observed_at": <int unix seconds>}

Resolvers map the address strings stored in PricingConfig to feeds:

- StaticFeedResolver : explicit mapping address → feed
- HTTPFeedResolver   : any http(s) URL; one client cached per address

Security notes
--------------
The HTTP feed performs no content authentication; the adapter treats every
observation as untrusted input and only uses it through the bounded
multiplier and the floor/ceiling clamp.
"""

from __future__ import annotations

import threading
from typing import Dict, Mapping, Optional
from urllib.parse import quote

import httpx

from ..constants import DEFAULT_FEED_TIMEOUT_S
from . import FeedObservation, FeedUnavailable, PriceFeed

# -----------------------------------------------------------------------------#
# Static feed
# -----------------------------------------------------------------------------#


class StaticPriceFeed:
    """
    Feed backed by a dict of pair_id → price.

    Args:
        prices: initial prices.
        observed_at: timestamp reported with every observation.
    """

    def __init__(self, prices: Optional[Mapping[str, int]] = None, *, observed_at: int = 0) -> None:
        self._prices: Dict[str, int] = dict(prices or {})
        self._observed_at = int(observed_at)
        self._lock = threading.Lock()

    def set_price(self, pair_id: str, price: int, observed_at: Optional[int] = None) -> None:
        with self._lock:
            self._prices[pair_id] = int(price)
            if observed_at is not None:
                self._observed_at = int(observed_at)

    def remove(self, pair_id: str) -> None:
        with self._lock:
            self._prices.pop(pair_id, None)

    def get_price(self, pair_id: str) -> FeedObservation:
        with self._lock:
            if pair_id not in self._prices:
                raise FeedUnavailable(f"no price for pair {pair_id!r}")
            return FeedObservation(price=self._prices[pair_id], observed_at=self._observed_at)


# -----------------------------------------------------------------------------#
# HTTP feed
# -----------------------------------------------------------------------------#


class HTTPPriceFeed:
    """
    Fetch observations from `GET {base_url}/prices/{pair_id}`.

    Args:
        base_url: feed service root, e.g. "https://feeds.example".
        timeout: per-request timeout in seconds.
        transport: optional httpx transport (tests use httpx.MockTransport).
        headers: extra request headers (auth tokens, etc.).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = DEFAULT_FEED_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
        headers: Optional[Mapping[str, str]] = None,
    ) -> None:
        if not base_url.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        self.base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers=dict(headers or {}),
        )

    def __enter__(self) -> "HTTPPriceFeed":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_price(self, pair_id: str) -> FeedObservation:
        path = f"/prices/{quote(pair_id, safe='')}"
        try:
            r = self._client.get(path)
        except httpx.HTTPError as e:
            raise FeedUnavailable(f"feed request failed: {e}") from e
        if r.status_code != 200:
            raise FeedUnavailable(f"feed returned HTTP {r.status_code} for {pair_id!r}")
        try:
            body = r.json()
            price = body["price"]
            observed_at = body["observed_at"]
        except (ValueError, KeyError, TypeError) as e:
            raise FeedUnavailable(f"malformed feed response for {pair_id!r}") from e
        if isinstance(price, bool) or not isinstance(price, int):
            raise FeedUnavailable(f"non-integer price for {pair_id!r}: {price!r}")
        if isinstance(observed_at, bool) or not isinstance(observed_at, int):
            raise FeedUnavailable(f"non-integer observed_at for {pair_id!r}")
        return FeedObservation(price=price, observed_at=observed_at)


# -----------------------------------------------------------------------------#
# Resolvers
# -----------------------------------------------------------------------------#


class StaticFeedResolver:
    """Resolve addresses through an explicit mapping."""

    def __init__(self, feeds: Optional[Mapping[str, PriceFeed]] = None) -> None:
        self._feeds: Dict[str, PriceFeed] = dict(feeds or {})

    def register(self, address: str, feed: PriceFeed) -> None:
        """Re-registering the same address replaces the previous feed."""
        if not address:
            raise ValueError("feed address must be a non-empty string")
        self._feeds[address] = feed

    def resolve(self, address: str) -> Optional[PriceFeed]:
        return self._feeds.get(address)


class HTTPFeedResolver:
    """
    Resolve http(s) URLs to HTTPPriceFeed instances, caching one client per
    address. Other addresses resolve to None.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_FEED_TIMEOUT_S,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._timeout = timeout
        self._transport = transport
        self._feeds: Dict[str, HTTPPriceFeed] = {}
        self._lock = threading.Lock()

    def resolve(self, address: str) -> Optional[PriceFeed]:
        if not address.startswith(("http://", "https://")):
            return None
        with self._lock:
            feed = self._feeds.get(address)
            if feed is None:
                feed = HTTPPriceFeed(address, timeout=self._timeout, transport=self._transport)
                self._feeds[address] = feed
            return feed

    def close(self) -> None:
        with self._lock:
            for feed in self._feeds.values():
                feed.close()
            self._feeds.clear()


__all__ = [
    "StaticPriceFeed",
    "HTTPPriceFeed",
    "StaticFeedResolver",
    "HTTPFeedResolver",
]
