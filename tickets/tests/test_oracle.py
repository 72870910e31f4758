from __future__ import annotations

import httpx
import pytest

from tickets.config import PricingConfig
from tickets.oracle import (
    FeedObservation,
    FeedUnavailable,
    HTTPFeedResolver,
    HTTPPriceFeed,
    OracleAdapter,
    StaticFeedResolver,
)

from .conftest import mk_engine, oracle_config

PAIR = "XLM/USD"


def queries(registry, feed: str, outcome: str) -> float:
    return registry.get_sample_value(
        "tickets_oracle_queries_total", {"feed": feed, "outcome": outcome}
    ) or 0.0


class ExplodingFeed:
    def get_price(self, pair_id: str) -> FeedObservation:
        raise RuntimeError("socket closed")


def test_fresh_primary_sets_multiplier(adapter, feed, registry):
    feed.set_price(PAIR, 110_000_000)
    assert adapter.observe(oracle_config()) == (11000, "primary")
    assert queries(registry, "primary", "ok") == 1.0


def test_stale_primary_falls_back_without_freshness_check(adapter, feed, fallback_feed, clock, registry):
    feed.set_price(PAIR, 110_000_000, observed_at=0)
    fallback_feed.set_price(PAIR, 90_000_000, observed_at=0)
    clock.set(5_000)
    cfg = oracle_config(dex_fallback_address="dex-1", max_oracle_age_seconds=3_600)
    assert adapter.observe(cfg) == (9000, "fallback")
    assert queries(registry, "primary", "stale") == 1.0
    assert queries(registry, "fallback", "ok") == 1.0


def test_stale_primary_without_fallback_is_neutral(adapter, feed, clock):
    feed.set_price(PAIR, 110_000_000, observed_at=0)
    clock.set(5_000)
    assert adapter.observe(oracle_config(max_oracle_age_seconds=60)) == (10000, "neutral")


def test_age_equal_to_max_is_still_fresh(adapter, feed, clock):
    feed.set_price(PAIR, 120_000_000, observed_at=1_000)
    clock.set(1_060)
    assert adapter.multiplier(oracle_config(max_oracle_age_seconds=60)) == 12000
    clock.set(1_061)
    assert adapter.multiplier(oracle_config(max_oracle_age_seconds=60)) == 10000


def test_future_observation_counts_as_fresh(adapter, feed):
    feed.set_price(PAIR, 110_000_000, observed_at=9_999_999)
    assert adapter.multiplier(oracle_config()) == 11000


@pytest.mark.parametrize("bad_price", [0, -5])
def test_non_positive_primary_price_falls_back(adapter, feed, fallback_feed, registry, bad_price):
    feed.set_price(PAIR, bad_price)
    fallback_feed.set_price(PAIR, 105_000_000)
    assert adapter.observe(oracle_config(dex_fallback_address="dex-1")) == (10500, "fallback")
    assert queries(registry, "primary", "invalid") == 1.0


def test_feed_exceptions_never_propagate(clock, metrics):
    resolver = StaticFeedResolver({"oracle-1": ExplodingFeed(), "dex-1": ExplodingFeed()})
    adapter = OracleAdapter(resolver, clock, metrics=metrics)
    assert adapter.observe(oracle_config(dex_fallback_address="dex-1")) == (10000, "neutral")


def test_missing_pair_is_unavailable(adapter, registry):
    assert adapter.multiplier(oracle_config()) == 10000
    assert queries(registry, "primary", "unavailable") == 1.0


@pytest.mark.parametrize("address", [None, "", "none", "0x0", "0x" + "0" * 64])
def test_unconfigured_address_is_neutral_without_queries(adapter, registry, address):
    cfg = PricingConfig(oracle_address=address, oracle_pair_id=PAIR, oracle_reference_price=1)
    assert adapter.observe(cfg) == (10000, "neutral")
    assert queries(registry, "primary", "unavailable") == 0.0


# ----------------------------------------------------------------------------
# HTTP feeds
# ----------------------------------------------------------------------------


def mk_transport(price=110_000_000, observed_at=1_000) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/prices/XLMUSD":
            return httpx.Response(200, json={"price": price, "observed_at": observed_at})
        if request.url.path == "/prices/GARBAGE":
            return httpx.Response(200, content=b"<html>")
        if request.url.path == "/prices/FLOAT":
            return httpx.Response(200, json={"price": 1.5, "observed_at": 0})
        return httpx.Response(404, json={"error": "unknown pair"})

    return httpx.MockTransport(handler)


def test_http_feed_parses_observation():
    with HTTPPriceFeed("https://feeds.example/", transport=mk_transport()) as f:
        assert f.get_price("XLMUSD") == FeedObservation(price=110_000_000, observed_at=1_000)


@pytest.mark.parametrize("pair", ["NOPE", "GARBAGE", "FLOAT"])
def test_http_feed_errors_become_unavailable(pair):
    with HTTPPriceFeed("https://feeds.example", transport=mk_transport()) as f:
        with pytest.raises(FeedUnavailable):
            f.get_price(pair)


def test_http_feed_connection_error_becomes_unavailable():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    with HTTPPriceFeed("http://127.0.0.1:9", transport=httpx.MockTransport(handler)) as f:
        with pytest.raises(FeedUnavailable):
            f.get_price("XLMUSD")


def test_http_feed_requires_http_url():
    with pytest.raises(ValueError):
        HTTPPriceFeed("ftp://feeds.example")


def test_http_resolver_caches_clients_and_drives_adapter(clock, metrics):
    resolver = HTTPFeedResolver(transport=mk_transport())
    assert resolver.resolve("oracle-1") is None
    a = resolver.resolve("https://feeds.example")
    assert a is resolver.resolve("https://feeds.example")

    adapter = OracleAdapter(resolver, clock, metrics=metrics)
    cfg = PricingConfig(
        oracle_address="https://feeds.example",
        oracle_pair_id="XLMUSD",
        oracle_reference_price=100_000_000,
    )
    assert adapter.observe(cfg) == (11000, "primary")
    resolver.close()


def test_malformed_feed_url_is_neutral(clock, metrics, registry):
    resolver = HTTPFeedResolver(transport=mk_transport())
    adapter = OracleAdapter(resolver, clock, metrics=metrics)
    cfg = PricingConfig(
        oracle_address="http://[::1",
        oracle_pair_id="XLMUSD",
        oracle_reference_price=100_000_000,
    )
    assert adapter.observe(cfg) == (10000, "neutral")
    assert queries(registry, "primary", "unavailable") == 1.0


def test_malformed_feed_url_does_not_block_pricing(clock, metrics):
    adapter = OracleAdapter(HTTPFeedResolver(transport=mk_transport()), clock, metrics=metrics)
    engine = mk_engine(
        adapter,
        metrics,
        config=PricingConfig(
            oracle_address="http://[::1",
            oracle_pair_id="XLMUSD",
            oracle_reference_price=100_000_000,
        ),
    )
    engine.create_tier("GA", "General", 100, 10)
    assert engine.current_price("GA") == 100
