from __future__ import annotations

from typing import List, Optional, Tuple

import pytest
from prometheus_client import CollectorRegistry

from tickets.config import PricingConfig, SaleConfig
from tickets.metrics import Metrics
from tickets.oracle import OracleAdapter, StaticFeedResolver, StaticPriceFeed
from tickets.pricing.engine import TierPricingEngine
from tickets.sale import SignerSet, TicketSale
from tickets.store import MemoryKeyValue
from tickets.types.core import EventInfo
from tickets.utils.time import ManualClock

ADMIN = "admin"
EVENT = EventInfo(name="Gala", symbol="GALA", start_time=10_000, refund_cutoff_time=5_000)


class RecordingPayments:
    """PaymentTransfer double: records transfers, optionally refuses them."""

    def __init__(self) -> None:
        self.transfers: List[Tuple[str, str, str, int]] = []
        self.fail = False

    def transfer(self, token: str, from_: str, to: str, amount: int) -> None:
        if self.fail:
            raise RuntimeError("insufficient balance")
        self.transfers.append((token, from_, to, amount))


@pytest.fixture
def registry() -> CollectorRegistry:
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> Metrics:
    return Metrics(registry=registry)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(1_000)


@pytest.fixture
def feed() -> StaticPriceFeed:
    return StaticPriceFeed(observed_at=1_000)


@pytest.fixture
def fallback_feed() -> StaticPriceFeed:
    return StaticPriceFeed(observed_at=0)


@pytest.fixture
def resolver(feed: StaticPriceFeed, fallback_feed: StaticPriceFeed) -> StaticFeedResolver:
    return StaticFeedResolver({"oracle-1": feed, "dex-1": fallback_feed})


@pytest.fixture
def adapter(resolver: StaticFeedResolver, clock: ManualClock, metrics: Metrics) -> OracleAdapter:
    return OracleAdapter(resolver, clock, metrics=metrics)


def oracle_config(**changes) -> PricingConfig:
    base = dict(
        oracle_address="oracle-1",
        oracle_pair_id="XLM/USD",
        oracle_reference_price=100_000_000,
    )
    base.update(changes)
    return PricingConfig(**base)


def mk_engine(
    adapter: OracleAdapter,
    metrics: Metrics,
    *,
    config: Optional[PricingConfig] = None,
    store=None,
) -> TierPricingEngine:
    return TierPricingEngine(
        store if store is not None else MemoryKeyValue(),
        adapter,
        config=config,
        metrics=metrics,
    )


@pytest.fixture
def engine(adapter: OracleAdapter, metrics: Metrics) -> TierPricingEngine:
    return mk_engine(adapter, metrics)


@pytest.fixture
def payments() -> RecordingPayments:
    return RecordingPayments()


@pytest.fixture
def signers() -> SignerSet:
    return SignerSet([ADMIN])


@pytest.fixture
def sale(
    engine: TierPricingEngine,
    signers: SignerSet,
    payments: RecordingPayments,
    clock: ManualClock,
    metrics: Metrics,
) -> TicketSale:
    s = TicketSale(engine, signers, payments, clock, config=SaleConfig(), metrics=metrics)
    s.initialize(ADMIN, EVENT)
    s.add_tier(ADMIN, "GA", "General Admission", 100, 10)
    return s
