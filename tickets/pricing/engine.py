"""
Tier pricing engine.

Owns Tier records and the PricingConfig for one sale, both persisted in a
KeyValue store (see tickets.store.kv). The payable price is recomputed on
every call:

    demand curve  →  oracle multiplier (skipped while frozen)  →  clamp

`Tier.current_price` is an advisory snapshot only, written by
`snapshot_price`; pricing never reads it.

Concurrency: every read-modify-write runs under `engine.lock` (an RLock the
sale layer shares) and inside one store transaction, so two mints cannot both
observe spare capacity and jointly exceed `max_supply`.
"""

from __future__ import annotations

import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from ..config import PricingConfig
from ..constants import I128_MAX, NEUTRAL_MULTIPLIER, U32_MAX
from ..errors import CapacityExceeded, DuplicateTier, InvalidParameters, TierInactive, TierNotFound
from ..metrics import METRICS, Metrics
from ..oracle.adapter import OracleAdapter
from ..store import KeyValue
from ..store.kv import Buckets
from ..types.core import PricingStrategy, Tier
from . import curve

logger = logging.getLogger(__name__)

TIER_KEY_RE = re.compile(r"^[A-Za-z0-9_]{1,32}$")

SOURCE_FROZEN = "frozen"


@dataclass(frozen=True)
class PriceQuote:
    """Breakdown of one price computation."""

    tier_key: str
    demand_price: int
    multiplier: int
    price: int
    source: str  # frozen | primary | fallback | neutral

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier_key": self.tier_key,
            "demand_price": self.demand_price,
            "multiplier": self.multiplier,
            "price": self.price,
            "source": self.source,
        }


@dataclass(frozen=True)
class MintReceipt:
    tier_key: str
    quantity: int
    price_per_unit: int
    total: int
    minted_after: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "tier_key": self.tier_key,
            "quantity": self.quantity,
            "price_per_unit": self.price_per_unit,
            "total": self.total,
            "minted_after": self.minted_after,
        }


def validate_tier_key(tier_key: str) -> None:
    if not isinstance(tier_key, str) or not TIER_KEY_RE.match(tier_key):
        raise InvalidParameters(f"tier key must match {TIER_KEY_RE.pattern} (got {tier_key!r})")


class TierPricingEngine:
    """
    Args:
        store: KeyValue backend holding tiers and the pricing config.
        oracle: OracleAdapter supplying the multiplier.
        config: initial PricingConfig; persisted only when the store has none
            yet, so reopening a durable store keeps its admin-set config.
        metrics: Metrics sink (defaults to the process singleton).
    """

    def __init__(
        self,
        store: KeyValue,
        oracle: OracleAdapter,
        *,
        config: Optional[PricingConfig] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.store = store
        self.buckets = Buckets(store)
        self.oracle = oracle
        self.metrics = metrics or METRICS
        self.lock = threading.RLock()
        if config is not None and not self.buckets.has_meta(Buckets.META_PRICING_CONFIG):
            self.set_pricing_config(config)

    # ------------------------------------------------------------------ config

    def pricing_config(self) -> PricingConfig:
        """Current persisted config (defaults if none was ever set)."""
        raw = self.buckets.get_meta_json(Buckets.META_PRICING_CONFIG)
        return PricingConfig() if raw is None else PricingConfig.from_dict(raw)

    def set_pricing_config(self, config: PricingConfig) -> PricingConfig:
        config.validate()
        with self.lock, self.store.transaction():
            self.buckets.put_meta_json(Buckets.META_PRICING_CONFIG, config.to_dict())
        logger.info(
            "pricing config updated floor=%d ceiling=%d frozen=%s oracle=%s",
            config.price_floor,
            config.price_ceiling,
            config.is_frozen,
            config.oracle_enabled,
        )
        return config

    def emergency_freeze(self, frozen: bool) -> PricingConfig:
        """Set `is_frozen`. Setting the current value again is a no-op."""
        with self.lock:
            cfg = self.pricing_config()
            if cfg.is_frozen == bool(frozen):
                return cfg
            cfg = self.set_pricing_config(cfg.with_changes(is_frozen=bool(frozen)))
        logger.warning("emergency freeze %s", "engaged" if frozen else "released")
        return cfg

    # ------------------------------------------------------------------- tiers

    def create_tier(
        self,
        tier_key: str,
        name: str,
        base_price: int,
        max_supply: int,
        strategy: PricingStrategy | str = PricingStrategy.STANDARD,
    ) -> Tier:
        validate_tier_key(tier_key)
        try:
            strat = PricingStrategy.parse(strategy)
        except ValueError as e:
            raise InvalidParameters(str(e)) from None
        if isinstance(base_price, bool) or not isinstance(base_price, int):
            raise InvalidParameters("base_price must be an integer")
        if isinstance(max_supply, bool) or not isinstance(max_supply, int):
            raise InvalidParameters("max_supply must be an integer")
        if base_price <= 0 or base_price > I128_MAX:
            raise InvalidParameters(f"base_price must be in (0, i128 max] (got {base_price})")
        if max_supply <= 0 or max_supply > U32_MAX:
            raise InvalidParameters(f"max_supply must be in (0, u32 max] (got {max_supply})")

        with self.lock, self.store.transaction():
            if self.buckets.has_tier(tier_key):
                raise DuplicateTier(tier_key=tier_key)
            tier = Tier(
                name=name,
                base_price=base_price,
                current_price=base_price,
                max_supply=max_supply,
                minted=0,
                active=True,
                pricing_strategy=strat,
            )
            self.buckets.put_tier(tier_key, tier)
        logger.info(
            "tier created key=%s base=%d supply=%d strategy=%s",
            tier_key,
            base_price,
            max_supply,
            strat.value,
        )
        return tier

    def get_tier(self, tier_key: str) -> Tier:
        tier = self.buckets.get_tier(tier_key)
        if tier is None:
            raise TierNotFound(tier_key=tier_key)
        return tier

    def tiers(self) -> List[Tuple[str, Tier]]:
        return list(self.buckets.iter_tiers())

    def set_tier_active(self, tier_key: str, active: bool) -> Tier:
        with self.lock, self.store.transaction():
            tier = self.get_tier(tier_key)
            tier.active = bool(active)
            self.buckets.put_tier(tier_key, tier)
        logger.info("tier %s active=%s", tier_key, tier.active)
        return tier

    # ----------------------------------------------------------------- pricing

    def quote(self, tier_key: str, config: Optional[PricingConfig] = None) -> PriceQuote:
        tier = self.get_tier(tier_key)
        cfg = config if config is not None else self.pricing_config()

        demand = curve.demand_price(
            tier.base_price, tier.minted, tier.max_supply, tier.pricing_strategy
        )
        if cfg.is_frozen:
            multiplier, source = NEUTRAL_MULTIPLIER, SOURCE_FROZEN
            adjusted = demand
        else:
            multiplier, source = self.oracle.observe(cfg)
            adjusted = curve.apply_multiplier(demand, multiplier)
        price = curve.clamp(adjusted, cfg.price_floor, cfg.price_ceiling)

        self.metrics.record_quote(source)
        logger.debug(
            "quote tier=%s minted=%d demand=%d multiplier=%d source=%s price=%d",
            tier_key,
            tier.minted,
            demand,
            multiplier,
            source,
            price,
        )
        return PriceQuote(
            tier_key=tier_key,
            demand_price=demand,
            multiplier=multiplier,
            price=price,
            source=source,
        )

    def current_price(self, tier_key: str, config: Optional[PricingConfig] = None) -> int:
        return self.quote(tier_key, config).price

    def price_update_due(self, now: int) -> bool:
        cfg = self.pricing_config()
        return now - cfg.last_update_time >= cfg.update_frequency

    def snapshot_price(self, tier_key: str, now: int, price: Optional[int] = None) -> int:
        """
        Write a price into the advisory `current_price` field. `price` is the
        amount just charged when called from a purchase; otherwise the current
        price is computed.
        """
        with self.lock, self.store.transaction():
            if price is None:
                price = self.current_price(tier_key)
            tier = self.get_tier(tier_key)
            tier.current_price = price
            self.buckets.put_tier(tier_key, tier)
            cfg = self.pricing_config()
            self.buckets.put_meta_json(
                Buckets.META_PRICING_CONFIG,
                cfg.with_changes(last_update_time=int(now)).to_dict(),
            )
        logger.debug("price snapshot tier=%s price=%d at=%d", tier_key, price, now)
        return price

    # -------------------------------------------------------------------- mint

    def mint(self, tier_key: str, quantity: int, price_per_unit: int) -> MintReceipt:
        """
        Increment `minted` by `quantity`. Does not compute a price: callers
        decide whether a mint is free (admin) or priced (purchase).
        """
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise InvalidParameters(f"quantity must be a positive integer (got {quantity!r})")
        if price_per_unit < 0:
            raise InvalidParameters(f"price_per_unit must be >= 0 (got {price_per_unit})")

        with self.lock, self.store.transaction():
            tier = self.get_tier(tier_key)
            if not tier.active:
                raise TierInactive(tier_key=tier_key)
            if tier.minted + quantity > tier.max_supply:
                raise CapacityExceeded(
                    tier_key=tier_key,
                    minted=tier.minted,
                    requested=quantity,
                    max_supply=tier.max_supply,
                )
            tier.minted += quantity
            self.buckets.put_tier(tier_key, tier)

        logger.debug("minted tier=%s qty=%d minted_after=%d", tier_key, quantity, tier.minted)
        return MintReceipt(
            tier_key=tier_key,
            quantity=quantity,
            price_per_unit=price_per_unit,
            total=quantity * price_per_unit,
            minted_after=tier.minted,
        )


__all__ = [
    "TierPricingEngine",
    "PriceQuote",
    "MintReceipt",
    "TIER_KEY_RE",
    "validate_tier_key",
]
