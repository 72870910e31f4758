"""
Ticket sale orchestration.

Thin layer over the pricing engine and the collaborators:

    initialize → add_tier → purchase / batch_mint → refund → validate_ticket

Every mutating call validates first, writes state, and performs the external
payment transfer last, all under the engine lock and inside one store
transaction. A failure at any step leaves the store untouched and no
transfer is made after a failed write.

Token ids are sequential starting at 1.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from ..config import PricingConfig, SaleConfig
from ..errors import (
    AlreadyInitialized,
    CapacityExceeded,
    InvalidParameters,
    NotInitialized,
    NotTicketOwner,
    RefundWindowClosed,
    TicketInvalidated,
    TicketNotFound,
    TierInactive,
    Unauthorized,
)
from ..metrics import METRICS, Metrics
from ..pricing.engine import PriceQuote, TierPricingEngine
from ..store.kv import Buckets
from ..types.core import EventInfo, PricingStrategy, Ticket, Tier
from ..utils.time import Clock
from .collaborators import Authorizer, PaymentTransfer, SoulboundRegistry

logger = logging.getLogger(__name__)


class TicketSale:
    """
    One soulbound ticket sale.

    Args:
        engine: pricing engine; its store and lock are shared by the sale.
        authorizer: checks that callers are who they claim to be.
        payments: external token-transfer capability.
        registry: soulbound ownership (defaults to one over the engine store).
        clock: time source for purchase times and the refund window.
        config: SaleConfig; its `pricing` seeds the engine on first use.
    """

    def __init__(
        self,
        engine: TierPricingEngine,
        authorizer: Authorizer,
        payments: PaymentTransfer,
        clock: Clock,
        *,
        registry: Optional[SoulboundRegistry] = None,
        config: Optional[SaleConfig] = None,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self.engine = engine
        self.store = engine.store
        self.buckets = Buckets(self.store)
        self.authorizer = authorizer
        self.payments = payments
        self.registry = registry or SoulboundRegistry(self.store)
        self.clock = clock
        self.config = config or SaleConfig()
        self.metrics = metrics or METRICS

    # ----------------------------------------------------------------- setup

    def initialize(self, admin: str, event: EventInfo) -> None:
        if not admin:
            raise InvalidParameters("admin identity must be non-empty")
        with self.engine.lock, self.store.transaction():
            if self.buckets.has_meta(Buckets.META_ADMIN):
                raise AlreadyInitialized()
            self.buckets.put_meta_json(Buckets.META_ADMIN, admin)
            self.buckets.put_meta_json(Buckets.META_EVENT_INFO, event.to_dict())
            self.buckets.put_meta_json(Buckets.META_TOKEN_COUNTER, 0)
            if not self.buckets.has_meta(Buckets.META_PRICING_CONFIG):
                self.engine.set_pricing_config(self.config.pricing)
        logger.info("sale initialized event=%s symbol=%s admin=%s", event.name, event.symbol, admin)

    @property
    def initialized(self) -> bool:
        return self.buckets.has_meta(Buckets.META_ADMIN)

    def admin(self) -> str:
        admin = self.buckets.get_meta_json(Buckets.META_ADMIN)
        if admin is None:
            raise NotInitialized()
        return str(admin)

    def event_info(self) -> EventInfo:
        raw = self.buckets.get_meta_json(Buckets.META_EVENT_INFO)
        if raw is None:
            raise NotInitialized()
        return EventInfo.from_dict(raw)

    def _require_admin(self, caller: str) -> str:
        admin = self.admin()
        self.authorizer.require_authorized(caller)
        if caller != admin:
            raise Unauthorized(identity=caller, reason="admin only")
        return admin

    # ----------------------------------------------------------------- admin

    def add_tier(
        self,
        caller: str,
        tier_key: str,
        name: str,
        base_price: int,
        max_supply: int,
        strategy: PricingStrategy | str = PricingStrategy.STANDARD,
    ) -> Tier:
        self._require_admin(caller)
        return self.engine.create_tier(tier_key, name, base_price, max_supply, strategy)

    def set_pricing_config(self, caller: str, config: PricingConfig) -> PricingConfig:
        self._require_admin(caller)
        return self.engine.set_pricing_config(config)

    def emergency_freeze(self, caller: str, frozen: bool) -> PricingConfig:
        self._require_admin(caller)
        return self.engine.emergency_freeze(frozen)

    def set_tier_active(self, caller: str, tier_key: str, active: bool) -> Tier:
        self._require_admin(caller)
        return self.engine.set_tier_active(tier_key, active)

    def batch_mint(self, caller: str, to: str, tier_key: str, amount: int) -> List[Ticket]:
        """Free organizer mint of `amount` tickets to `to` (price_paid = 0)."""
        self._require_admin(caller)
        if not to:
            raise InvalidParameters("recipient identity must be non-empty")
        now = self.clock.now()
        with self.engine.lock, self.store.transaction():
            self.engine.mint(tier_key, amount, 0)
            issued = [self._issue(to, tier_key, now, 0) for _ in range(amount)]
        self.metrics.record_mint("admin", amount)
        logger.info("batch mint tier=%s to=%s amount=%d", tier_key, to, amount)
        return issued

    # ------------------------------------------------------------------ sale

    def quote(self, tier_key: str) -> PriceQuote:
        return self.engine.quote(tier_key)

    def purchase(self, buyer: str, payment_token: str, tier_key: str) -> Ticket:
        self.authorizer.require_authorized(buyer)
        admin = self.admin()
        now = self.clock.now()

        with self.engine.lock, self.store.transaction():
            tier = self.engine.get_tier(tier_key)
            if not tier.active:
                raise TierInactive(tier_key=tier_key)
            if tier.sold_out:
                raise CapacityExceeded(
                    tier_key=tier_key,
                    minted=tier.minted,
                    requested=1,
                    max_supply=tier.max_supply,
                )
            price = self.engine.current_price(tier_key)

            self.engine.mint(tier_key, 1, price)
            ticket = self._issue(buyer, tier_key, now, price)
            if self.engine.price_update_due(now):
                self.engine.snapshot_price(tier_key, now, price)

            # transfer last; a failed transfer rolls the writes back
            self.payments.transfer(payment_token, buyer, admin, price)

        self.metrics.record_mint("purchase", 1)
        logger.info(
            "ticket purchased token=%d tier=%s buyer=%s price=%d",
            ticket.token_id,
            tier_key,
            buyer,
            price,
        )
        return ticket

    def refund(self, owner: str, payment_token: str, token_id: int) -> Ticket:
        self.authorizer.require_authorized(owner)
        admin = self.admin()
        event = self.event_info()
        now = self.clock.now()

        with self.engine.lock, self.store.transaction():
            if self.registry.owner_of(token_id) != owner:
                raise NotTicketOwner(token_id=token_id, identity=owner)
            if now > event.refund_cutoff_time:
                raise RefundWindowClosed(now_ts=now, cutoff_ts=event.refund_cutoff_time)
            ticket = self.get_ticket(token_id)
            if not ticket.is_valid:
                raise TicketInvalidated(token_id=token_id)

            ticket.is_valid = False
            self.buckets.put_ticket(ticket)
            self.registry.burn(token_id)

            self.payments.transfer(payment_token, admin, owner, ticket.price_paid)

        self.metrics.record_refund()
        logger.info("ticket refunded token=%d owner=%s amount=%d", token_id, owner, ticket.price_paid)
        return ticket

    # ----------------------------------------------------------------- reads

    def validate_ticket(self, token_id: int) -> bool:
        ticket = self.buckets.get_ticket(token_id)
        return ticket is not None and ticket.is_valid

    def get_ticket(self, token_id: int) -> Ticket:
        ticket = self.buckets.get_ticket(token_id)
        if ticket is None:
            raise TicketNotFound(token_id=token_id)
        return ticket

    def owner_of(self, token_id: int) -> str:
        return self.registry.owner_of(token_id)

    def balance(self, owner: str) -> int:
        return self.registry.balance(owner)

    def transfer(self, from_: str, to: str, token_id: int) -> None:
        self.registry.transfer(from_, to, token_id)

    def approve(self, owner: str, spender: str, token_id: int) -> None:
        self.registry.approve(owner, spender, token_id)

    def summary(self) -> Dict[str, Any]:
        """JSON-friendly overview of tiers and pricing (used by RPC/CLI)."""
        return {
            "initialized": self.initialized,
            "pricing": self.engine.pricing_config().to_dict(),
            "tiers": {k: t.to_dict() for k, t in self.engine.tiers()},
        }

    # -------------------------------------------------------------- internals

    def _next_token_id(self) -> int:
        counter = int(self.buckets.get_meta_json(Buckets.META_TOKEN_COUNTER) or 0) + 1
        self.buckets.put_meta_json(Buckets.META_TOKEN_COUNTER, counter)
        return counter

    def _issue(self, owner: str, tier_key: str, now: int, price_paid: int) -> Ticket:
        token_id = self._next_token_id()
        self.registry.mint(owner, token_id)
        ticket = Ticket(
            token_id=token_id,
            tier_key=tier_key,
            owner=owner,
            purchase_time=now,
            price_paid=price_paid,
            is_valid=True,
        )
        self.buckets.put_ticket(ticket)
        return ticket


__all__ = ["TicketSale"]
