"""
Core typed records for ticket sales and commit–reveal.

These are intentionally minimal and free of heavy dependencies so they can be
shared across submodules (pricing engine, sale lifecycle, storage, RPC
surface, and tests).

Types provided:
  • PricingStrategy: demand-curve variant assigned to a tier
  • Tier: priced, capacity-bounded ticket category
  • Ticket: one issued (soulbound) ticket
  • EventInfo: sale timing (start, refund cutoff)
  • Commitment: hash binding a hidden seed before it is revealed
  • Reveal: disclosure of the seed/nonce behind a commitment

Records that are persisted expose `to_dict` / `from_dict` with JSON-safe
values (bytes are hex-encoded).
"""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

# Internal constants (kept local to avoid import cycles)
_HASH32 = 32


def _require_len(name: str, b: bytes, n: int) -> None:
    if len(b) != n:
        raise ValueError(f"{name} must be exactly {n} bytes (got {len(b)})")


def _require_nonneg(name: str, v: int) -> None:
    if v < 0:
        raise ValueError(f"{name} must be non-negative (got {v})")


# ---- Pricing -----------------------------------------------------------------


class PricingStrategy(str, enum.Enum):
    """Demand-curve variant; values are stable wire/storage names."""

    STANDARD = "standard"
    AB_TEST_A = "ab_test_a"
    AB_TEST_B = "ab_test_b"

    @classmethod
    def parse(cls, value: "PricingStrategy | str") -> "PricingStrategy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"unknown pricing strategy {value!r}; expected one of "
                f"{[s.value for s in cls]}"
            ) from None


@dataclass
class Tier:
    """
    A priced, capacity-bounded ticket category.

    `current_price` is an advisory snapshot only; the authoritative price is
    always recomputed by the pricing engine.
    """

    name: str
    base_price: int
    current_price: int
    max_supply: int
    minted: int = 0
    active: bool = True
    pricing_strategy: PricingStrategy = PricingStrategy.STANDARD

    @property
    def remaining(self) -> int:
        return self.max_supply - self.minted

    @property
    def sold_out(self) -> bool:
        return self.minted >= self.max_supply

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["pricing_strategy"] = self.pricing_strategy.value
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Tier":
        return cls(
            name=str(d["name"]),
            base_price=int(d["base_price"]),
            current_price=int(d["current_price"]),
            max_supply=int(d["max_supply"]),
            minted=int(d.get("minted", 0)),
            active=bool(d.get("active", True)),
            pricing_strategy=PricingStrategy.parse(
                d.get("pricing_strategy", PricingStrategy.STANDARD.value)
            ),
        )


# ---- Sale records ------------------------------------------------------------


@dataclass
class Ticket:
    """One issued ticket. Admin mints record `price_paid == 0`."""

    token_id: int
    tier_key: str
    owner: str
    purchase_time: int
    price_paid: int
    is_valid: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Ticket":
        return cls(
            token_id=int(d["token_id"]),
            tier_key=str(d["tier_key"]),
            owner=str(d["owner"]),
            purchase_time=int(d["purchase_time"]),
            price_paid=int(d["price_paid"]),
            is_valid=bool(d.get("is_valid", True)),
        )


@dataclass(frozen=True)
class EventInfo:
    """Sale timing; refunds are accepted while now <= refund_cutoff_time."""

    name: str
    symbol: str
    start_time: int
    refund_cutoff_time: int

    def __post_init__(self) -> None:
        _require_nonneg("start_time", int(self.start_time))
        _require_nonneg("refund_cutoff_time", int(self.refund_cutoff_time))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EventInfo":
        return cls(
            name=str(d["name"]),
            symbol=str(d["symbol"]),
            start_time=int(d["start_time"]),
            refund_cutoff_time=int(d["refund_cutoff_time"]),
        )


# ---- Commit–reveal -----------------------------------------------------------


@dataclass
class Commitment:
    """
    A hash binding a hidden (seed, nonce) pair.

    Fields:
      hash:         SHA-256(seed || nonce_le), 32 bytes
      committed_at: timestamp the commitment was made
      revealed:     flips to True exactly once (see commit_reveal.mark_revealed)
      committer:    opaque identity of the committer
    """

    hash: bytes
    committed_at: int
    committer: Optional[str]
    revealed: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.hash, (bytes, bytearray)):
            raise TypeError("hash must be bytes")
        _require_len("hash", self.hash, _HASH32)
        _require_nonneg("committed_at", int(self.committed_at))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hash": "0x" + bytes(self.hash).hex(),
            "committed_at": self.committed_at,
            "committer": self.committer,
            "revealed": self.revealed,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Commitment":
        h = str(d["hash"])
        return cls(
            hash=bytes.fromhex(h[2:] if h.startswith("0x") else h),
            committed_at=int(d["committed_at"]),
            committer=d.get("committer"),
            revealed=bool(d.get("revealed", False)),
        )


@dataclass(frozen=True)
class Reveal:
    """
    Disclosure of the value behind a commitment.

    Fields are not validated here: verification fails closed on malformed
    reveals instead of raising.
    """

    seed: bytes
    nonce: int
    revealed_at: int


__all__ = [
    "PricingStrategy",
    "Tier",
    "Ticket",
    "EventInfo",
    "Commitment",
    "Reveal",
]
