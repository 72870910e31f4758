"""
Logical buckets over a raw byte-oriented KeyValue backend.

Buckets
-------
- TIERS:    per-tier-key Tier records
- TICKETS:  per-token-id Ticket records
- OWNERS:   per-token-id soulbound owner identity
- BALANCES: per-owner count of held tokens
- META:     singleton values (admin, event info, pricing config, token counter)

Records are JSON-encoded (utf-8, sorted keys) so that both backends store
byte-identical values for identical state.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Iterator, Optional, Tuple

from ..types.core import Ticket, Tier
from . import KeyValue

# --- Bucket prefix constants (single-byte, domain-separated) -----------------

TIERS_PREFIX = b"\x01"     # TIERS:    \x01 | len(key) | key
TICKETS_PREFIX = b"\x02"   # TICKETS:  \x02 | u32_be(token_id)
OWNERS_PREFIX = b"\x03"    # OWNERS:   \x03 | u32_be(token_id)
BALANCES_PREFIX = b"\x04"  # BALANCES: \x04 | len(owner) | owner
META_PREFIX = b"\x05"      # META:     \x05 | len(name) | name


# --- Key composition helpers -------------------------------------------------

def _be_u32(n: int) -> bytes:
    if n < 0 or n > 0xFFFFFFFF:
        raise ValueError("value out of range for u32")
    return n.to_bytes(4, "big")


def _is_u32(n: int) -> bool:
    return isinstance(n, int) and not isinstance(n, bool) and 0 <= n <= 0xFFFFFFFF


def _k(prefix: bytes, *parts: bytes) -> bytes:
    """Prefix + 4-byte len for each part to avoid accidental collisions."""
    return prefix + b"".join(_be_u32(len(p)) + p for p in parts)


def _utf8(s: str | bytes) -> bytes:
    return s if isinstance(s, bytes) else s.encode("utf-8")


def encode_json(obj: Any) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":")).encode("utf-8")


def decode_json(raw: bytes) -> Any:
    return json.loads(raw.decode("utf-8"))


# --- Public bucket API -------------------------------------------------------

@dataclass(frozen=True)
class Buckets:
    """
    Namespaced view over a byte KV store used by the sale.

    Iteration over tiers and tickets is ordered by key (tier key bytes and
    big-endian token id respectively).
    Reads of token ids outside the u32 range return None (no such record).
    """

    kv: KeyValue

    # --- Tiers ---------------------------------------------------------------

    def key_tier(self, tier_key: str) -> bytes:
        return _k(TIERS_PREFIX, _utf8(tier_key))

    def has_tier(self, tier_key: str) -> bool:
        return self.kv.has(self.key_tier(tier_key))

    def get_tier(self, tier_key: str) -> Optional[Tier]:
        raw = self.kv.get(self.key_tier(tier_key))
        return None if raw is None else Tier.from_dict(decode_json(raw))

    def put_tier(self, tier_key: str, tier: Tier) -> None:
        self.kv.put(self.key_tier(tier_key), encode_json(tier.to_dict()))

    def iter_tiers(self) -> Iterator[Tuple[str, Tier]]:
        for k, v in self.kv.iter_prefix(TIERS_PREFIX):
            # \x01 | u32 len | key
            yield k[5:].decode("utf-8"), Tier.from_dict(decode_json(v))

    # --- Tickets -------------------------------------------------------------

    def key_ticket(self, token_id: int) -> bytes:
        return TICKETS_PREFIX + _be_u32(token_id)

    def get_ticket(self, token_id: int) -> Optional[Ticket]:
        if not _is_u32(token_id):
            return None
        raw = self.kv.get(self.key_ticket(token_id))
        return None if raw is None else Ticket.from_dict(decode_json(raw))

    def put_ticket(self, ticket: Ticket) -> None:
        self.kv.put(self.key_ticket(ticket.token_id), encode_json(ticket.to_dict()))

    def iter_tickets(self) -> Iterator[Ticket]:
        for _k_, v in self.kv.iter_prefix(TICKETS_PREFIX):
            yield Ticket.from_dict(decode_json(v))

    # --- Soulbound ownership -------------------------------------------------

    def key_owner(self, token_id: int) -> bytes:
        return OWNERS_PREFIX + _be_u32(token_id)

    def get_owner(self, token_id: int) -> Optional[str]:
        if not _is_u32(token_id):
            return None
        raw = self.kv.get(self.key_owner(token_id))
        return None if raw is None else raw.decode("utf-8")

    def put_owner(self, token_id: int, owner: str) -> None:
        self.kv.put(self.key_owner(token_id), _utf8(owner))

    def del_owner(self, token_id: int) -> None:
        self.kv.delete(self.key_owner(token_id))

    def key_balance(self, owner: str) -> bytes:
        return _k(BALANCES_PREFIX, _utf8(owner))

    def get_balance(self, owner: str) -> int:
        raw = self.kv.get(self.key_balance(owner))
        return 0 if raw is None else int(raw.decode("ascii"))

    def put_balance(self, owner: str, balance: int) -> None:
        if balance < 0:
            raise ValueError("balance must be >= 0")
        self.kv.put(self.key_balance(owner), str(balance).encode("ascii"))

    # --- Meta ----------------------------------------------------------------

    def key_meta(self, name: str | bytes) -> bytes:
        return _k(META_PREFIX, _utf8(name))

    def has_meta(self, name: str | bytes) -> bool:
        return self.kv.has(self.key_meta(name))

    def get_meta_json(self, name: str | bytes) -> Optional[Any]:
        raw = self.kv.get(self.key_meta(name))
        return None if raw is None else decode_json(raw)

    def put_meta_json(self, name: str | bytes, value: Any) -> None:
        self.kv.put(self.key_meta(name), encode_json(value))

    # Convenience meta keys used by the sale and pricing engine
    META_ADMIN = b"admin"                    # str: admin identity
    META_EVENT_INFO = b"event_info"          # dict: EventInfo
    META_PRICING_CONFIG = b"pricing_config"  # dict: PricingConfig
    META_TOKEN_COUNTER = b"token_counter"    # int: last issued token id


__all__ = [
    "Buckets",
    "encode_json",
    "decode_json",
    "TIERS_PREFIX",
    "TICKETS_PREFIX",
    "OWNERS_PREFIX",
    "BALANCES_PREFIX",
    "META_PREFIX",
]
