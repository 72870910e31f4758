"""
Ticketing configuration.

This file defines typed configuration objects and helpers for:
- Pricing bounds, freeze flag and oracle wiring (PricingConfig)
- Storage URI and feed client knobs for a sale process (SaleConfig)

It provides:
- Dataclass-based configs with validation
- Loading from environment variables (prefix configurable)
- Loading from a JSON or YAML file

PricingConfig is an explicit object owned by the sale layer and persisted by
the pricing engine; there is no module-level mutable instance.
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import yaml

from .constants import (
    DEFAULT_FEED_TIMEOUT_S,
    DEFAULT_MAX_ORACLE_AGE_S,
    I128_MAX,
)
from .errors import InvalidParameters

# -------------------------
# Pricing
# -------------------------


def is_unconfigured_address(address: Optional[str]) -> bool:
    """
    True for the sentinel "no feed" values: None, empty, "none", or an
    all-zero hex address (e.g. 0x0000…0000).
    """
    if address is None:
        return True
    a = address.strip().lower()
    if a in ("", "none", "null"):
        return True
    if a.startswith("0x"):
        body = a[2:]
        return body == "" or set(body) == {"0"}
    return False


@dataclass
class PricingConfig:
    """
    Pricing bounds and oracle wiring for one sale.

      - oracle_address: primary price-feed locator (None → oracle disabled)
      - dex_fallback_address: spot-price fallback feed locator (optional)
      - price_floor / price_ceiling: inclusive clamp applied to every price
      - update_frequency: seconds between advisory price snapshots
      - last_update_time: timestamp of the last advisory snapshot
      - is_frozen: suppress the oracle multiplier (demand curve still applies)
      - oracle_pair_id: feed pair identifier, e.g. "XLM/USD"
      - oracle_reference_price: feed price that maps to a 1.0x multiplier
      - max_oracle_age_seconds: primary observations older than this are stale
    """

    oracle_address: Optional[str] = None
    dex_fallback_address: Optional[str] = None
    price_floor: int = 0
    price_ceiling: int = I128_MAX
    update_frequency: int = 0
    last_update_time: int = 0
    is_frozen: bool = False
    oracle_pair_id: str = ""
    oracle_reference_price: int = 0
    max_oracle_age_seconds: int = DEFAULT_MAX_ORACLE_AGE_S

    @property
    def oracle_enabled(self) -> bool:
        return not is_unconfigured_address(self.oracle_address)

    def validate(self) -> None:
        if self.price_floor < 0:
            raise InvalidParameters("price_floor must be >= 0")
        if self.price_ceiling > I128_MAX:
            raise InvalidParameters("price_ceiling exceeds i128 range")
        if self.price_floor > self.price_ceiling:
            raise InvalidParameters(
                f"price_floor ({self.price_floor}) > price_ceiling ({self.price_ceiling})"
            )
        if self.update_frequency < 0:
            raise InvalidParameters("update_frequency must be >= 0")
        if self.last_update_time < 0:
            raise InvalidParameters("last_update_time must be >= 0")
        if self.max_oracle_age_seconds < 0:
            raise InvalidParameters("max_oracle_age_seconds must be >= 0")
        if self.oracle_enabled:
            if self.oracle_reference_price <= 0:
                raise InvalidParameters(
                    "oracle_reference_price must be > 0 when an oracle is configured"
                )
            if not self.oracle_pair_id:
                raise InvalidParameters(
                    "oracle_pair_id is required when an oracle is configured"
                )
        elif self.oracle_reference_price < 0:
            raise InvalidParameters("oracle_reference_price must be >= 0")

    def with_changes(self, **changes: Any) -> "PricingConfig":
        """Return a validated copy with `changes` applied."""
        cfg = replace(self, **changes)
        cfg.validate()
        return cfg

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "PricingConfig":
        d = dict(data or {})
        cfg = PricingConfig(
            oracle_address=d.pop("oracle_address", None),
            dex_fallback_address=d.pop("dex_fallback_address", None),
            price_floor=int(d.pop("price_floor", 0)),
            price_ceiling=int(d.pop("price_ceiling", I128_MAX)),
            update_frequency=int(d.pop("update_frequency", 0)),
            last_update_time=int(d.pop("last_update_time", 0)),
            is_frozen=bool(d.pop("is_frozen", False)),
            oracle_pair_id=str(d.pop("oracle_pair_id", "")),
            oracle_reference_price=int(d.pop("oracle_reference_price", 0)),
            max_oracle_age_seconds=int(
                d.pop("max_oracle_age_seconds", DEFAULT_MAX_ORACLE_AGE_S)
            ),
        )
        if d:
            raise InvalidParameters(f"unknown pricing config keys: {sorted(d)}")
        cfg.validate()
        return cfg

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "TICKETS_PRICING_") -> "PricingConfig":
        """
        Load configuration from environment variables. All variables are optional.

        Supported keys (examples):
          - TICKETS_PRICING_ORACLE_ADDRESS=https://feeds.example/
          - TICKETS_PRICING_DEX_FALLBACK_ADDRESS=https://dex.example/
          - TICKETS_PRICING_PRICE_FLOOR=50
          - TICKETS_PRICING_PRICE_CEILING=1000
          - TICKETS_PRICING_UPDATE_FREQUENCY=300
          - TICKETS_PRICING_IS_FROZEN=false
          - TICKETS_PRICING_ORACLE_PAIR_ID=XLM/USD
          - TICKETS_PRICING_ORACLE_REFERENCE_PRICE=100000000
          - TICKETS_PRICING_MAX_ORACLE_AGE_SECONDS=3600
        """
        cfg = PricingConfig(
            oracle_address=_get_env(prefix, "ORACLE_ADDRESS", str, None),
            dex_fallback_address=_get_env(prefix, "DEX_FALLBACK_ADDRESS", str, None),
            price_floor=_get_env(prefix, "PRICE_FLOOR", int, 0),
            price_ceiling=_get_env(prefix, "PRICE_CEILING", int, I128_MAX),
            update_frequency=_get_env(prefix, "UPDATE_FREQUENCY", int, 0),
            is_frozen=_get_env(prefix, "IS_FROZEN", bool, False),
            oracle_pair_id=_get_env(prefix, "ORACLE_PAIR_ID", str, ""),
            oracle_reference_price=_get_env(prefix, "ORACLE_REFERENCE_PRICE", int, 0),
            max_oracle_age_seconds=_get_env(
                prefix, "MAX_ORACLE_AGE_SECONDS", int, DEFAULT_MAX_ORACLE_AGE_S
            ),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "PricingConfig":
        """Load from a JSON or YAML mapping whose keys mirror the dataclass."""
        return PricingConfig.from_dict(_parse_json_or_yaml(_read_text(path), path))


# -------------------------
# Sale process
# -------------------------


@dataclass
class SaleConfig:
    """
    Process-level settings for a sale:

      - store_uri: "memory://" or "sqlite:///path/to/tickets.db"
      - feed_timeout_s: HTTP timeout for price-feed queries
      - pricing: initial PricingConfig (persisted by the engine on first use)
    """

    store_uri: str = "memory://"
    feed_timeout_s: float = DEFAULT_FEED_TIMEOUT_S
    pricing: PricingConfig = field(default_factory=PricingConfig)

    def validate(self) -> None:
        u = urlparse(self.store_uri)
        if u.scheme not in {"memory", "sqlite"}:
            raise InvalidParameters("store_uri must be memory:// or sqlite:///<path>")
        if u.scheme == "sqlite" and not u.path:
            raise InvalidParameters("sqlite store_uri requires a path")
        if self.feed_timeout_s <= 0:
            raise InvalidParameters("feed_timeout_s must be > 0")
        self.pricing.validate()

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_env(prefix: str = "TICKETS_") -> "SaleConfig":
        """
        Supported keys:
          - TICKETS_STORE_URI=sqlite:///./data/tickets.db
          - TICKETS_FEED_TIMEOUT_S=2.0
          - TICKETS_PRICING_* (see PricingConfig.from_env)
        """
        cfg = SaleConfig(
            store_uri=_get_env(prefix, "STORE_URI", str, "memory://"),
            feed_timeout_s=_get_env(prefix, "FEED_TIMEOUT_S", float, DEFAULT_FEED_TIMEOUT_S),
            pricing=PricingConfig.from_env(prefix + "PRICING_"),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "SaleConfig":
        """
        Load from JSON or YAML. Example (YAML):

            store_uri: "sqlite:///./data/tickets.db"
            feed_timeout_s: 2.0
            pricing:
              price_floor: 50
              price_ceiling: 1000
              oracle_address: "https://feeds.example"
              oracle_pair_id: "XLM/USD"
              oracle_reference_price: 100000000
        """
        data = _parse_json_or_yaml(_read_text(path), path)
        cfg = SaleConfig(
            store_uri=data.get("store_uri", "memory://"),
            feed_timeout_s=float(data.get("feed_timeout_s", DEFAULT_FEED_TIMEOUT_S)),
            pricing=PricingConfig.from_dict(data.get("pricing") or {}),
        )
        cfg.validate()
        return cfg


# -------------------------
# Utilities
# -------------------------


def _get_env(prefix: str, name: str, cast: Any, default: Any) -> Any:
    key = prefix + name
    raw = os.getenv(key)
    if raw is None:
        return default
    try:
        if cast is bool:
            return raw.lower() in {"1", "true", "yes", "on"}
        return cast(raw)
    except Exception as e:
        raise InvalidParameters(f"invalid value for {key}: {raw!r}") from e


def _read_text(path: str) -> str:
    with open(path, "r", encoding="utf-8") as f:
        return f.read()


def _parse_json_or_yaml(text: str, path_hint: str) -> Dict[str, Any]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as e:
            raise InvalidParameters(
                f"failed to parse {path_hint!r} as JSON or YAML: {e}"
            ) from e
    if not isinstance(data, dict):
        raise InvalidParameters(f"{path_hint!r} must contain a mapping")
    return data


__all__ = [
    "PricingConfig",
    "SaleConfig",
    "is_unconfigured_address",
]
