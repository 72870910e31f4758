"""
RPC models: typed JSON shapes accepted/returned by the tickets REST router.

Validation:
- Hex strings are 0x-prefixed & even-length.
- Seeds and commitment hashes are exactly 32 bytes.
- Nonces fit in u32.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..constants import DIGEST_LEN, SEED_LEN, U32_MAX
from ..utils.bytes import from_hex, is_hex


def _hex32(v: str, what: str, n: int) -> str:
    if not isinstance(v, str) or not v.startswith("0x") or not is_hex(v) or len(v) % 2:
        raise ValueError(f"{what} must be 0x-prefixed even-length hex")
    if len(from_hex(v)) != n:
        raise ValueError(f"{what} must be exactly {n} bytes")
    return v.lower()


# -----------------------------------------------------------------------------
# Requests
# -----------------------------------------------------------------------------


class CommitReq(BaseModel):
    model_config = ConfigDict(frozen=True)
    seed: str = Field(..., description="0x-prefixed 32-byte seed")
    nonce: int = Field(..., ge=0, le=U32_MAX)
    committer: Optional[str] = None
    previous_hash: Optional[str] = Field(
        None, description="0x-prefixed 32-byte digest of the previous round (chained commit)"
    )

    @field_validator("seed")
    @classmethod
    def _v_seed(cls, v: str) -> str:
        return _hex32(v, "seed", SEED_LEN)

    @field_validator("previous_hash")
    @classmethod
    def _v_prev(cls, v: Optional[str]) -> Optional[str]:
        return None if v is None else _hex32(v, "previous_hash", DIGEST_LEN)


class RevealItem(BaseModel):
    model_config = ConfigDict(frozen=True)
    seed: str
    nonce: int = Field(..., ge=0, le=U32_MAX)
    revealed_at: int = Field(0, ge=0)

    @field_validator("seed")
    @classmethod
    def _v_seed(cls, v: str) -> str:
        return _hex32(v, "seed", SEED_LEN)


class VerifyReq(BaseModel):
    model_config = ConfigDict(frozen=True)
    commitment: str
    reveal: RevealItem
    min_time: Optional[int] = Field(None, ge=0)
    max_time: Optional[int] = Field(None, ge=0)

    @field_validator("commitment")
    @classmethod
    def _v_commitment(cls, v: str) -> str:
        return _hex32(v, "commitment", DIGEST_LEN)


class BatchVerifyReq(BaseModel):
    model_config = ConfigDict(frozen=True)
    commitments: List[str]
    reveals: List[RevealItem]

    @field_validator("commitments")
    @classmethod
    def _v_commitments(cls, v: List[str]) -> List[str]:
        return [_hex32(c, "commitment", DIGEST_LEN) for c in v]


class BatchHashReq(BaseModel):
    model_config = ConfigDict(frozen=True)
    seeds: List[str]

    @field_validator("seeds")
    @classmethod
    def _v_seeds(cls, v: List[str]) -> List[str]:
        return [_hex32(s, "seed", SEED_LEN) for s in v]


# -----------------------------------------------------------------------------
# Responses
# -----------------------------------------------------------------------------


class ErrorView(BaseModel):
    model_config = ConfigDict(frozen=True)
    code: str
    message: str


class QuoteView(BaseModel):
    model_config = ConfigDict(frozen=True)
    tier_key: str
    demand_price: int
    multiplier: int
    price: int
    source: str


class CommitView(BaseModel):
    model_config = ConfigDict(frozen=True)
    hash: str
    commitment: Optional[Dict[str, Any]] = None


class VerifyView(BaseModel):
    model_config = ConfigDict(frozen=True)
    valid: bool
    timely: Optional[bool] = None


class HashView(BaseModel):
    model_config = ConfigDict(frozen=True)
    hash: str


__all__ = [
    "CommitReq",
    "RevealItem",
    "VerifyReq",
    "BatchVerifyReq",
    "BatchHashReq",
    "ErrorView",
    "QuoteView",
    "CommitView",
    "VerifyView",
    "HashView",
]
