# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Commitment construction for lottery fairness.

Definition
----------
C = H( seed || nonce_le )

- H is SHA-256.
- `seed` is exactly 32 bytes, chosen uniformly at random by the committer and
  kept secret until the reveal.
- `nonce_le` is the u32 nonce as 4 little-endian bytes.

Also provided:
- `batch_commitment_hash(seeds)`: one fairness anchor for a cohort,
  H(seed_0 || seed_1 || ...), in input order.
- `commit_with_chain(...)`: H(seed || nonce_le || previous_hash?) linking a
  round to the previous one. There is no matching chain verifier; consumers
  recompute the chain forward from a trusted genesis.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from ..constants import DIGEST_LEN, SEED_LEN
from ..errors import AlreadyRevealed
from ..types.core import Commitment
from ..utils.bytes import as_bytes, u32_le
from ..utils.hash import SHA256, Digest

logger = logging.getLogger(__name__)


def _seed32(seed: bytes) -> bytes:
    s = as_bytes(seed)
    if len(s) != SEED_LEN:
        raise ValueError(f"seed must be exactly {SEED_LEN} bytes (got {len(s)})")
    return s


def commitment_preimage(seed: bytes, nonce: int) -> bytes:
    """Return the exact bytes hashed for a commitment: seed(32) || u32_le(nonce)."""
    return _seed32(seed) + u32_le(nonce)


def commitment_hash(seed: bytes, nonce: int, *, digest: Digest = SHA256) -> bytes:
    """Compute H(seed || nonce_le)."""
    return digest(commitment_preimage(seed, nonce))


def commit(
    seed: bytes,
    nonce: int,
    committer: Optional[str],
    now: int,
    *,
    digest: Digest = SHA256,
) -> Tuple[bytes, Commitment]:
    """
    Create a commitment for a lottery seed.

    Parameters
    ----------
    seed : bytes
        32 random bytes, secret until reveal.
    nonce : int
        Unsigned 32-bit nonce.
    committer : str | None
        Opaque identity recorded on the commitment.
    now : int
        Timestamp recorded as `committed_at`.

    Returns
    -------
    (hash, Commitment)
        The 32-byte digest and an unrevealed Commitment record.

    Raises
    ------
    ValueError / TypeError
        If the seed is not 32 bytes or the nonce is outside u32.
    """
    h = commitment_hash(seed, nonce, digest=digest)
    record = Commitment(hash=h, committed_at=int(now), committer=committer, revealed=False)
    logger.debug("commitment created committer=%s hash=%s", committer, h.hex())
    return h, record


def mark_revealed(commitment: Commitment) -> Commitment:
    """Flip `revealed` to True. A commitment can be opened only once."""
    if commitment.revealed:
        raise AlreadyRevealed(commitment_hex=bytes(commitment.hash).hex())
    commitment.revealed = True
    return commitment


def batch_commitment_hash(seeds: Sequence[bytes], *, digest: Digest = SHA256) -> bytes:
    """
    Hash the concatenation of all seeds in input order.

    This anchors a cohort (e.g. one lottery round) rather than verifying any
    individual reveal. An empty cohort hashes the empty string.
    """
    return digest(b"".join(_seed32(s) for s in seeds))


def commit_with_chain(
    seed: bytes,
    nonce: int,
    previous_hash: Optional[bytes] = None,
    committer: Optional[str] = None,
    *,
    digest: Digest = SHA256,
) -> bytes:
    """
    Compute H(seed || nonce_le || previous_hash?).

    `committer` is accepted so call sites mirror `commit`; it is not bound into
    the digest.
    """
    parts = commitment_preimage(seed, nonce)
    if previous_hash is not None:
        prev = as_bytes(previous_hash)
        if len(prev) != DIGEST_LEN:
            raise ValueError(f"previous_hash must be {DIGEST_LEN} bytes (got {len(prev)})")
        parts += prev
    h = digest(parts)
    logger.debug(
        "chained commitment committer=%s linked=%s hash=%s",
        committer,
        previous_hash is not None,
        h.hex(),
    )
    return h


__all__ = [
    "commitment_preimage",
    "commitment_hash",
    "commit",
    "mark_revealed",
    "batch_commitment_hash",
    "commit_with_chain",
]
