# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
Verify reveals against prior commitments.

Definition
----------
Given a commitment C and a reveal (seed, nonce, revealed_at), recompute

    C' = SHA-256(seed || nonce_le)

and check C' == C with a constant-time comparison.

This module exposes:
- `verify_reveal(...)`        : bool; malformed reveals fail closed (False).
- `is_reveal_timely(...)`     : inclusive [min_time, max_time] window check.
- `batch_verify_reveals(...)` : all-or-nothing, False on length mismatch.
- `ensure_batch_reveals(...)` : strict variant raising LengthMismatch / BadReveal.
- `open_commitment(...)`      : window check + verify + mark_revealed, with metrics.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..constants import DIGEST_LEN
from ..errors import AlreadyRevealed, BadReveal, LengthMismatch, RevealTooEarly, RevealTooLate
from ..metrics import METRICS, Metrics
from ..types.core import Commitment, Reveal
from ..utils.hash import SHA256, Digest, digest_equal
from .commit import commitment_hash, mark_revealed

logger = logging.getLogger(__name__)


def _recompute(reveal: Reveal, digest: Digest) -> Optional[bytes]:
    """Digest for a reveal, or None when the reveal is malformed."""
    try:
        return commitment_hash(reveal.seed, reveal.nonce, digest=digest)
    except (TypeError, ValueError):
        return None


def verify_reveal(
    commitment_hash_: bytes,
    reveal: Reveal,
    *,
    digest: Digest = SHA256,
) -> bool:
    """
    True iff `reveal` opens `commitment_hash_`.

    Wrong-length seeds or commitments and out-of-range nonces return False.
    """
    if not isinstance(commitment_hash_, (bytes, bytearray, memoryview)):
        return False
    if len(commitment_hash_) != DIGEST_LEN:
        return False
    recomputed = _recompute(reveal, digest)
    if recomputed is None:
        return False
    return digest_equal(recomputed, commitment_hash_)


def is_reveal_timely(reveal: Reveal, min_time: int, max_time: int) -> bool:
    """min_time <= revealed_at <= max_time (inclusive both ends)."""
    return min_time <= reveal.revealed_at <= max_time


def batch_verify_reveals(
    commitments: Sequence[bytes],
    reveals: Sequence[Reveal],
    *,
    digest: Digest = SHA256,
) -> bool:
    """
    Index-wise verification; True only if every pair verifies.

    A length mismatch fails closed (False). Every pair is evaluated so the
    running time does not depend on where the first mismatch sits.
    """
    if len(commitments) != len(reveals):
        return False
    ok = True
    for c, r in zip(commitments, reveals):
        ok &= verify_reveal(c, r, digest=digest)
    return ok


def ensure_batch_reveals(
    commitments: Sequence[bytes],
    reveals: Sequence[Reveal],
    *,
    digest: Digest = SHA256,
) -> None:
    """Strict form of `batch_verify_reveals`: raises on the first failure."""
    if len(commitments) != len(reveals):
        raise LengthMismatch(commitments=len(commitments), reveals=len(reveals))
    for i, (c, r) in enumerate(zip(commitments, reveals)):
        if not verify_reveal(c, r, digest=digest):
            got = _recompute(r, digest)
            raise BadReveal(
                expected_commitment_hex=bytes(c).hex(),
                got_commitment_hex=got.hex() if got is not None else "",
                index=i,
            )


def open_commitment(
    commitment: Commitment,
    reveal: Reveal,
    min_time: int,
    max_time: int,
    *,
    digest: Digest = SHA256,
    metrics: Metrics = METRICS,
) -> Commitment:
    """
    Consumer flow for one commitment: reject untimely reveals, verify the
    preimage, then mark the commitment revealed.

    Raises RevealTooEarly, RevealTooLate, BadReveal or AlreadyRevealed. The
    commitment is only mutated on success.
    """
    if commitment.revealed:
        metrics.record_reveal("duplicate")
        raise AlreadyRevealed(commitment_hex=bytes(commitment.hash).hex())
    if reveal.revealed_at < min_time:
        metrics.record_reveal("too_early")
        raise RevealTooEarly(revealed_at=reveal.revealed_at, reveal_open_ts=min_time)
    if reveal.revealed_at > max_time:
        metrics.record_reveal("too_late")
        raise RevealTooLate(revealed_at=reveal.revealed_at, reveal_close_ts=max_time)
    if not verify_reveal(commitment.hash, reveal, digest=digest):
        metrics.record_reveal("bad_reveal")
        got = _recompute(reveal, digest)
        raise BadReveal(
            expected_commitment_hex=bytes(commitment.hash).hex(),
            got_commitment_hex=got.hex() if got is not None else "",
        )
    mark_revealed(commitment)
    metrics.record_reveal("accepted")
    logger.debug("commitment opened hash=%s at=%d", bytes(commitment.hash).hex(), reveal.revealed_at)
    return commitment


__all__ = [
    "verify_reveal",
    "is_reveal_timely",
    "batch_verify_reveals",
    "ensure_batch_reveals",
    "open_commitment",
]
