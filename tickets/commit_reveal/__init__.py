# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
tickets.commit_reveal
=====================

Commit–reveal primitive for lottery fairness.

Typical flow:
    1) A committer picks a secret 32-byte seed and a nonce, publishes
       `commit(seed, nonce, ...)` before participation closes.
    2) After the commit phase, the committer discloses (seed, nonce); the
       consumer checks `is_reveal_timely` and `verify_reveal`, then marks the
       commitment revealed (`open_commitment` does all three).
    3) Cohorts may be anchored with `batch_commitment_hash`, and rounds linked
       with `commit_with_chain`.

The scheme is stateless: callers own Commitment and Reveal records.
"""

from __future__ import annotations

from ..types.core import Commitment, Reveal  # noqa: F401
from .commit import (  # noqa: F401
    batch_commitment_hash,
    commit,
    commit_with_chain,
    commitment_hash,
    mark_revealed,
)
from .verify import (  # noqa: F401
    batch_verify_reveals,
    ensure_batch_reveals,
    is_reveal_timely,
    open_commitment,
    verify_reveal,
)

__all__ = [
    "Commitment",
    "Reveal",
    "commit",
    "commitment_hash",
    "mark_revealed",
    "batch_commitment_hash",
    "commit_with_chain",
    "verify_reveal",
    "is_reveal_timely",
    "batch_verify_reveals",
    "ensure_batch_reveals",
    "open_commitment",
]
