# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
tickets.utils.hash
==================

Thin SHA-256 helpers used by the commit–reveal scheme.
Sticks to Python's stdlib `hashlib`.

Key pieces
----------
- :class:`Digest`: the hashing capability the commitment scheme depends on.
- :func:`sha256`: one-shot SHA-256 of a bytes-like value.
- :func:`digest_equal`: constant-time equality for digests.
"""

from __future__ import annotations

import hmac
from hashlib import sha256 as _sha256
from typing import Protocol, Union, runtime_checkable

BytesLike = Union[bytes, bytearray, memoryview]

__all__ = [
    "Digest",
    "SHA256",
    "sha256",
    "digest_equal",
]


@runtime_checkable
class Digest(Protocol):
    """Deterministic, collision-resistant hash returning 32 bytes."""

    def __call__(self, data: bytes) -> bytes: ...


def sha256(data: BytesLike) -> bytes:
    """Return SHA-256(data)."""
    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise TypeError("sha256 expects a bytes-like object")
    return _sha256(bytes(data)).digest()


def digest_equal(a: BytesLike, b: BytesLike) -> bool:
    """Timing-safe equality; differing lengths compare False."""
    return hmac.compare_digest(bytes(a), bytes(b))


# Default digest capability used by the commitment scheme.
SHA256: Digest = sha256
