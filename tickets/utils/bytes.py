# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
tickets.utils.bytes
===================

Small utilities for working with hex/bytes plus strict fixed-width integer
encoding. Kept dependency-free and strict to prevent ambiguous encodings in
commitment derivations.
"""

from __future__ import annotations

import re
from typing import Union

BytesLike = Union[bytes, bytearray, memoryview]

__all__ = [
    "to_hex",
    "from_hex",
    "is_hex",
    "as_bytes",
    "u32_le",
]

_HEX_RE = re.compile(r"^(0x|0X)?[0-9a-fA-F]*$")


def is_hex(s: str) -> bool:
    """True if `s` is an even-length hex string, with or without a 0x prefix."""
    if not isinstance(s, str) or not _HEX_RE.match(s):
        return False
    body = s[2:] if s[:2] in ("0x", "0X") else s
    return len(body) % 2 == 0


def from_hex(s: str) -> bytes:
    """Decode a hex string (0x prefix optional). Raises ValueError on bad input."""
    if not is_hex(s):
        raise ValueError(f"invalid hex string: {s!r}")
    body = s[2:] if s[:2] in ("0x", "0X") else s
    return bytes.fromhex(body)


def to_hex(b: BytesLike) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def as_bytes(x: BytesLike) -> bytes:
    if isinstance(x, (bytes, bytearray, memoryview)):
        return bytes(x)
    raise TypeError("expected bytes-like object")


def u32_le(n: int) -> bytes:
    """Encode an unsigned 32-bit integer as 4 little-endian bytes."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise TypeError("u32 value must be an int")
    if n < 0 or n > 0xFFFFFFFF:
        raise ValueError(f"u32 value out of range: {n}")
    return n.to_bytes(4, "little")
