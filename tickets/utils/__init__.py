"""
tickets.utils
-------------

Light helpers shared across the package: SHA-256 digests, hex and
fixed-width integer encoding, and clocks.

This package file deliberately avoids eager imports to keep dependency order
simple.
"""

__all__: list[str] = []
