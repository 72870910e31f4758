"""
Ticketing errors.

This module defines a small, typed hierarchy of exceptions raised by the
pricing engine, the sale lifecycle and the commit–reveal helpers. Callers can
catch the base `TicketError` to handle every business-rule failure, or catch
the concrete subclasses for more granular control.

Every subclass carries a stable `code` string so callers (RPC clients, tests)
can assert on the specific cause rather than a generic failure. The errors are
lightweight, field-carrying and serialization-friendly (see `to_dict`).

The dataclasses are not frozen: contextlib assigns `__traceback__` on
exceptions leaving a generator-based `with` block (store transactions).
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Optional


class TicketError(Exception):
    """Base class for all ticketing errors."""

    code: ClassVar[str] = "ticket_error"

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"code": self.code, "message": str(self)}
        if hasattr(self, "__dataclass_fields__"):
            data["details"] = {
                f.name: getattr(self, f.name) for f in fields(self)  # type: ignore[arg-type]
            }
        return data


# --------------------------------------------------------------------------
# Tier / pricing
# --------------------------------------------------------------------------


@dataclass(eq=False)
class DuplicateTier(TicketError):
    """Raised when a tier key is already registered for the sale."""

    code: ClassVar[str] = "duplicate_tier"
    tier_key: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"DuplicateTier: tier={self.tier_key!r} already exists"


@dataclass(eq=False)
class TierNotFound(TicketError):
    """Raised when a tier key is unknown."""

    code: ClassVar[str] = "tier_not_found"
    tier_key: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"TierNotFound: tier={self.tier_key!r}"


@dataclass(eq=False)
class TierInactive(TicketError):
    """Raised when minting or purchasing from a deactivated tier."""

    code: ClassVar[str] = "tier_inactive"
    tier_key: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"TierInactive: tier={self.tier_key!r} is not active"


@dataclass(eq=False)
class CapacityExceeded(TicketError):
    """
    Raised when a mint would push a tier past its max supply.

    Attributes:
        tier_key: The tier being minted.
        minted: Tickets already minted before the request.
        requested: Quantity requested.
        max_supply: Tier capacity.
    """

    code: ClassVar[str] = "capacity_exceeded"
    tier_key: str
    minted: int
    requested: int
    max_supply: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"CapacityExceeded: tier={self.tier_key!r} minted={self.minted} "
            f"+ requested={self.requested} > max_supply={self.max_supply}"
        )


@dataclass(eq=False)
class InvalidParameters(TicketError):
    """Raised for malformed configuration, non-positive prices and similar."""

    code: ClassVar[str] = "invalid_parameters"
    reason: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"InvalidParameters: {self.reason}"


@dataclass(eq=False)
class Unauthorized(TicketError):
    """Raised by an Authorizer when the caller is not the claimed identity."""

    code: ClassVar[str] = "unauthorized"
    identity: str
    reason: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        base = f"Unauthorized: identity={self.identity!r}"
        return f"{base} reason={self.reason}" if self.reason else base


# --------------------------------------------------------------------------
# Sale lifecycle
# --------------------------------------------------------------------------


@dataclass(eq=False)
class AlreadyInitialized(TicketError):
    code: ClassVar[str] = "already_initialized"

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return "AlreadyInitialized: sale has already been initialized"


@dataclass(eq=False)
class NotInitialized(TicketError):
    code: ClassVar[str] = "not_initialized"

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return "NotInitialized: sale has not been initialized"


@dataclass(eq=False)
class TicketNotFound(TicketError):
    code: ClassVar[str] = "ticket_not_found"
    token_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"TicketNotFound: token_id={self.token_id}"


@dataclass(eq=False)
class NotTicketOwner(TicketError):
    code: ClassVar[str] = "not_ticket_owner"
    token_id: int
    identity: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"NotTicketOwner: token_id={self.token_id} identity={self.identity!r}"


@dataclass(eq=False)
class RefundWindowClosed(TicketError):
    code: ClassVar[str] = "refund_window_closed"
    now_ts: int
    cutoff_ts: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"RefundWindowClosed: now_ts={self.now_ts} > cutoff_ts={self.cutoff_ts}"


@dataclass(eq=False)
class TicketInvalidated(TicketError):
    code: ClassVar[str] = "ticket_invalidated"
    token_id: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"TicketInvalidated: token_id={self.token_id} already invalidated"


@dataclass(eq=False)
class NonTransferable(TicketError):
    """Tickets are soulbound: transfers and approvals are always refused."""

    code: ClassVar[str] = "non_transferable"
    operation: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"NonTransferable: {self.operation} is disabled for soulbound tickets"


# --------------------------------------------------------------------------
# Commit–reveal
# --------------------------------------------------------------------------


@dataclass(eq=False)
class LengthMismatch(TicketError):
    """Batch verification received a different number of commitments and reveals."""

    code: ClassVar[str] = "length_mismatch"
    commitments: int
    reveals: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"LengthMismatch: commitments={self.commitments} reveals={self.reveals}"


@dataclass(eq=False)
class BadReveal(TicketError):
    """
    Raised when a reveal does not match its prior commitment.

    Attributes:
        expected_commitment_hex: Hex string of the stored commitment.
        got_commitment_hex: Hex string recomputed from the reveal (may be empty
            when the reveal was malformed).
        index: Position within a batch, if any.
    """

    code: ClassVar[str] = "bad_reveal"
    expected_commitment_hex: str
    got_commitment_hex: str
    index: Optional[int] = None

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        base = (
            f"BadReveal: expected={self.expected_commitment_hex} "
            f"got={self.got_commitment_hex}"
        )
        return f"{base} index={self.index}" if self.index is not None else base


@dataclass(eq=False)
class RevealTooEarly(TicketError):
    code: ClassVar[str] = "reveal_too_early"
    revealed_at: int
    reveal_open_ts: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"RevealTooEarly: revealed_at={self.revealed_at} "
            f"< reveal_open_ts={self.reveal_open_ts}"
        )


@dataclass(eq=False)
class RevealTooLate(TicketError):
    code: ClassVar[str] = "reveal_too_late"
    revealed_at: int
    reveal_close_ts: int

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"RevealTooLate: revealed_at={self.revealed_at} "
            f"> reveal_close_ts={self.reveal_close_ts}"
        )


@dataclass(eq=False)
class AlreadyRevealed(TicketError):
    code: ClassVar[str] = "already_revealed"
    commitment_hex: str

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return f"AlreadyRevealed: commitment={self.commitment_hex}"


__all__ = [
    "TicketError",
    "DuplicateTier",
    "TierNotFound",
    "TierInactive",
    "CapacityExceeded",
    "InvalidParameters",
    "Unauthorized",
    "AlreadyInitialized",
    "NotInitialized",
    "TicketNotFound",
    "NotTicketOwner",
    "RefundWindowClosed",
    "TicketInvalidated",
    "NonTransferable",
    "LengthMismatch",
    "BadReveal",
    "RevealTooEarly",
    "RevealTooLate",
    "AlreadyRevealed",
]
