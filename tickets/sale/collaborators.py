"""
Narrow collaborator interfaces used by the sale orchestration.

- Authorizer        : `require_authorized(identity)`; fails the whole operation
                      when the caller is not the claimed identity.
- PaymentTransfer   : `transfer(token, from_, to, amount)`; the ledger itself is
                      external, only the protocol lives here.
- SoulboundRegistry : non-transferable token ownership (mint/burn/owner_of/
                      balance) kept in the sale's KeyValue store.

Identities are opaque strings (account addresses, user ids).
"""

from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional, Protocol, Set

from ..errors import InvalidParameters, NonTransferable, TicketNotFound, Unauthorized
from ..store import KeyValue
from ..store.kv import Buckets

logger = logging.getLogger(__name__)


# --- Authorization -------------------------------------------------------------


class Authorizer(Protocol):
    def require_authorized(self, identity: str) -> None:  # pragma: no cover - protocol
        """Raise Unauthorized unless `identity` authenticated the current call."""
        ...


class SignerSet:
    """
    Authorizer backed by the set of identities that signed the current call.

    A host (RPC gateway, test) adds the verified signers before invoking the
    sale and clears them afterwards:

        signers.sign("alice")
        sale.purchase("alice", "USDC", "GA")
        signers.clear()
    """

    def __init__(self, signers: Optional[Iterable[str]] = None) -> None:
        self._signers: Set[str] = set(signers or ())
        self._lock = threading.Lock()

    def sign(self, identity: str) -> None:
        with self._lock:
            self._signers.add(identity)

    def revoke(self, identity: str) -> None:
        with self._lock:
            self._signers.discard(identity)

    def clear(self) -> None:
        with self._lock:
            self._signers.clear()

    def require_authorized(self, identity: str) -> None:
        with self._lock:
            ok = identity in self._signers
        if not ok:
            raise Unauthorized(identity=identity, reason="missing signature")


# --- Payment -------------------------------------------------------------------


class PaymentTransfer(Protocol):
    def transfer(self, token: str, from_: str, to: str, amount: int) -> None:  # pragma: no cover - protocol
        """Move `amount` of `token` from `from_` to `to`, or raise."""
        ...


# --- Soulbound ownership -------------------------------------------------------


class SoulboundRegistry:
    """
    Non-transferable token bookkeeping.

    Tokens can only be minted to an owner and burned; `transfer` and `approve`
    always raise NonTransferable.
    """

    def __init__(self, store: KeyValue) -> None:
        self.store = store
        self.buckets = Buckets(store)

    def mint(self, to: str, token_id: int) -> None:
        if not to:
            raise InvalidParameters("owner identity must be non-empty")
        with self.store.transaction():
            if self.buckets.get_owner(token_id) is not None:
                raise InvalidParameters(f"token {token_id} already minted")
            self.buckets.put_owner(token_id, to)
            self.buckets.put_balance(to, self.buckets.get_balance(to) + 1)
        logger.debug("soulbound mint token=%d owner=%s", token_id, to)

    def burn(self, token_id: int) -> None:
        with self.store.transaction():
            owner = self.owner_of(token_id)
            self.buckets.del_owner(token_id)
            self.buckets.put_balance(owner, self.buckets.get_balance(owner) - 1)
        logger.debug("soulbound burn token=%d owner=%s", token_id, owner)

    def owner_of(self, token_id: int) -> str:
        owner = self.buckets.get_owner(token_id)
        if owner is None:
            raise TicketNotFound(token_id=token_id)
        return owner

    def balance(self, owner: str) -> int:
        return self.buckets.get_balance(owner)

    def transfer(self, from_: str, to: str, token_id: int) -> None:
        raise NonTransferable(operation="transfer")

    def approve(self, owner: str, spender: str, token_id: int) -> None:
        raise NonTransferable(operation="approve")


__all__ = [
    "Authorizer",
    "SignerSet",
    "PaymentTransfer",
    "SoulboundRegistry",
]
