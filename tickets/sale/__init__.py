"""
tickets.sale
============

Sale lifecycle (`TicketSale`) and its collaborator interfaces: authorization,
payment transfer and soulbound ownership.
"""

from __future__ import annotations

from .collaborators import Authorizer, PaymentTransfer, SignerSet, SoulboundRegistry  # noqa: F401
from .service import TicketSale  # noqa: F401

__all__ = [
    "TicketSale",
    "Authorizer",
    "SignerSet",
    "PaymentTransfer",
    "SoulboundRegistry",
]
