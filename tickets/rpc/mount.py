"""
tickets.rpc.mount
-----------------

Mount REST endpoints for a ticket sale (prefix `/tickets` by default):

    GET  /summary                   → initialized flag, pricing config, tiers
    GET  /pricing                   → current PricingConfig
    GET  /tiers                     → all tiers keyed by tier key
    GET  /tiers/{tier_key}          → one tier
    GET  /tiers/{tier_key}/price    → price quote breakdown
    GET  /tickets/{token_id}        → ticket record
    GET  /tickets/{token_id}/valid  → {"token_id", "valid"}
    POST /commitments               → commit (or chained commit) for a seed/nonce
    POST /commitments/verify        → verify one reveal (optionally its window)
    POST /commitments/batch-verify  → all-or-nothing batch verification
    POST /commitments/batch-hash    → cohort anchor over seeds

Sale mutations (purchase, refund, admin) need an authenticated caller and are
not exposed here; hosts wire them behind their own auth layer.

Business errors map to an HTTP status with a `{"code", "message"}` body.
"""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, FastAPI, Path, Request
from fastapi.responses import JSONResponse

from ..commit_reveal import (
    batch_commitment_hash,
    batch_verify_reveals,
    commit,
    commit_with_chain,
    is_reveal_timely,
    verify_reveal,
)
from ..constants import U32_MAX
from ..errors import TicketError
from ..sale.service import TicketSale
from ..types.core import Reveal
from ..utils.bytes import from_hex, to_hex
from .models import (
    BatchHashReq,
    BatchVerifyReq,
    CommitReq,
    CommitView,
    ErrorView,
    HashView,
    QuoteView,
    RevealItem,
    VerifyReq,
    VerifyView,
)

logger = logging.getLogger(__name__)

DEFAULT_PREFIX = "/tickets"

_STATUS_BY_CODE: Dict[str, int] = {
    "tier_not_found": 404,
    "ticket_not_found": 404,
    "unauthorized": 403,
    "not_ticket_owner": 403,
    "duplicate_tier": 409,
    "already_initialized": 409,
    "not_initialized": 409,
    "tier_inactive": 409,
    "capacity_exceeded": 409,
    "refund_window_closed": 409,
    "ticket_invalidated": 409,
    "non_transferable": 409,
    "already_revealed": 409,
}


def status_for(err: TicketError) -> int:
    """HTTP status for a business error (400 for validation-type errors)."""
    return _STATUS_BY_CODE.get(err.code, 400)


async def ticket_error_handler(_request: Request, exc: TicketError) -> JSONResponse:
    logger.debug("tickets rpc error code=%s: %s", exc.code, exc)
    return JSONResponse(
        status_code=status_for(exc),
        content={"code": exc.code, "message": str(exc)},
    )


def _reveal(item: RevealItem) -> Reveal:
    return Reveal(seed=from_hex(item.seed), nonce=item.nonce, revealed_at=item.revealed_at)


def get_router(sale: TicketSale, *, prefix: str = DEFAULT_PREFIX) -> APIRouter:
    r = APIRouter(
        prefix=prefix,
        tags=["tickets"],
        responses={code: {"model": ErrorView} for code in (400, 403, 404, 409)},
    )

    # ----- sale reads ---------------------------------------------------------

    @r.get("/summary")
    def summary() -> dict:
        return sale.summary()

    @r.get("/pricing")
    def pricing() -> dict:
        return sale.engine.pricing_config().to_dict()

    @r.get("/tiers")
    def tiers() -> dict:
        return {k: t.to_dict() for k, t in sale.engine.tiers()}

    @r.get("/tiers/{tier_key}")
    def tier(tier_key: str) -> dict:
        return sale.engine.get_tier(tier_key).to_dict()

    @r.get("/tiers/{tier_key}/price", response_model=QuoteView)
    def tier_price(tier_key: str) -> dict:
        return sale.quote(tier_key).to_dict()

    @r.get("/tickets/{token_id}")
    def ticket(token_id: int = Path(..., ge=0, le=U32_MAX)) -> dict:
        return sale.get_ticket(token_id).to_dict()

    @r.get("/tickets/{token_id}/valid")
    def ticket_valid(token_id: int = Path(..., ge=0, le=U32_MAX)) -> dict:
        return {"token_id": token_id, "valid": sale.validate_ticket(token_id)}

    # ----- commit–reveal tooling ------------------------------------------------

    @r.post("/commitments", response_model=CommitView)
    def post_commit(req: CommitReq) -> dict:
        seed = from_hex(req.seed)
        if req.previous_hash is not None:
            h = commit_with_chain(seed, req.nonce, from_hex(req.previous_hash), req.committer)
            return {"hash": to_hex(h), "commitment": None}
        h, record = commit(seed, req.nonce, req.committer, sale.clock.now())
        return {"hash": to_hex(h), "commitment": record.to_dict()}

    @r.post("/commitments/verify", response_model=VerifyView)
    def post_verify(req: VerifyReq) -> dict:
        reveal = _reveal(req.reveal)
        valid = verify_reveal(from_hex(req.commitment), reveal)
        timely = None
        if req.min_time is not None and req.max_time is not None:
            timely = is_reveal_timely(reveal, req.min_time, req.max_time)
        return {"valid": valid, "timely": timely}

    @r.post("/commitments/batch-verify", response_model=VerifyView)
    def post_batch_verify(req: BatchVerifyReq) -> dict:
        ok = batch_verify_reveals(
            [from_hex(c) for c in req.commitments],
            [_reveal(x) for x in req.reveals],
        )
        return {"valid": ok}

    @r.post("/commitments/batch-hash", response_model=HashView)
    def post_batch_hash(req: BatchHashReq) -> dict:
        return {"hash": to_hex(batch_commitment_hash([from_hex(s) for s in req.seeds]))}

    return r


def mount_tickets_rpc(app: FastAPI, sale: TicketSale, *, prefix: str = DEFAULT_PREFIX) -> None:
    """
    Include the tickets router on `app` and install the TicketError handler.

    Parameters
    ----------
    app : FastAPI
        The main application instance.
    sale : TicketSale
        The sale whose state the endpoints read.
    prefix : str
        Prefix for REST endpoints (default: '/tickets').
    """
    app.include_router(get_router(sale, prefix=prefix))
    app.add_exception_handler(TicketError, ticket_error_handler)


__all__ = ["get_router", "mount_tickets_rpc", "status_for", "ticket_error_handler"]
