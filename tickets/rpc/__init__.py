"""
tickets.rpc
===========

FastAPI router exposing sale reads and commit–reveal tooling.

    from fastapi import FastAPI
    from tickets.rpc import mount_tickets_rpc

    app = FastAPI()
    mount_tickets_rpc(app, sale)
"""

from __future__ import annotations

from .mount import get_router, mount_tickets_rpc  # noqa: F401

__all__ = ["get_router", "mount_tickets_rpc"]
