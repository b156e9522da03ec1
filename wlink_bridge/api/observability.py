# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Observability API — Health check and metrics.
"""

from __future__ import annotations

from fastapi import APIRouter

from wlink_bridge.core.context import get_bridge_context
from wlink_bridge.core.metrics import bridge_metrics

router = APIRouter(tags=["observability"])

VERSION = "0.1.0"


@router.get("/health")
async def health_check():
    """Service health with configuration status."""
    ctx = get_bridge_context()
    return {
        "status": "ok",
        "version": VERSION,
        "shared_secret": "configured" if ctx.decryptor.configured else "missing",
        "metrics": bridge_metrics.snapshot(),
    }
