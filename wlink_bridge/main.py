# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
WLink Bridge Application Entry Point.

FastAPI app with lifespan, middleware, error handlers and all routers.

Entry point: uvicorn wlink_bridge.main:app --host 0.0.0.0 --port 3000
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wlink_bridge.core.config import settings
from wlink_bridge.core.context import init_bridge_context
from wlink_bridge.core.errors import BridgeError
from wlink_bridge.core.logging import setup_logging
from wlink_bridge.api.errors import APIError, api_error_handler, bridge_error_handler
from wlink_bridge.api.middleware import TraceMiddleware
from wlink_bridge.api.custom_page import router as custom_page_router
from wlink_bridge.api.instances import router as instances_router
from wlink_bridge.api.observability import router as observability_router, VERSION
from wlink_bridge.storage.database import init_db, close_db

logger = logging.getLogger("wlink.main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup/shutdown of service resources."""
    # Startup
    setup_logging(settings.LOG_LEVEL)
    ctx = init_bridge_context(settings)
    if not ctx.decryptor.configured:
        logger.error("GHL_SHARED_SECRET is not set; every context decryption will fail.")
    await init_db()
    logger.info(
        "[WLink] Bridge ready env=%s gateway=%s",
        settings.APP_ENV, settings.EVOLUTION_API_URL,
    )
    yield
    # Shutdown
    await ctx.close()
    await close_db()
    logger.info("[WLink] Shutdown complete")


app = FastAPI(
    title="WLink Bridge",
    description="WhatsApp instance manager for CRM custom pages",
    version=VERSION,
    lifespan=lifespan,
)

# ── Middleware ───────────────────────────────────────────────
app.add_middleware(TraceMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "HEAD", "PUT", "PATCH", "POST", "DELETE"],
    allow_headers=["*"],
)

# ── Error Handlers ──────────────────────────────────────────
app.add_exception_handler(APIError, api_error_handler)
app.add_exception_handler(BridgeError, bridge_error_handler)

# ── Routes ──────────────────────────────────────────────────
app.include_router(custom_page_router)
app.include_router(instances_router, prefix="/api")
app.include_router(observability_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
