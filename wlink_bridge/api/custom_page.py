# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Custom Page API — The iframe page and the context decryption endpoint.

These routes are loaded cross-origin inside the host CRM's iframe and
always carry permissive CORS headers.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from pydantic import BaseModel

from wlink_bridge.api.encoding import EncodedJSONResponse
from wlink_bridge.api.errors import error_response, to_api_error
from wlink_bridge.core.context import get_bridge_context
from wlink_bridge.core.errors import AuthorizationError, BridgeError
from wlink_bridge.security.context_decryptor import MSG_MALFORMED
from wlink_bridge.web.page import render_custom_page

logger = logging.getLogger("wlink.api.custom_page")

router = APIRouter(prefix="/app", tags=["custom-page"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, DELETE, PATCH, OPTIONS",
    "Access-Control-Allow-Headers": "*",
}


class DecryptRequest(BaseModel):
    # Left untyped so that non-string input reaches the decryptor and is
    # rejected as an invalid context rather than a validation error.
    encryptedData: Any = None


def _page() -> HTMLResponse:
    return HTMLResponse(render_custom_page(), headers=CORS_HEADERS)


@router.get("", response_class=HTMLResponse)
async def get_root():
    """Alias of /app/whatsapp."""
    return _page()


@router.get("/custom-page", response_class=HTMLResponse)
async def get_custom_page_alias():
    """Alias of /app/whatsapp."""
    return _page()


@router.get("/whatsapp", response_class=HTMLResponse)
async def get_custom_page():
    """Serve the WhatsApp instance manager page."""
    return _page()


@router.post("/decrypt-user-data")
async def decrypt_user_data(req: DecryptRequest, request: Request):
    """Decrypt the host CRM user context and report the tenant's install status."""
    trace_id = getattr(request.state, "trace_id", None)
    ctx = get_bridge_context()

    try:
        opened = await ctx.decryptor.open(req.encryptedData)
    except BridgeError as e:
        return error_response(to_api_error(e, trace_id=trace_id), headers=CORS_HEADERS)
    except Exception as e:
        logger.error("Error decrypting user data: %s", type(e).__name__, extra={"trace_id": trace_id})
        return error_response(
            to_api_error(AuthorizationError(MSG_MALFORMED), trace_id=trace_id),
            headers=CORS_HEADERS,
        )

    summary = opened.tenant_summary
    return EncodedJSONResponse(
        {
            "success": True,
            "locationId": opened.location_id,
            "userData": opened.raw_context,
            "user": summary.to_dict() if summary else None,
        },
        headers=CORS_HEADERS,
    )
