# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
API Dependencies — FastAPI dependency injection.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header

from wlink_bridge.core.context import get_bridge_context
from wlink_bridge.core.errors import AuthorizationError
from wlink_bridge.core.tenant import TenantContext

CONTEXT_HEADER = "X-GHL-Context"


async def get_tenant_context(
    x_ghl_context: Optional[str] = Header(None, alias=CONTEXT_HEADER),
) -> TenantContext:
    """
    Re-derive the caller's tenant from the encrypted host context.

    Headers:
      - X-GHL-Context: the ciphertext the host CRM handed to the page (required)

    The location used by every instance operation comes from here and only
    from here; location ids in request bodies are never trusted.
    """
    if not x_ghl_context:
        raise AuthorizationError("Missing GHL context")

    ctx = get_bridge_context()
    return ctx.decryptor.resolve(x_ghl_context).context
