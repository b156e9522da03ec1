# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
API Error Handling — Unified error structure.

Domain errors (core.errors) are translated here into HTTP status codes.
No stack trace or internal exception text reaches the client.
"""

from __future__ import annotations

import uuid
from typing import Any, Dict, Mapping, Optional

from fastapi import Request
from fastapi.responses import JSONResponse

from wlink_bridge.core.errors import (
    AuthorizationError,
    BridgeError,
    ConfigurationError,
    GatewayError,
    InstanceConflictError,
    InstanceNotFoundError,
    TenantScopeError,
)


class APIError(Exception):
    """Base API error with structured response."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Dict[str, Any]] = None,
        trace_id: Optional[str] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.trace_id = trace_id or str(uuid.uuid4())
        super().__init__(message)


# Domain error → (code, HTTP status)
_ERROR_MAP = {
    ConfigurationError: ("CONFIGURATION_ERROR", 400),
    AuthorizationError: ("UNAUTHORIZED", 401),
    TenantScopeError: ("TENANT_MISMATCH", 403),
    InstanceNotFoundError: ("INSTANCE_NOT_FOUND", 404),
    InstanceConflictError: ("INSTANCE_CONFLICT", 409),
    GatewayError: ("GATEWAY_ERROR", 502),
}


def to_api_error(exc: BridgeError, trace_id: Optional[str] = None) -> APIError:
    """Translate a domain error into an APIError."""
    for cls in type(exc).__mro__:
        if cls in _ERROR_MAP:
            code, status = _ERROR_MAP[cls]
            break
    else:
        code, status = "INTERNAL_ERROR", 500
    return APIError(
        code=code,
        message=exc.message,
        status_code=status,
        details=exc.details,
        trace_id=trace_id,
    )


def _trace_id(request: Request) -> Optional[str]:
    return getattr(request.state, "trace_id", None)


def error_response(exc: APIError, headers: Optional[Mapping[str, str]] = None) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "code": exc.code,
            "message": exc.message,
            "trace_id": exc.trace_id,
            "details": exc.details,
        },
        headers=dict(headers) if headers else None,
    )


async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
    """Global exception handler for APIError."""
    return error_response(exc)


async def bridge_error_handler(request: Request, exc: BridgeError) -> JSONResponse:
    """Global exception handler for domain errors."""
    return error_response(to_api_error(exc, trace_id=_trace_id(request)))
