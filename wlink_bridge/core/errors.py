# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Domain Errors — Failure taxonomy shared by the decryptor, storage and gateway.

These carry no HTTP knowledge; api.errors maps them onto status codes.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class BridgeError(Exception):
    """Base class for all WLink Bridge domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(BridgeError):
    """Operator misconfiguration, e.g. the shared secret is missing."""


class AuthorizationError(BridgeError):
    """The caller's context could not be authenticated."""


class TenantScopeError(BridgeError):
    """A client-supplied location differs from the authenticated one."""


class DependencyLookupError(BridgeError):
    """An optional enrichment lookup (tenant directory) failed."""


class InstanceNotFoundError(BridgeError):
    def __init__(self, instance_id: Any):
        super().__init__(f"Instance '{instance_id}' not found")


class InstanceConflictError(BridgeError):
    """The instance cannot be created in the current tenant state."""


class GatewayError(BridgeError):
    """The WhatsApp gateway failed or answered with an unusable payload."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        super().__init__(message, details)
