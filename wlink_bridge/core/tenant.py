# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Tenant Context — Identity recovered from the host CRM's encrypted payload.

A TenantContext is rebuilt from the ciphertext on every request and is never
persisted. Every instance operation is scoped to its location_id.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

PROFILE_KEYS = (
    "userId",
    "companyId",
    "firstName",
    "lastName",
    "fullName",
    "userName",
    "email",
    "role",
    "type",
    "app",
)


@dataclass(frozen=True)
class TenantContext:
    """Immutable tenant identity for request-scoped operations."""

    location_id: str
    profile: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.location_id, str) or not self.location_id:
            raise ValueError("location_id must be a non-empty string")

    @classmethod
    def from_payload(cls, location_id: str, payload: Dict[str, Any]) -> "TenantContext":
        profile = {k: payload[k] for k in PROFILE_KEYS if k in payload}
        # Some host versions nest branding under the company record
        company = payload.get("company")
        if "app" not in profile and isinstance(company, dict) and isinstance(company.get("app"), dict):
            profile["app"] = company["app"]
        return cls(location_id=location_id, profile=profile, raw=dict(payload))

    def __repr__(self) -> str:
        return f"TenantContext(location={self.location_id!r})"


@dataclass(frozen=True)
class TenantSummary:
    """What the tenant directory knows about a location."""

    location_id: str
    has_tokens: bool

    def to_dict(self) -> Dict[str, Any]:
        return {"locationId": self.location_id, "hasTokens": self.has_tokens}


@dataclass(frozen=True)
class DecryptedContext:
    """Result of a successful context decryption."""

    context: TenantContext
    tenant_summary: Optional[TenantSummary] = None

    @property
    def location_id(self) -> str:
        return self.context.location_id

    @property
    def raw_context(self) -> Dict[str, Any]:
        return self.context.raw
