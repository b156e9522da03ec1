# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Context Decryptor — The tenant trust boundary.

Turns the opaque context string forwarded by the host CRM into a
TenantContext, or rejects it. Two independent stages:

  1. decrypt(blob) -> plaintext       (ConfigurationError / AuthorizationError)
  2. parse(plaintext) -> TenantContext (AuthorizationError)

open() adds a best-effort tenant directory lookup bounded by a timeout.
Nothing here ever logs the secret, the plaintext or the ciphertext.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Optional, Protocol

from wlink_bridge.core.errors import (
    AuthorizationError,
    ConfigurationError,
    DependencyLookupError,
)
from wlink_bridge.core.metrics import bridge_metrics
from wlink_bridge.core.tenant import DecryptedContext, TenantContext, TenantSummary
from wlink_bridge.security import cryptojs

logger = logging.getLogger("wlink.security.context")

MSG_SECRET_MISSING = "Shared secret not configured on the server."
MSG_DECRYPTION_FAILED = "Invalid GHL context: decryption failed."
MSG_MALFORMED = "Invalid or malformed GHL context"
MSG_NO_LOCATION = "No active location ID in user context"

LOCATION_KEYS = ("activeLocation", "activeLocationId")


class TenantLookup(Protocol):
    async def lookup(self, location_id: str) -> Optional[TenantSummary]: ...


class ContextDecryptor:
    """
    Decrypts host-supplied tenant context with a pre-shared passphrase.

    Usage:
        decryptor = ContextDecryptor(settings.GHL_SHARED_SECRET, directory)
        opened = await decryptor.open(encrypted_data)
        opened.location_id
    """

    def __init__(
        self,
        secret: str,
        directory: Optional[TenantLookup] = None,
        lookup_timeout: float = 2.0,
    ) -> None:
        self._secret = secret or ""
        self._directory = directory
        self._lookup_timeout = lookup_timeout

    @property
    def configured(self) -> bool:
        return bool(self._secret)

    # ── Stage 1: decrypt ──────────────────────────────────────

    def decrypt(self, blob: Any) -> str:
        """Decrypt the blob to non-empty UTF-8 plaintext."""
        if not self._secret:
            logger.error("GHL_SHARED_SECRET not configured on the server.")
            bridge_metrics.inc("context_rejected:configuration")
            raise ConfigurationError(MSG_SECRET_MISSING)

        plaintext = cryptojs.decrypt(blob, self._secret) if isinstance(blob, str) else ""
        if not plaintext:
            logger.warning(
                "GHL context decryption failed. Decrypted content is empty. "
                "Check your GHL_SHARED_SECRET."
            )
            bridge_metrics.inc("context_rejected:decryption")
            raise AuthorizationError(MSG_DECRYPTION_FAILED)
        return plaintext

    # ── Stage 2: parse ────────────────────────────────────────

    def parse(self, plaintext: str) -> TenantContext:
        """Parse decrypted text into a TenantContext."""
        try:
            payload = json.loads(plaintext, parse_constant=_reject_constant)
        except (TypeError, ValueError):
            logger.warning("Decrypted GHL context is not valid JSON.")
            bridge_metrics.inc("context_rejected:malformed")
            raise AuthorizationError(MSG_MALFORMED) from None

        if not isinstance(payload, dict):
            logger.warning(
                "Decrypted GHL context is %s, expected an object.", type(payload).__name__
            )
            bridge_metrics.inc("context_rejected:malformed")
            raise AuthorizationError(MSG_MALFORMED)

        location_id = _extract_location_id(payload)
        if not location_id:
            logger.warning(
                "No activeLocation property found in decrypted GHL payload (keys=%s).",
                sorted(payload.keys()),
            )
            bridge_metrics.inc("context_rejected:no_location")
            raise AuthorizationError(MSG_NO_LOCATION)

        return TenantContext.from_payload(location_id, payload)

    # ── Composition ───────────────────────────────────────────

    def resolve(self, blob: Any) -> DecryptedContext:
        """Both stages, without the directory lookup."""
        context = self.parse(self.decrypt(blob))
        bridge_metrics.inc("context_resolved")
        return DecryptedContext(context=context)

    async def open(self, blob: Any) -> DecryptedContext:
        """Both stages plus the best-effort tenant directory lookup."""
        context = self.parse(self.decrypt(blob))
        logger.info(
            "Decrypted user data received (profile fields: %s).",
            ", ".join(sorted(context.profile)) or "none",
            extra={"location_id": context.location_id},
        )
        bridge_metrics.inc("context_opened")

        summary = await self._lookup(context.location_id)
        return DecryptedContext(context=context, tenant_summary=summary)

    async def _lookup(self, location_id: str) -> Optional[TenantSummary]:
        if self._directory is None:
            return None
        try:
            summary = await asyncio.wait_for(
                self._directory.lookup(location_id), timeout=self._lookup_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                "Tenant directory lookup timed out after %.1fs",
                self._lookup_timeout,
                extra={"location_id": location_id},
            )
            bridge_metrics.inc("tenant_lookup_failed:timeout")
            return None
        except DependencyLookupError as e:
            logger.warning(
                "Tenant directory lookup failed: %s", e.message,
                extra={"location_id": location_id},
            )
            bridge_metrics.inc("tenant_lookup_failed:error")
            return None
        except Exception as e:
            logger.warning(
                "Tenant directory lookup raised %s", type(e).__name__,
                extra={"location_id": location_id},
            )
            bridge_metrics.inc("tenant_lookup_failed:error")
            return None

        logger.info(
            "User found in DB: %s", summary.location_id if summary else "None",
            extra={"location_id": location_id},
        )
        return summary


def _reject_constant(token: str) -> Any:
    # NaN and Infinity are not JSON
    raise ValueError(f"Invalid JSON constant {token}")


def _extract_location_id(payload: dict) -> Optional[str]:
    for key in LOCATION_KEYS:
        value = payload.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None
