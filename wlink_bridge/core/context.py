# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Bridge Context — Singleton that holds the long-lived service components.

Initialized at startup, read by API routes and dependencies.
"""

from __future__ import annotations

from typing import Optional

from wlink_bridge.core.config import BridgeSettings
from wlink_bridge.runtime.evolution_client import EvolutionClient
from wlink_bridge.security.context_decryptor import ContextDecryptor, TenantLookup
from wlink_bridge.storage.directory import TenantDirectory


class BridgeContext:
    """
    Holds all runtime references for the service.
    Created once at startup, used by all API handlers.
    """

    def __init__(
        self,
        settings: BridgeSettings,
        gateway: Optional[EvolutionClient] = None,
        directory: Optional[TenantLookup] = None,
    ) -> None:
        self.settings = settings
        self.gateway = gateway or EvolutionClient(
            base_url=settings.EVOLUTION_API_URL,
            timeout=settings.GATEWAY_TIMEOUT,
        )
        self.directory = directory if directory is not None else TenantDirectory()
        self.decryptor = ContextDecryptor(
            secret=settings.GHL_SHARED_SECRET,
            directory=self.directory,
            lookup_timeout=settings.TENANT_LOOKUP_TIMEOUT,
        )

    async def close(self) -> None:
        await self.gateway.close()


# ── Global singleton ────────────────────────────────────────

_ctx: Optional[BridgeContext] = None


def init_bridge_context(
    settings: BridgeSettings,
    gateway: Optional[EvolutionClient] = None,
    directory: Optional[TenantLookup] = None,
) -> BridgeContext:
    global _ctx
    _ctx = BridgeContext(settings, gateway=gateway, directory=directory)
    return _ctx


def get_bridge_context() -> BridgeContext:
    if _ctx is None:
        raise RuntimeError("BridgeContext not initialized. Call init_bridge_context() first.")
    return _ctx


def reset_bridge_context() -> None:
    global _ctx
    _ctx = None
