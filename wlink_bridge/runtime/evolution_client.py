# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Evolution API HTTP Client — Relay to the WhatsApp gateway.

Every call is made with the instance's own API token (``apikey`` header);
the bridge holds no global gateway credential.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict
from urllib.parse import quote

import httpx

from wlink_bridge.core.errors import GatewayError, InstanceConflictError
from wlink_bridge.core.metrics import bridge_metrics
from wlink_bridge.core.states import AUTHORIZED, normalize_state

logger = logging.getLogger("wlink.evolution_client")


@dataclass(frozen=True)
class QRPayload:
    """QR image (``type='qr'``, base64 PNG) or raw pairing text (``type='code'``)."""

    type: str
    data: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.type, "data": self.data}


class EvolutionClient:
    """
    Evolution API client.

    Usage:
        client = EvolutionClient("http://localhost:8080")
        state = await client.connection_state("sales@example.com", token)
    """

    def __init__(self, base_url: str = "http://localhost:8080", timeout: float = 15.0) -> None:
        self._base_url = base_url
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout)

    async def _request(self, method: str, path: str, token: str) -> Dict[str, Any]:
        start = time.time()
        try:
            resp = await self._client.request(method, path, headers={"apikey": token})
        except httpx.HTTPError as e:
            bridge_metrics.inc("gateway_error:transport")
            logger.warning("Gateway %s %s failed: %s", method, path, type(e).__name__)
            raise GatewayError(f"WhatsApp gateway unreachable ({type(e).__name__})") from e
        finally:
            bridge_metrics.observe("gateway_latency", (time.time() - start) * 1000)

        if resp.status_code >= 400:
            bridge_metrics.inc(f"gateway_error:{resp.status_code}")
            logger.warning("Gateway %s %s → %d", method, path, resp.status_code)
            raise GatewayError(
                f"WhatsApp gateway answered {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            body = resp.json()
        except ValueError:
            return {}
        return body if isinstance(body, dict) else {"data": body}

    @staticmethod
    def _path(action: str, instance_name: str) -> str:
        return f"/instance/{action}/{quote(instance_name, safe='')}"

    # ── Instance State ────────────────────────────────────────

    async def connection_state(self, instance_name: str, token: str) -> str:
        """Current connection state, normalized to the instance state vocabulary."""
        body = await self._request("GET", self._path("connectionState", instance_name), token)
        instance = body.get("instance")
        raw = instance.get("state") if isinstance(instance, dict) else body.get("state")
        return normalize_state(raw)

    async def connect(self, instance_name: str, token: str) -> QRPayload:
        """Start pairing and return the QR image or pairing text."""
        body = await self._request("GET", self._path("connect", instance_name), token)

        if body.get("base64"):
            return QRPayload(type="qr", data=body["base64"])
        if body.get("code"):
            return QRPayload(type="code", data=body["code"])
        if body.get("pairingCode"):
            return QRPayload(type="code", data=body["pairingCode"])

        instance = body.get("instance")
        if isinstance(instance, dict) and normalize_state(instance.get("state")) == AUTHORIZED:
            raise InstanceConflictError("Instance is already connected")
        raise GatewayError("Unexpected QR response from WhatsApp gateway")

    # ── Lifecycle ─────────────────────────────────────────────

    async def logout(self, instance_name: str, token: str) -> None:
        """Close the WhatsApp session; a new QR scan is needed afterwards."""
        await self._request("DELETE", self._path("logout", instance_name), token)

    async def delete(self, instance_name: str, token: str) -> None:
        """Remove the instance from the gateway."""
        await self._request("DELETE", self._path("delete", instance_name), token)

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def health_check(self) -> bool:
        """Check if the gateway is reachable."""
        try:
            resp = await self._client.get("/")
            return resp.status_code < 500
        except httpx.HTTPError:
            return False
