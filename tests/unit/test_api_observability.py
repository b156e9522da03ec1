# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.
"""Tests for the health endpoint and error translation."""

import pytest

from wlink_bridge.api.errors import to_api_error
from wlink_bridge.core.errors import (
    AuthorizationError,
    BridgeError,
    ConfigurationError,
    DependencyLookupError,
    GatewayError,
    InstanceConflictError,
    InstanceNotFoundError,
    TenantScopeError,
)


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        resp = await client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["shared_secret"] == "configured"
        assert "counters" in data["metrics"]

    @pytest.mark.asyncio
    async def test_health_counts_statuses(self, client):
        await client.get("/api/instances")
        resp = await client.get("/health")
        assert resp.json()["metrics"]["counters"]["http_status:401"] == 1


class TestErrorTranslation:
    @pytest.mark.parametrize("exc,code,status", [
        (ConfigurationError("x"), "CONFIGURATION_ERROR", 400),
        (AuthorizationError("x"), "UNAUTHORIZED", 401),
        (TenantScopeError("x"), "TENANT_MISMATCH", 403),
        (InstanceNotFoundError(7), "INSTANCE_NOT_FOUND", 404),
        (InstanceConflictError("x"), "INSTANCE_CONFLICT", 409),
        (GatewayError("x", status_code=503), "GATEWAY_ERROR", 502),
        (DependencyLookupError("x"), "INTERNAL_ERROR", 500),
        (BridgeError("x"), "INTERNAL_ERROR", 500),
    ])
    def test_mapping(self, exc, code, status):
        err = to_api_error(exc, trace_id="t1")
        assert (err.code, err.status_code, err.trace_id) == (code, status, "t1")

    def test_not_found_message(self):
        assert to_api_error(InstanceNotFoundError(7)).message == "Instance '7' not found"
