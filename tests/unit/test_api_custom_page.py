# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.
"""Tests for the iframe page routes and /app/decrypt-user-data."""

import pytest

from wlink_bridge.core.context import init_bridge_context
from wlink_bridge.storage.directory import TenantDirectory

DECRYPT_URL = "/app/decrypt-user-data"


class TestPageRoutes:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/app", "/app/custom-page", "/app/whatsapp"])
    async def test_serves_html_with_cors(self, client, path):
        resp = await client.get(path)
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/html")
        assert resp.headers["access-control-allow-origin"] == "*"
        assert "decrypt-user-data" in resp.text


class TestDecryptUserData:
    @pytest.mark.asyncio
    async def test_success_unknown_tenant(self, client, encrypt_context):
        resp = await client.post(DECRYPT_URL, json={"encryptedData": encrypt_context()})
        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["locationId"] == "loc_123"
        assert data["userData"]["firstName"] == "Ana"
        assert data["user"] is None
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_success_installed_tenant(self, client, encrypt_context, seed_tenant):
        await seed_tenant("loc_123", access_token="at", refresh_token="rt")

        resp = await client.post(DECRYPT_URL, json={"encryptedData": encrypt_context()})
        assert resp.status_code == 200
        assert resp.json()["user"] == {"locationId": "loc_123", "hasTokens": True}

    @pytest.mark.asyncio
    async def test_active_location_id_key(self, client, encrypt_context):
        blob = encrypt_context({"activeLocationId": "loc_alt", "userId": "u1"})
        resp = await client.post(DECRYPT_URL, json={"encryptedData": blob})
        assert resp.status_code == 200
        assert resp.json()["locationId"] == "loc_alt"

    @pytest.mark.asyncio
    async def test_large_integers_survive(self, client, encrypt_context):
        blob = encrypt_context({"activeLocation": "loc_123", "userId": 9007199254740993})
        resp = await client.post(DECRYPT_URL, json={"encryptedData": blob})
        assert resp.json()["userData"]["userId"] == "9007199254740993"

    @pytest.mark.asyncio
    async def test_wrong_secret(self, client, encrypt_context):
        resp = await client.post(
            DECRYPT_URL, json={"encryptedData": encrypt_context(secret="wrong")}
        )
        assert resp.status_code == 401
        body = resp.json()
        assert body["code"] == "UNAUTHORIZED"
        assert body["message"] == "Invalid GHL context: decryption failed."
        assert body["trace_id"] == resp.headers["x-trace-id"]
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_no_location(self, client, encrypt_context):
        resp = await client.post(
            DECRYPT_URL, json={"encryptedData": encrypt_context({"userId": "u1"})}
        )
        assert resp.status_code == 401
        assert resp.json()["message"] == "No active location ID in user context"

    @pytest.mark.asyncio
    async def test_not_json(self, client, encrypt_context):
        resp = await client.post(
            DECRYPT_URL, json={"encryptedData": encrypt_context("not json at all")}
        )
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid or malformed GHL context"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("plaintext", [
        '{"activeLocation":"loc_123","x":NaN}',
        '{"activeLocation":"loc_123","x":-Infinity}',
    ])
    async def test_non_standard_json_constants(self, client, encrypt_context, plaintext):
        resp = await client.post(DECRYPT_URL, json={"encryptedData": encrypt_context(plaintext)})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid or malformed GHL context"
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_overflowing_number_is_null(self, client, encrypt_context):
        blob = encrypt_context('{"activeLocation":"loc_123","x":1e400}')
        resp = await client.post(DECRYPT_URL, json={"encryptedData": blob})
        assert resp.status_code == 200
        assert resp.json()["userData"]["x"] is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("value", [None, "", 12345, ["a"]])
    async def test_unusable_input(self, client, value):
        resp = await client.post(DECRYPT_URL, json={"encryptedData": value})
        assert resp.status_code == 401

    @pytest.mark.asyncio
    async def test_missing_secret(self, client, test_settings, mock_gateway, encrypt_context):
        init_bridge_context(
            test_settings.model_copy(update={"GHL_SHARED_SECRET": ""}),
            gateway=mock_gateway,
            directory=TenantDirectory(),
        )
        resp = await client.post(DECRYPT_URL, json={"encryptedData": encrypt_context()})
        assert resp.status_code == 400
        body = resp.json()
        assert body["code"] == "CONFIGURATION_ERROR"
        assert body["message"] == "Shared secret not configured on the server."
        assert resp.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_trace_id_propagated(self, client, encrypt_context):
        resp = await client.post(
            DECRYPT_URL,
            json={"encryptedData": encrypt_context()},
            headers={"X-Trace-Id": "trace-42"},
        )
        assert resp.headers["x-trace-id"] == "trace-42"
