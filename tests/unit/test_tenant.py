# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.
"""Unit tests for TenantContext and friends."""

import dataclasses

import pytest

from wlink_bridge.core.tenant import DecryptedContext, TenantContext, TenantSummary


class TestTenantContext:
    def test_create(self):
        ctx = TenantContext(location_id="loc_001")
        assert ctx.location_id == "loc_001"
        assert ctx.profile == {}
        assert ctx.raw == {}

    @pytest.mark.parametrize("bad", ["", None, 123])
    def test_invalid_location_raises(self, bad):
        with pytest.raises(ValueError, match="non-empty string"):
            TenantContext(location_id=bad)

    def test_immutable(self):
        ctx = TenantContext(location_id="loc_001")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ctx.location_id = "loc_002"

    def test_from_payload_profile(self):
        payload = {
            "activeLocation": "loc_1",
            "userId": "u1",
            "firstName": "Ana",
            "email": "ana@example.com",
            "app": {"name": "WLink"},
            "somethingElse": True,
        }
        ctx = TenantContext.from_payload("loc_1", payload)
        assert ctx.profile == {
            "userId": "u1",
            "firstName": "Ana",
            "email": "ana@example.com",
            "app": {"name": "WLink"},
        }
        assert ctx.raw == payload

    def test_from_payload_company_app_branding(self):
        payload = {"activeLocation": "loc_1", "company": {"app": {"logoUrl": "https://x/logo.png"}}}
        ctx = TenantContext.from_payload("loc_1", payload)
        assert ctx.profile["app"] == {"logoUrl": "https://x/logo.png"}

    def test_repr_hides_profile(self):
        ctx = TenantContext.from_payload("loc_1", {"email": "secret@example.com"})
        assert "loc_1" in repr(ctx)
        assert "secret@example.com" not in repr(ctx)


class TestTenantSummary:
    def test_to_dict(self):
        assert TenantSummary("loc_1", True).to_dict() == {"locationId": "loc_1", "hasTokens": True}


class TestDecryptedContext:
    def test_accessors(self):
        ctx = TenantContext.from_payload("loc_1", {"activeLocation": "loc_1"})
        opened = DecryptedContext(context=ctx)
        assert opened.location_id == "loc_1"
        assert opened.raw_context == {"activeLocation": "loc_1"}
        assert opened.tenant_summary is None
