# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Shared test fixtures for all WLink Bridge tests.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from wlink_bridge.core.config import BridgeSettings
from wlink_bridge.core.context import init_bridge_context, reset_bridge_context
from wlink_bridge.core.metrics import bridge_metrics
from wlink_bridge.runtime.evolution_client import QRPayload
from wlink_bridge.security import cryptojs
from wlink_bridge.storage.database import (
    Base,
    close_db,
    get_session_factory,
    override_engine_for_test,
)
from wlink_bridge.storage.directory import TenantDirectory
from wlink_bridge.storage.models import TenantRecord

TEST_SECRET = "s3cr3t"


@pytest.fixture(autouse=True)
def clean_metrics():
    bridge_metrics.reset()
    yield


@pytest.fixture
def test_settings() -> BridgeSettings:
    return BridgeSettings(
        _env_file=None,
        GHL_SHARED_SECRET=TEST_SECRET,
        DATABASE_URL="sqlite+aiosqlite://",
        TENANT_LOOKUP_TIMEOUT=0.5,
        MAX_INSTANCES_PER_LOCATION=3,
    )


@pytest.fixture
def encrypt_context():
    """Build a host-style encrypted context, as CryptoJS would."""

    def _encrypt(payload=None, secret: str = TEST_SECRET, **fields) -> str:
        if payload is None:
            payload = {"activeLocation": "loc_123", "firstName": "Ana", **fields}
        text = payload if isinstance(payload, str) else json.dumps(payload)
        return cryptojs.encrypt(text, secret)

    return _encrypt


@pytest_asyncio.fixture
async def db_engine():
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    override_engine_for_test(engine)
    yield engine
    await close_db()


@pytest.fixture
def seed_tenant(db_engine):
    """Insert a committed TenantRecord, as the OAuth install flow would."""

    async def _seed(location_id: str, access_token=None, refresh_token=None):
        async with get_session_factory()() as session:
            session.add(TenantRecord(
                location_id=location_id,
                access_token=access_token,
                refresh_token=refresh_token,
            ))
            await session.commit()

    return _seed


@pytest_asyncio.fixture
async def db_session(db_engine):
    async with get_session_factory()() as session:
        yield session
        await session.rollback()


@pytest.fixture
def mock_gateway():
    """Gateway double with the EvolutionClient surface."""
    gw = MagicMock()
    gw.connection_state = AsyncMock(return_value="notAuthorized")
    gw.connect = AsyncMock(return_value=QRPayload(type="qr", data="data:image/png;base64,iVBORw0KGgo="))
    gw.logout = AsyncMock(return_value=None)
    gw.delete = AsyncMock(return_value=None)
    gw.close = AsyncMock(return_value=None)
    return gw


@pytest.fixture
def bridge(db_engine, test_settings, mock_gateway):
    """Initialize BridgeContext the same way main.py startup does."""
    ctx = init_bridge_context(test_settings, gateway=mock_gateway, directory=TenantDirectory())
    yield ctx
    reset_bridge_context()


@pytest_asyncio.fixture
async def client(bridge):
    from wlink_bridge.main import app

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
