# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Tenant Directory — Read-only lookup of installed locations.

Used by the context decryptor to report whether OAuth tokens are on file.
Any storage failure surfaces as DependencyLookupError.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wlink_bridge.core.errors import DependencyLookupError
from wlink_bridge.core.tenant import TenantSummary
from wlink_bridge.storage.database import get_session_factory
from wlink_bridge.storage.repositories import TenantRepository


class TenantDirectory:
    def __init__(self, session_factory: Optional[async_sessionmaker[AsyncSession]] = None) -> None:
        self._session_factory = session_factory

    async def lookup(self, location_id: str) -> Optional[TenantSummary]:
        factory = self._session_factory or get_session_factory()
        try:
            async with factory() as session:
                record = await TenantRepository(session).get(location_id)
        except (SQLAlchemyError, OSError) as e:
            raise DependencyLookupError(f"{type(e).__name__} during tenant lookup") from e

        if record is None:
            return None
        return TenantSummary(location_id=record.location_id, has_tokens=record.has_tokens)
