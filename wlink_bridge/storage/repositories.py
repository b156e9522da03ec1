# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Repository Layer — CRUD operations for tenant and instance tables.

Each repository takes an AsyncSession and provides typed access.
Tenant records are only read here; the OAuth install flow owns them.
Instance access is always filtered by location_id.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from wlink_bridge.core.states import STARTING
from wlink_bridge.storage.models import TenantRecord, Instance


# ── Tenant Repository ───────────────────────────────────────

class TenantRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, location_id: str) -> Optional[TenantRecord]:
        """Get tenant by location ID."""
        return await self.db.get(TenantRecord, location_id)


# ── Instance Repository ─────────────────────────────────────

class InstanceRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        location_id: str,
        instance_name: str,
        api_token: str,
        instance_id: Optional[str] = None,
        custom_name: Optional[str] = None,
        state: str = STARTING,
    ) -> Instance:
        instance = Instance(
            location_id=location_id,
            instance_name=instance_name,
            instance_id=instance_id,
            api_token=api_token,
            custom_name=custom_name,
            state=state,
        )
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def get(self, location_id: str, instance_pk: int) -> Optional[Instance]:
        """Get an instance by primary key within a location."""
        result = await self.db.execute(
            select(Instance).where(
                Instance.id == instance_pk,
                Instance.location_id == location_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_by_name(self, location_id: str, instance_name: str) -> Optional[Instance]:
        result = await self.db.execute(
            select(Instance).where(
                Instance.location_id == location_id,
                Instance.instance_name == instance_name,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_location(self, location_id: str) -> List[Instance]:
        result = await self.db.execute(
            select(Instance)
            .where(Instance.location_id == location_id)
            .order_by(Instance.created_at, Instance.id)
        )
        return list(result.scalars().all())

    async def count_for_location(self, location_id: str) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Instance).where(Instance.location_id == location_id)
        )
        return result.scalar_one()

    async def set_state(self, instance: Instance, state: str) -> Instance:
        instance.state = state
        instance.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return instance

    async def rename(self, instance: Instance, custom_name: Optional[str]) -> Instance:
        instance.custom_name = custom_name
        instance.updated_at = datetime.now(timezone.utc)
        await self.db.flush()
        return instance

    async def delete(self, instance: Instance) -> None:
        await self.db.execute(
            delete(Instance).where(
                Instance.id == instance.id,
                Instance.location_id == instance.location_id,
            )
        )
