# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
Instances API — Tenant-scoped relay to the WhatsApp gateway.

Every handler takes its location from get_tenant_context (the decrypted
X-GHL-Context of the current request). Instances of other locations are
invisible: they answer 404 exactly like missing ids.
"""

from __future__ import annotations

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from wlink_bridge.api.deps import get_tenant_context
from wlink_bridge.api.encoding import EncodedJSONResponse
from wlink_bridge.core.context import get_bridge_context
from wlink_bridge.core.errors import (
    GatewayError,
    InstanceConflictError,
    InstanceNotFoundError,
    TenantScopeError,
)
from wlink_bridge.core.states import NOT_AUTHORIZED, QR_CODE
from wlink_bridge.core.tenant import TenantContext
from wlink_bridge.runtime.evolution_client import EvolutionClient
from wlink_bridge.storage.database import get_db
from wlink_bridge.storage.models import Instance
from wlink_bridge.storage.repositories import InstanceRepository

logger = logging.getLogger("wlink.api.instances")

router = APIRouter(tags=["instances"])


class CreateInstanceRequest(BaseModel):
    instanceName: str = Field(..., min_length=1, max_length=256)
    token: str = Field(..., min_length=1)
    instanceId: Optional[str] = Field(default=None, max_length=128)
    customName: Optional[str] = Field(default=None, max_length=256)
    locationId: Optional[str] = None


class RenameInstanceRequest(BaseModel):
    customName: Optional[str] = Field(default=None, max_length=256)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


async def _get_owned(repo: InstanceRepository, tenant: TenantContext, instance_pk: int) -> Instance:
    instance = await repo.get(tenant.location_id, instance_pk)
    if instance is None:
        raise InstanceNotFoundError(instance_pk)
    return instance


async def _refresh_states(
    gateway: EvolutionClient,
    repo: InstanceRepository,
    instances: List[Instance],
) -> None:
    """Pull live states from the gateway; unreachable instances keep their stored state."""
    results = await asyncio.gather(
        *(gateway.connection_state(i.instance_name, i.api_token) for i in instances),
        return_exceptions=True,
    )
    for instance, result in zip(instances, results):
        if isinstance(result, GatewayError):
            logger.debug(
                "State refresh failed for %s: %s", instance.instance_name, result.message,
                extra={"location_id": instance.location_id},
            )
            continue
        if isinstance(result, BaseException):
            raise result
        if result != instance.state:
            logger.info(
                "Instance %s state %s → %s", instance.instance_name, instance.state, result,
                extra={"location_id": instance.location_id},
            )
            await repo.set_state(instance, result)


@router.get("/instances")
async def list_instances(
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """List the caller's instances with live gateway state."""
    ctx = get_bridge_context()
    repo = InstanceRepository(db)
    instances = await repo.list_for_location(tenant.location_id)
    await _refresh_states(ctx.gateway, repo, instances)
    return EncodedJSONResponse({"instances": [i.to_dict() for i in instances]})


@router.post("/instances", status_code=201)
async def create_instance(
    req: CreateInstanceRequest,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Register an existing gateway instance for the caller's location."""
    if req.locationId and req.locationId != tenant.location_id:
        logger.warning(
            "Rejected instance creation for foreign location",
            extra={"location_id": tenant.location_id},
        )
        raise TenantScopeError("locationId does not match the authenticated location")

    ctx = get_bridge_context()
    repo = InstanceRepository(db)
    instance_name = req.instanceName.strip()

    if await repo.get_by_name(tenant.location_id, instance_name) is not None:
        raise InstanceConflictError(f"Instance '{instance_name}' is already registered")

    limit = ctx.settings.MAX_INSTANCES_PER_LOCATION
    if await repo.count_for_location(tenant.location_id) >= limit:
        raise InstanceConflictError(
            f"Instance limit reached ({limit})", details={"limit": limit}
        )

    # Validates the credentials before anything is stored
    state = await ctx.gateway.connection_state(instance_name, req.token)

    try:
        instance = await repo.create(
            location_id=tenant.location_id,
            instance_name=instance_name,
            api_token=req.token,
            instance_id=_blank_to_none(req.instanceId),
            custom_name=_blank_to_none(req.customName),
            state=state,
        )
    except IntegrityError as e:
        raise InstanceConflictError(f"Instance '{instance_name}' is already registered") from e

    # A concurrent create may have passed the limit check too; get_db rolls this insert back
    if await repo.count_for_location(tenant.location_id) > limit:
        raise InstanceConflictError(
            f"Instance limit reached ({limit})", details={"limit": limit}
        )

    logger.info(
        "Instance %s created (state=%s)", instance.instance_name, instance.state,
        extra={"location_id": tenant.location_id},
    )
    return EncodedJSONResponse({"success": True, "instance": instance.to_dict()}, status_code=201)


@router.patch("/instances/{instance_pk}")
async def rename_instance(
    instance_pk: int,
    req: RenameInstanceRequest,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Change an instance's display name."""
    repo = InstanceRepository(db)
    instance = await _get_owned(repo, tenant, instance_pk)
    await repo.rename(instance, _blank_to_none(req.customName))
    return EncodedJSONResponse({"success": True, "instance": instance.to_dict()})


@router.get("/qr/{instance_pk}")
async def get_qr(
    instance_pk: int,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Start pairing: returns a QR image (type 'qr') or pairing text (type 'code')."""
    ctx = get_bridge_context()
    repo = InstanceRepository(db)
    instance = await _get_owned(repo, tenant, instance_pk)

    payload = await ctx.gateway.connect(instance.instance_name, instance.api_token)
    await repo.set_state(instance, QR_CODE)
    return payload.to_dict()


@router.delete("/instances/{instance_pk}/logout")
async def logout_instance(
    instance_pk: int,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Close the WhatsApp session of an instance."""
    ctx = get_bridge_context()
    repo = InstanceRepository(db)
    instance = await _get_owned(repo, tenant, instance_pk)

    await ctx.gateway.logout(instance.instance_name, instance.api_token)
    await repo.set_state(instance, NOT_AUTHORIZED)
    logger.info(
        "Instance %s logged out", instance.instance_name,
        extra={"location_id": tenant.location_id},
    )
    return EncodedJSONResponse({"success": True, "instance": instance.to_dict()})


@router.delete("/instances/{instance_pk}")
async def delete_instance(
    instance_pk: int,
    tenant: TenantContext = Depends(get_tenant_context),
    db: AsyncSession = Depends(get_db),
):
    """Remove an instance from the gateway and from the database."""
    ctx = get_bridge_context()
    repo = InstanceRepository(db)
    instance = await _get_owned(repo, tenant, instance_pk)

    for action, call in (("logout", ctx.gateway.logout), ("delete", ctx.gateway.delete)):
        try:
            await call(instance.instance_name, instance.api_token)
        except GatewayError as e:
            logger.warning(
                "Gateway %s for %s failed (%s); removing local record anyway",
                action, instance.instance_name, e.message,
                extra={"location_id": tenant.location_id},
            )

    await repo.delete(instance)
    logger.info(
        "Instance %s deleted", instance.instance_name,
        extra={"location_id": tenant.location_id},
    )
    return {"success": True}
