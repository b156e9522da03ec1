# Copyright (c) 2026 WLink Bridge Contributors. All Rights Reserved.

"""
ORM Models — Table definitions for WLink Bridge.

Tables:
  - users:     Host CRM locations that installed the app (OAuth tokens)
  - instances: WhatsApp gateway instances registered by a location
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Column, String, Text, Integer, BigInteger,
    DateTime, Index, UniqueConstraint,
)

from wlink_bridge.core.states import STARTING
from wlink_bridge.storage.database import Base

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def _utcnow():
    return datetime.now(timezone.utc)


# ── Tenant Records ──────────────────────────────────────────

class TenantRecord(Base):
    __tablename__ = "users"

    location_id = Column(String(64), primary_key=True)
    access_token = Column(Text, nullable=True)
    refresh_token = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    @property
    def has_tokens(self) -> bool:
        return bool(self.access_token and self.refresh_token)

    def __repr__(self):
        return f"<TenantRecord {self.location_id}>"


# ── WhatsApp Instances ──────────────────────────────────────

class Instance(Base):
    __tablename__ = "instances"

    id = Column(BigIntId, primary_key=True, autoincrement=True)
    location_id = Column(String(64), nullable=False)
    instance_name = Column(String(256), nullable=False)
    instance_id = Column(String(128), nullable=True)
    api_token = Column(Text, nullable=False)
    custom_name = Column(String(256), nullable=True)
    state = Column(String(32), nullable=False, default=STARTING)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        UniqueConstraint("location_id", "instance_name", name="uq_instances_location_name"),
        Index("idx_instances_location", "location_id", "created_at"),
    )

    def to_dict(self) -> dict:
        """Client-facing view; the provider token never leaves the server."""
        return {
            "id": self.id,
            "locationId": self.location_id,
            "instanceName": self.instance_name,
            "instanceId": self.instance_id,
            "customName": self.custom_name,
            "state": self.state,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Instance {self.id} {self.instance_name} ({self.state})>"
