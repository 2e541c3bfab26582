"""
AuditEvent Entity

Immutable log of merge and account lifecycle events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from src.domain.base import utcnow


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of integrity and lifecycle events.

    Business Rules:
    - Immutable (never updated or deleted)
    - Not a tenant reference: tenant_id keeps pointing at merged-away tenants
      so that "tenant_merged" events can map a removed id to its keeper
    - Metadata stores additional context (keeper id, row counts, errors)
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    tenant_id: Optional[int] = Field(default=None, index=True)
    user_id: Optional[UUID] = Field(default=None)

    action: str = Field(max_length=100)  # e.g., "tenant_merged", "account_restored"
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_tenant_action", "tenant_id", "action"),
        Index("idx_audit_user_id", "user_id"),
    )
