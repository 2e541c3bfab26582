"""
Tenant Membership Entity

Links a user profile to a tenant with a role.
"""

from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, Relationship, SQLModel

from src.domain.base import utcnow
from .enums import MembershipRole

if TYPE_CHECKING:
    from .tenant import Tenant


class TenantMembership(SQLModel, table=True):
    """
    Membership entity - links a user to a tenant with a role.

    Business Rules:
    - (user_id, tenant_id) must be unique
    - tenant_id must reference an existing tenant
    - Removed before the user profile when an account is purged
    """

    __tablename__ = "tenant_memberships"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)
    tenant_id: int = Field(foreign_key="tenants.id", nullable=False, index=True)

    role: MembershipRole = Field(default=MembershipRole.member, nullable=False)

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    # Relationships
    tenant: "Tenant" = Relationship(back_populates="memberships")

    __table_args__ = (
        Index("idx_membership_user_tenant", "user_id", "tenant_id", unique=True),
    )
