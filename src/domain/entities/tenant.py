"""
Tenant Entity

Represents one business (company) that rows are scoped to.
"""

from datetime import datetime
from typing import Optional, TYPE_CHECKING

from sqlmodel import Column, DateTime, Field, Relationship, SQLModel

from src.domain.base import utcnow

if TYPE_CHECKING:
    from .membership import TenantMembership


class Tenant(SQLModel, table=True):
    """
    Tenant entity - one company/business.

    Business Rules:
    - id is assigned by the store
    - After a merge pass no two tenants share a normalized name
    - Duplicates are deleted only once every dependent reference was rewritten
    """

    __tablename__ = "tenants"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(default="", max_length=255)

    # Timestamps
    created_at: Optional[datetime] = Field(
        default_factory=utcnow, sa_column=Column(DateTime)
    )

    # Relationships
    memberships: list["TenantMembership"] = Relationship(back_populates="tenant")
