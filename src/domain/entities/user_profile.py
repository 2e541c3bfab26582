"""
User Profile Entity

Relational mirror of an identity held by the identity provider.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import JSON, Column, DateTime, Field, SQLModel

from src.domain.base import utcnow
from .enums import ProfileStatus


class UserProfile(SQLModel, table=True):
    """
    UserProfile entity - 1:1 with an identity (same id).

    Business Rules:
    - id is the identity provider's user id
    - tenant_id points at the user's company and is rewritten on merges
    - Must not outlive its identity once a deletion is finalized
    """

    __tablename__ = "user_profiles"

    id: UUID = Field(primary_key=True)
    email: Optional[str] = Field(default=None, index=True, max_length=255)

    tenant_id: Optional[int] = Field(default=None, foreign_key="tenants.id", index=True)
    status: ProfileStatus = Field(default=ProfileStatus.active)
    user_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: Optional[datetime] = Field(
        default_factory=utcnow, sa_column=Column(DateTime)
    )
    last_sign_in_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
