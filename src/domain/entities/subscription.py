"""
UserSubscription Entity

A user's plan subscription.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utcnow


class UserSubscription(SQLModel, table=True):
    __tablename__ = "user_subscriptions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)

    plan_id: Optional[str] = Field(default=None, max_length=64)
    status: str = Field(default="trial", max_length=32)

    started_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
