"""
UserPromotion Entity

A promotion or referral code redeemed by a user.
"""

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utcnow


class UserPromotion(SQLModel, table=True):
    __tablename__ = "user_promotions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    user_id: UUID = Field(foreign_key="user_profiles.id", nullable=False, index=True)

    code: str = Field(max_length=64)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
