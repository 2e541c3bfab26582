"""
Sale Entity

A completed checkout. Sales are business records: they are reassigned on tenant
merges but never deleted with a user account.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utcnow


class Sale(SQLModel, table=True):
    __tablename__ = "sales"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: Optional[int] = Field(default=None, foreign_key="tenants.id", index=True)
    location_id: Optional[int] = Field(default=None, foreign_key="locations.id")
    created_by: Optional[UUID] = Field(default=None, index=True)

    total: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
