"""
Expense Entity
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlmodel import Column, DateTime, Field, SQLModel

from src.domain.base import utcnow


class Expense(SQLModel, table=True):
    __tablename__ = "expenses"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: Optional[int] = Field(default=None, foreign_key="tenants.id", index=True)
    created_by: Optional[UUID] = Field(default=None, index=True)

    description: str = Field(default="", max_length=255)
    amount: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)

    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
