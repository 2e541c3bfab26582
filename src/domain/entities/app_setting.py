"""
AppSetting Entity

Tenant-scoped key/value application setting.
"""

from datetime import datetime
from typing import Any, Optional

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow


class AppSetting(SQLModel, table=True):
    """AppSetting entity - one value per (tenant_id, key)"""

    __tablename__ = "app_settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    tenant_id: Optional[int] = Field(default=None, foreign_key="tenants.id", index=True)

    key: str = Field(max_length=255)
    value: Optional[Any] = Field(default=None, sa_column=Column(JSON))

    updated_at: Optional[datetime] = Field(
        default_factory=utcnow, sa_column=Column(DateTime)
    )

    __table_args__ = (Index("idx_app_setting_tenant_key", "tenant_id", "key", unique=True),)
