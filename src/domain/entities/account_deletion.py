"""
AccountDeletion Entity

Durable record of a requested account deletion and its cleanup deadline.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from src.domain.base import utcnow
from .enums import DeletionStatus


class AccountDeletion(SQLModel, table=True):
    """
    AccountDeletion entity - one row per deletion attempt.

    Business Rules:
    - At most one active (cleanup_completed = false) record per user_id
    - scheduled_cleanup_at = deleted_at + retention window
    - Restore allowed only while cleanup_completed is false and
      now < scheduled_cleanup_at
    - cleanup_completed only ever flips false -> true through a conditional
      update, so a concurrent restore and sweep cannot both win
    - metadata holds the mode, the snapshot of purged rows while pending,
      and error details for manual reconciliation
    """

    __tablename__ = "account_deletions"

    id: Optional[int] = Field(default=None, primary_key=True)

    user_id: UUID = Field(nullable=False, index=True)
    email: str = Field(default="", max_length=255)

    status: DeletionStatus = Field(default=DeletionStatus.pending)

    deleted_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    scheduled_cleanup_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    cleanup_completed: bool = Field(default=False)
    cleanup_completed_at: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    deletion_metadata: Optional[dict] = Field(
        default=None, sa_column=Column("metadata", JSON)
    )

    __table_args__ = (
        Index("idx_account_deletion_due", "cleanup_completed", "scheduled_cleanup_at"),
    )
