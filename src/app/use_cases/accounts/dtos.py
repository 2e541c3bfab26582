"""
Account Lifecycle DTOs (Data Transfer Objects)

Response classes for deletion, restore, status, sweep and identity sync.
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.app.services.identity_provider import Identity


class DeleteAccountResponse(BaseModel):
    """Response for delete account use case"""

    ok: bool = True
    type: str
    message: str
    deletion_id: Optional[int] = None
    retention_days: Optional[int] = None
    scheduled_cleanup_at: Optional[str] = None
    rows_deleted: Dict[str, int] = Field(default_factory=dict)


class RestoreAccountResponse(BaseModel):
    """Response for restore account use case"""

    ok: bool = True
    message: str
    days_remaining_before_restore: float
    rows_restored: Dict[str, int] = Field(default_factory=dict)


class DeletionStatusResponse(BaseModel):
    """Projection of the latest deletion record for a user"""

    is_deleted: bool
    deletion_id: Optional[int] = None
    status: Optional[str] = None
    email: Optional[str] = None
    deleted_at: Optional[str] = None
    scheduled_cleanup_at: Optional[str] = None
    days_remaining: Optional[float] = None
    cleanup_completed: bool = False
    cleanup_completed_at: Optional[str] = None


class CleanupError(BaseModel):
    user_id: str
    step: str
    error: str


class RetentionSweepResponse(BaseModel):
    """Response for the retention sweep"""

    ok: bool = True
    database_cleanup_count: int = 0
    auth_cleanup_count: int = 0
    auth_cleanup_errors: List[CleanupError] = Field(default_factory=list)
    total_processed: int = 0
    already_completed: int = 0


class ListUsersResponse(BaseModel):
    users: List[Identity] = Field(default_factory=list)


class SyncUsersResponse(BaseModel):
    ok: bool = True
    count: int = 0
    skipped_pending_deletion: int = 0
