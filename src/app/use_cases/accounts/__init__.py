"""
Account Lifecycle Use Cases

Soft and immediate deletion, restore, deletion status, the retention sweep
and identity listing/sync.
"""

from .delete_account_use_case import DeleteAccountUseCase
from .get_deletion_status_use_case import GetDeletionStatusUseCase
from .list_identities_use_case import ListIdentitiesUseCase
from .restore_account_use_case import RestoreAccountUseCase
from .run_retention_sweep_use_case import RunRetentionSweepUseCase
from .sync_user_profiles_use_case import SyncUserProfilesUseCase
from .dtos import (
    CleanupError,
    DeleteAccountResponse,
    DeletionStatusResponse,
    ListUsersResponse,
    RestoreAccountResponse,
    RetentionSweepResponse,
    SyncUsersResponse,
)

__all__ = [
    "DeleteAccountUseCase",
    "GetDeletionStatusUseCase",
    "ListIdentitiesUseCase",
    "RestoreAccountUseCase",
    "RunRetentionSweepUseCase",
    "SyncUserProfilesUseCase",
    "CleanupError",
    "DeleteAccountResponse",
    "DeletionStatusResponse",
    "ListUsersResponse",
    "RestoreAccountResponse",
    "RetentionSweepResponse",
    "SyncUsersResponse",
]
