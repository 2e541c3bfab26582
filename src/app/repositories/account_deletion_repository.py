from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from src.domain.entities import AccountDeletion


class IAccountDeletionRepository(ABC):
    """AccountDeletion repository interface - application layer"""

    @abstractmethod
    async def create(self, deletion: AccountDeletion) -> AccountDeletion:
        """Create a new deletion record"""
        pass

    @abstractmethod
    async def update(self, deletion: AccountDeletion) -> AccountDeletion:
        """Update metadata of an existing deletion record"""
        pass

    @abstractmethod
    async def get_active_by_user_id(self, user_id: UUID) -> Optional[AccountDeletion]:
        """Get the deletion record with cleanup_completed = false, if any"""
        pass

    @abstractmethod
    async def get_latest_by_user_id(self, user_id: UUID) -> Optional[AccountDeletion]:
        """Get the most recent deletion record for a user"""
        pass

    @abstractmethod
    async def list_due(self, now: datetime) -> List[AccountDeletion]:
        """Get records with cleanup_completed = false and scheduled_cleanup_at <= now"""
        pass

    @abstractmethod
    async def complete_if_pending(
        self, deletion_id: int, completed_at: datetime, metadata: dict
    ) -> bool:
        """
        Conditionally mark cleanup completed.

        Only transitions a record whose cleanup_completed is still false.

        Returns:
            True if this call performed the transition
        """
        pass

    @abstractmethod
    async def restore_if_restorable(
        self, deletion_id: int, now: datetime, metadata: dict
    ) -> bool:
        """
        Conditionally close a record as restored.

        Only transitions a record whose cleanup_completed is still false and
        whose scheduled_cleanup_at is after now.

        Returns:
            True if this call performed the transition
        """
        pass
