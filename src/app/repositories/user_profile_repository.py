from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from src.domain.entities import UserProfile


class IUserProfileRepository(ABC):
    """UserProfile repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        """Get profile by user ID"""
        pass

    @abstractmethod
    async def upsert(self, profile: UserProfile) -> UserProfile:
        """Insert or update a profile, keyed on id"""
        pass
