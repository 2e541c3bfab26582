from typing import Optional
from uuid import UUID

from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.user_profile_repository import IUserProfileRepository
from src.domain.entities import UserProfile


class UserProfileRepository(IUserProfileRepository):
    """UserProfile repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, user_id: UUID) -> Optional[UserProfile]:
        """Get profile by user ID"""
        stmt = select(UserProfile).where(UserProfile.id == user_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def upsert(self, profile: UserProfile) -> UserProfile:
        """Insert or update a profile, keyed on id"""
        merged = await self.session.merge(profile)
        await self.session.flush()
        return merged
