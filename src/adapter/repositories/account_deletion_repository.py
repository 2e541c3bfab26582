from datetime import datetime
from typing import List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from src.app.repositories.account_deletion_repository import IAccountDeletionRepository
from src.domain.entities import AccountDeletion, DeletionStatus


class AccountDeletionRepository(IAccountDeletionRepository):
    """AccountDeletion repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, deletion: AccountDeletion) -> AccountDeletion:
        """Create a new deletion record"""
        self.session.add(deletion)
        await self.session.flush()
        await self.session.refresh(deletion)
        return deletion

    async def update(self, deletion: AccountDeletion) -> AccountDeletion:
        """Update metadata only; state columns change through the conditional updates"""
        stmt = (
            update(AccountDeletion)
            .where(AccountDeletion.id == deletion.id)
            .values({AccountDeletion.deletion_metadata: deletion.deletion_metadata})
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)
        return deletion

    async def get_active_by_user_id(self, user_id: UUID) -> Optional[AccountDeletion]:
        """Get the deletion record with cleanup_completed = false, if any"""
        stmt = (
            select(AccountDeletion)
            .where(
                AccountDeletion.user_id == user_id,
                AccountDeletion.cleanup_completed.is_(False),
            )
            .order_by(AccountDeletion.deleted_at.desc(), AccountDeletion.id.desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_latest_by_user_id(self, user_id: UUID) -> Optional[AccountDeletion]:
        """Get the most recent deletion record for a user"""
        stmt = (
            select(AccountDeletion)
            .where(AccountDeletion.user_id == user_id)
            .order_by(AccountDeletion.deleted_at.desc(), AccountDeletion.id.desc())
            .limit(1)
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def list_due(self, now: datetime) -> List[AccountDeletion]:
        """Get records whose retention window has elapsed, oldest deadline first"""
        stmt = (
            select(AccountDeletion)
            .where(
                AccountDeletion.cleanup_completed.is_(False),
                AccountDeletion.scheduled_cleanup_at <= now,
            )
            .order_by(AccountDeletion.scheduled_cleanup_at, AccountDeletion.id)
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def complete_if_pending(
        self, deletion_id: int, completed_at: datetime, metadata: dict
    ) -> bool:
        """Flip cleanup_completed false -> true; True if this call won"""
        stmt = (
            update(AccountDeletion)
            .where(
                AccountDeletion.id == deletion_id,
                AccountDeletion.cleanup_completed.is_(False),
            )
            .values(
                {
                    AccountDeletion.cleanup_completed: True,
                    AccountDeletion.cleanup_completed_at: completed_at,
                    AccountDeletion.status: DeletionStatus.completed,
                    AccountDeletion.deletion_metadata: metadata,
                }
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    async def restore_if_restorable(
        self, deletion_id: int, now: datetime, metadata: dict
    ) -> bool:
        """Close a record as restored while its window is open; True if this call won"""
        stmt = (
            update(AccountDeletion)
            .where(
                AccountDeletion.id == deletion_id,
                AccountDeletion.cleanup_completed.is_(False),
                AccountDeletion.scheduled_cleanup_at > now,
            )
            .values(
                {
                    AccountDeletion.cleanup_completed: True,
                    AccountDeletion.cleanup_completed_at: now,
                    AccountDeletion.status: DeletionStatus.restored,
                    AccountDeletion.deletion_metadata: metadata,
                }
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1
