import logging
from typing import Callable
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import DeletionStatus

from .dtos import DeletionStatusResponse

logger = logging.getLogger(__name__)


def _iso(value):
    return value.isoformat() if value else None


class GetDeletionStatusUseCase:
    """Project the latest deletion record of a user (read-only)"""

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self.uow_factory = uow_factory

    async def execute(self, user_id: UUID) -> Result[DeletionStatusResponse]:
        uow = self.uow_factory()
        try:
            async with uow:
                deletion = await uow.deletions.get_latest_by_user_id(user_id)
        except StoreError as exc:
            logger.error(f"Could not read deletion status for user {user_id}: {exc}")
            return Return.err(
                Error(
                    "DELETION_STATUS_UNAVAILABLE",
                    "Failed reading deletion status",
                    reason=str(exc),
                )
            )

        if deletion is None or deletion.status == DeletionStatus.restored:
            return Return.ok(
                DeletionStatusResponse(
                    is_deleted=False,
                    deletion_id=deletion.id if deletion else None,
                    status=deletion.status.value if deletion else None,
                )
            )

        days_remaining = None
        if not deletion.cleanup_completed:
            seconds = (deletion.scheduled_cleanup_at - utcnow()).total_seconds()
            days_remaining = max(0.0, seconds / 86400)

        return Return.ok(
            DeletionStatusResponse(
                is_deleted=True,
                deletion_id=deletion.id,
                status=deletion.status.value,
                email=deletion.email,
                deleted_at=_iso(deletion.deleted_at),
                scheduled_cleanup_at=_iso(deletion.scheduled_cleanup_at),
                days_remaining=days_remaining,
                cleanup_completed=deletion.cleanup_completed,
                cleanup_completed_at=_iso(deletion.cleanup_completed_at),
            )
        )
