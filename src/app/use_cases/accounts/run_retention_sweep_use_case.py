"""
Use Case: Run Retention Sweep

Finalizes every soft deletion whose retention window has elapsed.
"""

import asyncio
import logging
from typing import Callable, Optional

from libs.result import Error, Result, Return
from src.app.services.account_finalizer import AccountFinalizer, FinalizeOutcome
from src.app.services.errors import StoreError
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AccountDeletion, AuditEvent

from .dtos import CleanupError, RetentionSweepResponse

logger = logging.getLogger(__name__)


class RunRetentionSweepUseCase:
    """
    Retention sweep (one pass).

    Business Logic:
    1. Select records with cleanup_completed = false and scheduled_cleanup_at <= now
    2. For each record, on a bounded pool:
       a. Re-purge user-owned rows (idempotent)
       b. Delete the identity ("not found" counts as deleted)
       c. Complete the record with a conditional update; a record already
          completed or restored in the meantime counts as already_completed
    3. Per-user failures are collected and leave the record pending for the
       next pass

    A completed record is never selected again, so a second pass over it
    mutates nothing and reports total_processed = 0; its deletion status
    reads cleanup_completed = true. already_completed only counts records
    closed by another sweep or a restore between selection and step 2c.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_provider: IIdentityProvider,
        max_workers: int = 4,
    ):
        self.uow_factory = uow_factory
        self.finalizer = AccountFinalizer(uow_factory, identity_provider)
        self.max_workers = max(1, max_workers)

    async def execute(self) -> Result[RetentionSweepResponse]:
        """
        Execute retention sweep use case.

        Returns:
            Result[RetentionSweepResponse]

        Errors:
            - DELETIONS_UNAVAILABLE: due records could not be listed
        """
        now = utcnow()
        uow = self.uow_factory()
        try:
            async with uow:
                due = await uow.deletions.list_due(now)
        except StoreError as exc:
            logger.error(f"Retention sweep could not list due deletions: {exc}")
            return Return.err(
                Error("DELETIONS_UNAVAILABLE", "Could not list expired deletions", reason=str(exc))
            )

        response = RetentionSweepResponse(total_processed=len(due))
        if not due:
            logger.info("Retention sweep: nothing due")
            return Return.ok(response)

        semaphore = asyncio.Semaphore(self.max_workers)

        async def run(deletion: AccountDeletion):
            async with semaphore:
                return await self._finalize(deletion, response)

        await asyncio.gather(*(run(deletion) for deletion in due))

        logger.info(
            f"Retention sweep: {response.total_processed} due, "
            f"{response.database_cleanup_count} completed, "
            f"{response.already_completed} already completed, "
            f"{len(response.auth_cleanup_errors)} errors"
        )
        return Return.ok(response)

    async def _finalize(self, deletion: AccountDeletion, response: RetentionSweepResponse) -> None:
        user_id = deletion.user_id
        outcome = await self.finalizer.finalize(user_id)

        if not outcome.purge.ok:
            self._collect(response, str(user_id), f"purge:{outcome.purge.failed_table}", outcome.purge.error)
            await self._record_error(deletion, outcome)
            return
        if outcome.identity_error:
            self._collect(response, str(user_id), "delete_identity", outcome.identity_error)
            await self._record_error(deletion, outcome)
            return
        response.auth_cleanup_count += 1

        now = utcnow()
        metadata = dict(deletion.deletion_metadata or {})
        metadata.pop("snapshot", None)
        metadata.pop("last_error", None)
        metadata["rows_deleted"] = outcome.purge.deleted
        metadata["identity_deleted"] = outcome.identity_deleted

        uow = self.uow_factory()
        try:
            async with uow:
                won = await uow.deletions.complete_if_pending(deletion.id, now, metadata)
                if won:
                    await uow.audit_events.create(
                        AuditEvent(
                            user_id=user_id,
                            action="account_cleanup_completed",
                            event_metadata={
                                "deletion_id": deletion.id,
                                "rows_deleted": outcome.purge.deleted,
                                "identity_deleted": outcome.identity_deleted,
                            },
                        )
                    )
                await uow.commit()
        except StoreError as exc:
            logger.error(f"Could not complete deletion {deletion.id} for user {user_id}: {exc}")
            self._collect(response, str(user_id), "complete_record", str(exc))
            return

        if won:
            response.database_cleanup_count += 1
            logger.info(f"Finalized deletion {deletion.id} for user {user_id}")
        else:
            response.already_completed += 1

    @staticmethod
    def _collect(response: RetentionSweepResponse, user_id: str, step: str, error: Optional[str]) -> None:
        logger.error(f"Retention sweep failed for user {user_id} at {step}: {error}")
        response.auth_cleanup_errors.append(
            CleanupError(user_id=user_id, step=step, error=error or "unknown error")
        )

    async def _record_error(self, deletion: AccountDeletion, outcome: FinalizeOutcome) -> None:
        """Keep the last failure on the record for manual reconciliation"""
        metadata = dict(deletion.deletion_metadata or {})
        metadata["last_error"] = {
            "at": utcnow().isoformat(),
            "purge_failed_table": outcome.purge.failed_table,
            "purge_error": outcome.purge.error,
            "identity_error": outcome.identity_error,
            "rows_deleted": outcome.purge.deleted,
        }
        deletion.deletion_metadata = metadata
        uow = self.uow_factory()
        try:
            async with uow:
                await uow.deletions.update(deletion)
                await uow.commit()
        except StoreError as exc:
            logger.warning(f"Could not record sweep failure on deletion {deletion.id}: {exc}")
