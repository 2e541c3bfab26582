"""
Use Case: Delete Account

Soft deletion (default) records the deletion with a cleanup deadline,
snapshots the user-owned rows and removes them, leaving the identity for the
retention sweep. Immediate deletion purges rows and the identity right away.
"""

import logging
from datetime import timedelta
from typing import Callable, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.account_finalizer import AccountFinalizer, PurgeOutcome
from src.app.services.errors import StoreError
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AccountDeletion, AuditEvent, DeletionMode
from src.domain.references import USER_OWNED_REFERENCES

from .dtos import DeleteAccountResponse

logger = logging.getLogger(__name__)


class DeleteAccountUseCase:
    """
    Delete a user account.

    Business Logic (soft):
    1. Reuse the active deletion record, or create one holding a snapshot of
       the user-owned rows with scheduled_cleanup_at = now + retention window
    2. Delete user-owned rows in dependency order (profile last)
    3. Mark the record purged; only then can it be restored
    4. Leave the identity intact until the sweep finalizes the record

    Business Logic (immediate):
    1. Delete user-owned rows in dependency order
    2. Delete the identity
    3. If the identity delete fails, keep the rows deleted, surface the error
       and record a deletion due now so the next sweep closes it

    Retrying either mode after a partial failure is safe.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_provider: IIdentityProvider,
        retention_days: int = 30,
    ):
        self.uow_factory = uow_factory
        self.retention_days = retention_days
        self.finalizer = AccountFinalizer(uow_factory, identity_provider)

    async def execute(
        self,
        user_id: UUID,
        email: Optional[str] = None,
        immediate: bool = False,
    ) -> Result[DeleteAccountResponse]:
        """
        Execute delete account use case.

        Args:
            user_id: identity id of the account
            email: email to record (defaults to the profile email)
            immediate: skip the retention window

        Returns:
            Result[DeleteAccountResponse]

        Errors:
            - DELETION_RECORD_FAILED: deletion record could not be written (nothing deleted)
            - ROW_PURGE_FAILED: a user-owned table could not be purged (identity untouched)
            - IDENTITY_DELETE_FAILED: rows deleted, identity still present
        """
        if immediate:
            return await self._delete_immediately(user_id, email)
        return await self._soft_delete(user_id, email)

    async def _soft_delete(
        self, user_id: UUID, email: Optional[str]
    ) -> Result[DeleteAccountResponse]:
        now = utcnow()
        uow = self.uow_factory()
        try:
            async with uow:
                deletion = await uow.deletions.get_active_by_user_id(user_id)
                if deletion is None:
                    profile = await uow.profiles.get_by_id(user_id)

                    # Snapshot before anything is removed so a restore can re-link
                    snapshot = {}
                    for ref in USER_OWNED_REFERENCES.references:
                        rows = await uow.references.fetch_matching(ref.table, ref.column, user_id)
                        if rows:
                            snapshot[ref.table] = [row.model_dump(mode="json") for row in rows]

                    deletion = await uow.deletions.create(
                        AccountDeletion(
                            user_id=user_id,
                            email=email or (profile.email if profile else None) or "",
                            deleted_at=now,
                            scheduled_cleanup_at=now + timedelta(days=self.retention_days),
                            deletion_metadata={
                                "mode": DeletionMode.soft.value,
                                "retention_days": self.retention_days,
                                "reference_version": USER_OWNED_REFERENCES.version,
                                "snapshot": snapshot,
                            },
                        )
                    )
                    await uow.audit_events.create(
                        AuditEvent(
                            tenant_id=profile.tenant_id if profile else None,
                            user_id=user_id,
                            action="account_deletion_requested",
                            event_metadata={
                                "deletion_id": deletion.id,
                                "scheduled_cleanup_at": deletion.scheduled_cleanup_at.isoformat(),
                                "snapshot_rows": {t: len(r) for t, r in snapshot.items()},
                            },
                        )
                    )
                    await uow.commit()
                else:
                    logger.info(
                        f"User {user_id} already has pending deletion {deletion.id}, resuming purge"
                    )
        except StoreError as exc:
            logger.error(f"Could not record deletion for user {user_id}: {exc}")
            return Return.err(
                Error(
                    "DELETION_RECORD_FAILED",
                    "Failed recording account deletion",
                    reason=str(exc),
                )
            )

        if (deletion.deletion_metadata or {}).get("purged"):
            # Purge already finished; the record may be restored at any moment now
            purge = PurgeOutcome()
        else:
            purge = await self.finalizer.purge_rows(user_id)
            if not purge.ok:
                return Return.err(
                    Error(
                        "ROW_PURGE_FAILED",
                        f"Deletion recorded but purging {purge.failed_table} failed; retry the request",
                        reason=purge.error,
                    )
                )
            marked = await self._mark_purged(deletion, purge)
            if marked.is_err():
                return marked

        logger.info(
            f"User {user_id} soft-deleted (deletion {deletion.id}), cleanup at {deletion.scheduled_cleanup_at.isoformat()}"
        )
        return Return.ok(
            DeleteAccountResponse(
                type="soft_delete",
                deletion_id=deletion.id,
                retention_days=self.retention_days,
                scheduled_cleanup_at=deletion.scheduled_cleanup_at.isoformat(),
                message=(
                    "Account marked for deletion. Data will be permanently removed "
                    f"after {self.retention_days} days."
                ),
                rows_deleted=purge.deleted,
            )
        )

    async def _mark_purged(
        self, deletion: AccountDeletion, purge: PurgeOutcome
    ) -> Result[None]:
        metadata = dict(deletion.deletion_metadata or {})
        metadata["purged"] = True
        metadata["rows_deleted"] = purge.deleted
        uow = self.uow_factory()
        try:
            async with uow:
                deletion.deletion_metadata = metadata
                await uow.deletions.update(deletion)
                await uow.commit()
        except StoreError as exc:
            logger.error(f"User {deletion.user_id} rows purged but deletion {deletion.id} not marked: {exc}")
            return Return.err(
                Error(
                    "DELETION_RECORD_FAILED",
                    "Rows were deleted but the deletion record could not be updated; retry the request",
                    reason=str(exc),
                )
            )
        return Return.ok(None)

    async def _delete_immediately(
        self, user_id: UUID, email: Optional[str]
    ) -> Result[DeleteAccountResponse]:
        outcome = await self.finalizer.finalize(user_id)

        if not outcome.purge.ok:
            return Return.err(
                Error(
                    "ROW_PURGE_FAILED",
                    f"Purging {outcome.purge.failed_table} failed; identity was not deleted",
                    reason=outcome.purge.error,
                )
            )

        now = utcnow()
        uow = self.uow_factory()

        if outcome.identity_error:
            # Rows are gone, identity is not: leave a record the sweep will re-close
            try:
                async with uow:
                    deletion = await uow.deletions.get_active_by_user_id(user_id)
                    if deletion is None:
                        await uow.deletions.create(
                            AccountDeletion(
                                user_id=user_id,
                                email=email or "",
                                deleted_at=now,
                                scheduled_cleanup_at=now,
                                deletion_metadata={
                                    "mode": DeletionMode.immediate.value,
                                    "identity_error": outcome.identity_error,
                                    "purged": True,
                                    "rows_deleted": outcome.purge.deleted,
                                },
                            )
                        )
                    else:
                        metadata = dict(deletion.deletion_metadata or {})
                        metadata["identity_error"] = outcome.identity_error
                        deletion.deletion_metadata = metadata
                        await uow.deletions.update(deletion)
                    await uow.commit()
            except StoreError as exc:
                logger.error(
                    f"User {user_id} rows purged but identity delete failed and no deletion "
                    f"record could be written; reconcile manually: {exc}"
                )
            return Return.err(
                Error(
                    "IDENTITY_DELETE_FAILED",
                    "Account rows were deleted but the identity could not be deleted",
                    reason=outcome.identity_error,
                )
            )

        try:
            async with uow:
                deletion = await uow.deletions.get_active_by_user_id(user_id)
                if deletion is not None:
                    metadata = dict(deletion.deletion_metadata or {})
                    metadata.pop("snapshot", None)
                    metadata["finalized_by"] = DeletionMode.immediate.value
                    await uow.deletions.complete_if_pending(deletion.id, now, metadata)
                await uow.audit_events.create(
                    AuditEvent(
                        user_id=user_id,
                        action="account_deleted",
                        event_metadata={
                            "mode": DeletionMode.immediate.value,
                            "rows_deleted": outcome.purge.deleted,
                            "identity_deleted": outcome.identity_deleted,
                        },
                    )
                )
                await uow.commit()
        except StoreError as exc:
            # Account is fully deleted; only the bookkeeping failed
            logger.warning(f"User {user_id} deleted but audit bookkeeping failed: {exc}")

        logger.info(f"User {user_id} deleted immediately")
        return Return.ok(
            DeleteAccountResponse(
                type="immediate",
                message="Account permanently deleted.",
                rows_deleted=outcome.purge.deleted,
            )
        )
