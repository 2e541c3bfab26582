"""
Use Case: Restore Account

Reverses a soft deletion while its retention window is still open.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID

from libs.result import Error, Result, Return
from src.app.services.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import utcnow
from src.domain.entities import AuditEvent, DeletionStatus
from src.domain.references import USER_OWNED_REFERENCES

from .dtos import RestoreAccountResponse

logger = logging.getLogger(__name__)

# Merged tenants are followed to their keeper through at most this many hops
MAX_MERGE_HOPS = 8


class RestoreAccountUseCase:
    """
    Restore a soft-deleted account.

    Business Logic:
    1. Load the latest deletion record for the user
    2. Reject if there is none, it is already closed, the window elapsed, or
       the rows are still being purged
    3. Close the record as restored with a conditional update, so a sweep
       running at the same moment cannot also finalize it. The snapshot stays
       on the record until every table is re-linked
    4. Re-link the snapshotted rows, parents first; tenant pointers to merged
       tenants follow the merge to the keeper
    5. Drop the snapshot from the record and write an "account_restored" audit event

    A restored record that still holds its snapshot had an interrupted
    re-link; restoring again resumes it from step 4.
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork]):
        self.uow_factory = uow_factory

    async def execute(self, user_id: UUID) -> Result[RestoreAccountResponse]:
        """
        Execute restore account use case.

        Args:
            user_id: identity id of the account

        Returns:
            Result[RestoreAccountResponse]

        Errors:
            - ACCOUNT_NOT_DELETED: no pending deletion for this user
            - NOT_RESTORABLE: retention window elapsed or cleanup already completed
            - DELETION_IN_PROGRESS: the soft delete has not finished purging rows yet
            - RESTORE_FAILED: deletion record could not be read or updated
            - RELINK_INCOMPLETE: record closed but some rows could not be re-linked;
              restoring again resumes the re-link
        """
        now = utcnow()
        uow = self.uow_factory()
        try:
            async with uow:
                # 1. Latest deletion record
                deletion = await uow.deletions.get_latest_by_user_id(user_id)
                metadata = dict(deletion.deletion_metadata or {}) if deletion else {}

                # 2. Eligibility
                resuming = (
                    deletion is not None
                    and deletion.status == DeletionStatus.restored
                    and "snapshot" in metadata
                )
                if not resuming:
                    if deletion is None or deletion.status == DeletionStatus.restored:
                        return Return.err(
                            Error("ACCOUNT_NOT_DELETED", "Account is not marked for deletion")
                        )
                    if deletion.cleanup_completed or now >= deletion.scheduled_cleanup_at:
                        return Return.err(
                            Error(
                                "NOT_RESTORABLE",
                                "Cannot restore account - retention period has expired or cleanup already completed",
                            )
                        )
                    if not metadata.get("purged"):
                        return Return.err(
                            Error(
                                "DELETION_IN_PROGRESS",
                                "Account deletion is still removing rows, retry shortly",
                            )
                        )

                    # 3. Close the record, losing to a concurrent sweep is a rejection
                    metadata["restoration_date"] = now.isoformat()
                    won = await uow.deletions.restore_if_restorable(deletion.id, now, dict(metadata))
                    if not won:
                        return Return.err(
                            Error(
                                "NOT_RESTORABLE",
                                "Cannot restore account - cleanup already in progress or completed",
                            )
                        )
                    await uow.commit()
                else:
                    logger.info(f"Resuming interrupted re-link of user {user_id} (deletion {deletion.id})")
        except StoreError as exc:
            logger.error(f"Restore of user {user_id} failed: {exc}")
            return Return.err(
                Error("RESTORE_FAILED", "Failed restoring account", reason=str(exc))
            )

        restored_at = datetime.fromisoformat(metadata.get("restoration_date", now.isoformat()))
        days_remaining = max(
            0.0, (deletion.scheduled_cleanup_at - restored_at).total_seconds() / 86400
        )
        snapshot: Dict[str, List[Dict[str, Any]]] = metadata.get("snapshot") or {}

        # 4. Re-link rows, profile first
        restored: Dict[str, int] = {}
        for ref in reversed(USER_OWNED_REFERENCES.references):
            rows = snapshot.get(ref.table)
            if not rows:
                continue
            try:
                rows = await self._resolve_tenants(ref.table, rows)
                uow = self.uow_factory()
                async with uow:
                    restored[ref.table] = await uow.references.insert_missing(ref.table, rows)
                    await uow.commit()
            except StoreError as exc:
                logger.error(
                    f"User {user_id} restored but re-linking {ref.table} failed "
                    f"(relinked so far: {restored}): {exc}"
                )
                return Return.err(
                    Error(
                        "RELINK_INCOMPLETE",
                        f"Account restored but {ref.table} could not be re-linked; retry the restore",
                        reason=str(exc),
                    )
                )

        # 5. Snapshot is no longer needed once every table is back
        metadata.pop("snapshot", None)
        uow = self.uow_factory()
        try:
            async with uow:
                deletion.deletion_metadata = metadata
                await uow.deletions.update(deletion)
                await uow.audit_events.create(
                    AuditEvent(
                        user_id=user_id,
                        action="account_restored",
                        event_metadata={"deletion_id": deletion.id, "rows_restored": restored},
                    )
                )
                await uow.commit()
        except StoreError as exc:
            # Rows are back; a later restore call only repeats the no-op re-link
            logger.warning(f"User {user_id} restored but record bookkeeping failed: {exc}")

        logger.info(f"User {user_id} restored from deletion {deletion.id}")
        return Return.ok(
            RestoreAccountResponse(
                message="Account restored successfully",
                days_remaining_before_restore=days_remaining,
                rows_restored=restored,
            )
        )

    async def _resolve_tenants(
        self, table: str, rows: List[Dict[str, Any]]
    ) -> List[Dict[str, Any]]:
        """Point snapshotted tenant ids at surviving tenants"""
        resolved = []
        seen_tenants = set()
        for row in rows:
            if row.get("tenant_id") is None:
                resolved.append(row)
                continue
            tenant_id = await self._surviving_tenant(row["tenant_id"])
            row = dict(row, tenant_id=tenant_id)
            if table == "tenant_memberships":
                # Memberships need a live tenant and stay unique per tenant
                if tenant_id is None or tenant_id in seen_tenants:
                    continue
                seen_tenants.add(tenant_id)
            resolved.append(row)
        return resolved

    async def _surviving_tenant(self, tenant_id: int) -> Optional[int]:
        uow = self.uow_factory()
        async with uow:
            for _ in range(MAX_MERGE_HOPS):
                if await uow.tenants.get_by_id(tenant_id) is not None:
                    return tenant_id
                merged = await uow.audit_events.get_latest("tenant_merged", tenant_id)
                if merged is None or not merged.event_metadata:
                    return None
                tenant_id = merged.event_metadata.get("keeper_id")
                if tenant_id is None:
                    return None
        return None
