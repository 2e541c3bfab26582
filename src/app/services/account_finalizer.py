"""
Account Finalizer

The one "finalize deletion for user X" operation shared by immediate account
deletion and the retention sweep: purge user-owned rows in dependency order,
then delete the identity. Both halves are idempotent.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Optional
from uuid import UUID

from src.app.services.errors import IdentityProviderError, StoreError
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.references import USER_OWNED_REFERENCES, ReferenceSet

logger = logging.getLogger(__name__)


@dataclass
class PurgeOutcome:
    deleted: Dict[str, int] = field(default_factory=dict)
    failed_table: Optional[str] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.failed_table is None


@dataclass
class FinalizeOutcome:
    user_id: UUID
    purge: PurgeOutcome
    identity_deleted: bool = False
    identity_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.purge.ok and self.identity_error is None


class AccountFinalizer:
    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        identity_provider: IIdentityProvider,
        reference_set: ReferenceSet = USER_OWNED_REFERENCES,
    ):
        self.uow_factory = uow_factory
        self.identity_provider = identity_provider
        self.reference_set = reference_set

    async def purge_rows(self, user_id: UUID) -> PurgeOutcome:
        """
        Delete user-owned rows table by table.

        Stops at the first failure: later tables (the profile row) are
        referenced by earlier ones.
        """
        outcome = PurgeOutcome()
        for ref in self.reference_set.references:
            uow = self.uow_factory()
            try:
                async with uow:
                    deleted = await uow.references.delete_matching(ref.table, ref.column, user_id)
                    await uow.commit()
            except StoreError as exc:
                logger.error(
                    f"Purge of {ref.table} for user {user_id} failed, stopping before dependent tables: {exc}"
                )
                outcome.failed_table = ref.table
                outcome.error = str(exc)
                return outcome
            outcome.deleted[ref.table] = deleted
        return outcome

    async def finalize(self, user_id: UUID) -> FinalizeOutcome:
        """Purge rows, then delete the identity only if the purge fully succeeded"""
        purge = await self.purge_rows(user_id)
        outcome = FinalizeOutcome(user_id=user_id, purge=purge)
        if not purge.ok:
            outcome.identity_error = f"skipped: purge of {purge.failed_table} failed"
            return outcome

        try:
            outcome.identity_deleted = await self.identity_provider.delete_identity(user_id)
        except IdentityProviderError as exc:
            logger.error(
                f"Identity deletion failed for user {user_id} after relational purge "
                f"(step=delete_identity, rows={purge.deleted}): {exc}"
            )
            outcome.identity_error = str(exc)
            return outcome

        if not outcome.identity_deleted:
            logger.info(f"Identity for user {user_id} was already deleted")
        return outcome
