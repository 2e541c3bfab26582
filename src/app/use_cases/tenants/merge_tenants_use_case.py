"""
Use Case: Merge Duplicate Tenants

Normalizes tenant names, merges every group of tenants sharing a normalized
name into its earliest-created member and removes the duplicates.
"""

import asyncio
import logging
from typing import Callable, Dict, List, Optional, Union

from libs.result import Error, Result, Return
from src.app.services.errors import StoreError
from src.app.services.reference_rewriter import ReferenceRewriter
from src.app.services.unit_of_work import UnitOfWork
from src.domain.entities import AuditEvent, Tenant
from src.domain.references import TENANT_REFERENCES, ReferenceSet
from src.domain.tenant_names import (
    TenantNameNormalizer,
    group_by_normalized_name,
    select_keeper,
)

from .dtos import DuplicateFailure, MergeGroupResult, MergeTenantsResponse

logger = logging.getLogger(__name__)


class MergeTenantsUseCase:
    """
    Merge duplicate tenants (one full pass).

    Business Logic, per normalized-name group:
    1. Single member with a non-canonical name: rename only
    2. Several members: pick keeper (earliest created_at, lowest id),
       rename keeper, then for each duplicate:
       a. Rewrite every dependent reference to the keeper
       b. Confirm zero references remain
       c. Delete the duplicate and record a "tenant_merged" audit event
    3. A duplicate whose rewrite or confirmation failed is kept and reported

    Groups are independent and run on a bounded pool; steps inside a group
    are sequential. Re-running the pass is safe: merged groups collapse to
    single members and rewrites of already-moved rows match nothing.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        normalizer: Optional[TenantNameNormalizer] = None,
        reference_set: ReferenceSet = TENANT_REFERENCES,
        max_workers: int = 4,
    ):
        self.uow_factory = uow_factory
        self.normalizer = normalizer or TenantNameNormalizer()
        self.reference_set = reference_set
        self.max_workers = max(1, max_workers)
        self.rewriter = ReferenceRewriter(uow_factory, reference_set)

    async def execute(self, dry_run: bool = False) -> Result[MergeTenantsResponse]:
        """
        Execute merge tenants use case.

        Args:
            dry_run: report the plan without renaming, rewriting or deleting

        Returns:
            Result[MergeTenantsResponse] with one entry per changed group

        Errors:
            - TENANTS_UNAVAILABLE: tenant list could not be read
        """
        uow = self.uow_factory()
        try:
            async with uow:
                tenants = await uow.tenants.list_all()
        except StoreError as exc:
            logger.error(f"Could not load tenants for merge pass: {exc}")
            return Return.err(
                Error("TENANTS_UNAVAILABLE", "Could not load tenants", reason=str(exc))
            )

        groups = group_by_normalized_name(tenants, self.normalizer)
        semaphore = asyncio.Semaphore(self.max_workers)

        async def run(name: str, members: List[Tenant]) -> Optional[MergeGroupResult]:
            async with semaphore:
                try:
                    return await self._merge_group(name, members, dry_run)
                except Exception as exc:
                    # One broken group is reported, the others still merge
                    logger.error(f"Merge of group '{name}' failed: {exc}", exc_info=True)
                    return MergeGroupResult(
                        normalized_name=name,
                        duplicate_ids=[m.id for m in members],
                        error=f"{type(exc).__name__}: {exc}",
                    )

        results = await asyncio.gather(*(run(name, members) for name, members in groups.items()))
        changed = [r for r in results if r is not None]

        response = MergeTenantsResponse(
            dry_run=dry_run,
            reference_version=self.reference_set.version,
            tenants_examined=len(tenants),
            groups_examined=len(groups),
            groups=changed,
            removed_total=sum(len(g.removed_ids) for g in changed),
            failed_total=sum(len(g.failures) for g in changed),
            groups_errored=sum(1 for g in changed if g.error),
        )
        logger.info(
            f"Merge pass done (dry_run={dry_run}): {response.groups_examined} groups, "
            f"{response.removed_total} duplicates removed, {response.failed_total} kept after failures"
        )
        return Return.ok(response)

    async def _merge_group(
        self, name: str, members: List[Tenant], dry_run: bool
    ) -> Optional[MergeGroupResult]:
        keeper, duplicates = select_keeper(members)
        needs_rename = keeper.name != name
        if not duplicates and not needs_rename:
            return None

        result = MergeGroupResult(
            normalized_name=name,
            keeper_id=keeper.id,
            duplicate_ids=[d.id for d in duplicates],
        )
        if dry_run:
            result.renamed = needs_rename
            return result

        if needs_rename:
            try:
                await self._rename(keeper, name)
                result.renamed = True
            except StoreError as exc:
                logger.warning(f"Rename of tenant {keeper.id} to '{name}' failed: {exc}")
                result.error = f"rename failed: {exc}"

        for duplicate in duplicates:
            outcome = await self._merge_duplicate(duplicate, keeper, name)
            if isinstance(outcome, DuplicateFailure):
                result.failures.append(outcome)
            elif outcome:
                result.removed_ids.append(duplicate.id)

        return result

    async def _rename(self, tenant: Tenant, name: str) -> None:
        uow = self.uow_factory()
        async with uow:
            await uow.tenants.rename(tenant.id, name)
            await uow.audit_events.create(
                AuditEvent(
                    tenant_id=tenant.id,
                    action="tenant_renamed",
                    event_metadata={"previous_name": tenant.name, "name": name},
                )
            )
            await uow.commit()
        logger.info(f"Renamed tenant {tenant.id} '{tenant.name}' -> '{name}'")

    async def _merge_duplicate(
        self, duplicate: Tenant, keeper: Tenant, name: str
    ) -> Union[bool, DuplicateFailure]:
        """
        Returns:
            True if this call deleted the duplicate, False if it was already gone,
            DuplicateFailure if the duplicate was kept
        """
        outcome = await self.rewriter.rewrite(duplicate.id, keeper.id)
        if not outcome.ok:
            logger.warning(
                f"Keeping duplicate tenant {duplicate.id}: rewrite failed for {sorted(outcome.failures)}"
            )
            return DuplicateFailure(tenant_id=duplicate.id, tables=outcome.failures)

        residual = await self._residual_references(duplicate.id)
        if residual:
            logger.warning(f"Keeping duplicate tenant {duplicate.id}: {residual}")
            return DuplicateFailure(tenant_id=duplicate.id, tables=residual)

        uow = self.uow_factory()
        try:
            async with uow:
                deleted = await uow.tenants.delete_by_id(duplicate.id)
                await uow.audit_events.create(
                    AuditEvent(
                        tenant_id=duplicate.id,
                        action="tenant_merged",
                        event_metadata={
                            "keeper_id": keeper.id,
                            "normalized_name": name,
                            "duplicate_name": duplicate.name,
                            "moved": outcome.moved,
                            "reference_version": outcome.reference_version,
                        },
                    )
                )
                await uow.commit()
        except StoreError as exc:
            logger.warning(f"Delete of duplicate tenant {duplicate.id} failed: {exc}")
            return DuplicateFailure(tenant_id=duplicate.id, tables={"tenants": str(exc)})

        if deleted:
            logger.info(f"Merged tenant {duplicate.id} into {keeper.id} ('{name}')")
        return bool(deleted)

    async def _residual_references(self, tenant_id: int) -> Dict[str, str]:
        problems: Dict[str, str] = {}
        for ref in self.reference_set.references:
            uow = self.uow_factory()
            try:
                async with uow:
                    _, count, _ = await uow.references.count_matching(
                        ref.table, (ref.column,), tenant_id, 0
                    )
            except StoreError as exc:
                problems[ref.table] = f"verification failed: {exc}"
                continue
            if count:
                problems[ref.table] = f"{count} residual reference(s)"
        return problems
