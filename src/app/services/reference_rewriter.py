"""
Reference Rewriter

Moves every dependent row from a duplicate tenant to its keeper, one table per
store call.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict

from src.app.services.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.references import TENANT_REFERENCES, ReferenceSet

logger = logging.getLogger(__name__)


@dataclass
class RewriteOutcome:
    source_id: int
    destination_id: int
    reference_version: int
    moved: Dict[str, int] = field(default_factory=dict)
    failures: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.failures


class ReferenceRewriter:
    """
    Rewrite tenant foreign keys from source to destination.

    Every table in the reference set is attempted even when an earlier one
    fails, so a retry only has work left on the tables that failed. Tables
    already rewritten match zero rows on a retry.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        reference_set: ReferenceSet = TENANT_REFERENCES,
    ):
        self.uow_factory = uow_factory
        self.reference_set = reference_set

    async def rewrite(self, source_id: int, destination_id: int) -> RewriteOutcome:
        outcome = RewriteOutcome(
            source_id=source_id,
            destination_id=destination_id,
            reference_version=self.reference_set.version,
        )

        for ref in self.reference_set.references:
            uow = self.uow_factory()
            try:
                async with uow:
                    moved = await uow.references.reassign(
                        ref.table,
                        ref.column,
                        source_id,
                        destination_id,
                        unique_with=ref.unique_with,
                    )
                    await uow.commit()
            except StoreError as exc:
                logger.warning(
                    f"Rewrite {ref.table}.{ref.column} {source_id} -> {destination_id} failed: {exc}"
                )
                outcome.failures[ref.table] = str(exc)
                continue

            outcome.moved[ref.table] = moved
            if moved:
                logger.info(
                    f"Moved {moved} row(s) in {ref.table}.{ref.column} from tenant {source_id} to {destination_id}"
                )

        return outcome
