"""
Use Case: Validate References

Read-only scan reporting where an identifier is still referenced.
"""

import logging
from typing import Any, Callable, Sequence

from libs.result import Result, Return
from src.app.services.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork
from src.domain.references import ReferenceCheck, user_reference_checks

from .dtos import ReferenceReportResponse, TableReferenceResult

logger = logging.getLogger(__name__)


class ValidateReferencesUseCase:
    """
    Count rows referencing an identifier across a list of tables.

    Business Logic:
    1. For each (table, columns) check, in its own store call, count rows where
       any existing column equals the identifier and fetch a bounded sample
    2. A failing table is reported with its error; the scan continues
    3. clean is true only when every table answered with a zero count
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        checks: Sequence[ReferenceCheck] = None,
        sample_limit: int = 5,
    ):
        self.uow_factory = uow_factory
        self.checks = tuple(checks) if checks is not None else user_reference_checks()
        self.sample_limit = max(0, sample_limit)

    async def execute(self, identifier: Any) -> Result[ReferenceReportResponse]:
        report = ReferenceReportResponse(identifier=str(identifier))

        for check in self.checks:
            result = TableReferenceResult(table=check.table)
            uow = self.uow_factory()
            try:
                async with uow:
                    columns, count, sample = await uow.references.count_matching(
                        check.table, check.columns, identifier, self.sample_limit
                    )
                result.columns = list(columns)
                result.count = count
                result.sample = sample
            except StoreError as exc:
                logger.warning(f"Reference check on {check.table} failed for {identifier}: {exc}")
                result.error = str(exc)
            report.tables.append(result)

        report.total_references = sum(t.count for t in report.tables)
        report.clean = report.total_references == 0 and all(t.error is None for t in report.tables)
        logger.info(
            f"Reference scan for {identifier}: {report.total_references} reference(s), clean={report.clean}"
        )
        return Return.ok(report)
