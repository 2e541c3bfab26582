"""
Unit tests for ValidateReferencesUseCase
"""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from src.app.services.errors import StoreError
from src.app.use_cases.diagnostics import ValidateReferencesUseCase
from src.domain.references import ReferenceCheck, user_reference_checks


@pytest.mark.asyncio
async def test_validate_reports_per_table(mock_uow, uow_factory):
    # Arrange
    user_id = uuid4()

    async def count_matching(table, columns, value, sample_limit):
        if table == "sales":
            return ["created_by"], 2, [{"id": 1}, {"id": 2}]
        if table == "expenses":
            raise StoreError("permission denied for table expenses")
        return list(columns), 0, []

    mock_uow.references.count_matching = AsyncMock(side_effect=count_matching)

    # Act
    use_case = ValidateReferencesUseCase(uow_factory, sample_limit=5)
    result = await use_case.execute(user_id)

    # Assert
    assert result.is_ok()
    report = result.value
    assert report.identifier == str(user_id)
    assert [t.table for t in report.tables] == [c.table for c in user_reference_checks()]
    assert report.total_references == 2
    assert report.clean is False

    by_table = {t.table: t for t in report.tables}
    assert by_table["sales"].count == 2
    assert by_table["sales"].columns == ["created_by"]
    assert len(by_table["sales"].sample) == 2
    assert "permission denied" in by_table["expenses"].error

    # One store call per table, lookup over id/user_id/created_by
    assert mock_uow.references.count_matching.call_count == len(user_reference_checks())
    first = mock_uow.references.count_matching.call_args_list[0]
    assert first.args == ("user_profiles", ("id", "user_id", "created_by"), user_id, 5)


@pytest.mark.asyncio
async def test_validate_clean(mock_uow, uow_factory):
    mock_uow.references.count_matching = AsyncMock(return_value=(["tenant_id"], 0, []))
    checks = [ReferenceCheck("locations", ("tenant_id",)), ReferenceCheck("sales", ("tenant_id",))]

    result = await ValidateReferencesUseCase(uow_factory, checks).execute(3)

    assert result.value.clean is True
    assert result.value.total_references == 0
