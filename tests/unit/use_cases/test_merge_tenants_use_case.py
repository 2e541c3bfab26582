"""
Unit tests for MergeTenantsUseCase
Tests the merge saga in isolation with a mocked unit of work.
"""

import pytest
from unittest.mock import AsyncMock
from datetime import datetime

from src.app.services.errors import StoreError
from src.app.use_cases.tenants import MergeTenantsUseCase
from src.domain.entities import Tenant


def _acme_tenants():
    return [
        Tenant(id=1, name="Acme Pos", created_at=datetime(2023, 1, 1)),
        Tenant(id=2, name="acme", created_at=datetime(2023, 2, 1)),
        Tenant(id=3, name="Acme's Company", created_at=datetime(2023, 3, 1)),
        Tenant(id=4, name="Beta", created_at=datetime(2023, 1, 5)),
    ]


def _arrange(mock_uow, tenants, residual=0):
    mock_uow.tenants.list_all = AsyncMock(return_value=tenants)
    mock_uow.tenants.rename = AsyncMock(return_value=1)
    mock_uow.tenants.delete_by_id = AsyncMock(return_value=1)
    mock_uow.references.reassign = AsyncMock(return_value=1)
    mock_uow.references.count_matching = AsyncMock(return_value=(["tenant_id"], residual, []))
    mock_uow.audit_events.create = AsyncMock()


@pytest.mark.asyncio
async def test_merge_acme_group(mock_uow, uow_factory):
    """Three spellings of Acme collapse into the earliest tenant"""
    # Arrange
    _arrange(mock_uow, _acme_tenants())

    # Act
    use_case = MergeTenantsUseCase(uow_factory)
    result = await use_case.execute()

    # Assert
    assert result.is_ok()
    response = result.value
    assert response.tenants_examined == 4
    assert response.groups_examined == 2
    assert response.removed_total == 2
    assert response.failed_total == 0

    # Beta is already canonical and single: not reported
    assert len(response.groups) == 1
    group = response.groups[0]
    assert group.normalized_name == "Acme"
    assert group.keeper_id == 1
    assert group.renamed is True
    assert group.duplicate_ids == [2, 3]
    assert group.removed_ids == [2, 3]

    # Keeper renamed, duplicates deleted
    mock_uow.tenants.rename.assert_called_once_with(1, "Acme")
    deleted = [c.args[0] for c in mock_uow.tenants.delete_by_id.call_args_list]
    assert deleted == [2, 3]

    # Every duplicate rewritten to the keeper
    sources = {(c.args[2], c.args[3]) for c in mock_uow.references.reassign.call_args_list}
    assert sources == {(2, 1), (3, 1)}

    # Audit trail
    actions = [c.args[0].action for c in mock_uow.audit_events.create.call_args_list]
    assert actions.count("tenant_renamed") == 1
    assert actions.count("tenant_merged") == 2
    merged = [
        c.args[0]
        for c in mock_uow.audit_events.create.call_args_list
        if c.args[0].action == "tenant_merged"
    ]
    assert {e.tenant_id for e in merged} == {2, 3}
    assert all(e.event_metadata["keeper_id"] == 1 for e in merged)


@pytest.mark.asyncio
async def test_merge_keeps_duplicate_when_rewrite_fails(mock_uow, uow_factory):
    # Arrange
    _arrange(mock_uow, _acme_tenants()[:2])

    async def reassign(table, column, source, destination, unique_with=None):
        if table == "sales":
            raise StoreError("statement timeout")
        return 0

    mock_uow.references.reassign = AsyncMock(side_effect=reassign)

    # Act
    result = await MergeTenantsUseCase(uow_factory).execute()

    # Assert
    assert result.is_ok()
    group = result.value.groups[0]
    assert group.removed_ids == []
    assert len(group.failures) == 1
    assert group.failures[0].tenant_id == 2
    assert group.failures[0].tables == {"sales": "statement timeout"}
    assert result.value.failed_total == 1
    mock_uow.tenants.delete_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_merge_keeps_duplicate_with_residual_references(mock_uow, uow_factory):
    """Delete is gated on the validator seeing zero references"""
    # Arrange
    _arrange(mock_uow, _acme_tenants()[:2], residual=3)

    # Act
    result = await MergeTenantsUseCase(uow_factory).execute()

    # Assert
    group = result.value.groups[0]
    assert group.removed_ids == []
    assert group.failures[0].tenant_id == 2
    assert "residual" in group.failures[0].tables["tenant_memberships"]
    mock_uow.tenants.delete_by_id.assert_not_called()


@pytest.mark.asyncio
async def test_merge_dry_run_changes_nothing(mock_uow, uow_factory):
    # Arrange
    _arrange(mock_uow, _acme_tenants())

    # Act
    result = await MergeTenantsUseCase(uow_factory).execute(dry_run=True)

    # Assert
    assert result.is_ok()
    assert result.value.dry_run is True
    group = result.value.groups[0]
    assert group.duplicate_ids == [2, 3]
    assert group.removed_ids == []
    assert group.renamed is True
    mock_uow.tenants.rename.assert_not_called()
    mock_uow.references.reassign.assert_not_called()
    mock_uow.tenants.delete_by_id.assert_not_called()
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_merge_renames_single_member(mock_uow, uow_factory):
    # Arrange
    _arrange(mock_uow, [Tenant(id=8, name="corner_shop pos", created_at=datetime(2023, 1, 1))])

    # Act
    result = await MergeTenantsUseCase(uow_factory).execute()

    # Assert
    group = result.value.groups[0]
    assert group.normalized_name == "Corner Shop"
    assert group.renamed is True
    assert group.duplicate_ids == []
    mock_uow.tenants.rename.assert_called_once_with(8, "Corner Shop")
    mock_uow.references.reassign.assert_not_called()


@pytest.mark.asyncio
async def test_merge_nothing_to_do(mock_uow, uow_factory):
    _arrange(mock_uow, [Tenant(id=1, name="Acme"), Tenant(id=2, name="Beta")])

    result = await MergeTenantsUseCase(uow_factory).execute()

    assert result.is_ok()
    assert result.value.groups == []
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_merge_tenants_unavailable(mock_uow, uow_factory):
    mock_uow.tenants.list_all = AsyncMock(side_effect=StoreError("connection refused"))

    result = await MergeTenantsUseCase(uow_factory).execute()

    assert result.is_err()
    assert result.error.code == "TENANTS_UNAVAILABLE"


@pytest.mark.asyncio
async def test_merge_unexpected_group_error_is_isolated(mock_uow, uow_factory):
    """A bug hit in one group is reported for that group; other groups still merge"""
    # Arrange: "beta" needs a rename that blows up
    tenants = _acme_tenants()
    tenants[3] = Tenant(id=4, name="beta", created_at=datetime(2023, 1, 5))
    _arrange(mock_uow, tenants)

    async def rename(tenant_id, name):
        if tenant_id == 4:
            raise RuntimeError("unexpected row shape")
        return 1

    mock_uow.tenants.rename = AsyncMock(side_effect=rename)

    # Act
    result = await MergeTenantsUseCase(uow_factory).execute()

    # Assert
    assert result.is_ok()
    response = result.value
    by_name = {g.normalized_name: g for g in response.groups}
    assert by_name["Acme"].removed_ids == [2, 3]
    assert by_name["Beta"].error == "RuntimeError: unexpected row shape"
    assert by_name["Beta"].keeper_id is None
    assert response.groups_errored == 1
    assert response.removed_total == 2
