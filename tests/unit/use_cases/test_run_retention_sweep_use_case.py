"""
Unit tests for RunRetentionSweepUseCase
Expired deletions are finalized exactly once; per-user failures do not stop the sweep.
"""

import pytest
from unittest.mock import AsyncMock
from datetime import timedelta
from uuid import uuid4

from src.app.services.errors import StoreError
from src.app.use_cases.accounts import RunRetentionSweepUseCase
from src.domain.base import utcnow
from src.domain.entities import AccountDeletion


def _due(deletion_id, user_id):
    now = utcnow()
    return AccountDeletion(
        id=deletion_id,
        user_id=user_id,
        deleted_at=now - timedelta(days=31),
        scheduled_cleanup_at=now - timedelta(days=1),
        deletion_metadata={"mode": "soft", "snapshot": {"user_profiles": []}},
    )


def _arrange(mock_uow, due, won=True):
    mock_uow.deletions.list_due = AsyncMock(return_value=due)
    mock_uow.deletions.complete_if_pending = AsyncMock(return_value=won)
    mock_uow.deletions.update = AsyncMock()
    mock_uow.references.delete_matching = AsyncMock(return_value=0)
    mock_uow.audit_events.create = AsyncMock()


@pytest.mark.asyncio
async def test_sweep_finalizes_due_deletions(mock_uow, uow_factory, identity_provider):
    # Arrange
    u1, u2 = uuid4(), uuid4()
    identity_provider.add(u1)  # u2's identity is already gone
    _arrange(mock_uow, [_due(1, u1), _due(2, u2)])

    # Act
    result = await RunRetentionSweepUseCase(uow_factory, identity_provider).execute()

    # Assert
    assert result.is_ok()
    response = result.value
    assert response.total_processed == 2
    assert response.database_cleanup_count == 2
    assert response.auth_cleanup_count == 2
    assert response.auth_cleanup_errors == []
    assert response.already_completed == 0
    assert identity_provider.identities == {}

    # Completion metadata drops the snapshot and records the outcome
    completed = {c.args[0]: c.args[2] for c in mock_uow.deletions.complete_if_pending.call_args_list}
    assert set(completed) == {1, 2}
    assert "snapshot" not in completed[1]
    assert completed[1]["identity_deleted"] is True
    assert completed[2]["identity_deleted"] is False

    actions = [c.args[0].action for c in mock_uow.audit_events.create.call_args_list]
    assert actions == ["account_cleanup_completed", "account_cleanup_completed"]


@pytest.mark.asyncio
async def test_sweep_collects_identity_failures(mock_uow, uow_factory, identity_provider):
    # Arrange
    u1, u2 = uuid4(), uuid4()
    identity_provider.add(u1)
    identity_provider.add(u2)
    identity_provider.failing_ids.add(u2)
    _arrange(mock_uow, [_due(1, u1), _due(2, u2)])

    # Act
    result = await RunRetentionSweepUseCase(uow_factory, identity_provider, max_workers=1).execute()

    # Assert
    response = result.value
    assert response.total_processed == 2
    assert response.database_cleanup_count == 1
    assert response.auth_cleanup_count == 1
    assert len(response.auth_cleanup_errors) == 1
    error = response.auth_cleanup_errors[0]
    assert error.user_id == str(u2)
    assert error.step == "delete_identity"

    # Failed record stays pending with the error kept for reconciliation
    completed_ids = [c.args[0] for c in mock_uow.deletions.complete_if_pending.call_args_list]
    assert completed_ids == [1]
    updated = mock_uow.deletions.update.call_args[0][0]
    assert updated.id == 2
    assert "unavailable" in updated.deletion_metadata["last_error"]["identity_error"]


@pytest.mark.asyncio
async def test_sweep_counts_lost_race_as_already_completed(mock_uow, uow_factory, identity_provider):
    _arrange(mock_uow, [_due(1, uuid4())], won=False)

    result = await RunRetentionSweepUseCase(uow_factory, identity_provider).execute()

    assert result.value.already_completed == 1
    assert result.value.database_cleanup_count == 0
    mock_uow.audit_events.create.assert_not_called()


@pytest.mark.asyncio
async def test_sweep_purge_failure_skips_identity(mock_uow, uow_factory, identity_provider):
    # Arrange
    user_id = uuid4()
    identity_provider.add(user_id)
    _arrange(mock_uow, [_due(1, user_id)])
    mock_uow.references.delete_matching = AsyncMock(side_effect=StoreError("lock timeout"))

    # Act
    result = await RunRetentionSweepUseCase(uow_factory, identity_provider).execute()

    # Assert
    response = result.value
    assert response.auth_cleanup_count == 0
    assert response.auth_cleanup_errors[0].step == "purge:user_subscriptions"
    assert user_id in identity_provider.identities
    mock_uow.deletions.complete_if_pending.assert_not_called()


@pytest.mark.asyncio
async def test_sweep_nothing_due(mock_uow, uow_factory, identity_provider):
    _arrange(mock_uow, [])

    result = await RunRetentionSweepUseCase(uow_factory, identity_provider).execute()

    assert result.is_ok()
    assert result.value.total_processed == 0


@pytest.mark.asyncio
async def test_sweep_store_unavailable(mock_uow, uow_factory, identity_provider):
    mock_uow.deletions.list_due = AsyncMock(side_effect=StoreError("connection refused"))

    result = await RunRetentionSweepUseCase(uow_factory, identity_provider).execute()

    assert result.is_err()
    assert result.error.code == "DELETIONS_UNAVAILABLE"
