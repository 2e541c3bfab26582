"""
Unit tests for SyncUserProfilesUseCase and ListIdentitiesUseCase
"""

import pytest
from unittest.mock import AsyncMock
from datetime import datetime, timedelta, timezone
from uuid import uuid4

from src.app.services.identity_provider import Identity
from src.app.use_cases.accounts import ListIdentitiesUseCase, SyncUserProfilesUseCase
from src.domain.base import utcnow
from src.domain.entities import AccountDeletion, UserProfile


@pytest.mark.asyncio
async def test_sync_upserts_profiles_and_skips_pending_deletions(mock_uow, uow_factory, identity_provider):
    # Arrange
    active_id, deleted_id = uuid4(), uuid4()
    signed_in = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=2)))
    identity_provider.identities = {
        active_id: Identity(id=active_id, email="a@shop.test", last_sign_in_at=signed_in),
        deleted_id: Identity(id=deleted_id, email="d@shop.test"),
    }
    pending = AccountDeletion(
        id=1, user_id=deleted_id, scheduled_cleanup_at=utcnow() + timedelta(days=3)
    )
    existing = UserProfile(id=active_id, email="old@shop.test", tenant_id=4)

    async def get_active(user_id):
        return pending if user_id == deleted_id else None

    mock_uow.deletions.get_active_by_user_id = AsyncMock(side_effect=get_active)
    mock_uow.profiles.get_by_id = AsyncMock(return_value=existing)
    mock_uow.profiles.upsert = AsyncMock(side_effect=lambda profile: profile)

    # Act
    result = await SyncUserProfilesUseCase(uow_factory, identity_provider).execute()

    # Assert
    assert result.is_ok()
    assert result.value.count == 1
    assert result.value.skipped_pending_deletion == 1

    profile = mock_uow.profiles.upsert.call_args[0][0]
    assert profile.id == active_id
    assert profile.email == "a@shop.test"
    assert profile.tenant_id == 4  # tenant pointer untouched by sync
    assert profile.last_sign_in_at == datetime(2024, 5, 1, 10, 0)
    mock_uow.commit.assert_called_once()


@pytest.mark.asyncio
async def test_sync_identity_provider_down(mock_uow, uow_factory, identity_provider):
    identity_provider.fail_all = True

    result = await SyncUserProfilesUseCase(uow_factory, identity_provider).execute()

    assert result.is_err()
    assert result.error.code == "IDENTITY_PROVIDER_UNAVAILABLE"
    mock_uow.commit.assert_not_called()


@pytest.mark.asyncio
async def test_list_identities(identity_provider):
    user_id = uuid4()
    identity_provider.add(user_id, "a@shop.test")

    result = await ListIdentitiesUseCase(identity_provider).execute()

    assert result.is_ok()
    assert [u.id for u in result.value.users] == [user_id]
