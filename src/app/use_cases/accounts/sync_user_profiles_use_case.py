"""
Use Case: Sync User Profiles

Mirrors identities from the identity provider into user_profiles.
"""

import logging
from typing import Callable

from libs.result import Error, Result, Return
from src.app.services.errors import IdentityProviderError, StoreError
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.domain.base import to_naive_utc
from src.domain.entities import UserProfile

from .dtos import SyncUsersResponse

logger = logging.getLogger(__name__)


class SyncUserProfilesUseCase:
    """
    Upsert one profile per identity, keyed on the identity id.

    Business Logic:
    1. List identities
    2. Skip users with a pending deletion so a sync never re-creates purged rows
    3. Upsert email, metadata and timestamps; tenant_id and status are kept
    """

    def __init__(self, uow_factory: Callable[[], UnitOfWork], identity_provider: IIdentityProvider):
        self.uow_factory = uow_factory
        self.identity_provider = identity_provider

    async def execute(self) -> Result[SyncUsersResponse]:
        """
        Errors:
            - IDENTITY_PROVIDER_UNAVAILABLE: identities could not be listed
            - SYNC_FAILED: profiles could not be written
        """
        try:
            identities = await self.identity_provider.list_identities()
        except IdentityProviderError as exc:
            logger.error(f"Sync aborted, listing identities failed: {exc}")
            return Return.err(
                Error(
                    "IDENTITY_PROVIDER_UNAVAILABLE",
                    "Could not list users from the identity provider",
                    reason=str(exc),
                )
            )

        response = SyncUsersResponse()
        uow = self.uow_factory()
        try:
            async with uow:
                for identity in identities:
                    if await uow.deletions.get_active_by_user_id(identity.id) is not None:
                        response.skipped_pending_deletion += 1
                        continue

                    profile = await uow.profiles.get_by_id(identity.id)
                    if profile is None:
                        profile = UserProfile(id=identity.id)
                    profile.email = identity.email
                    profile.user_metadata = identity.user_metadata
                    profile.created_at = to_naive_utc(identity.created_at) or profile.created_at
                    profile.last_sign_in_at = to_naive_utc(identity.last_sign_in_at)
                    await uow.profiles.upsert(profile)
                    response.count += 1
                await uow.commit()
        except StoreError as exc:
            logger.error(f"Profile sync failed: {exc}")
            return Return.err(Error("SYNC_FAILED", "Failed syncing users", reason=str(exc)))

        logger.info(
            f"Synced {response.count} profiles, skipped {response.skipped_pending_deletion} pending deletion"
        )
        return Return.ok(response)
