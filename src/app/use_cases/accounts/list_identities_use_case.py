import logging

from libs.result import Error, Result, Return
from src.app.services.errors import IdentityProviderError
from src.app.services.identity_provider import IIdentityProvider

from .dtos import ListUsersResponse

logger = logging.getLogger(__name__)


class ListIdentitiesUseCase:
    """List every identity held by the identity provider"""

    def __init__(self, identity_provider: IIdentityProvider):
        self.identity_provider = identity_provider

    async def execute(self) -> Result[ListUsersResponse]:
        try:
            identities = await self.identity_provider.list_identities()
        except IdentityProviderError as exc:
            logger.error(f"Listing identities failed: {exc}")
            return Return.err(
                Error(
                    "IDENTITY_PROVIDER_UNAVAILABLE",
                    "Could not list users from the identity provider",
                    reason=str(exc),
                )
            )
        return Return.ok(ListUsersResponse(users=identities))
