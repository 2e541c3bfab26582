import logging
from typing import Any, Dict, List, Optional
from uuid import UUID

import httpx

from src.app.services.errors import IdentityProviderError
from src.app.services.identity_provider import IIdentityProvider, Identity

logger = logging.getLogger(__name__)


class HttpIdentityProvider(IIdentityProvider):
    """Identity provider reached through its HTTP admin API"""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: float = 10.0,
        page_size: int = 1000,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.page_size = page_size
        self.transport = transport
        self.headers = {
            "Authorization": f"Bearer {service_key}",
            "apikey": service_key,
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self.headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def delete_identity(self, user_id: UUID) -> bool:
        """Delete an identity; 404 means it is already gone"""
        try:
            async with self._client() as client:
                response = await client.delete(f"/admin/users/{user_id}")
        except httpx.HTTPError as exc:
            raise IdentityProviderError(f"delete of identity {user_id} failed: {exc}") from exc

        if response.status_code == 404:
            return False
        if response.status_code >= 400:
            raise IdentityProviderError(
                f"delete of identity {user_id} rejected: {response.status_code} {response.text}",
                status_code=response.status_code,
            )
        logger.info(f"Deleted identity {user_id}")
        return True

    async def list_identities(self) -> List[Identity]:
        """Page through every identity"""
        identities: List[Identity] = []
        page = 1
        try:
            async with self._client() as client:
                while True:
                    response = await client.get(
                        "/admin/users", params={"page": page, "per_page": self.page_size}
                    )
                    if response.status_code >= 400:
                        raise IdentityProviderError(
                            f"listing identities rejected: {response.status_code} {response.text}",
                            status_code=response.status_code,
                        )
                    users = self._users(response.json())
                    identities.extend(Identity.model_validate(user) for user in users)
                    if len(users) < self.page_size:
                        break
                    page += 1
        except httpx.HTTPError as exc:
            raise IdentityProviderError(f"listing identities failed: {exc}") from exc
        except ValueError as exc:
            raise IdentityProviderError(f"identity provider returned malformed users: {exc}") from exc
        return identities

    @staticmethod
    def _users(payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, dict):
            return payload.get("users") or []
        return payload or []
