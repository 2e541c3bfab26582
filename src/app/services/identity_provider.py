from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Authentication identity as reported by the identity provider"""

    id: UUID
    email: Optional[str] = None
    user_metadata: dict = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None


class IIdentityProvider(ABC):
    """Identity provider interface - only the operations this service consumes"""

    @abstractmethod
    async def delete_identity(self, user_id: UUID) -> bool:
        """
        Delete an identity.

        Returns:
            True if deleted, False if it did not exist (treated as success)

        Raises:
            IdentityProviderError: the provider could not be reached or refused
        """
        pass

    @abstractmethod
    async def list_identities(self) -> List[Identity]:
        """List every identity"""
        pass
