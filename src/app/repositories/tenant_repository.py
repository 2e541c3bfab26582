from abc import ABC, abstractmethod
from typing import List, Optional

from src.domain.entities import Tenant


class ITenantRepository(ABC):
    """Tenant repository interface - application layer"""

    @abstractmethod
    async def get_by_id(self, tenant_id: int) -> Optional[Tenant]:
        """Get tenant by ID"""
        pass

    @abstractmethod
    async def list_all(self) -> List[Tenant]:
        """Get every tenant ordered by id"""
        pass

    @abstractmethod
    async def create(self, tenant: Tenant) -> Tenant:
        """Create a new tenant"""
        pass

    @abstractmethod
    async def rename(self, tenant_id: int, name: str) -> int:
        """Update display name only. Returns number of rows updated"""
        pass

    @abstractmethod
    async def delete_by_id(self, tenant_id: int) -> int:
        """Delete tenant row. Returns number of rows deleted (0 if already gone)"""
        pass
