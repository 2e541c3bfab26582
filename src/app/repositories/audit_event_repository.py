from abc import ABC, abstractmethod
from typing import Optional

from src.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """AuditEvent repository interface - application layer"""

    @abstractmethod
    async def create(self, audit_event: AuditEvent) -> AuditEvent:
        """Create a new audit event (immutable)"""
        pass

    @abstractmethod
    async def get_latest(self, action: str, tenant_id: int) -> Optional[AuditEvent]:
        """Get the newest event with the given action for a tenant"""
        pass
