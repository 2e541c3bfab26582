from abc import ABC, abstractmethod

from src.app.repositories.account_deletion_repository import IAccountDeletionRepository
from src.app.repositories.audit_event_repository import IAuditEventRepository
from src.app.repositories.reference_repository import IReferenceRepository
from src.app.repositories.tenant_repository import ITenantRepository
from src.app.repositories.user_profile_repository import IUserProfileRepository


class UnitOfWork(ABC):
    """
    Abstract UnitOfWork - defines repository access and transaction management.

    One ``async with`` block is one store call that commits or fails as a unit.
    Multi-table operations open one block per step; there is no transaction
    spanning steps.
    """

    # Repository properties (initialized in __aenter__)
    tenants: ITenantRepository
    profiles: IUserProfileRepository
    deletions: IAccountDeletionRepository
    references: IReferenceRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self):
        pass

    @abstractmethod
    async def __aexit__(self, *args):
        pass

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
