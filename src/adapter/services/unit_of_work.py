import logging
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel.ext.asyncio.session import AsyncSession

from src.adapter.repositories.account_deletion_repository import AccountDeletionRepository
from src.adapter.repositories.audit_event_repository import AuditEventRepository
from src.adapter.repositories.reference_repository import ReferenceRepository
from src.adapter.repositories.tenant_repository import TenantRepository
from src.adapter.repositories.user_profile_repository import UserProfileRepository
from src.app.services.errors import StoreError
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    SQLAlchemy implementation of UnitOfWork pattern.

    Either wraps a caller-owned session, or opens (and closes) its own from
    session_factory on every ``async with``. SQLAlchemy errors leave the
    block as StoreError.
    """

    def __init__(
        self,
        session: Optional[AsyncSession] = None,
        session_factory: Optional[Callable[[], AsyncSession]] = None,
    ):
        if session is None and session_factory is None:
            raise ValueError("SqlAlchemyUnitOfWork needs a session or a session_factory")
        self.session = session
        self.session_factory = session_factory
        self._owns_session = session is None

    async def __aenter__(self):
        if self._owns_session:
            self.session = self.session_factory()

        # Initialize all repositories with the session
        self.tenants = TenantRepository(self.session)
        self.profiles = UserProfileRepository(self.session)
        self.deletions = AccountDeletionRepository(self.session)
        self.references = ReferenceRepository(self.session)
        self.audit_events = AuditEventRepository(self.session)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        # Loaded entities stay readable after the block
        self.session.expunge_all()
        try:
            await self.rollback()
        except SQLAlchemyError as rollback_exc:
            logger.warning(f"Rollback failed: {rollback_exc}")
        finally:
            if self._owns_session:
                await self.session.close()
                self.session = None

        if exc_type is not None and issubclass(exc_type, SQLAlchemyError):
            raise StoreError(str(exc)) from exc
        return False

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        await self.session.rollback()
