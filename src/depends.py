from typing import Callable

from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.identity_provider import HttpIdentityProvider
from src.adapter.services.retention_scheduler import RetentionSweepScheduler
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.services.identity_provider import IIdentityProvider
from src.app.services.unit_of_work import UnitOfWork
from src.app.use_cases.accounts import RunRetentionSweepUseCase

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

UnitOfWorkFactory = Callable[[], UnitOfWork]


def unit_of_work_factory() -> UnitOfWork:
    return SqlAlchemyUnitOfWork(session_factory=AsyncSessionLocal)


def identity_provider() -> IIdentityProvider:
    return HttpIdentityProvider(
        base_url=ApplicationConfig.IDENTITY_ADMIN_URL,
        service_key=ApplicationConfig.IDENTITY_SERVICE_KEY,
        timeout=ApplicationConfig.IDENTITY_TIMEOUT_SECONDS,
        page_size=ApplicationConfig.IDENTITY_PAGE_SIZE,
    )


async def run_retention_sweep():
    use_case = RunRetentionSweepUseCase(
        unit_of_work_factory,
        identity_provider(),
        max_workers=ApplicationConfig.WORKER_POOL_SIZE,
    )
    return await use_case.execute()


retention_scheduler = RetentionSweepScheduler(
    run_retention_sweep,
    interval_hours=ApplicationConfig.RETENTION_SWEEP_INTERVAL_HOURS,
    initial_delay_seconds=ApplicationConfig.RETENTION_SWEEP_INITIAL_DELAY_SECONDS,
    enabled=ApplicationConfig.RETENTION_SWEEP_ENABLED,
)


async def get_unit_of_work_factory() -> UnitOfWorkFactory:
    return unit_of_work_factory


async def get_identity_provider() -> IIdentityProvider:
    return identity_provider()


async def get_retention_scheduler() -> RetentionSweepScheduler:
    return retention_scheduler


async def get_worker_pool_size() -> int:
    return ApplicationConfig.WORKER_POOL_SIZE
