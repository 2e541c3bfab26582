import pytest_asyncio
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from tests.fixtures.identity_provider import InMemoryIdentityProvider
from tests.fixtures.json_loader import TestDataLoader
from src.depends import (
    get_identity_provider,
    get_retention_scheduler,
    get_unit_of_work_factory,
    get_worker_pool_size,
)
from src.adapter.services.retention_scheduler import RetentionSweepScheduler
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.accounts import RunRetentionSweepUseCase


@pytest_asyncio.fixture
def test_data():
    return TestDataLoader()


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
def identity_provider():
    return InMemoryIdentityProvider()


@pytest_asyncio.fixture
def uow_factory(db_session):
    return lambda: SqlAlchemyUnitOfWork(db_session)


@pytest_asyncio.fixture
def retention_scheduler(uow_factory, identity_provider):
    async def run_sweep():
        return await RunRetentionSweepUseCase(uow_factory, identity_provider, max_workers=1).execute()

    return RetentionSweepScheduler(run_sweep, enabled=False)


@pytest_asyncio.fixture
async def client(uow_factory, identity_provider, retention_scheduler):
    from httpx import ASGITransport
    from src.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work_factory():
        return uow_factory

    async def override_get_identity_provider():
        return identity_provider

    async def override_get_retention_scheduler():
        return retention_scheduler

    async def override_get_worker_pool_size():
        # All store calls share one test session
        return 1

    app.dependency_overrides[get_unit_of_work_factory] = override_get_unit_of_work_factory
    app.dependency_overrides[get_identity_provider] = override_get_identity_provider
    app.dependency_overrides[get_retention_scheduler] = override_get_retention_scheduler
    app.dependency_overrides[get_worker_pool_size] = override_get_worker_pool_size

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
