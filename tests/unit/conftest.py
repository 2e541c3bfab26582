import pytest
from unittest.mock import AsyncMock, MagicMock

from tests.fixtures.identity_provider import InMemoryIdentityProvider


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()
    return uow


@pytest.fixture
def uow_factory(mock_uow):
    # Every store call in a use case gets the same mock
    return lambda: mock_uow


@pytest.fixture
def identity_provider():
    return InMemoryIdentityProvider()
