from collections.abc import AsyncIterator
from typing import Iterator, Tuple

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from shortener_keys.hasher.sha256 import Sha256ApiKeyHasher
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork
from shortener_keys.repositories.in_memory import InMemoryApiKeyRepository, InMemoryUnitOfWork
from shortener_keys.repositories.sql import Base, SqlAlchemyApiKeyRepository, SqlAlchemyUnitOfWork


@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncIterator[AsyncEngine]:
    """Create an in-memory SQLite async engine."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_session(async_engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Provide an AsyncSession bound to the in-memory engine."""
    async_session_maker = async_sessionmaker(
        async_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_maker() as session:
        yield session


@pytest.fixture(scope="function")
def hasher() -> Sha256ApiKeyHasher:
    return Sha256ApiKeyHasher()


@pytest.fixture(params=["memory", "sqlalchemy"], scope="function")
def backend(
    request: pytest.FixtureRequest,
    async_session: AsyncSession,
    hasher: Sha256ApiKeyHasher,
) -> Iterator[Tuple[AbstractApiKeyRepository, AbstractUnitOfWork]]:
    """Fixture to provide each repository implementation with its unit of work."""
    if request.param == "memory":
        repo = InMemoryApiKeyRepository(hasher=hasher)
        yield repo, InMemoryUnitOfWork(repo)
    elif request.param == "sqlalchemy":
        yield SqlAlchemyApiKeyRepository(async_session=async_session, hasher=hasher), SqlAlchemyUnitOfWork(
            async_session
        )
    else:
        raise ValueError(f"Unknown repository type: {request.param}")


@pytest.fixture(scope="function")
def repository(backend: Tuple[AbstractApiKeyRepository, AbstractUnitOfWork]) -> AbstractApiKeyRepository:
    return backend[0]


@pytest.fixture(scope="function")
def unit_of_work(backend: Tuple[AbstractApiKeyRepository, AbstractUnitOfWork]) -> AbstractUnitOfWork:
    return backend[1]
