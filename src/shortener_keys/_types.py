from contextlib import AbstractAsyncContextManager
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shortener_keys.services.base import AbstractApiKeyService


AsyncSessionMaker = async_sessionmaker[AsyncSession]
"""Type alias for an "async_sessionmaker" instance of SQLAlchemy."""

ServiceFactory = Callable[[], AbstractAsyncContextManager[AbstractApiKeyService]]
"""Callable returning an async context manager that yields an API key service instance."""
