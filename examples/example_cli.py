import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from shortener_keys import ApiKeyService
from shortener_keys.cli import create_api_keys_cli
from shortener_keys.hasher import HmacSha256ApiKeyHasher
from shortener_keys.repositories.sql import SqlAlchemyApiKeyRepository, SqlAlchemyUnitOfWork

# The pepper must never change once keys have been generated
pepper = os.environ.get("API_KEY_PEPPER")
db_path = Path(__file__).parent / "db.sqlite3"
database_url = os.environ.get("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

print(f"Using database URL: {database_url}")
async_engine = create_async_engine(database_url)
async_session_maker = async_sessionmaker(
    async_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)
hasher = HmacSha256ApiKeyHasher(pepper=pepper)


@asynccontextmanager
async def service_factory() -> AsyncIterator[ApiKeyService]:
    """Yield an ApiKeyService backed by the SQLite SQLAlchemy repository."""
    async with async_session_maker() as async_session:
        repo = SqlAlchemyApiKeyRepository(async_session=async_session, hasher=hasher)
        await repo.ensure_table()
        try:
            yield ApiKeyService(uow=SqlAlchemyUnitOfWork(async_session), repo=repo, hasher=hasher)
        except Exception:
            await async_session.rollback()
            raise


app = create_api_keys_cli(service_factory)


if __name__ == "__main__":
    # Run the CLI with `uv run examples/example_cli.py`
    app()
