"""Tests for CachedApiKeyService, backed by the in-memory repository."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from aiocache import SimpleMemoryCache

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.models import ApiKeyMeta, Renaming
from shortener_keys.repositories.in_memory import InMemoryApiKeyRepository, InMemoryUnitOfWork
from shortener_keys.services.cached import CachedApiKeyService
from shortener_keys.utils import datetime_factory


@pytest.fixture
def repo() -> InMemoryApiKeyRepository:
    return InMemoryApiKeyRepository()


@pytest.fixture
def service(repo: InMemoryApiKeyRepository) -> CachedApiKeyService:
    return CachedApiKeyService(uow=InMemoryUnitOfWork(repo), repo=repo, cache=SimpleMemoryCache())


async def _create(service: CachedApiKeyService, **kwargs) -> str:
    api_key = await service.create(ApiKeyMeta.from_params(**kwargs))
    return api_key.plain_key


@pytest.mark.asyncio
async def test_check_hits_repository_once(service: CachedApiKeyService, repo: InMemoryApiKeyRepository):
    plain_key = await _create(service, name="cached")
    repo.find_one_by = AsyncMock(wraps=repo.find_one_by)

    first = await service.check(plain_key)
    second = await service.check(plain_key)

    assert first.is_valid() and second.is_valid()
    assert second.api_key.name == "cached"
    repo.find_one_by.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_keys_are_not_cached(service: CachedApiKeyService):
    result = await service.check("unknown")

    assert result.is_valid() is False
    assert result.api_key is None
    assert await service.cache.get(service._get_cache_key(ApiKey.hash_key("unknown"))) is None


@pytest.mark.asyncio
async def test_disable_invalidates_cache(service: CachedApiKeyService, repo: InMemoryApiKeyRepository):
    plain_key = await _create(service, name="to-disable")
    assert (await service.check(plain_key)).is_valid()

    await service.disable_by_name("to-disable")
    repo.find_one_by = AsyncMock(wraps=repo.find_one_by)
    result = await service.check(plain_key)

    assert result.is_valid() is False
    repo.find_one_by.assert_awaited_once()


@pytest.mark.asyncio
async def test_disable_by_key_invalidates_cache(service: CachedApiKeyService):
    plain_key = await _create(service)
    await service.check(plain_key)

    await service.disable_by_key(plain_key)

    assert (await service.check(plain_key)).is_valid() is False


@pytest.mark.asyncio
async def test_rename_invalidates_cache(service: CachedApiKeyService):
    plain_key = await _create(service, name="old")
    await service.check(plain_key)

    await service.rename_api_key(Renaming.from_names(old_name="old", new_name="new"))
    result = await service.check(plain_key)

    assert result.api_key.name == "new"


@pytest.mark.asyncio
async def test_cached_entry_still_expires(service: CachedApiKeyService):
    """Validity is recomputed on cache hits."""
    plain_key = await _create(service, expiration_date=datetime_factory() + timedelta(hours=1))
    result = await service.check(plain_key)
    assert result.is_valid()

    result.api_key.expiration_date = datetime_factory() - timedelta(seconds=1)

    assert (await service.check(plain_key)).is_valid() is False


@pytest.mark.asyncio
async def test_entries_are_stored_with_ttl(repo: InMemoryApiKeyRepository):
    cache = SimpleMemoryCache()
    service = CachedApiKeyService(uow=InMemoryUnitOfWork(repo), repo=repo, cache=cache, cache_ttl=60)
    plain_key = await _create(service, name="ttl")
    cache.set = AsyncMock(wraps=cache.set)

    await service.check(plain_key)

    cache.set.assert_awaited_once()
    assert cache.set.await_args.kwargs["ttl"] == 60
