try:
    import aiocache  # noqa: F401
except ModuleNotFoundError as e:
    raise ImportError(
        "CachedApiKeyService requires 'aiocache'. Install it with: uv add shortener-api-keys[aiocache]"
    ) from e

from typing import Optional

import aiocache
from aiocache import BaseCache
from loguru import logger

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.models import ApiKeyCheckResult, Renaming
from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork
from shortener_keys.services.base import ApiKeyService


class CachedApiKeyService(ApiKeyService):
    """API key service caching the lookups done by ``check``.

    The cache key is built from the key hash, so only callers knowing the raw
    key can hit it. Cached entries hold the entity, never a verdict: validity
    is recomputed on every check so expiration still applies. Entries are
    dropped whenever a key is disabled or renamed.

    Attributes:
        cache: The aiocache backend instance.
        cache_prefix: Prefix for cache keys (default: "api_key").
        cache_ttl: Seconds an entry lives, None for no expiry.
    """

    cache: aiocache.BaseCache

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        repo: AbstractApiKeyRepository,
        cache: Optional[BaseCache] = None,
        cache_prefix: str = "api_key",
        cache_ttl: Optional[int] = None,
        hasher: Optional[ApiKeyHasher] = None,
    ) -> None:
        super().__init__(uow=uow, repo=repo, hasher=hasher)
        self.cache = cache or aiocache.SimpleMemoryCache()
        self.cache_prefix = cache_prefix
        self.cache_ttl = cache_ttl

    def _get_cache_key(self, key_hash: str) -> str:
        return f"{self.cache_prefix}:{key_hash}"

    async def _invalidate_cache(self, api_key: ApiKey) -> None:
        await self.cache.delete(self._get_cache_key(api_key.key))

    async def check(self, raw_key: str) -> ApiKeyCheckResult:
        cache_key = self._get_cache_key(ApiKey.hash_key(raw_key, hasher=self._hasher))
        cached = await self.cache.get(cache_key)

        if cached is not None:
            logger.debug(f"API key '{cached.name}' served from cache")
            return ApiKeyCheckResult(api_key=cached, valid=cached.is_valid())

        result = await super().check(raw_key)

        # Unknown keys are not cached, they may be created later.
        if result.api_key is not None:
            await self.cache.set(cache_key, result.api_key, ttl=self.cache_ttl)

        return result

    async def disable_by_key(self, raw_key: str) -> ApiKey:
        api_key = await super().disable_by_key(raw_key)
        await self._invalidate_cache(api_key)
        return api_key

    async def disable_by_name(self, name: str) -> ApiKey:
        api_key = await super().disable_by_name(name)
        await self._invalidate_cache(api_key)
        return api_key

    async def rename_api_key(self, renaming: Renaming) -> ApiKey:
        api_key = await super().rename_api_key(renaming)
        await self._invalidate_cache(api_key)
        return api_key
