from abc import ABC, abstractmethod
from typing import List, Optional

from loguru import logger

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.errors import KeyNotFound, NameAlreadyInUse
from shortener_keys.domain.models import ApiKeyCheckResult, ApiKeyMeta, Renaming
from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.hasher.sha256 import Sha256ApiKeyHasher
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork, ApiKeyCriteria


class AbstractApiKeyService(ABC):
    """Service contract for the API key lifecycle.

    Args:
        uow: Unit of work used to stage and commit writes.
        repo: Repository used for lookups.
        hasher: Hasher for raw keys. Defaults to Sha256ApiKeyHasher. Must be
            the same hasher the repository uses for initial keys.

    Notes:
        Every check (name in use, key not found) runs before anything is
        staged, so failing calls never commit.
    """

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        repo: AbstractApiKeyRepository,
        hasher: Optional[ApiKeyHasher] = None,
    ) -> None:
        self._uow = uow
        self._repo = repo
        self._hasher = hasher or Sha256ApiKeyHasher()

    @abstractmethod
    async def create(self, meta: ApiKeyMeta) -> ApiKey:
        """Create and persist a new API key.

        Raises:
            NameAlreadyInUse: If the key name, given or derived, is already taken.
        """
        ...

    @abstractmethod
    async def create_initial(self, raw_key: str) -> Optional[ApiKey]:
        """Create a key from ``raw_key`` only if there are no keys at all.

        Returns:
            The created key, or None if keys already existed.
        """
        ...

    @abstractmethod
    async def check(self, raw_key: str) -> ApiKeyCheckResult:
        """Resolve a raw key and tell whether it can be used right now."""
        ...

    @abstractmethod
    async def disable_by_key(self, raw_key: str) -> ApiKey:
        """Disable the key matching ``raw_key``.

        Raises:
            KeyNotFound: If no key matches.
        """
        ...

    @abstractmethod
    async def disable_by_name(self, name: str) -> ApiKey:
        """Disable the key named ``name``.

        Raises:
            KeyNotFound: If no key has that name.
        """
        ...

    @abstractmethod
    async def list_keys(self, enabled_only: bool = False) -> List[ApiKey]:
        """List keys, most recent first."""
        ...

    @abstractmethod
    async def rename_api_key(self, renaming: Renaming) -> ApiKey:
        """Rename a key.

        Raises:
            KeyNotFound: If no key has ``renaming.old_name``.
            NameAlreadyInUse: If ``renaming.new_name`` is taken by another key.
        """
        ...


class ApiKeyService(AbstractApiKeyService):
    """Concrete implementation of the API key service.

    Example:
        Basic usage::

            repo = InMemoryApiKeyRepository()
            service = ApiKeyService(uow=InMemoryUnitOfWork(repo), repo=repo)
            api_key = await service.create(ApiKeyMeta.from_params(name="ci"))
            result = await service.check(api_key.plain_key)
    """

    async def create(self, meta: ApiKeyMeta) -> ApiKey:
        # Unnamed keys get a name derived from the raw key, which must be free too.
        api_key = ApiKey.from_meta(meta, hasher=self._hasher)
        await self._ensure_name_is_free(api_key.name)

        self._uow.persist(api_key)
        await self._uow.flush()

        logger.info(f"API key '{api_key.name}' created")
        return api_key

    async def create_initial(self, raw_key: str) -> Optional[ApiKey]:
        api_key = await self._repo.create_initial_api_key(raw_key)

        if api_key is None:
            logger.info("Initial API key skipped, API keys already exist")
        else:
            logger.info(f"Initial API key '{api_key.name}' created")

        return api_key

    async def check(self, raw_key: str) -> ApiKeyCheckResult:
        api_key = await self._find_by_raw_key(raw_key)

        if api_key is None:
            logger.debug("API key check failed, no match")
            return ApiKeyCheckResult()

        valid = api_key.is_valid()
        logger.debug(f"API key '{api_key.name}' checked, valid={valid}")
        return ApiKeyCheckResult(api_key=api_key, valid=valid)

    async def disable_by_key(self, raw_key: str) -> ApiKey:
        api_key = await self._find_by_raw_key(raw_key)

        if api_key is None:
            raise KeyNotFound.for_key()

        return await self._disable(api_key)

    async def disable_by_name(self, name: str) -> ApiKey:
        api_key = await self._repo.find_one_by(ApiKeyCriteria(name=name))

        if api_key is None:
            raise KeyNotFound.for_name(name)

        return await self._disable(api_key)

    async def list_keys(self, enabled_only: bool = False) -> List[ApiKey]:
        criteria = ApiKeyCriteria(enabled=True) if enabled_only else ApiKeyCriteria()
        return await self._repo.find_by(criteria)

    async def rename_api_key(self, renaming: Renaming) -> ApiKey:
        api_key = await self._repo.find_one_by(ApiKeyCriteria(name=renaming.old_name))

        if api_key is None:
            raise KeyNotFound.for_name(renaming.old_name)

        if not renaming.name_changed():
            return api_key

        await self._ensure_name_is_free(renaming.new_name)

        api_key.name = renaming.new_name
        self._uow.persist(api_key)
        await self._uow.flush()

        logger.info(f"API key '{renaming.old_name}' renamed to '{renaming.new_name}'")
        return api_key

    async def _find_by_raw_key(self, raw_key: str) -> Optional[ApiKey]:
        key_hash = ApiKey.hash_key(raw_key, hasher=self._hasher)
        return await self._repo.find_one_by(ApiKeyCriteria(key=key_hash))

    async def _ensure_name_is_free(self, name: str) -> None:
        # Fast path only, the storage unique constraint is the real guard.
        if await self._repo.count(ApiKeyCriteria(name=name)) > 0:
            raise NameAlreadyInUse(name)

    async def _disable(self, api_key: ApiKey) -> ApiKey:
        api_key.disable()
        self._uow.persist(api_key)
        await self._uow.flush()

        logger.info(f"API key '{api_key.name}' disabled")
        return api_key
