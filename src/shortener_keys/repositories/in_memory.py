from typing import Dict, List, Optional

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.models import ApiKeyMeta
from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork, ApiKeyCriteria


class InMemoryApiKeyRepository(AbstractApiKeyRepository):
    """In-memory implementation of the AbstractApiKeyRepository.

    Notes:
        This implementation is not thread-safe, don't use
        in production. This implementation don't have
        persistence and will lose all data when the
        application stops.
    """

    def __init__(self, hasher: Optional[ApiKeyHasher] = None) -> None:
        self._store: Dict[str, ApiKey] = {}
        self._hasher = hasher

    def save(self, entity: ApiKey) -> None:
        self._store[entity.id_] = entity

    async def count(self, criteria: ApiKeyCriteria) -> int:
        return sum(1 for entity in self._store.values() if criteria.matches(entity))

    async def find_one_by(self, criteria: ApiKeyCriteria) -> Optional[ApiKey]:
        for entity in self._store.values():
            if criteria.matches(entity):
                return entity

        return None

    async def find_by(self, criteria: ApiKeyCriteria) -> List[ApiKey]:
        items = [entity for entity in self._store.values() if criteria.matches(entity)]
        return sorted(items, key=lambda x: x.created_at, reverse=True)

    async def create_initial_api_key(self, raw_key: str) -> Optional[ApiKey]:
        if self._store:
            return None

        entity = ApiKey.from_meta(ApiKeyMeta.with_key(raw_key), hasher=self._hasher)
        self.save(entity)
        return entity


class InMemoryUnitOfWork(AbstractUnitOfWork):
    """Unit of work writing into an InMemoryApiKeyRepository on flush."""

    def __init__(self, repo: InMemoryApiKeyRepository) -> None:
        self._repo = repo
        self._pending: Dict[str, ApiKey] = {}

    def persist(self, entity: ApiKey) -> None:
        self._pending[entity.id_] = entity

    async def flush(self) -> None:
        for entity in self._pending.values():
            self._repo.save(entity)

        self._pending.clear()
