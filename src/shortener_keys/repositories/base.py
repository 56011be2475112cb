from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from shortener_keys.domain.entities import ApiKey


@dataclass(frozen=True)
class ApiKeyCriteria:
    """Typed lookup criteria for API keys.

    Every field left to ``None`` is ignored, so ``ApiKeyCriteria()`` matches
    every stored key.

    Attributes:
        key: Hash of the raw key (see ``ApiKey.hash_key``).
        name: Exact name.
        enabled: Enabled flag.
    """

    key: Optional[str] = None
    name: Optional[str] = None
    enabled: Optional[bool] = None

    def matches(self, entity: ApiKey) -> bool:
        """Python-side evaluation, used by the in-memory backend."""
        if self.key is not None and entity.key != self.key:
            return False

        if self.name is not None and entity.name != self.name:
            return False

        if self.enabled is not None and entity.enabled != self.enabled:
            return False

        return True


class AbstractApiKeyRepository(ABC):
    """Read side of API key persistence, plus the initial key bootstrap."""

    @abstractmethod
    async def count(self, criteria: ApiKeyCriteria) -> int:
        """Count the keys matching the criteria."""
        ...

    @abstractmethod
    async def find_one_by(self, criteria: ApiKeyCriteria) -> Optional[ApiKey]:
        """Get the first key matching the criteria, or None if not found."""
        ...

    @abstractmethod
    async def find_by(self, criteria: ApiKeyCriteria) -> List[ApiKey]:
        """List keys matching the criteria, most recent first."""
        ...

    @abstractmethod
    async def create_initial_api_key(self, raw_key: str) -> Optional[ApiKey]:
        """Store a key built from ``raw_key`` only if no key exists yet.

        Notes:
            Returns the created key, or None if there was at least one key
            already. The check and the insert must happen in the same
            transaction.
        """
        ...


class AbstractUnitOfWork(ABC):
    """Transactional boundary for API key writes.

    ``persist`` stages an entity (new or modified), ``flush`` writes every
    staged entity and commits.
    """

    @abstractmethod
    def persist(self, entity: ApiKey) -> None: ...

    @abstractmethod
    async def flush(self) -> None: ...
