import importlib.metadata

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.errors import ApiKeyError, KeyNotFound, NameAlreadyInUse
from shortener_keys.domain.models import ApiKeyCheckResult, ApiKeyMeta, Renaming
from shortener_keys.domain.roles import Role, RoleDefinition
from shortener_keys.repositories.in_memory import InMemoryApiKeyRepository, InMemoryUnitOfWork
from shortener_keys.services.base import ApiKeyService

__all__ = [
    "ApiKey",
    "ApiKeyCheckResult",
    "ApiKeyError",
    "ApiKeyMeta",
    "ApiKeyService",
    "InMemoryApiKeyRepository",
    "InMemoryUnitOfWork",
    "KeyNotFound",
    "NameAlreadyInUse",
    "Renaming",
    "Role",
    "RoleDefinition",
]

__version__ = importlib.metadata.version("shortener-api-keys")
