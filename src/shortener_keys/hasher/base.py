import hmac
import warnings
from abc import ABC, abstractmethod
from typing import Optional, Protocol

DEFAULT_PEPPER = "super-secret-pepper"


class ApiKeyHasher(Protocol):
    """Protocol for API key hashing and verification.

    Notes:
        Hashes must be deterministic. Keys are looked up by recomputing the
        hash of the supplied raw key, so per-hash salts cannot be used.
    """

    def hash(self, api_key: str) -> str:
        """Hash an API key into a storable string representation."""
        ...

    def verify(self, stored_hash: str, supplied_key: str) -> bool:
        """Verify the supplied API key against the stored hash."""
        ...


class BaseApiKeyHasher(ABC):
    """Base class for deterministic API key hashers."""

    @abstractmethod
    def hash(self, api_key: str) -> str:
        """Hash an API key into a storable string representation."""
        ...

    def verify(self, stored_hash: str, supplied_key: str) -> bool:
        return hmac.compare_digest(self.hash(supplied_key), stored_hash)


class PepperedApiKeyHasher(BaseApiKeyHasher, ABC):
    """Base class for hashers mixing a server-side secret into the hash.

    Attributes:
        _pepper (str): A secret string added to the API key before hashing.
    """

    _pepper: str

    def __init__(self, pepper: Optional[str] = None) -> None:
        if pepper is None or pepper == DEFAULT_PEPPER:
            warnings.warn(
                "Using default pepper is insecure. Please provide a strong pepper.",
                UserWarning,
            )
        self._pepper = pepper or DEFAULT_PEPPER
