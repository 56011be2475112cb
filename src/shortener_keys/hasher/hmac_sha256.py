import hashlib
import hmac
from typing import Optional

from shortener_keys.hasher.base import PepperedApiKeyHasher


class HmacSha256ApiKeyHasher(PepperedApiKeyHasher):
    """HMAC-SHA256-based API key hasher and verifier.

    Uses the pepper as the HMAC secret key and SHA-256 as the digest algorithm.
    Verification uses :func:`hmac.compare_digest` for constant-time comparison.

    An attacker who obtains the stored hashes but not the pepper cannot mount
    a pre-computation attack. Changing the pepper makes every stored key
    unresolvable, so it must stay stable across restarts.

    Example::

        hasher = HmacSha256ApiKeyHasher(pepper="strong-secret-pepper")
        key_hash = hasher.hash("my-api-key")
        assert hasher.verify(key_hash, "my-api-key") is True
        assert hasher.verify(key_hash, "wrong-key") is False
    """

    def __init__(self, pepper: Optional[str] = None) -> None:
        super().__init__(pepper=pepper)

    def hash(self, api_key: str) -> str:
        """Hash an API key using HMAC-SHA256.

        Args:
            api_key: The plain API key to hash.

        Returns:
            A hex-encoded HMAC-SHA256 digest of ``api_key`` keyed with
            the pepper.
        """
        return hmac.new(
            self._pepper.encode("utf-8"),
            api_key.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
