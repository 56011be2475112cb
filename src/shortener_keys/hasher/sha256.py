import hashlib

from shortener_keys.hasher.base import BaseApiKeyHasher


class Sha256ApiKeyHasher(BaseApiKeyHasher):
    """Plain SHA-256 hasher, the default.

    Produces the same digest on every process for the same key, which keeps
    hashes written by earlier installations resolvable.
    """

    def hash(self, api_key: str) -> str:
        return hashlib.sha256(api_key.encode("utf-8")).hexdigest()
