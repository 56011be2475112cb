from .base import ApiKeyHasher, BaseApiKeyHasher
from .hmac_sha256 import HmacSha256ApiKeyHasher
from .sha256 import Sha256ApiKeyHasher

__all__ = ["ApiKeyHasher", "BaseApiKeyHasher", "HmacSha256ApiKeyHasher", "Sha256ApiKeyHasher"]
