"""Package configuration via pydantic-settings.

All settings are loaded from ``SHORTENER_KEYS_*`` environment variables (and a
``.env`` file when present).
"""

from functools import lru_cache
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.hasher.hmac_sha256 import HmacSha256ApiKeyHasher
from shortener_keys.hasher.sha256 import Sha256ApiKeyHasher


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="SHORTENER_KEYS_", env_file=".env", extra="ignore")

    # Ready-to-use SQLAlchemy async URL
    database_url: str = "sqlite+aiosqlite:///shortener_keys.sqlite3"

    # Switches hashing to HMAC-SHA256 when set. Must never change once keys exist.
    pepper: Optional[str] = None

    # Used by `shortener-keys initial` when no key is given on the command line
    initial_api_key: Optional[str] = None

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    def build_hasher(self) -> ApiKeyHasher:
        if self.pepper:
            return HmacSha256ApiKeyHasher(pepper=self.pepper)
        return Sha256ApiKeyHasher()


@lru_cache
def get_settings() -> Settings:
    return Settings()
