"""Tests for Settings and logging setup."""

import pytest
from loguru import logger

from shortener_keys.config import Settings, get_settings
from shortener_keys.hasher import HmacSha256ApiKeyHasher, Sha256ApiKeyHasher
from shortener_keys.log import setup_logging


@pytest.fixture(autouse=True)
def clear_env(monkeypatch: pytest.MonkeyPatch):
    for name in ["DATABASE_URL", "PEPPER", "INITIAL_API_KEY", "LOG_LEVEL"]:
        monkeypatch.delenv(f"SHORTENER_KEYS_{name}", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    settings = Settings(_env_file=None)

    assert settings.database_url.startswith("sqlite+aiosqlite://")
    assert settings.pepper is None
    assert settings.initial_api_key is None
    assert settings.log_level == "INFO"


def test_reads_prefixed_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("SHORTENER_KEYS_DATABASE_URL", "postgresql+asyncpg://u:p@db/shortener")
    monkeypatch.setenv("SHORTENER_KEYS_INITIAL_API_KEY", "first-key")
    monkeypatch.setenv("SHORTENER_KEYS_LOG_LEVEL", "debug")

    settings = get_settings()

    assert settings.database_url == "postgresql+asyncpg://u:p@db/shortener"
    assert settings.initial_api_key == "first-key"
    assert settings.log_level == "DEBUG"
    assert get_settings() is settings


def test_cache_ttl_is_not_a_setting(monkeypatch: pytest.MonkeyPatch):
    """TTLs are passed to CachedApiKeyService directly, not read from the environment."""
    monkeypatch.setenv("SHORTENER_KEYS_CACHE_TTL", "60")

    settings = Settings(_env_file=None)

    assert "cache_ttl" not in Settings.model_fields
    assert not hasattr(settings, "cache_ttl")


def test_build_hasher():
    assert isinstance(Settings(_env_file=None).build_hasher(), Sha256ApiKeyHasher)
    assert isinstance(Settings(_env_file=None, pepper="secret").build_hasher(), HmacSha256ApiKeyHasher)


def test_setup_logging_sets_level(capsys: pytest.CaptureFixture):
    setup_logging("warning")

    logger.info("hidden message")
    logger.warning("shown message")

    captured = capsys.readouterr()
    setup_logging("INFO")
    assert "hidden message" not in captured.err
    assert "shown message" in captured.err
