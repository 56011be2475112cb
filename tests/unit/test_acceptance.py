"""End to end lifecycle through ApiKeyService, on every backend."""

from datetime import timedelta
from typing import Tuple

import pytest

from shortener_keys.domain.errors import KeyNotFound, NameAlreadyInUse
from shortener_keys.domain.models import ApiKeyMeta, Renaming
from shortener_keys.domain.roles import Role, RoleDefinition
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork
from shortener_keys.services.base import ApiKeyService
from shortener_keys.utils import datetime_factory


@pytest.fixture
def service(backend: Tuple[AbstractApiKeyRepository, AbstractUnitOfWork], hasher) -> ApiKeyService:
    repo, uow = backend
    return ApiKeyService(uow=uow, repo=repo, hasher=hasher)


@pytest.mark.asyncio
async def test_lifecycle(service: ApiKeyService):
    created = await service.create(
        ApiKeyMeta.from_params(name="ci", role_definitions=[RoleDefinition.for_authored_short_urls()])
    )
    plain_key = created.plain_key

    result = await service.check(plain_key)
    assert result.is_valid()
    assert result.api_key.has_role(Role.AUTHORED_SHORT_URLS)

    renamed = await service.rename_api_key(Renaming.from_names(old_name="ci", new_name="deploy"))
    assert renamed.name == "deploy"
    assert (await service.check(plain_key)).api_key.name == "deploy"

    await service.disable_by_name("deploy")
    result = await service.check(plain_key)
    assert result.is_valid() is False
    assert result.api_key is not None

    assert [k.name for k in await service.list_keys()] == ["deploy"]
    assert await service.list_keys(enabled_only=True) == []


@pytest.mark.asyncio
async def test_name_collisions(service: ApiKeyService):
    await service.create(ApiKeyMeta.from_params(name="first"))
    await service.create(ApiKeyMeta.from_params(name="second"))
    await service.disable_by_name("second")

    with pytest.raises(NameAlreadyInUse):
        await service.create(ApiKeyMeta.from_params(name="second"))

    with pytest.raises(NameAlreadyInUse):
        await service.rename_api_key(Renaming.from_names(old_name="first", new_name="second"))

    assert len(await service.list_keys()) == 2


@pytest.mark.asyncio
async def test_derived_name_collision(service: ApiKeyService):
    """Unnamed keys sharing their first 8 characters end up with the same name."""
    await service.create(ApiKeyMeta.from_params(key="abcdefgh-1111"))

    with pytest.raises(NameAlreadyInUse):
        await service.create(ApiKeyMeta.from_params(key="abcdefgh-2222"))

    assert [k.name for k in await service.list_keys()] == ["abcdefgh-****-****-****-************"]
    assert (await service.check("abcdefgh-2222")).api_key is None


@pytest.mark.asyncio
async def test_expired_key_is_invalid(service: ApiKeyService):
    created = await service.create(ApiKeyMeta.from_params(expiration_date=datetime_factory() - timedelta(days=1)))

    result = await service.check(created.plain_key)

    assert result.is_valid() is False
    assert result.api_key.id_ == created.id_


@pytest.mark.asyncio
async def test_disable_by_key(service: ApiKeyService):
    await service.create(ApiKeyMeta.from_params(key="raw-key"))

    disabled = await service.disable_by_key("raw-key")

    assert disabled.is_enabled() is False
    with pytest.raises(KeyNotFound):
        await service.disable_by_key("other-key")


@pytest.mark.asyncio
async def test_create_initial(service: ApiKeyService):
    first = await service.create_initial("initial-key")

    assert first is not None
    assert (await service.check("initial-key")).is_valid()
    assert await service.create_initial("another-key") is None
