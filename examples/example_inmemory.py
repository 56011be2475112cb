from shortener_keys import ApiKeyMeta, ApiKeyService, InMemoryApiKeyRepository, InMemoryUnitOfWork, RoleDefinition


async def main():
    repo = InMemoryApiKeyRepository()
    svc = ApiKeyService(uow=InMemoryUnitOfWork(repo), repo=repo)

    meta = ApiKeyMeta.from_params(
        name="my-first-key",
        role_definitions=[RoleDefinition.for_authored_short_urls()],
    )
    entity = await svc.create(meta)
    plain_key = entity.plain_key
    print(f"Created entity: {entity}")
    print(f"Created api_key: {plain_key}\n")

    result = await svc.check(plain_key)
    print(f"Valid: {result.is_valid()}")


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
