from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, String, func, select, text
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from shortener_keys.domain.entities import ApiKey
from shortener_keys.domain.models import ApiKeyMeta
from shortener_keys.domain.roles import RoleDefinition
from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.repositories.base import AbstractApiKeyRepository, AbstractUnitOfWork, ApiKeyCriteria
from shortener_keys.utils import datetime_factory


class Base(DeclarativeBase): ...


class ApiKeyModelMixin:
    """SQLAlchemy ORM model mixin for API keys.

    Notes:
        This is a mixin to allow easy extension of the model with additional fields.
        The unique constraint on ``name`` is the authoritative guard against two
        concurrent requests claiming the same name.
    """

    __tablename__ = "api_keys"

    id_: Mapped[str] = mapped_column(
        String(32),
        name="id",
        primary_key=True,
    )
    key: Mapped[str] = mapped_column(
        String(128),
        name="key_hash",
        nullable=False,
        unique=True,
        index=True,
    )
    name: Mapped[Optional[str]] = mapped_column(
        String(256),
        nullable=True,
        unique=True,
    )
    expiration_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    enabled: Mapped[bool] = mapped_column(
        Boolean(),
        nullable=False,
        default=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=datetime_factory,
    )
    roles: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)


class ApiKeyModel(ApiKeyModelMixin, Base):
    """Concrete SQLAlchemy ORM model for API keys."""

    ...


def _to_model(entity: ApiKey, target: Optional[ApiKeyModel] = None) -> ApiKeyModel:
    """Convert a domain entity to a SQLAlchemy model instance."""
    roles = [definition.to_dict() for definition in entity.roles]

    if target is None:
        return ApiKeyModel(
            id_=entity.id_,
            key=entity.key,
            name=entity.name,
            expiration_date=entity.expiration_date,
            enabled=entity.enabled,
            created_at=entity.created_at,
            roles=roles,
        )

    # Key hash and roles are fixed at creation, only these can change.
    target.name = entity.name
    target.enabled = entity.enabled
    target.expiration_date = entity.expiration_date
    return target


def _to_domain(model: Optional[ApiKeyModel]) -> Optional[ApiKey]:
    """Convert a SQLAlchemy model instance to a domain entity."""
    if model is None:
        return None

    return ApiKey(
        id_=model.id_,
        key=model.key,
        name=model.name,
        expiration_date=model.expiration_date,
        enabled=model.enabled,
        created_at=model.created_at,
        roles=[RoleDefinition.from_dict(data) for data in model.roles or []],
    )


def _apply_criteria(stmt: Any, criteria: ApiKeyCriteria) -> Any:
    if criteria.key is not None:
        stmt = stmt.where(ApiKeyModel.key == criteria.key)

    if criteria.name is not None:
        stmt = stmt.where(ApiKeyModel.name == criteria.name)

    if criteria.enabled is not None:
        stmt = stmt.where(ApiKeyModel.enabled == criteria.enabled)

    return stmt


class SqlAlchemyApiKeyRepository(AbstractApiKeyRepository):
    """SQLAlchemy implementation of the API key repository."""

    def __init__(self, async_session: AsyncSession, hasher: Optional[ApiKeyHasher] = None) -> None:
        self._async_session = async_session
        self._hasher = hasher

    async def ensure_table(self) -> None:
        """Ensure the database table for API keys exists.

        Notes:
            This method creates the table if it does not exist.
        """
        async with self._async_session.bind.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def count(self, criteria: ApiKeyCriteria) -> int:
        stmt = _apply_criteria(select(func.count(ApiKeyModel.id_)), criteria)
        result = await self._async_session.execute(stmt)
        return result.scalar_one()

    async def find_one_by(self, criteria: ApiKeyCriteria) -> Optional[ApiKey]:
        stmt = _apply_criteria(select(ApiKeyModel), criteria).limit(1)
        result = await self._async_session.execute(stmt)
        return _to_domain(result.scalar_one_or_none())

    async def find_by(self, criteria: ApiKeyCriteria) -> List[ApiKey]:
        stmt = _apply_criteria(select(ApiKeyModel), criteria)
        stmt = stmt.order_by(ApiKeyModel.created_at.desc())
        result = await self._async_session.execute(stmt)
        return [_to_domain(m) for m in result.scalars().all()]

    async def create_initial_api_key(self, raw_key: str) -> Optional[ApiKey]:
        """Insert the bootstrap key when the table is empty.

        Notes:
            On PostgreSQL the table is locked until commit, so concurrent
            bootstraps run one after the other. Elsewhere ``FOR UPDATE`` locks
            nothing on an empty table: two bootstraps with different keys can
            both insert, while two with the same key collide on the unique
            ``key_hash`` and the loser raises ``IntegrityError``.
        """
        if self._async_session.bind.dialect.name == "postgresql":
            await self._async_session.execute(text(f"LOCK TABLE {ApiKeyModel.__tablename__} IN EXCLUSIVE MODE"))

        stmt = select(ApiKeyModel.id_).limit(1).with_for_update()
        result = await self._async_session.execute(stmt)

        if result.first() is not None:
            # Releases the lock taken above.
            await self._async_session.rollback()
            return None

        entity = ApiKey.from_meta(ApiKeyMeta.with_key(raw_key), hasher=self._hasher)
        self._async_session.add(_to_model(entity))
        await self._async_session.commit()
        return entity


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """Unit of work over an AsyncSession.

    Staged entities are mapped onto their rows (inserted when new) and the
    session is committed on ``flush``. Nothing touches the database before.
    """

    def __init__(self, async_session: AsyncSession) -> None:
        self._async_session = async_session
        self._pending: Dict[str, ApiKey] = {}

    def persist(self, entity: ApiKey) -> None:
        self._pending[entity.id_] = entity

    async def flush(self) -> None:
        try:
            for entity in self._pending.values():
                model = await self._async_session.get(ApiKeyModel, entity.id_)
                self._async_session.add(_to_model(entity, target=model))

            await self._async_session.commit()
        except Exception:
            await self._async_session.rollback()
            raise
        finally:
            self._pending.clear()
