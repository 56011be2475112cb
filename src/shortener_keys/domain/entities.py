from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from shortener_keys.domain.models import ApiKeyMeta
from shortener_keys.domain.roles import Role, RoleDefinition
from shortener_keys.hasher.base import ApiKeyHasher
from shortener_keys.hasher.sha256 import Sha256ApiKeyHasher
from shortener_keys.utils import datetime_factory, normalize_datetime, uuid_factory

NAME_MASK = "-****-****-****-************"
"""Appended to the first 8 characters of the raw key to name unnamed keys."""

_default_hasher = Sha256ApiKeyHasher()


@dataclass
class ApiKey:
    """Domain entity representing an API key.

    Important:
        Use ``ApiKey.create()`` or ``ApiKey.from_meta()`` to build new keys.
        They hash the raw key, and keep it around only until it is read once
        through ``plain_key``.

    Notes:
        A key is valid when it is enabled and not expired. Validity is never
        stored, it depends on the moment it is evaluated. An empty ``roles``
        list means the key is unrestricted.

    Example::

        api_key = ApiKey.from_meta(ApiKeyMeta.from_params(name="ci"))
        print(api_key.plain_key)  # Give this to the user (shown only once)
    """

    key: str
    id_: str = field(default_factory=uuid_factory)
    name: Optional[str] = None
    expiration_date: Optional[datetime] = None
    enabled: bool = True
    roles: List[RoleDefinition] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime_factory)
    _plain_key: Optional[str] = field(default=None, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.created_at = normalize_datetime(self.created_at) or datetime_factory()
        self.expiration_date = normalize_datetime(self.expiration_date)

        # One definition per role, the last one wins.
        unique = {definition.role: definition for definition in self.roles}
        self.roles = list(unique.values())

    @staticmethod
    def hash_key(raw_key: str, hasher: Optional[ApiKeyHasher] = None) -> str:
        return (hasher or _default_hasher).hash(raw_key)

    @classmethod
    def create(cls, hasher: Optional[ApiKeyHasher] = None) -> "ApiKey":
        return cls.from_meta(ApiKeyMeta.from_params(), hasher=hasher)

    @classmethod
    def from_meta(cls, meta: ApiKeyMeta, hasher: Optional[ApiKeyHasher] = None) -> "ApiKey":
        name = meta.name or f"{meta.key[:8]}{NAME_MASK}"
        return cls(
            key=cls.hash_key(meta.key, hasher),
            name=name,
            expiration_date=meta.expiration_date,
            roles=list(meta.role_definitions),
            _plain_key=meta.key,
        )

    @property
    def plain_key(self) -> Optional[str]:
        """The raw key, only available once right after creation."""
        plain_key = self._plain_key
        self._plain_key = None
        return plain_key

    def disable(self) -> "ApiKey":
        self.enabled = False
        return self

    def is_enabled(self) -> bool:
        return self.enabled

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expiration_date is None:
            return False

        now = normalize_datetime(now) or datetime_factory()
        return self.expiration_date <= now

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        return self.enabled and not self.is_expired(now)

    def has_role(self, role: Role) -> bool:
        return self.role_definition(role) is not None

    def role_definition(self, role: Role) -> Optional[RoleDefinition]:
        for definition in self.roles:
            if definition.role == role:
                return definition

        return None

    def is_admin(self) -> bool:
        return not self.roles
