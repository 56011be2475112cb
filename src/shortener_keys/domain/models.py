from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Iterable, List, Optional

from shortener_keys.domain.roles import RoleDefinition
from shortener_keys.utils import normalize_datetime, raw_key_factory

if TYPE_CHECKING:
    from shortener_keys.domain.entities import ApiKey


@dataclass
class ApiKeyMeta:
    """Everything needed to build a new API key.

    Attributes:
        key: Raw API key. Only its hash is persisted.
        name: Optional display name. Derived from ``key`` when empty.
        expiration_date: Optional expiration, ``None`` means never.
        role_definitions: Restrictions to attach to the key.
    """

    key: str
    name: Optional[str] = None
    expiration_date: Optional[datetime] = None
    role_definitions: List[RoleDefinition] = field(default_factory=list)

    @classmethod
    def from_params(
        cls,
        key: Optional[str] = None,
        name: Optional[str] = None,
        expiration_date: Optional[datetime] = None,
        role_definitions: Iterable[RoleDefinition] = (),
    ) -> "ApiKeyMeta":
        return cls(
            key=key or raw_key_factory(),
            name=name,
            expiration_date=normalize_datetime(expiration_date),
            role_definitions=list(role_definitions),
        )

    @classmethod
    def with_key(cls, key: str) -> "ApiKeyMeta":
        return cls.from_params(key=key)


@dataclass(frozen=True)
class Renaming:
    old_name: str
    new_name: str

    def __post_init__(self) -> None:
        if not self.old_name.strip() or not self.new_name.strip():
            raise ValueError("Both old and new names must be provided")

    @classmethod
    def from_names(cls, old_name: str, new_name: str) -> "Renaming":
        return cls(old_name=old_name, new_name=new_name)

    def name_changed(self) -> bool:
        return self.old_name != self.new_name


@dataclass(frozen=True)
class ApiKeyCheckResult:
    """Outcome of checking a raw API key.

    ``api_key`` is set whenever a stored key matched the hash, even if it is
    disabled or expired.
    """

    api_key: Optional["ApiKey"] = None
    valid: bool = False

    def is_valid(self) -> bool:
        return self.valid and self.api_key is not None
