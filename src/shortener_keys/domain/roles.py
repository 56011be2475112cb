from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class Role(str, Enum):
    """Permission restrictions that can be attached to an API key."""

    AUTHORED_SHORT_URLS = "AUTHORED_SHORT_URLS"
    DOMAIN_SPECIFIC = "DOMAIN_SPECIFIC"
    NO_ORPHAN_VISITS = "NO_ORPHAN_VISITS"

    @property
    def friendly_name(self) -> str:
        return {
            Role.AUTHORED_SHORT_URLS: "Author only",
            Role.DOMAIN_SPECIFIC: "Domain only",
            Role.NO_ORPHAN_VISITS: "No orphan visits",
        }[self]


@dataclass(frozen=True)
class RoleDefinition:
    """A role plus the context that scopes it.

    Notes:
        ``meta`` is free-form so it can be stored as JSON. Domain-specific
        roles keep ``domain_id`` and ``authority`` in it.
    """

    role: Role
    meta: Dict[str, Any] = field(default_factory=dict)

    def __hash__(self) -> int:
        return hash((self.role, tuple(sorted(self.meta.items()))))

    @classmethod
    def for_domain(cls, domain_id: str, authority: Optional[str] = None) -> "RoleDefinition":
        return cls(role=Role.DOMAIN_SPECIFIC, meta={"domain_id": domain_id, "authority": authority})

    @classmethod
    def for_authored_short_urls(cls) -> "RoleDefinition":
        return cls(role=Role.AUTHORED_SHORT_URLS)

    @classmethod
    def for_no_orphan_visits(cls) -> "RoleDefinition":
        return cls(role=Role.NO_ORPHAN_VISITS)

    @property
    def domain_id(self) -> Optional[str]:
        return self.meta.get("domain_id")

    def describe(self) -> str:
        """Human readable summary, used by the CLI."""
        if self.role is Role.DOMAIN_SPECIFIC:
            return f"{self.role.friendly_name}: {self.meta.get('authority') or self.domain_id}"
        return self.role.friendly_name

    def to_dict(self) -> Dict[str, Any]:
        return {"role": self.role.value, "meta": dict(self.meta)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RoleDefinition":
        return cls(role=Role(data["role"]), meta=dict(data.get("meta") or {}))
