from typing import Optional


class ApiKeyError(Exception):
    """Base exception for API key domain errors."""


class NameAlreadyInUse(ApiKeyError):
    """Raised when another API key already uses the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'Another API key with name "{name}" already exists')


class KeyNotFound(ApiKeyError):
    """Raised when an API key cannot be resolved by name or by key."""

    def __init__(self, message: str, name: Optional[str] = None) -> None:
        self.name = name
        super().__init__(message)

    @classmethod
    def for_name(cls, name: str) -> "KeyNotFound":
        return cls(f'API key with name "{name}" could not be found', name=name)

    @classmethod
    def for_key(cls) -> "KeyNotFound":
        # The raw key is a credential, never echo it back.
        return cls("API key could not be found")
