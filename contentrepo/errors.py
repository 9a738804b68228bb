"""Error taxonomy shared by the facade and the repository backends."""

from __future__ import annotations


class ContentRepoError(Exception):
    """Base class for all content repository errors."""


class ConfigError(ContentRepoError, ValueError):
    """Raised when configuration is missing, invalid, or names an unknown backend."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PolicyError(ContentRepoError):
    """Raised when a collection forbids the requested operation."""

    def __init__(self, message: str, *, collection: str | None = None) -> None:
        super().__init__(message)
        self.collection = collection


class AuthError(ContentRepoError):
    """Raised when a backend rejects credentials or a session."""


class NotFoundError(ContentRepoError, LookupError):
    """Raised when a backend has no entry at the requested location."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path


class PersistError(ContentRepoError):
    """Raised when a backend fails to store an entry."""

    def __init__(self, message: str, *, path: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.path = path
        self.status_code = status_code


class FormatError(ContentRepoError, ValueError):
    """Raised when raw entry text cannot be parsed by its format."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.path = path
