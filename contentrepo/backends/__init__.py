"""Repository backend implementations and their registry."""

from __future__ import annotations

from enum import Enum

from ..config import Config
from ..errors import ConfigError
from .base import LoadedEntry, LoadedFile, RepositoryBackend
from .github import GitHubBackend
from .netlify_git import NetlifyGitBackend
from .test_repo import TestRepoBackend


class BackendKind(str, Enum):
    """Closed set of supported backends."""

    TEST_REPO = "test-repo"
    GITHUB = "github"
    NETLIFY_GIT = "netlify-git"


_BACKEND_REGISTRY: dict[BackendKind, type[RepositoryBackend]] = {
    BackendKind.TEST_REPO: TestRepoBackend,
    BackendKind.GITHUB: GitHubBackend,
    BackendKind.NETLIFY_GIT: NetlifyGitBackend,
}


def available_backends() -> list[str]:
    """Return the registered backend names."""
    return sorted(kind.value for kind in _BACKEND_REGISTRY)


def backend_kind(name: str | None) -> BackendKind:
    """Map a configured name onto a backend kind, rejecting unknown names."""
    if name is None:
        raise ConfigError("No backend defined in configuration.")
    try:
        return BackendKind(name)
    except ValueError:
        supported = ", ".join(available_backends())
        raise ConfigError(f"Backend not found: {name}. Supported: {supported}") from None


def create_backend_implementation(config: Config) -> RepositoryBackend:
    """Build the backend named in ``config.backend.name``."""
    name = config.backend.name if config.backend is not None else None
    kind = backend_kind(name)
    return _BACKEND_REGISTRY[kind](config)


__all__ = [
    "BackendKind",
    "GitHubBackend",
    "LoadedEntry",
    "LoadedFile",
    "NetlifyGitBackend",
    "RepositoryBackend",
    "TestRepoBackend",
    "available_backends",
    "backend_kind",
    "create_backend_implementation",
]
