"""Capability contract every repository backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from ..config import CollectionConfig, Config
from ..entry import EditorialStatus, MediaFile, PersistedEntry


@dataclass(slots=True)
class LoadedFile:
    """Location of a file reported by a backend."""

    path: str
    label: str | None = None


@dataclass(slots=True)
class LoadedEntry:
    """Raw entry as returned by a backend, before normalization."""

    file: LoadedFile
    data: str
    slug: str | None = None
    meta_data: dict[str, Any] | None = None


class RepositoryBackend(ABC):
    """Storage provider behind the facade.

    Listing verbs are named after :class:`~contentrepo.collection.ListMethod`
    values so the facade can dispatch on them.
    """

    def __init__(self, config: Config) -> None:
        self.config = config

    @abstractmethod
    def auth_component(self) -> str:
        """Return an opaque descriptor of the login UI this backend expects."""

    @abstractmethod
    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        """Exchange credentials for session data; raise ``AuthError`` on rejection."""

    @abstractmethod
    def set_user(self, user: dict[str, Any]) -> None:
        """Adopt a previously stored session."""

    @abstractmethod
    async def entries_by_folder(self, collection: CollectionConfig) -> list[LoadedEntry]:
        """List every entry stored in a folder collection."""

    @abstractmethod
    async def entries_by_files(self, collection: CollectionConfig) -> list[LoadedEntry]:
        """List the fixed files of a file collection."""

    @abstractmethod
    async def get_entry(self, collection: CollectionConfig, slug: str, path: str) -> LoadedEntry:
        """Read one published entry; raise ``NotFoundError`` when absent."""

    @abstractmethod
    async def unpublished_entries(self, page: int, per_page: int) -> list[LoadedEntry | None]:
        """List entries currently in the editorial workflow.

        An item the backend could not read is reported as ``None`` so one
        broken entry does not hide the rest of the queue.
        """

    @abstractmethod
    async def unpublished_entry(self, collection: CollectionConfig, slug: str) -> LoadedEntry:
        """Read one workflow entry; raise ``NotFoundError`` when absent."""

    @abstractmethod
    async def persist_entry(
        self,
        entry: PersistedEntry,
        media_files: Sequence[MediaFile],
        meta: dict[str, Any],
    ) -> None:
        """Store an entry; raise ``PersistError`` on failure."""

    @abstractmethod
    async def update_unpublished_entry_status(
        self,
        collection: CollectionConfig,
        slug: str,
        new_status: EditorialStatus,
    ) -> None:
        """Move a workflow entry to ``new_status``."""

    @abstractmethod
    async def publish_unpublished_entry(
        self,
        collection: CollectionConfig,
        slug: str,
        status: EditorialStatus,
    ) -> None:
        """Publish a workflow entry and remove it from the workflow."""

    async def close(self) -> None:
        """Release network resources held by the backend."""
