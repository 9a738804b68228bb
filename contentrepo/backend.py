"""Provider-agnostic facade over the configured repository backend."""

from __future__ import annotations

import logging
from typing import Any, Sequence

from .auth import AuthStore, FileAuthStore
from .backends import RepositoryBackend, create_backend_implementation
from .backends.base import LoadedEntry
from .collection import CollectionModel
from .config import CollectionConfig, Config
from .entry import EditorialStatus, Entry, EntryListing, MediaFile, PersistedEntry, create_entry
from .errors import ConfigError, ContentRepoError, FormatError, PolicyError
from .formats import resolve_format
from .slugs import format_slug

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "No Title"
DEFAULT_DESCRIPTION = "No Description"


class Backend:
    """Unified entry operations delegated to one repository backend.

    The facade keeps no workflow state of its own; besides the cached user
    session every call is a pure function of its arguments and the backend.
    """

    def __init__(self, implementation: RepositoryBackend, auth_store: AuthStore | None = None) -> None:
        if implementation is None:
            raise ConfigError("Cannot instantiate a Backend with no implementation.")
        self.implementation = implementation
        self.auth_store = auth_store
        self.user: dict[str, Any] | None = None

    def current_user(self) -> dict[str, Any] | None:
        if self.user is not None:
            return self.user
        stored = self.auth_store.retrieve() if self.auth_store is not None else None
        if stored:
            self.implementation.set_user(stored)
            self.user = stored
            return stored
        return None

    def auth_component(self) -> str:
        return self.implementation.auth_component()

    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        user = await self.implementation.authenticate(credentials)
        self.user = user
        if self.auth_store is not None:
            self.auth_store.store(user)
        return user

    def logout(self) -> None:
        self.user = None
        if self.auth_store is not None:
            self.auth_store.clear()

    async def list_entries(self, collection: CollectionConfig) -> EntryListing:
        model = CollectionModel(collection)
        method = model.list_method()
        logger.debug("Listing collection '%s' via %s", collection.name, method.value)
        loaded = await getattr(self.implementation, method.value)(collection)

        entries: list[Entry] = []
        for item in loaded:
            entry = create_entry(
                collection.name,
                model.entry_slug(item.file.path),
                item.file.path,
                raw=item.data,
                label=item.file.label,
            )
            try:
                entries.append(self.entry_with_format(collection, entry))
            except FormatError as exc:
                logger.warning("Skipping unparseable entry %s: %s", item.file.path, exc)
        return EntryListing(entries=entries)

    async def get_entry(self, collection: CollectionConfig, slug: str) -> Entry:
        path = CollectionModel(collection).entry_path(slug)
        loaded = await self.implementation.get_entry(collection, slug, path)
        entry = create_entry(
            collection.name,
            slug,
            loaded.file.path,
            raw=loaded.data,
            label=loaded.file.label,
        )
        return self.entry_with_format(collection, entry)

    def new_entry(self, collection: CollectionConfig) -> Entry:
        return create_entry(collection.name, data={}, new_record=True)

    def entry_with_format(self, collection: CollectionConfig | None, entry: Entry) -> Entry:
        """Replace ``entry.data`` with the parsed form of ``entry.raw``."""
        entry_format = resolve_format(collection, entry.path)
        if entry_format is None:
            entry.data = None
            return entry
        try:
            entry.data = entry_format.from_file(entry.raw)
        except FormatError as exc:
            exc.path = entry.path
            raise
        return entry

    async def unpublished_entries(self, page: int = 1, per_page: int = 20) -> EntryListing:
        loaded = await self.implementation.unpublished_entries(page, per_page)
        entries: list[Entry] = []
        for item in loaded:
            if item is None:
                continue
            try:
                entries.append(self._workflow_entry(item))
            except (ContentRepoError, ValueError, TypeError, AttributeError) as exc:
                logger.warning("Dropping unpublished entry %r: %s", getattr(item, "slug", None), exc)
        return EntryListing(entries=entries, pagination=0)

    def _workflow_entry(self, item: LoadedEntry) -> Entry:
        meta_data = dict(item.meta_data or {})
        collection_name = meta_data.get("collection")
        if not collection_name:
            raise ValueError("workflow entry has no collection")
        if not item.slug or not item.file.path:
            raise ValueError("workflow entry has no slug or path")
        status = meta_data.get("status")
        if status is not None:
            # Unknown workflow labels raise ValueError here.
            EditorialStatus(status)
        entry = create_entry(
            str(collection_name),
            item.slug,
            item.file.path,
            raw=item.data,
            meta_data=meta_data,
        )
        return self.entry_with_format(self._find_collection(str(collection_name)), entry)

    def _find_collection(self, name: str) -> CollectionConfig | None:
        for collection in self.implementation.config.collections:
            if collection.name == name:
                return collection
        return None

    async def unpublished_entry(self, collection: CollectionConfig, slug: str) -> Entry:
        loaded = await self.implementation.unpublished_entry(collection, slug)
        entry = create_entry(
            collection.name,
            slug,
            loaded.file.path,
            raw=loaded.data,
            meta_data=loaded.meta_data,
        )
        return self.entry_with_format(collection, entry)

    async def persist_entry(
        self,
        config: Config,
        collection: CollectionConfig,
        entry_draft: Entry,
        media_files: Sequence[MediaFile] = (),
        options: dict[str, Any] | None = None,
    ) -> PersistedEntry:
        model = CollectionModel(collection)
        is_new = entry_draft.new_record
        data = dict(entry_draft.data or {})

        if is_new:
            if not model.allow_new_entries():
                raise PolicyError(
                    f"Not allowed to create new entries in collection '{collection.name}'.",
                    collection=collection.name,
                )
            slug = format_slug(collection.slug, data)
            path = model.entry_path(slug)
        else:
            if not entry_draft.path or entry_draft.slug is None:
                raise PolicyError(
                    "Existing entries must carry their path and slug.",
                    collection=collection.name,
                )
            path = entry_draft.path
            slug = entry_draft.slug

        raw = self.entry_to_raw(collection, {"path": path, **data}, path=path)
        if raw is None:
            raise FormatError(f"No format resolves for collection '{collection.name}'.", path=path)

        title = _field_or_default(data, "title", DEFAULT_TITLE)
        description = _field_or_default(data, "description", DEFAULT_DESCRIPTION)
        verb = "Created" if is_new else "Updated"
        commit_message = f"{verb} {collection.display_label} “{title}”"

        persisted = PersistedEntry(path=path, slug=slug, raw=raw)
        meta: dict[str, Any] = {
            "new_entry": is_new,
            "parsed_data": {"title": title, "description": description},
            "commit_message": commit_message,
            "collection_name": collection.name,
            "mode": config.publish_mode,
            **(options or {}),
        }
        logger.debug("Persisting %s (%s)", path, verb.lower())
        await self.implementation.persist_entry(persisted, list(media_files), meta)
        return persisted

    async def persist_unpublished_entry(
        self,
        config: Config,
        collection: CollectionConfig,
        entry_draft: Entry,
        media_files: Sequence[MediaFile] = (),
    ) -> PersistedEntry:
        return await self.persist_entry(config, collection, entry_draft, media_files, {"unpublished": True})

    async def update_unpublished_entry_status(
        self,
        collection: CollectionConfig,
        slug: str,
        new_status: EditorialStatus,
    ) -> None:
        await self.implementation.update_unpublished_entry_status(collection, slug, new_status)

    async def publish_unpublished_entry(
        self,
        collection: CollectionConfig,
        slug: str,
        status: EditorialStatus,
    ) -> None:
        await self.implementation.publish_unpublished_entry(collection, slug, status)

    def entry_to_raw(
        self,
        collection: CollectionConfig,
        data: dict[str, Any],
        path: str | None = None,
    ) -> str | None:
        entry_format = resolve_format(collection, path)
        if entry_format is None:
            return None
        return entry_format.to_file(data)

    async def close(self) -> None:
        await self.implementation.close()


def _field_or_default(data: dict[str, Any], name: str, default: str) -> str:
    value = data.get(name)
    if value is None:
        return default
    return str(value)


def resolve_backend(config: Config, auth_store: AuthStore | None = None) -> Backend:
    """Build the facade for ``config.backend.name``; unknown or missing names raise ``ConfigError``."""
    implementation = create_backend_implementation(config)
    store = auth_store if auth_store is not None else FileAuthStore(config.auth_store_path)
    return Backend(implementation, store)


class BackendContext:
    """Application-scoped holder of the facade, created once by the host."""

    def __init__(self, config: Config, auth_store: AuthStore | None = None) -> None:
        self.config = config
        self.auth_store = auth_store
        self._backend: Backend | None = None

    @property
    def backend(self) -> Backend | None:
        """The facade, or ``None`` when the configuration has no backend section."""
        if self._backend is not None:
            return self._backend
        if self.config.backend is None:
            return None
        self._backend = resolve_backend(self.config, self.auth_store)
        return self._backend

    async def close(self) -> None:
        if self._backend is not None:
            await self._backend.close()
            self._backend = None
