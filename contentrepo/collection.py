"""Path, slug and listing rules derived from a collection's configuration."""

from __future__ import annotations

from enum import Enum

from .config import CollectionConfig
from .errors import NotFoundError

DEFAULT_EXTENSION = "md"
EXTENSION_BY_FORMAT = {
    "yml": "yml",
    "yaml": "yml",
    "json": "json",
    "frontmatter": "md",
}


class ListMethod(str, Enum):
    """Backend verb that enumerates a collection."""

    ENTRIES_BY_FOLDER = "entries_by_folder"
    ENTRIES_BY_FILES = "entries_by_files"


class CollectionModel:
    """Derive storage rules from a collection configuration."""

    def __init__(self, collection: CollectionConfig) -> None:
        self.collection = collection

    @property
    def is_folder(self) -> bool:
        return self.collection.folder is not None

    @property
    def extension(self) -> str:
        if self.collection.extension:
            return self.collection.extension
        if self.collection.format:
            return EXTENSION_BY_FORMAT.get(self.collection.format.lower(), DEFAULT_EXTENSION)
        return DEFAULT_EXTENSION

    def list_method(self) -> ListMethod:
        if self.is_folder:
            return ListMethod.ENTRIES_BY_FOLDER
        return ListMethod.ENTRIES_BY_FILES

    def entry_path(self, slug: str) -> str:
        if self.is_folder:
            prefix = f"{self.collection.folder}/" if self.collection.folder else ""
            return f"{prefix}{slug}.{self.extension}"
        for item in self.collection.files or []:
            if item.name == slug:
                return item.file
        raise NotFoundError(f"Collection '{self.collection.name}' has no file named '{slug}'.")

    def entry_slug(self, path: str) -> str | None:
        if self.is_folder:
            folder = self.collection.folder or ""
            relative = path[len(folder) + 1 :] if folder and path.startswith(f"{folder}/") else path
            suffix = f".{self.extension}"
            if relative.endswith(suffix):
                return relative[: -len(suffix)]
            stem, dot, _ = relative.rpartition(".")
            return stem if dot else relative
        for item in self.collection.files or []:
            if item.file == path:
                return item.name
        return None

    def allow_new_entries(self) -> bool:
        if not self.is_folder:
            return False
        return self.collection.create
