"""Configuration models for the content repository and its backends."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .errors import ConfigError

DEFAULT_CONFIG_FILENAME = "cms.yml"


class BackendConfig(BaseModel):
    """Selects and configures the repository backend."""

    name: str | None = Field(default=None, description="Backend identifier, e.g. 'github'.")
    repo: str | None = Field(default=None, description="Repository in 'owner/name' form.")
    branch: str = Field(default="master", description="Branch that holds published content.")
    api_root: str = Field(default="https://api.github.com", description="Base URL of the GitHub API.")
    url: str | None = Field(
        default=None,
        description="Base URL of the netlify-git API (required by the netlify-git backend).",
    )
    fixture_dir: Path | None = Field(
        default=None,
        description="Directory used to seed the in-memory test-repo backend.",
    )
    timeout_seconds: float = Field(default=20.0, gt=0)

    @field_validator("name", mode="before")
    def _normalize_name(cls, value: Any) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("fixture_dir", mode="before")
    def _ensure_path(cls, value: Any) -> Path | None:
        if value is None or value == "":
            return None
        return Path(value)


class CollectionFile(BaseModel):
    """Single file entry of a file collection."""

    name: str = Field(description="Identifier used as the entry slug.")
    label: str | None = Field(default=None)
    file: str = Field(description="Repository path of the file.")

    @field_validator("file")
    def _strip_leading_slash(cls, value: str) -> str:
        return value.strip().lstrip("/")


class CollectionConfig(BaseModel):
    """A named group of entries sharing storage, path and format conventions."""

    name: str
    label: str | None = Field(default=None, description="Human-readable name, defaults to the name.")
    folder: str | None = Field(default=None, description="Folder holding one file per entry.")
    files: list[CollectionFile] | None = Field(default=None, description="Fixed list of files.")
    slug: str = Field(default="{{slug}}", description="Template used to derive new entry slugs.")
    create: bool = Field(default=False, description="Allow creating new entries in the folder.")
    format: str | None = Field(default=None, description="Declared format: yml, yaml, json or frontmatter.")
    extension: str | None = Field(default=None, description="File extension of folder entries.")

    @field_validator("folder")
    def _normalize_folder(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip().strip("/")

    @field_validator("extension")
    def _normalize_extension(cls, value: str | None) -> str | None:
        if value is None:
            return None
        text = value.strip().lstrip(".").lower()
        return text or None

    @model_validator(mode="after")
    def _single_path_rule(self) -> "CollectionConfig":
        if (self.folder is None) == (self.files is None):
            raise ValueError(f"Collection '{self.name}' must define exactly one of 'folder' or 'files'.")
        return self

    @property
    def display_label(self) -> str:
        return self.label or self.name


class Config(BaseModel):
    backend: BackendConfig | None = Field(default=None)
    publish_mode: str | None = Field(
        default=None,
        description="Opaque publishing mode passed through to the backend (e.g. 'editorial_workflow').",
    )
    auth_store_path: Path = Field(default=Path(".cache/cms-auth.json"))
    collections: list[CollectionConfig] = Field(default_factory=list)

    @field_validator("auth_store_path", mode="before")
    def _ensure_path(cls, value: Any) -> Path:
        return Path(value)

    @model_validator(mode="after")
    def _unique_collection_names(self) -> "Config":
        seen: set[str] = set()
        for collection in self.collections:
            if collection.name in seen:
                raise ValueError(f"Duplicate collection name: {collection.name}")
            seen.add(collection.name)
        return self

    @property
    def editorial_workflow(self) -> bool:
        return self.publish_mode == "editorial_workflow"

    def collection(self, name: str) -> CollectionConfig:
        for collection in self.collections:
            if collection.name == name:
                return collection
        available = ", ".join(c.name for c in self.collections) or "none"
        raise ConfigError(f"Unknown collection '{name}'. Available: {available}")


def load_config(path: str | Path) -> Config:
    """Load configuration and resolve relative paths based on the config location.

    ``path`` may point to a file or to a directory containing ``cms.yml``. A
    directory without that file yields the defaults, which define no backend.
    """
    candidate = Path(path)
    config_path = candidate / DEFAULT_CONFIG_FILENAME if candidate.is_dir() else candidate
    data: Any = {}
    if config_path.exists():
        try:
            with config_path.open("r", encoding="utf-8") as handle:
                data = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}", path=str(config_path)) from exc
    elif not candidate.is_dir():
        raise ConfigError(f"Configuration file not found: {config_path}", path=str(config_path))
    if not isinstance(data, dict):
        raise ConfigError(
            f"Expected mapping at {config_path}, received {type(data).__name__}",
            path=str(config_path),
        )

    try:
        cfg = Config(**data)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration in {config_path}: {exc}", path=str(config_path)) from exc

    base_dir = config_path.parent.resolve()

    def _abs(value: Path) -> Path:
        return value if value.is_absolute() else (base_dir / value).resolve()

    cfg.auth_store_path = _abs(cfg.auth_store_path)
    if cfg.backend is not None and cfg.backend.fixture_dir is not None:
        cfg.backend.fixture_dir = _abs(cfg.backend.fixture_dir)
    return cfg
