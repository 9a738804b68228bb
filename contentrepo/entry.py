"""Typed representations of repository entries."""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class EditorialStatus(str, Enum):
    """Workflow state of an unpublished entry."""

    DRAFT = "draft"
    PENDING_REVIEW = "pending_review"
    PENDING_PUBLISH = "pending_publish"


class MediaFile(BaseModel):
    """Binary asset uploaded alongside an entry."""

    path: str = Field(description="Repository path of the asset.")
    content: bytes = Field(default=b"", repr=False)

    @field_validator("path")
    def _strip_leading_slash(cls, value: str) -> str:
        return value.lstrip("/")


class Entry(BaseModel):
    """One content item: identity plus raw and parsed payload."""

    collection: str = Field(description="Name of the owning collection.")
    slug: Optional[str] = Field(default=None)
    path: Optional[str] = Field(default=None)
    raw: str = Field(default="", description="Text exactly as stored by the backend.")
    data: Optional[dict[str, Any]] = Field(default=None, description="Parsed structured fields.")
    label: Optional[str] = Field(default=None, description="Backend annotation for display.")
    meta_data: Optional[dict[str, Any]] = Field(default=None, description="Editorial workflow bag.")
    new_record: bool = Field(default=False, description="True for drafts that were never persisted.")

    def field(self, name: str) -> Optional[Any]:
        if not self.data:
            return None
        return self.data.get(name)

    @property
    def status(self) -> Optional[EditorialStatus]:
        if not self.meta_data:
            return None
        value = self.meta_data.get("status")
        if value is None:
            return None
        return EditorialStatus(value)


class PersistedEntry(BaseModel):
    """Entry payload handed to a backend when writing."""

    path: str
    slug: str
    raw: str


class EntryListing(BaseModel):
    """Normalized result of a listing call."""

    entries: list[Entry] = Field(default_factory=list)
    pagination: Optional[int] = Field(default=None)


def create_entry(
    collection: str,
    slug: str | None = None,
    path: str | None = None,
    *,
    raw: str = "",
    data: dict[str, Any] | None = None,
    label: str | None = None,
    meta_data: dict[str, Any] | None = None,
    new_record: bool = False,
) -> Entry:
    """Build an entry value object without validating path/slug consistency."""
    return Entry(
        collection=collection,
        slug=slug,
        path=path,
        raw=raw,
        data=data,
        label=label,
        meta_data=meta_data,
        new_record=new_record,
    )
