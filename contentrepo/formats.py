"""Serialization engines and the per-entry format resolver."""

from __future__ import annotations

import json
from typing import Any, Protocol

import yaml

from .config import CollectionConfig
from .errors import FormatError

FRONT_MATTER_DELIMITER = "---"


class Format(Protocol):
    name: str

    def from_file(self, raw: str) -> dict[str, Any]:
        ...

    def to_file(self, data: dict[str, Any]) -> str:
        ...


class YAMLFormat:
    """Pure YAML documents."""

    name = "yaml"

    def from_file(self, raw: str) -> dict[str, Any]:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise FormatError(f"Invalid YAML: {exc}") from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise FormatError(f"Expected a YAML mapping, received {type(data).__name__}")
        return data

    def to_file(self, data: dict[str, Any]) -> str:
        return yaml.safe_dump(dict(data), allow_unicode=True, sort_keys=False, default_flow_style=False)


class JSONFormat:
    """Pure JSON documents."""

    name = "json"

    def from_file(self, raw: str) -> dict[str, Any]:
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FormatError(f"Invalid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise FormatError(f"Expected a JSON object, received {type(data).__name__}")
        return data

    def to_file(self, data: dict[str, Any]) -> str:
        return json.dumps(data, ensure_ascii=False, indent=2) + "\n"


class FrontmatterFormat:
    """Markdown with YAML front matter; the document text lives in ``body``."""

    name = "frontmatter"

    def from_file(self, raw: str) -> dict[str, Any]:
        front_matter, body = _split_front_matter(raw)
        data = dict(front_matter)
        data["body"] = body
        return data

    def to_file(self, data: dict[str, Any]) -> str:
        meta = {key: value for key, value in data.items() if key != "body"}
        body = data.get("body") or ""
        # Always delimited, even with no fields.
        front_matter = (
            yaml.safe_dump(meta, allow_unicode=True, sort_keys=False, default_flow_style=False) if meta else ""
        )
        return f"{FRONT_MATTER_DELIMITER}\n{front_matter}{FRONT_MATTER_DELIMITER}\n{body}"


def _split_front_matter(text: str) -> tuple[dict[str, Any], str]:
    lines = text.splitlines(keepends=True)
    if not lines:
        return {}, ""
    if lines[0].strip() != FRONT_MATTER_DELIMITER:
        return {}, text

    front_lines: list[str] = []
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONT_MATTER_DELIMITER:
            body = "".join(lines[idx + 1 :])
            try:
                data = yaml.safe_load("".join(front_lines))
            except yaml.YAMLError as exc:
                raise FormatError(f"Invalid YAML front matter: {exc}") from exc
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise FormatError("Front matter must be a mapping.")
            return data, body
        front_lines.append(line)
    raise FormatError("Closing front matter delimiter '---' missing.")


FORMATS_BY_NAME: dict[str, Format] = {
    "yml": YAMLFormat(),
    "yaml": YAMLFormat(),
    "json": JSONFormat(),
    "frontmatter": FrontmatterFormat(),
}

FORMATS_BY_EXTENSION: dict[str, Format] = {
    "yml": FORMATS_BY_NAME["yaml"],
    "yaml": FORMATS_BY_NAME["yaml"],
    "json": FORMATS_BY_NAME["json"],
    "md": FORMATS_BY_NAME["frontmatter"],
    "markdown": FORMATS_BY_NAME["frontmatter"],
    "html": FORMATS_BY_NAME["frontmatter"],
}


def resolve_format(collection: CollectionConfig | None, path: str | None = None) -> Format | None:
    """Pick the engine declared by the collection, falling back to the file extension."""
    if collection is not None and collection.format:
        declared = FORMATS_BY_NAME.get(collection.format.lower())
        if declared is not None:
            return declared

    extension = _extension(path)
    if extension is None and collection is not None:
        extension = collection.extension
    if extension is None:
        return None
    return FORMATS_BY_EXTENSION.get(extension)


def _extension(path: str | None) -> str | None:
    if not path:
        return None
    name = path.rsplit("/", 1)[-1]
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1].lower()
