"""Expand slug templates into filesystem-safe identifiers."""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Mapping

PLACEHOLDER_PATTERN = re.compile(r"\{\{([^}]+)\}\}")
UNSAFE_PATTERN = re.compile(r"[^a-z0-9._-]+")


def sanitize_slug(value: str) -> str:
    """Lower-case, trim, and collapse each run of unsafe characters into a hyphen."""
    return UNSAFE_PATTERN.sub("-", value.strip().lower())


def format_slug(template: str, fields: Mapping[str, Any], now: date | None = None) -> str:
    """Replace ``{{name}}`` placeholders using the current date and entry fields.

    ``year``, ``month`` and ``day`` come from ``now``; ``slug`` is derived from
    the ``title`` field (or ``path``) and sanitized. Any other name is looked up
    in ``fields`` verbatim, and a missing value expands to an empty string.
    """
    today = now or datetime.now().date()

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name == "year":
            return f"{today.year:04d}"
        if name == "month":
            return f"{today.month:02d}"
        if name == "day":
            return f"{today.day:02d}"
        if name == "slug":
            identifier = fields.get("title")
            if identifier is None:
                identifier = fields.get("path")
            if identifier is None:
                return ""
            return sanitize_slug(str(identifier))
        value = fields.get(name)
        return "" if value is None else str(value)

    return PLACEHOLDER_PATTERN.sub(_replace, template)
