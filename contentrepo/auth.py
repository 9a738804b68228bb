"""Durable storage for the cached user session."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

STORAGE_KEY = "cms-user"


class AuthStore(Protocol):
    def retrieve(self) -> dict[str, Any] | None:
        ...

    def store(self, user: dict[str, Any]) -> None:
        ...

    def clear(self) -> None:
        ...


class FileAuthStore:
    """Keep the session under a fixed key in a JSON key-value file."""

    storage_key = STORAGE_KEY

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def retrieve(self) -> dict[str, Any] | None:
        user = self._load().get(self.storage_key)
        return user if isinstance(user, dict) else None

    def store(self, user: dict[str, Any]) -> None:
        payload = self._load()
        payload[self.storage_key] = user
        self._save(payload)

    def clear(self) -> None:
        payload = self._load()
        if payload.pop(self.storage_key, None) is not None:
            self._save(payload)

    def _load(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            payload = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable auth store at %s", self.path)
            return {}
        return payload if isinstance(payload, dict) else {}

    def _save(self, payload: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")


class MemoryAuthStore:
    """Process-local store, used by tests and embedding hosts."""

    storage_key = STORAGE_KEY

    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self.values: dict[str, Any] = {}
        if initial is not None:
            self.values[self.storage_key] = initial
        self.retrieve_calls = 0

    def retrieve(self) -> dict[str, Any] | None:
        self.retrieve_calls += 1
        return self.values.get(self.storage_key)

    def store(self, user: dict[str, Any]) -> None:
        self.values[self.storage_key] = user

    def clear(self) -> None:
        self.values.pop(self.storage_key, None)
