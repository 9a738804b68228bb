"""netlify-git backend: a repository-scoped git API behind token authentication."""

from __future__ import annotations

import logging
from typing import Any, Sequence

import httpx

from ..config import BackendConfig, CollectionConfig, Config
from ..entry import EditorialStatus, MediaFile, PersistedEntry
from ..errors import AuthError, ConfigError, NotFoundError
from .base import LoadedEntry
from .github import GitHubAPI, GitHubBackend

logger = logging.getLogger(__name__)


class NetlifyGitBackend(GitHubBackend):
    """Commit directly to the configured branch; no editorial workflow."""

    def _check_config(self, config: Config) -> BackendConfig:
        backend = config.backend
        if backend is None or not backend.url:
            raise ConfigError("The netlify-git backend requires 'backend.url'.")
        return backend

    def _build_api(self, backend: BackendConfig, client: httpx.AsyncClient | None) -> GitHubAPI:
        return GitHubAPI(
            api_root=str(backend.url),
            repo_prefix="",
            branch=backend.branch,
            timeout=backend.timeout_seconds,
            client=client,
        )

    def auth_component(self) -> str:
        return "netlify-git"

    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        email = str(credentials.get("email") or "").strip()
        password = str(credentials.get("password") or "")
        if not email or not password:
            raise AuthError("Email and password are required.")
        response = await self.api.request(
            "POST",
            "/token",
            auth_call=True,
            data={"grant_type": "password", "username": email, "password": password},
        )
        token = response.json().get("access_token")
        if not token:
            raise AuthError("The netlify-git API returned no access token.")
        user = {"email": email, "name": email.split("@", 1)[0], "token": token}
        self.set_user(user)
        return user

    async def unpublished_entries(self, page: int, per_page: int) -> list[LoadedEntry]:
        return []

    async def unpublished_entry(self, collection: CollectionConfig, slug: str) -> LoadedEntry:
        raise NotFoundError(f"netlify-git keeps no unpublished entries ({collection.name}/{slug}).")

    async def persist_entry(
        self,
        entry: PersistedEntry,
        media_files: Sequence[MediaFile],
        meta: dict[str, Any],
    ) -> None:
        if meta.get("unpublished"):
            logger.debug("netlify-git has no editorial workflow; committing %s directly.", entry.path)
        message = str(meta.get("commit_message") or f"Update {entry.path}")
        await self._commit(entry, media_files, message, self.api.branch)

    async def update_unpublished_entry_status(
        self,
        collection: CollectionConfig,
        slug: str,
        new_status: EditorialStatus,
    ) -> None:
        raise NotFoundError(f"netlify-git keeps no unpublished entries ({collection.name}/{slug}).")

    async def publish_unpublished_entry(
        self,
        collection: CollectionConfig,
        slug: str,
        status: EditorialStatus,
    ) -> None:
        raise NotFoundError(f"netlify-git keeps no unpublished entries ({collection.name}/{slug}).")
