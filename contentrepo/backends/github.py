"""GitHub backend over the REST API.

Published entries live on the configured branch and are written through the
contents API. Entries in the editorial workflow each get a branch
``cms/<collection>/<slug>`` and an open pull request whose ``cms/<status>``
label carries the workflow status. Workflow metadata is embedded in the pull
request body so listing does not need extra lookups.
"""

from __future__ import annotations

import asyncio
import base64
import json
import logging
import re
from typing import Any, Sequence

import httpx

from ..collection import CollectionModel
from ..config import BackendConfig, CollectionConfig, Config
from ..entry import EditorialStatus, MediaFile, PersistedEntry
from ..errors import AuthError, ConfigError, ContentRepoError, NotFoundError, PersistError
from .base import LoadedEntry, LoadedFile, RepositoryBackend

logger = logging.getLogger(__name__)

BRANCH_PREFIX = "cms/"
LABEL_PREFIX = "cms/"
RAW_MEDIA_TYPE = "application/vnd.github.v3.raw"
JSON_MEDIA_TYPE = "application/vnd.github.v3+json"
META_PATTERN = re.compile(r"<!--\s*cms-meta\s+(\{.*?\})\s*-->", re.DOTALL)
PULLS_PAGE_SIZE = 100
REJECTED_CREDENTIALS = (400, 401, 403, 404)


def workflow_branch(collection: str, slug: str) -> str:
    return f"{BRANCH_PREFIX}{collection}/{slug}"


def status_label(status: EditorialStatus | str) -> str:
    return f"{LABEL_PREFIX}{EditorialStatus(status).value}"


class GitHubAPI:
    """Thin async wrapper around the repository endpoints the backend uses."""

    def __init__(
        self,
        *,
        api_root: str,
        repo_prefix: str,
        branch: str,
        owner: str | None = None,
        timeout: float = 20.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.repo_prefix = repo_prefix.rstrip("/")
        self.branch = branch
        self.owner = owner
        self.token: str | None = None
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=api_root.rstrip("/"), timeout=timeout)

    async def request(
        self,
        method: str,
        url: str,
        *,
        accept: str = JSON_MEDIA_TYPE,
        token: str | None = None,
        auth_call: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        headers = {"Accept": accept}
        bearer = token or self.token
        if bearer:
            headers["Authorization"] = f"token {bearer}"
        try:
            response = await self.client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            message = f"{method} {url} failed: {type(exc).__name__}: {exc}"
            if method.upper() == "GET" or auth_call:
                raise ContentRepoError(message) from exc
            raise PersistError(message, path=url) from exc
        _raise_for_status(response, method, url, auth_call=auth_call)
        return response

    def repo_url(self, suffix: str) -> str:
        return f"{self.repo_prefix}/{suffix.lstrip('/')}"

    async def user(self, token: str) -> dict[str, Any]:
        response = await self.request("GET", "/user", token=token, auth_call=True)
        return response.json()

    async def list_files(self, folder: str, ref: str | None = None) -> list[dict[str, Any]]:
        response = await self.request(
            "GET", self.repo_url(f"contents/{folder}"), params={"ref": ref or self.branch}
        )
        payload = response.json()
        if not isinstance(payload, list):
            raise NotFoundError(f"'{folder}' is not a folder.", path=folder)
        return [item for item in payload if item.get("type") == "file"]

    async def read_file(self, path: str, ref: str | None = None) -> str:
        response = await self.request(
            "GET", self.repo_url(f"contents/{path}"), accept=RAW_MEDIA_TYPE, params={"ref": ref or self.branch}
        )
        return response.text

    async def file_sha(self, path: str, ref: str | None = None) -> str | None:
        try:
            response = await self.request("GET", self.repo_url(f"contents/{path}"), params={"ref": ref or self.branch})
        except NotFoundError:
            return None
        return response.json().get("sha")

    async def write_file(self, path: str, content: bytes, message: str, branch: str | None = None) -> None:
        target = branch or self.branch
        payload: dict[str, Any] = {
            "message": message,
            "content": base64.b64encode(content).decode("ascii"),
            "branch": target,
        }
        sha = await self.file_sha(path, target)
        if sha:
            payload["sha"] = sha
        await self.request("PUT", self.repo_url(f"contents/{path}"), json=payload)

    async def branch_sha(self, branch: str) -> str | None:
        try:
            response = await self.request("GET", self.repo_url(f"git/ref/heads/{branch}"))
        except NotFoundError:
            return None
        return response.json()["object"]["sha"]

    async def create_branch(self, branch: str) -> None:
        base_sha = await self.branch_sha(self.branch)
        if base_sha is None:
            raise NotFoundError(f"Base branch '{self.branch}' not found.")
        await self.request(
            "POST", self.repo_url("git/refs"), json={"ref": f"refs/heads/{branch}", "sha": base_sha}
        )

    async def delete_branch(self, branch: str) -> None:
        await self.request("DELETE", self.repo_url(f"git/refs/heads/{branch}"))

    async def open_pulls(self, page: int = 1, per_page: int = 30) -> list[dict[str, Any]]:
        response = await self.request(
            "GET",
            self.repo_url("pulls"),
            params={"state": "open", "base": self.branch, "page": max(page, 1), "per_page": per_page},
        )
        return response.json()

    async def pull_for_branch(self, branch: str) -> dict[str, Any] | None:
        params: dict[str, Any] = {"state": "open", "base": self.branch, "per_page": PULLS_PAGE_SIZE}
        if self.owner:
            params["head"] = f"{self.owner}:{branch}"
        page = 1
        while True:
            response = await self.request("GET", self.repo_url("pulls"), params={**params, "page": page})
            pulls = response.json()
            for pull in pulls:
                if pull.get("head", {}).get("ref") == branch:
                    return pull
            if len(pulls) < PULLS_PAGE_SIZE:
                return None
            page += 1

    async def create_pull(self, title: str, branch: str, body: str) -> dict[str, Any]:
        response = await self.request(
            "POST",
            self.repo_url("pulls"),
            json={"title": title, "head": branch, "base": self.branch, "body": body},
        )
        return response.json()

    async def set_labels(self, number: int, labels: list[str]) -> None:
        await self.request("PUT", self.repo_url(f"issues/{number}/labels"), json={"labels": labels})

    async def merge_pull(self, number: int, message: str) -> None:
        await self.request(
            "PUT",
            self.repo_url(f"pulls/{number}/merge"),
            json={"commit_message": message, "merge_method": "merge"},
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _raise_for_status(response: httpx.Response, method: str, url: str, *, auth_call: bool = False) -> None:
    """Map a failed response onto the error taxonomy.

    Credential exchanges fail with ``AuthError``. Reads distinguish rejected
    sessions and missing files. Every failed write is a ``PersistError``.
    """
    if response.is_success:
        return
    status = response.status_code
    message = f"{method} {url} returned HTTP {status}"
    if auth_call:
        if status in REJECTED_CREDENTIALS:
            raise AuthError(message)
        raise ContentRepoError(message)
    if method.upper() != "GET":
        raise PersistError(message, path=url, status_code=status)
    if status in (401, 403):
        raise AuthError(message)
    if status == 404:
        raise NotFoundError(message, path=url)
    raise ContentRepoError(message)


def render_pull_body(meta: dict[str, Any]) -> str:
    return f"Automatically generated by the CMS.\n\n<!-- cms-meta {json.dumps(meta, ensure_ascii=False)} -->\n"


def parse_pull_body(body: str | None) -> dict[str, Any] | None:
    match = META_PATTERN.search(body or "")
    if match is None:
        return None
    try:
        meta = json.loads(match.group(1))
    except json.JSONDecodeError:
        return None
    return meta if isinstance(meta, dict) else None


def pull_status(pull: dict[str, Any]) -> str | None:
    for label in pull.get("labels") or []:
        name = label.get("name", "") if isinstance(label, dict) else str(label)
        if name.startswith(LABEL_PREFIX):
            return name[len(LABEL_PREFIX) :]
    return None


class GitHubBackend(RepositoryBackend):
    """Store entries in a GitHub repository."""

    def __init__(self, config: Config, client: httpx.AsyncClient | None = None) -> None:
        super().__init__(config)
        self.api = self._build_api(self._check_config(config), client)
        self.user: dict[str, Any] | None = None

    def _check_config(self, config: Config) -> BackendConfig:
        backend = config.backend
        if backend is None or not backend.repo or "/" not in backend.repo:
            raise ConfigError("The github backend requires 'backend.repo' (owner/name).")
        return backend

    def _build_api(self, backend: BackendConfig, client: httpx.AsyncClient | None) -> GitHubAPI:
        repo = str(backend.repo)
        return GitHubAPI(
            api_root=backend.api_root,
            repo_prefix=f"/repos/{repo}",
            branch=backend.branch,
            owner=repo.split("/", 1)[0],
            timeout=backend.timeout_seconds,
            client=client,
        )

    def auth_component(self) -> str:
        return "github"

    async def authenticate(self, credentials: dict[str, Any]) -> dict[str, Any]:
        token = str(credentials.get("token") or "").strip()
        if not token:
            raise AuthError("A GitHub access token is required.")
        profile = await self.api.user(token)
        user = {
            "login": profile.get("login"),
            "name": profile.get("name") or profile.get("login"),
            "avatar_url": profile.get("avatar_url"),
            "token": token,
        }
        self.set_user(user)
        return user

    def set_user(self, user: dict[str, Any]) -> None:
        self.user = user
        self.api.token = user.get("token")

    async def entries_by_folder(self, collection: CollectionConfig) -> list[LoadedEntry]:
        suffix = f".{CollectionModel(collection).extension}"
        files = await self.api.list_files(collection.folder or "")
        paths = [item["path"] for item in files if item.get("path", "").endswith(suffix)]
        texts = await asyncio.gather(*(self.api.read_file(path) for path in paths))
        return [LoadedEntry(file=LoadedFile(path=path), data=text) for path, text in zip(paths, texts)]

    async def entries_by_files(self, collection: CollectionConfig) -> list[LoadedEntry]:
        items = list(collection.files or [])
        texts = await asyncio.gather(*(self.api.read_file(item.file) for item in items))
        return [
            LoadedEntry(file=LoadedFile(path=item.file, label=item.label), data=text)
            for item, text in zip(items, texts)
        ]

    async def get_entry(self, collection: CollectionConfig, slug: str, path: str) -> LoadedEntry:
        text = await self.api.read_file(path)
        return LoadedEntry(file=LoadedFile(path=path), data=text, slug=slug)

    async def unpublished_entries(self, page: int, per_page: int) -> list[LoadedEntry | None]:
        pulls = [
            pull
            for pull in await self.api.open_pulls(page, per_page)
            if pull.get("head", {}).get("ref", "").startswith(BRANCH_PREFIX)
        ]
        return list(await asyncio.gather(*(self._listed_workflow_entry(pull) for pull in pulls)))

    async def _listed_workflow_entry(self, pull: dict[str, Any]) -> LoadedEntry | None:
        try:
            return await self._workflow_entry(pull)
        except ContentRepoError as exc:
            logger.warning("Skipping pull request #%s: %s", pull.get("number"), exc)
            return None

    async def _workflow_entry(self, pull: dict[str, Any]) -> LoadedEntry:
        meta = parse_pull_body(pull.get("body")) or {}
        branch = pull["head"]["ref"]
        path = meta.get("path")
        text = await self.api.read_file(path, ref=branch) if path else ""
        meta_data = {
            "collection": meta.get("collection"),
            "status": pull_status(pull),
            "title": meta.get("title"),
            "description": meta.get("description"),
            "pr": pull.get("number"),
        }
        return LoadedEntry(file=LoadedFile(path=path or ""), data=text, slug=meta.get("slug"), meta_data=meta_data)

    async def unpublished_entry(self, collection: CollectionConfig, slug: str) -> LoadedEntry:
        pull = await self._require_pull(collection.name, slug)
        return await self._workflow_entry(pull)

    async def persist_entry(
        self,
        entry: PersistedEntry,
        media_files: Sequence[MediaFile],
        meta: dict[str, Any],
    ) -> None:
        message = str(meta.get("commit_message") or f"Update {entry.path}")
        if not meta.get("unpublished"):
            await self._commit(entry, media_files, message, self.api.branch)
            return

        collection = str(meta.get("collection_name") or "")
        branch = workflow_branch(collection, entry.slug)
        if await self.api.branch_sha(branch) is None:
            await self.api.create_branch(branch)
        await self._commit(entry, media_files, message, branch)

        if await self.api.pull_for_branch(branch) is None:
            parsed = meta.get("parsed_data") or {}
            body = render_pull_body(
                {
                    "collection": collection,
                    "slug": entry.slug,
                    "path": entry.path,
                    "title": parsed.get("title"),
                    "description": parsed.get("description"),
                }
            )
            pull = await self.api.create_pull(message, branch, body)
            await self.api.set_labels(pull["number"], [status_label(EditorialStatus.DRAFT)])

    async def _commit(
        self,
        entry: PersistedEntry,
        media_files: Sequence[MediaFile],
        message: str,
        branch: str,
    ) -> None:
        for media in media_files:
            await self.api.write_file(media.path, media.content, message, branch)
        await self.api.write_file(entry.path, entry.raw.encode("utf-8"), message, branch)
        logger.debug("Committed %s to %s", entry.path, branch)

    async def update_unpublished_entry_status(
        self,
        collection: CollectionConfig,
        slug: str,
        new_status: EditorialStatus,
    ) -> None:
        pull = await self._require_pull(collection.name, slug)
        await self.api.set_labels(pull["number"], [status_label(new_status)])

    async def publish_unpublished_entry(
        self,
        collection: CollectionConfig,
        slug: str,
        status: EditorialStatus,
    ) -> None:
        pull = await self._require_pull(collection.name, slug)
        state = EditorialStatus(status).value
        await self.api.merge_pull(pull["number"], f"Automatically generated. Merged on CMS ({state}).")
        await self.api.delete_branch(workflow_branch(collection.name, slug))

    async def _require_pull(self, collection: str, slug: str) -> dict[str, Any]:
        pull = await self.api.pull_for_branch(workflow_branch(collection, slug))
        if pull is None:
            raise NotFoundError(f"No unpublished entry '{slug}' in collection '{collection}'.")
        return pull

    async def close(self) -> None:
        await self.api.close()
