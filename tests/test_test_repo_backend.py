from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from contentrepo.backends import TestRepoBackend, available_backends, backend_kind
from contentrepo.backends.test_repo import load_fixture_tree
from contentrepo.config import BackendConfig, CollectionConfig, CollectionFile, Config
from contentrepo.entry import EditorialStatus, PersistedEntry
from contentrepo.errors import NotFoundError, PersistError

FIXTURE_REPO = Path(__file__).parent / "fixtures" / "repo"

POSTS = CollectionConfig(name="posts", folder="content/posts", create=True)
SETTINGS = CollectionConfig(
    name="settings",
    files=[
        CollectionFile(name="general", file="_data/settings.yml"),
        CollectionFile(name="authors", file="_data/authors.yml"),
    ],
)


def _backend() -> TestRepoBackend:
    config = Config(
        backend=BackendConfig(name="test-repo", fixture_dir=FIXTURE_REPO),
        collections=[POSTS, SETTINGS],
    )
    return TestRepoBackend(config)


def test_fixture_tree_is_keyed_by_posix_paths() -> None:
    files = load_fixture_tree(FIXTURE_REPO)
    assert "content/posts/first-post.md" in files
    assert "_data/settings.yml" in files
    assert files["content/pages/about.md"].startswith("---\n")


def test_missing_fixture_directory_raises(tmp_path: Path) -> None:
    with pytest.raises(NotFoundError):
        load_fixture_tree(tmp_path / "absent")


def test_folder_listing_is_sorted_and_shallow() -> None:
    backend = _backend()
    backend.files["content/posts/nested/deep.md"] = "---\ntitle: Deep\n---\n"
    backend.files["content/posts/readme.txt"] = "skip me"

    loaded = asyncio.run(backend.entries_by_folder(POSTS))

    assert [item.file.path for item in loaded] == [
        "content/posts/first-post.md",
        "content/posts/second-post.md",
    ]


def test_file_listing_skips_absent_files() -> None:
    loaded = asyncio.run(_backend().entries_by_files(SETTINGS))
    assert [item.file.path for item in loaded] == ["_data/settings.yml"]


def test_new_entry_over_existing_path_is_rejected() -> None:
    backend = _backend()
    entry = PersistedEntry(path="content/posts/first-post.md", slug="first-post", raw="x")

    with pytest.raises(PersistError):
        asyncio.run(backend.persist_entry(entry, [], {"new_entry": True}))
    assert backend.files["content/posts/first-post.md"] != "x"


def test_unpublished_entries_are_paged_from_one() -> None:
    backend = _backend()
    for index in range(5):
        entry = PersistedEntry(path=f"content/posts/p{index}.md", slug=f"p{index}", raw="")
        asyncio.run(
            backend.persist_entry(entry, [], {"unpublished": True, "collection_name": "posts", "new_entry": True})
        )

    first = asyncio.run(backend.unpublished_entries(1, 2))
    third = asyncio.run(backend.unpublished_entries(3, 2))
    everything = asyncio.run(backend.unpublished_entries(1, 0))

    assert [item.slug for item in first] == ["p0", "p1"]
    assert [item.slug for item in third] == ["p4"]
    assert len(everything) == 5
    assert all(item.meta_data["status"] == "draft" for item in everything)


def test_resaving_workflow_entry_keeps_status() -> None:
    backend = _backend()
    entry = PersistedEntry(path="content/posts/w.md", slug="w", raw="one")
    meta = {"unpublished": True, "collection_name": "posts"}
    asyncio.run(backend.persist_entry(entry, [], meta))
    asyncio.run(backend.update_unpublished_entry_status(POSTS, "w", EditorialStatus.PENDING_REVIEW))

    asyncio.run(backend.persist_entry(entry.model_copy(update={"raw": "two"}), [], meta))

    loaded = asyncio.run(backend.unpublished_entry(POSTS, "w"))
    assert loaded.data == "two"
    assert loaded.meta_data["status"] == "pending_review"


def test_backend_registry_names() -> None:
    assert available_backends() == ["github", "netlify-git", "test-repo"]
    assert backend_kind("github").value == "github"
