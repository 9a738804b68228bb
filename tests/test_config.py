from __future__ import annotations

from pathlib import Path

import pytest

from contentrepo.config import load_config
from contentrepo.errors import ConfigError


def _write_project_config(root: Path, text: str | None = None) -> Path:
    config_text = text or (
        "backend:\n"
        "  name: test-repo\n"
        "  fixture_dir: repo\n"
        "publish_mode: editorial_workflow\n"
        "auth_store_path: .cache/auth.json\n"
        "collections:\n"
        "  - name: posts\n"
        "    label: Posts\n"
        "    folder: content/posts\n"
        '    slug: "{{year}}-{{slug}}"\n'
        "    create: true\n"
        "  - name: settings\n"
        "    files:\n"
        "      - name: general\n"
        "        file: _data/settings.yml\n"
    )
    cfg_path = root / "cms.yml"
    cfg_path.write_text(config_text, encoding="utf-8")
    return cfg_path


def test_load_config_resolves_paths_relative_to_config_directory(tmp_path: Path) -> None:
    project = tmp_path / "project"
    project.mkdir()
    _write_project_config(project)

    cfg = load_config(project)

    assert cfg.backend is not None
    assert cfg.backend.name == "test-repo"
    assert cfg.backend.fixture_dir == (project / "repo").resolve()
    assert cfg.auth_store_path == (project / ".cache" / "auth.json").resolve()
    assert cfg.editorial_workflow is True
    assert [c.name for c in cfg.collections] == ["posts", "settings"]
    assert cfg.collection("posts").slug == "{{year}}-{{slug}}"
    assert cfg.collection("settings").display_label == "settings"


def test_load_config_accepts_config_file_path(tmp_path: Path) -> None:
    config_file = _write_project_config(tmp_path)
    cfg = load_config(config_file)
    assert cfg.collection("posts").display_label == "Posts"


def test_load_config_uses_defaults_when_directory_has_no_config(tmp_path: Path) -> None:
    cfg = load_config(tmp_path)

    assert cfg.backend is None
    assert cfg.collections == []
    assert cfg.auth_store_path == (tmp_path / ".cache" / "cms-auth.json").resolve()


def test_missing_config_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yml")


def test_collection_without_path_rule_is_a_config_error(tmp_path: Path) -> None:
    config_file = _write_project_config(tmp_path, "collections:\n  - name: orphan\n")
    with pytest.raises(ConfigError):
        load_config(config_file)


def test_duplicate_collection_names_are_rejected(tmp_path: Path) -> None:
    text = "collections:\n  - name: a\n    folder: a\n  - name: a\n    folder: b\n"
    with pytest.raises(ConfigError):
        load_config(_write_project_config(tmp_path, text))


def test_unknown_collection_lookup_raises(tmp_path: Path) -> None:
    cfg = load_config(_write_project_config(tmp_path))
    with pytest.raises(ConfigError, match="Unknown collection"):
        cfg.collection("missing")


def test_backend_section_without_name_keeps_name_empty(tmp_path: Path) -> None:
    cfg = load_config(_write_project_config(tmp_path, "backend:\n  branch: main\n"))
    assert cfg.backend is not None
    assert cfg.backend.name is None
    assert cfg.backend.branch == "main"
