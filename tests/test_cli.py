from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from contentrepo.cli import app

FIXTURE_REPO = Path(__file__).parent / "fixtures" / "repo"


def _write_config(root: Path, backend: str = "test-repo") -> Path:
    config_path = root / "cms.yml"
    config_path.write_text(
        (
            "backend:\n"
            f"  name: {backend}\n"
            f"  fixture_dir: {FIXTURE_REPO.as_posix()}\n"
            "publish_mode: editorial_workflow\n"
            "collections:\n"
            "  - name: posts\n"
            "    label: Posts\n"
            "    folder: content/posts\n"
            "    create: true\n"
            "  - name: pages\n"
            "    folder: content/pages\n"
            "  - name: settings\n"
            "    files:\n"
            "      - name: general\n"
            "        label: Site settings\n"
            "        file: _data/settings.yml\n"
        ),
        encoding="utf-8",
    )
    return config_path


def test_entries_lists_fixture_posts(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["entries", "posts", "--config", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "first-post" in result.output
    assert "Second Post" in result.output
    assert result.output.index("first-post") < result.output.index("second-post")


def test_show_prints_raw_and_rendered_body(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    runner = CliRunner()

    raw = runner.invoke(app, ["show", "posts", "first-post", "-c", str(config_path)])
    assert raw.exit_code == 0, raw.output
    assert "title: First Post" in raw.output

    rendered = runner.invoke(app, ["show", "posts", "first-post", "--html", "-c", str(config_path)])
    assert rendered.exit_code == 0, rendered.output
    assert "<strong>world</strong>" in rendered.output


def test_show_missing_entry_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["show", "posts", "missing", "-c", str(config_path)])

    assert result.exit_code == 1
    assert "NotFoundError" in result.output


def test_new_creates_entry_path_from_title(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(
        app,
        ["new", "posts", "--title", "Fresh Start", "--body", "Hi", "-f", "tags=news", "-c", str(config_path)],
    )

    assert result.exit_code == 0, result.output
    assert "content/posts/fresh-start.md" in result.output


def test_new_in_closed_collection_is_refused(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["new", "pages", "--title", "Contact", "-c", str(config_path)])

    assert result.exit_code == 1
    assert "PolicyError" in result.output


def test_new_rejects_malformed_field(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["new", "posts", "--title", "X", "-f", "novalue", "-c", str(config_path)])

    assert result.exit_code == 2


def test_update_keeps_entry_path(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(
        app, ["update", "posts", "first-post", "-f", "title=Renamed", "-c", str(config_path)]
    )

    assert result.exit_code == 0, result.output
    assert "content/posts/first-post.md" in result.output


def test_login_whoami_logout_cycle(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    runner = CliRunner()

    login = runner.invoke(app, ["login", "--email", "editor@example.com", "-c", str(config_path)])
    assert login.exit_code == 0, login.output
    assert "editor" in login.output

    auth_file = tmp_path / ".cache" / "cms-auth.json"
    stored = json.loads(auth_file.read_text(encoding="utf-8"))
    assert stored["cms-user"]["email"] == "editor@example.com"

    whoami = runner.invoke(app, ["whoami", "-c", str(config_path)])
    assert whoami.exit_code == 0, whoami.output
    assert "editor" in whoami.output

    assert runner.invoke(app, ["logout", "-c", str(config_path)]).exit_code == 0
    assert runner.invoke(app, ["whoami", "-c", str(config_path)]).exit_code == 1


def test_login_without_email_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["login", "-c", str(config_path)])

    assert result.exit_code == 1
    assert "AuthError" in result.output


def test_workflow_starts_empty(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["workflow", "-c", str(config_path)])

    assert result.exit_code == 0, result.output
    assert "Workflow empty" in result.output


def test_status_of_unknown_workflow_entry_fails(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(
        app, ["status", "posts", "ghost", "pending_review", "-c", str(config_path)]
    )

    assert result.exit_code == 1
    assert "NotFoundError" in result.output


def test_unknown_backend_is_a_configuration_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path, backend="dropbox")
    result = CliRunner().invoke(app, ["entries", "posts", "-c", str(config_path)])

    assert result.exit_code == 1
    assert "Configuration error" in result.output
    assert "Backend not found: dropbox" in result.output


def test_unknown_collection_is_a_configuration_error(tmp_path: Path) -> None:
    config_path = _write_config(tmp_path)
    result = CliRunner().invoke(app, ["entries", "recipes", "-c", str(config_path)])

    assert result.exit_code == 1
    assert "Unknown collection" in result.output
