"""CLI entrypoints for browsing and editing repository content."""

from __future__ import annotations

import asyncio
from typing import Annotated, Any, Awaitable, Callable, TypeVar

import typer
from rich.table import Table

from .backend import Backend, BackendContext
from .config import Config, load_config
from .entry import EditorialStatus, Entry
from .errors import ConfigError, ContentRepoError
from .logging_setup import configure_logging, console
from .markdown import render_entry_body

T = TypeVar("T")

app = typer.Typer(help="Multi-provider content repository toolkit.")

ConfigPathOption = Annotated[
    str,
    typer.Option("--config", "-c", help="Path to configuration file."),
]
DraftFlag = Annotated[
    bool,
    typer.Option("--draft", "-d", help="Route through the editorial workflow instead of publishing."),
]
FieldOption = Annotated[
    list[str] | None,
    typer.Option("--field", "-f", help="Entry field as key=value; may be repeated."),
]


@app.callback()
def main(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Logging level (defaults to CONTENTREPO_LOG_LEVEL or INFO)."),
    ] = None,
) -> None:
    configure_logging(log_level)


@app.command()
def login(
    email: Annotated[str | None, typer.Option("--email", help="Account email.")] = None,
    token: Annotated[str | None, typer.Option("--token", help="Access token (github).")] = None,
    password: Annotated[str | None, typer.Option("--password", help="Password (netlify-git).")] = None,
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Authenticate against the configured backend and store the session."""
    credentials = {key: value for key, value in {"email": email, "token": token, "password": password}.items() if value}

    async def _login(backend: Backend, config: Config) -> dict[str, Any]:
        return await backend.authenticate(credentials)

    user = _execute(config_path, _login, require_user=False)
    name = user.get("name") or user.get("login") or user.get("email")
    console.print(f"[bold green]Logged in[/]: {name}")


@app.command()
def logout(config_path: ConfigPathOption = "cms.yml") -> None:
    """Forget the stored session."""

    async def _logout(backend: Backend, config: Config) -> None:
        backend.logout()

    _execute(config_path, _logout, require_user=False)
    console.print("[bold green]Logged out[/].")


@app.command()
def whoami(config_path: ConfigPathOption = "cms.yml") -> None:
    """Show the stored session, if any."""

    async def _whoami(backend: Backend, config: Config) -> dict[str, Any] | None:
        return backend.current_user()

    user = _execute(config_path, _whoami, require_user=False)
    if user is None:
        console.print("[bold yellow]Not logged in[/].")
        raise typer.Exit(code=1)
    console.print(f"[bold blue]User[/]: {user.get('name') or user.get('login') or user.get('email')}")


@app.command()
def entries(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """List the entries of a collection in backend order."""

    async def _list(backend: Backend, config: Config) -> list[Entry]:
        listing = await backend.list_entries(config.collection(collection))
        return listing.entries

    items = _execute(config_path, _list)
    if not items:
        console.print(f"[bold yellow]No entries[/] in '{collection}'.")
        return
    table = Table("slug", "title", "path")
    for entry in items:
        table.add_row(entry.slug or "", str(entry.field("title") or ""), entry.path or "")
    console.print(table)


@app.command()
def show(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    slug: Annotated[str, typer.Argument(help="Entry slug.")],
    html: Annotated[bool, typer.Option("--html", help="Render the body to HTML.")] = False,
    draft: DraftFlag = False,
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Print one entry as stored, or its rendered body."""

    async def _show(backend: Backend, config: Config) -> Entry:
        target = config.collection(collection)
        if draft:
            return await backend.unpublished_entry(target, slug)
        return await backend.get_entry(target, slug)

    entry = _execute(config_path, _show)
    if html:
        console.print(render_entry_body(entry), markup=False, highlight=False)
    else:
        console.print(entry.raw, markup=False, highlight=False)


@app.command()
def new(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    title: Annotated[str, typer.Option("--title", "-t", help="Entry title.")],
    body: Annotated[str | None, typer.Option("--body", "-b", help="Markdown body.")] = None,
    fields: FieldOption = None,
    draft: DraftFlag = False,
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Create an entry in a collection that allows it."""
    data = _parse_fields(fields)
    data["title"] = title
    if body is not None:
        data["body"] = body

    async def _new(backend: Backend, config: Config) -> Any:
        target = config.collection(collection)
        draft_entry = backend.new_entry(target)
        draft_entry.data = data
        if draft:
            return await backend.persist_unpublished_entry(config, target, draft_entry)
        return await backend.persist_entry(config, target, draft_entry)

    persisted = _execute(config_path, _new)
    console.print(f"[bold green]Created[/]: {persisted.path}")


@app.command()
def update(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    slug: Annotated[str, typer.Argument(help="Entry slug.")],
    fields: FieldOption = None,
    body: Annotated[str | None, typer.Option("--body", "-b", help="Replacement Markdown body.")] = None,
    draft: DraftFlag = False,
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Change fields of an existing entry without moving it."""
    changes = _parse_fields(fields)
    if body is not None:
        changes["body"] = body

    async def _update(backend: Backend, config: Config) -> Any:
        target = config.collection(collection)
        entry = await backend.get_entry(target, slug)
        entry.data = {**(entry.data or {}), **changes}
        if draft:
            return await backend.persist_unpublished_entry(config, target, entry)
        return await backend.persist_entry(config, target, entry)

    persisted = _execute(config_path, _update)
    console.print(f"[bold green]Updated[/]: {persisted.path}")


@app.command()
def workflow(
    page: Annotated[int, typer.Option("--page", min=1)] = 1,
    per_page: Annotated[int, typer.Option("--per-page", min=1)] = 20,
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """List entries waiting in the editorial workflow."""

    async def _workflow(backend: Backend, config: Config) -> list[Entry]:
        listing = await backend.unpublished_entries(page, per_page)
        return listing.entries

    items = _execute(config_path, _workflow)
    if not items:
        console.print("[bold green]Workflow empty[/].")
        return
    table = Table("collection", "slug", "status", "title")
    for entry in items:
        state = entry.status.value if entry.status else ""
        table.add_row(entry.collection, entry.slug or "", state, str(entry.field("title") or ""))
    console.print(table)


@app.command()
def status(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    slug: Annotated[str, typer.Argument(help="Entry slug.")],
    new_status: Annotated[EditorialStatus, typer.Argument(help="Target workflow status.")],
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Move a workflow entry to another status."""

    async def _status(backend: Backend, config: Config) -> None:
        await backend.update_unpublished_entry_status(config.collection(collection), slug, new_status)

    _execute(config_path, _status)
    console.print(f"[bold green]Status updated[/]: {collection}/{slug} -> {new_status.value}")


@app.command()
def publish(
    collection: Annotated[str, typer.Argument(help="Collection name.")],
    slug: Annotated[str, typer.Argument(help="Entry slug.")],
    config_path: ConfigPathOption = "cms.yml",
) -> None:
    """Publish a workflow entry."""

    async def _publish(backend: Backend, config: Config) -> None:
        target = config.collection(collection)
        entry = await backend.unpublished_entry(target, slug)
        await backend.publish_unpublished_entry(target, slug, entry.status or EditorialStatus.PENDING_PUBLISH)

    _execute(config_path, _publish)
    console.print(f"[bold green]Published[/]: {collection}/{slug}")


def _execute(
    config_path: str,
    operation: Callable[[Backend, Config], Awaitable[T]],
    *,
    require_user: bool = True,
) -> T:
    try:
        config = load_config(config_path)
        context = BackendContext(config)
        backend = context.backend
        if backend is None:
            raise ConfigError("No backend defined in configuration.")
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error[/]: {exc}")
        raise typer.Exit(code=1) from exc

    async def _run() -> T:
        try:
            if require_user:
                backend.current_user()
            return await operation(backend, config)
        finally:
            await context.close()

    try:
        return asyncio.run(_run())
    except ContentRepoError as exc:
        console.print(f"[bold red]{type(exc).__name__}[/]: {exc}")
        raise typer.Exit(code=1) from exc


def _parse_fields(values: list[str] | None) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for item in values or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise typer.BadParameter(f"Expected key=value, got '{item}'.", param_hint="--field")
        data[key.strip()] = value
    return data


if __name__ == "__main__":
    app()
