"""CLI for the rankedit rank/tag editor.

Usage:
    python -m rankedit serve                                  # Run the session API
    python -m rankedit connect <editor-url>                   # Check an editor URL
    python -m rankedit show <editor-url> --filter vip         # Show ranks and tags
    python -m rankedit watch <editor-url>                     # Re-render on change
    python -m rankedit upload <editor-url> snapshot.json      # Collaborator upload
    python -m rankedit download <editor-url> -o changes.json  # Pending change-set
    python -m rankedit rank set <editor-url> vip --name VIP --weight 50
    python -m rankedit rank delete <editor-url> vip
    python -m rankedit tag set <editor-url> star --display-name Star
    python -m rankedit tag delete <editor-url> star
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from rankedit.client import ApiError, EditorClient
from rankedit.config import Settings, load_settings
from rankedit.editor import EditorView, PendingEdit
from rankedit.links import EditorLink, InvalidEditorURL, parse_editor_url
from rankedit.models import Rank, RecordError, Snapshot, Tag
from rankedit.render import changes_table, render_view

app = typer.Typer(
    name="rankedit",
    help="Web editor for server ranks and tags",
    no_args_is_help=True,
)
rank_app = typer.Typer(help="Create, update and delete ranks", no_args_is_help=True)
tag_app = typer.Typer(help="Create, update and delete tags", no_args_is_help=True)
app.add_typer(rank_app, name="rank")
app.add_typer(tag_app, name="tag")

console = Console(stderr=True)


def _fail(message: str) -> typer.Exit:
    console.print(f"[red]Error:[/red] {escape(message)}")
    return typer.Exit(1)


def _link(url: str) -> EditorLink:
    try:
        return parse_editor_url(url)
    except InvalidEditorURL as e:
        raise _fail(str(e))


def _client(url: str, settings: Settings) -> EditorClient:
    return EditorClient(_link(url), timeout=settings.timeout)


def _load_view(client: EditorClient) -> EditorView:
    view = EditorView(client)
    try:
        view.refresh()
    except (ApiError, RecordError) as e:
        raise _fail(str(e))
    return view


def _report(edit: PendingEdit) -> None:
    """Print the outcome of a save/delete; exit 1 if it failed."""
    change = edit.change
    if edit.failed:
        raise _fail(f"{change.action.value} {change.record_id} failed: {edit.error}")
    console.print(
        f"[green]{change.action.value}[/green] {escape(change.record_id)} "
        f"submitted (version {edit.version})"
    )


@app.command("serve")
def cmd_serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (default: RANKEDIT_HOST or 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port (default: RANKEDIT_PORT or 3000)"),
    debug: bool = typer.Option(False, "--debug", help="Run Flask in debug mode"),
) -> None:
    """Run the session API."""
    from rankedit.api import create_app

    settings = load_settings()
    if host:
        settings.host = host
    if port:
        settings.port = port

    logging.basicConfig(
        level=settings.log_level,
        format="%(message)s",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )
    console.print(f"[bold]Serving[/bold] session API on http://{settings.host}:{settings.port}")
    create_app().run(host=settings.host, port=settings.port, debug=debug)


@app.command("connect")
def cmd_connect(
    url: str = typer.Argument(help="Editor URL from /superior web connect"),
) -> None:
    """Parse an editor URL and show where it points."""
    link = _link(url)
    console.print(f"  Editor ID:   [green]{escape(link.editor_id)}[/green]")
    console.print(f"  Server UUID: {escape(link.server_uuid)}")
    console.print(f"  API:         {escape(link.endpoint)}")
    console.print(f"  View:        {escape(link.view_location())}")


@app.command("show")
def cmd_show(
    url: str = typer.Argument(help="Editor URL"),
    query: str = typer.Option("", "--filter", "-f", help="Only ids/names containing this text"),
) -> None:
    """Show the session's ranks and tags."""
    client = _client(url, load_settings())
    view = _load_view(client)
    render_view(view, client.link, console, query=query)


@app.command("watch")
def cmd_watch(
    url: str = typer.Argument(help="Editor URL"),
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="Seconds between refreshes"),
    query: str = typer.Option("", "--filter", "-f", help="Only ids/names containing this text"),
) -> None:
    """Re-render the session whenever its snapshot changes. Ctrl-C to stop."""
    settings = load_settings()
    client = _client(url, settings)
    view = EditorView(client)
    stop = threading.Event()

    def on_error(e: Exception) -> None:
        console.print(f"[yellow]Refresh failed:[/yellow] {escape(str(e))}")

    try:
        view.poll(
            stop,
            on_change=lambda v: render_view(v, client.link, console, query=query),
            on_error=on_error,
            interval=interval or settings.poll_interval,
        )
    except KeyboardInterrupt:
        stop.set()
        console.print("\n[dim]Stopped.[/dim]")


@app.command("upload")
def cmd_upload(
    url: str = typer.Argument(help="Editor URL"),
    path: Path = typer.Argument(help="Snapshot JSON file ({ranks, tags, lastUpdated, version})"),
) -> None:
    """Upload a snapshot for the session (collaborator side)."""
    client = _client(url, load_settings())
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        snapshot = Snapshot.from_dict(raw.get("data", raw) if isinstance(raw, dict) else raw)
    except (OSError, json.JSONDecodeError, RecordError) as e:
        raise _fail(f"Cannot read snapshot {path}: {e}")
    if snapshot.server_uuid is None:
        snapshot.server_uuid = client.link.server_uuid
    try:
        message = client.upload(snapshot)
    except ApiError as e:
        raise _fail(str(e))
    console.print(f"[green]{escape(message)}[/green] ({len(snapshot.ranks)} ranks, {len(snapshot.tags)} tags)")


@app.command("download")
def cmd_download(
    url: str = typer.Argument(help="Editor URL"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the change-set JSON here"),
) -> None:
    """Retrieve the pending change-set."""
    client = _client(url, load_settings())
    try:
        changes = client.retrieve()
    except ApiError as e:
        raise _fail(str(e))

    text = json.dumps(changes.to_dict(), indent=2, sort_keys=True)
    if output:
        output.write_text(text + "\n", encoding="utf-8")
        console.print(f"Change-set version {changes.version} written to {output}")
    else:
        console.print(changes_table(changes))
        typer.echo(text)


@rank_app.command("set")
def cmd_rank_set(
    url: str = typer.Argument(help="Editor URL"),
    rank_id: str = typer.Argument(help="Rank id"),
    name: Optional[str] = typer.Option(None, "--name", help="Display name"),
    prefix: Optional[str] = typer.Option(None, "--prefix"),
    suffix: Optional[str] = typer.Option(None, "--suffix"),
    color: Optional[str] = typer.Option(None, "--color", help="Color token, e.g. &a"),
    weight: Optional[int] = typer.Option(None, "--weight", "-w"),
    default: Optional[bool] = typer.Option(None, "--default/--no-default"),
    permissions: Optional[List[str]] = typer.Option(None, "--permission", help="Repeat for each permission; replaces the list"),
    clear_permissions: bool = typer.Option(False, "--clear-permissions", help="Drop every permission before applying --permission"),
) -> None:
    """Create a rank, or update the fields given on an existing one."""
    view = _load_view(_client(url, load_settings()))
    rank = view.find_rank(rank_id) or Rank(id=rank_id, name=rank_id)
    if name is not None:
        rank.name = name
    if prefix is not None:
        rank.prefix = prefix
    if suffix is not None:
        rank.suffix = suffix
    if color is not None:
        rank.color = color
    if weight is not None:
        rank.weight = weight
    if default is not None:
        rank.default = default
    if clear_permissions:
        rank.permissions = []
    if permissions:
        rank.permissions = list(permissions)
    _report(view.save_rank(rank))


@rank_app.command("delete")
def cmd_rank_delete(
    url: str = typer.Argument(help="Editor URL"),
    rank_id: str = typer.Argument(help="Rank id"),
) -> None:
    """Delete a rank."""
    view = _load_view(_client(url, load_settings()))
    if not view.find_rank(rank_id):
        console.print(f"[yellow]Rank {escape(rank_id)} is not in the current snapshot.[/yellow]")
    _report(view.delete_rank(rank_id))


@tag_app.command("set")
def cmd_tag_set(
    url: str = typer.Argument(help="Editor URL"),
    tag_id: str = typer.Argument(help="Tag id"),
    display_name: Optional[str] = typer.Option(None, "--display-name", help="Display name"),
    prefix: Optional[str] = typer.Option(None, "--prefix"),
    suffix: Optional[str] = typer.Option(None, "--suffix"),
    priority: Optional[int] = typer.Option(None, "--priority"),
) -> None:
    """Create a tag, or update the fields given on an existing one."""
    view = _load_view(_client(url, load_settings()))
    tag = view.find_tag(tag_id) or Tag(id=tag_id, display_name=tag_id)
    if display_name is not None:
        tag.display_name = display_name
    if prefix is not None:
        tag.prefix = prefix
    if suffix is not None:
        tag.suffix = suffix
    if priority is not None:
        tag.priority = priority
    _report(view.save_tag(tag))


@tag_app.command("delete")
def cmd_tag_delete(
    url: str = typer.Argument(help="Editor URL"),
    tag_id: str = typer.Argument(help="Tag id"),
) -> None:
    """Delete a tag."""
    view = _load_view(_client(url, load_settings()))
    if not view.find_tag(tag_id):
        console.print(f"[yellow]Tag {escape(tag_id)} is not in the current snapshot.[/yellow]")
    _report(view.delete_tag(tag_id))


if __name__ == "__main__":
    app()
