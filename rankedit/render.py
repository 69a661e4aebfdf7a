"""Rich tables for the terminal editor view.

Formatting tokens (&c, &7[VIP], ...) are shown verbatim and escaped
so Rich never reads them as markup.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from rankedit.editor import EditorView
from rankedit.links import EditorLink
from rankedit.models import ChangeSet, Rank, Tag


def rank_table(ranks: list[Rank]) -> Table:
    table = Table(title="Ranks", show_header=True, header_style="bold")
    table.add_column("ID", style="green", min_width=10)
    table.add_column("Name", min_width=12)
    table.add_column("Preview", min_width=20)
    table.add_column("Weight", justify="right")
    table.add_column("Default", justify="center")
    table.add_column("Perms", justify="right")

    for r in ranks:
        table.add_row(
            escape(r.id),
            escape(r.name),
            escape(r.preview),
            str(r.weight),
            "[cyan]yes[/cyan]" if r.default else "[dim]--[/dim]",
            str(len(r.permissions)),
        )
    return table


def tag_table(tags: list[Tag]) -> Table:
    table = Table(title="Tags", show_header=True, header_style="bold")
    table.add_column("ID", style="green", min_width=10)
    table.add_column("Display name", min_width=12)
    table.add_column("Preview", min_width=20)
    table.add_column("Priority", justify="right")

    for t in tags:
        table.add_row(escape(t.id), escape(t.display_name), escape(t.preview), str(t.priority))
    return table


def changes_table(changes: ChangeSet) -> Table:
    """One row per change entry, ranks first."""
    table = Table(
        title=f"Changes for {escape(changes.editor_id)} (version {changes.version})",
        show_header=True,
        header_style="bold",
    )
    table.add_column("Kind", style="dim")
    table.add_column("Action")
    table.add_column("ID", style="green")
    table.add_column("Fields")

    colors = {"create": "green", "update": "yellow", "delete": "red"}
    rows = [("rank", c) for c in changes.rank_changes] + [("tag", c) for c in changes.tag_changes]
    for kind, c in rows:
        color = colors[c.action.value]
        fields = ", ".join(f"{k}={v!r}" for k, v in c.fields.items())
        table.add_row(kind, f"[{color}]{c.action.value}[/{color}]", escape(c.record_id), escape(fields) or "[dim]--[/dim]")
    return table


def render_view(view: EditorView, link: EditorLink, console: Console, query: str = "") -> None:
    """Print the session header and both collections, filtered by `query`."""
    console.print(
        f"\n[bold]Editor:[/bold] {escape(link.editor_id)}  "
        f"[bold]Server:[/bold] {escape(link.server_uuid)}  "
        f"[dim]version {view.known_version}[/dim]"
    )
    ranks = view.filter_ranks(query)
    tags = view.filter_tags(query)
    if query:
        console.print(f"  [dim]Filter:[/dim] {escape(query)} ({len(ranks)} ranks, {len(tags)} tags)")

    console.print()
    console.print(rank_table(ranks))
    console.print()
    if tags:
        console.print(tag_table(tags))
    else:
        console.print("[yellow]No tags.[/yellow]")
    console.print()
