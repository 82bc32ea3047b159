"""Command-line interface for bookmark-tree."""

import json
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer
from loguru import logger

from bookmark_tree.config import DATABASE_FILENAME, DEFAULT_EXPORT_FILENAME, resolve_data_directory
from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.core.database.schema import SqliteKeyValueStore
from bookmark_tree.core.importer.json_reader import node_to_record
from bookmark_tree.core.importer.loader import decode_import_bytes
from bookmark_tree.core.search.searcher import RECENCY_ICONS, now_ms, recency_bucket
from bookmark_tree.core.tree.markdown import render_subtree_as_markdown
from bookmark_tree.enrichment import TitleFetcher
from bookmark_tree.errors import BookmarkError, PersistenceFailure
from bookmark_tree.logging_config import configure_logging
from bookmark_tree.manager import BookmarkManager
from bookmark_tree.models.node import ROOT_ID, Link, Node

app = typer.Typer(help="Bookmark tree: folders, links and ranked search from the terminal.")

_ROOT_REFS = {"", "/", "root"}


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Only log warnings and errors"),
    data_dir: Annotated[
        Path | None,
        typer.Option("--data-dir", "-d", help="Directory holding the bookmark database"),
    ] = None,
) -> None:
    configure_logging(verbose=verbose, quiet=quiet)
    ctx.obj = data_dir or resolve_data_directory()


def _warn(e: PersistenceFailure) -> None:
    typer.echo(f"Warning: {e}. The change may not survive a reload.", err=True)


@contextmanager
def _session(ctx: typer.Context, *, fetch_titles: bool = False) -> Iterator[BookmarkManager]:
    """Open the database, load the manager, and turn errors into CLI output."""
    data_dir: Path = ctx.obj
    data_dir.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(data_dir / DATABASE_FILENAME))
    try:
        gateway = PersistenceGateway(SqliteKeyValueStore(conn))
        manager = BookmarkManager(gateway, title_fetcher=TitleFetcher() if fetch_titles else None)
        try:
            manager.load()
        except PersistenceFailure as e:
            _warn(e)
        try:
            yield manager
        except PersistenceFailure as e:
            _warn(e)
        except BookmarkError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e
    finally:
        conn.close()


def _resolve_parent(manager: BookmarkManager, ref: str | None) -> str:
    if ref is None or ref.strip() in _ROOT_REFS:
        return ROOT_ID
    node = manager.resolve(ref)
    if node is None:
        typer.echo(f"Folder '{ref}' not found.", err=True)
        raise typer.Exit(1)
    return node.id


def _require(manager: BookmarkManager, ref: str) -> Node:
    node = manager.resolve(ref)
    if node is None:
        typer.echo(f"'{ref}' not found.", err=True)
        raise typer.Exit(1)
    return node


def _format_node(node: Node, now: int) -> str:
    if isinstance(node, Link):
        icon = RECENCY_ICONS[recency_bucket(node.access_time, now)]
        return f"{icon} {node.name}  <{node.url}>  [id={node.id}]"
    return f"📁 {node.name}/  [id={node.id}]"


def _echo_nodes(nodes: list[Node], *, empty: str) -> None:
    if not nodes:
        typer.echo(f"  {empty}")
        return
    now = now_ms()
    for node in nodes:
        typer.echo(f"  {_format_node(node, now)}")


@app.command(name="ls")
def list_cmd(
    ctx: typer.Context,
    folder: str | None = typer.Argument(None, help="Folder id or path (default: current folder)"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """List the contents of a folder."""
    with _session(ctx) as manager:
        if folder is None:
            parent_id = manager.cursor.current_folder_id
            title = " / ".join(c.name for c in manager.cursor.path) or "Bookmarks"
        else:
            parent_id = _resolve_parent(manager, folder)
            node = manager.get(parent_id)
            title = node.name if node is not None else "Bookmarks"
        children = manager.children(parent_id)
        if output_json:
            typer.echo(json.dumps([node_to_record(n) for n in children], indent=2))
            return
        typer.echo(f"{title}:")
        _echo_nodes(children, empty="No items")


@app.command()
def tree(
    ctx: typer.Context,
    folder: str | None = typer.Argument(None, help="Folder id or path (default: root)"),
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", "-m", help="Max depth levels to render"),
    ] = None,
) -> None:
    """Show a folder and everything below it."""
    with _session(ctx) as manager:
        parent_id = _resolve_parent(manager, folder)
        md = render_subtree_as_markdown(
            manager.store, node_id=parent_id, max_depth=max_depth, show_ids=True
        )
        typer.echo(md or "No items")


@app.command()
def cd(
    ctx: typer.Context,
    folder: str = typer.Argument(..., help="Folder id or path, '..' for up, '/' for root"),
) -> None:
    """Change the current folder (remembered between runs)."""
    with _session(ctx) as manager:
        ref = folder.strip()
        if ref in _ROOT_REFS:
            manager.navigate_root()
        elif ref == "..":
            manager.navigate_up()
        else:
            node = _require(manager, ref)
            if manager.navigate(node.id) is None:
                typer.echo(f"'{node.name}' is not a folder.", err=True)
                raise typer.Exit(1)
        typer.echo("/" + "/".join(c.name for c in manager.cursor.path))


@app.command()
def up(ctx: typer.Context) -> None:
    """Go up one folder."""
    with _session(ctx) as manager:
        manager.navigate_up()
        typer.echo("/" + "/".join(c.name for c in manager.cursor.path))


@app.command()
def add(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL to bookmark"),
    name: str = typer.Option("", "--name", "-n", help="Display name (default: page title)"),
    parent: Annotated[
        str | None,
        typer.Option("--parent", "-p", help="Parent folder id or path (default: current folder)"),
    ] = None,
    fetch_title: bool = typer.Option(
        True, "--fetch-title/--no-fetch-title", help="Look up the page title for a blank name"
    ),
) -> None:
    """Add a bookmark."""
    with _session(ctx, fetch_titles=fetch_title) as manager:
        parent_id = (
            manager.cursor.current_folder_id if parent is None else _resolve_parent(manager, parent)
        )
        link = manager.add_link(url, name=name, parent=parent_id)
        typer.echo(f"Added {link.name} [id={link.id}]")


@app.command()
def mkdir(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Folder name"),
    parent: Annotated[
        str | None,
        typer.Option("--parent", "-p", help="Parent folder id or path (default: current folder)"),
    ] = None,
) -> None:
    """Add a folder."""
    with _session(ctx) as manager:
        parent_id = (
            manager.cursor.current_folder_id if parent is None else _resolve_parent(manager, parent)
        )
        folder = manager.add_folder(name, parent=parent_id)
        typer.echo(f"Added folder {folder.name} [id={folder.id}]")


@app.command()
def edit(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Item id or path"),
    name: Annotated[str | None, typer.Option("--name", "-n", help="New name")] = None,
    url: Annotated[str | None, typer.Option("--url", "-u", help="New URL (links only)")] = None,
    parent: Annotated[
        str | None, typer.Option("--parent", "-p", help="New parent folder id or path")
    ] = None,
) -> None:
    """Rename an item, change its URL, or move it."""
    with _session(ctx) as manager:
        node = _require(manager, item)
        parent_id = None if parent is None else _resolve_parent(manager, parent)
        updated = manager.edit(node.id, name=name, url=url, parent=parent_id)
        if updated is not None:
            typer.echo(f"Updated {updated.name} [id={updated.id}]")


@app.command()
def mv(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Item id or path"),
    destination: str = typer.Argument(..., help="Destination folder id or path, '/' for root"),
) -> None:
    """Move an item into another folder (it goes last)."""
    with _session(ctx) as manager:
        node = _require(manager, item)
        manager.move(node.id, _resolve_parent(manager, destination))
        typer.echo(f"Moved {node.name}")


@app.command()
def reorder(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Item id or path"),
    before: str = typer.Argument(..., help="Sibling to place the item in front of"),
) -> None:
    """Place an item right before one of its siblings."""
    with _session(ctx) as manager:
        node = _require(manager, item)
        target = _require(manager, before)
        siblings = manager.reorder(node.id, target.id)
        typer.echo(", ".join(n.name for n in siblings))


@app.command()
def rm(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Item id or path"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete an item and everything inside it."""
    with _session(ctx) as manager:
        node = _require(manager, item)
        if not yes and not typer.confirm(
            f"Delete '{node.name}'? This will also delete all its children."
        ):
            raise typer.Exit(1)
        removed = manager.delete(node.id)
        typer.echo(f"Deleted {len(removed)} item(s)")


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help="Text to look for in names"),
    limit: int = typer.Option(20, "--limit", "-n", help="Max results"),
    output_json: bool = typer.Option(False, "--json", "-j", help="Output as JSON"),
) -> None:
    """Search all bookmarks and folders, most recently used first."""
    with _session(ctx) as manager:
        results = manager.search(query)
        if output_json:
            data = {
                "results": [node_to_record(n) for n in results[:limit]],
                "total": len(results),
            }
            typer.echo(json.dumps(data, indent=2))
            return
        typer.echo(f"Search Results ({len(results)}):")
        _echo_nodes(results[:limit], empty=f'No bookmarks found matching "{query}"')


@app.command(name="open")
def open_cmd(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Bookmark id or path"),
    launch: bool = typer.Option(False, "--launch", "-l", help="Open in the default browser"),
) -> None:
    """Record a visit to a bookmark and print its URL."""
    with _session(ctx) as manager:
        node = _require(manager, item)
        link = manager.record_access(node.id)
        if link is None:
            typer.echo(f"'{node.name}' is not a bookmark.", err=True)
            raise typer.Exit(1)
        typer.echo(link.url)
        if launch:
            typer.launch(link.url)


@app.command()
def info(
    ctx: typer.Context,
    item: str = typer.Argument(..., help="Item id or path"),
    favicon: bool = typer.Option(False, "--favicon", "-f", help="Look up the site's favicon"),
) -> None:
    """Show one item: its location, URL and last visit."""
    with _session(ctx, fetch_titles=favicon) as manager:
        node = _require(manager, item)
        crumbs = [manager.get(a) for a in reversed(manager.tree.ancestors(node.id))]
        names = [c.name for c in crumbs if c is not None]
        typer.echo(f"Name: {node.name}")
        typer.echo(f"Id:   {node.id}")
        typer.echo("Path: /" + "/".join([*names, node.name]))
        if not isinstance(node, Link):
            typer.echo(f"Items: {len(manager.children(node.id))}")
            return
        typer.echo(f"URL:  {node.url}")
        bucket = recency_bucket(node.access_time)
        typer.echo(f"Last visit: {RECENCY_ICONS[bucket]} {bucket}")
        if favicon and manager.title_fetcher is not None:
            icon = manager.title_fetcher.favicon_url(node.url)
            typer.echo(f"Favicon: {icon or 'none'}")


@app.command()
def folders(
    ctx: typer.Context,
    for_item: Annotated[
        str | None,
        typer.Option("--for", help="Mark folders the item cannot be moved into"),
    ] = None,
) -> None:
    """List every folder as a possible destination."""
    with _session(ctx) as manager:
        editing_id = None if for_item is None else _require(manager, for_item).id
        typer.echo("Root")
        for choice in manager.folder_choices(editing_id):
            suffix = "  (unavailable)" if choice.disabled else ""
            typer.echo(f"  {choice.label}  [id={choice.folder.id}]{suffix}")


@app.command(name="import")
def import_cmd(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Bookmark file (.json export or browser .html)"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Replace existing bookmarks without asking"),
    allow_empty: bool = typer.Option(
        False, "--allow-empty", help="Accept a bookmark file with no entries"
    ),
) -> None:
    """Replace all bookmarks with the contents of a file."""
    if not file.exists():
        logger.error("File not found: {}", file)
        raise typer.Exit(1)
    data = file.read_bytes()

    with _session(ctx) as manager:
        text = decode_import_bytes(data)
        replace_existing = yes
        if manager.store and not yes:
            replace_existing = typer.confirm("This will replace all existing bookmarks. Continue?")
            if not replace_existing:
                raise typer.Exit(1)
        result = manager.import_text(
            text, filename=file.name, replace_existing=replace_existing, allow_empty=allow_empty
        )
        typer.echo(
            f"Bookmarks imported successfully from {file.name} ({len(result.nodes)} items)"
        )


@app.command()
def export(
    ctx: typer.Context,
    file: Path = typer.Argument(
        Path(DEFAULT_EXPORT_FILENAME), help="Output file, '-' for standard output"
    ),
) -> None:
    """Export all bookmarks as JSON."""
    with _session(ctx) as manager:
        text = manager.export_text()
        if str(file) == "-":
            typer.echo(text)
            return
        file.write_text(text + "\n", encoding="utf-8")
        typer.echo(f"Exported {len(manager.store)} items to {file}")


@app.command()
def settings(
    ctx: typer.Context,
    font_size: Annotated[int | None, typer.Option("--font-size", help="Font size (10-24)")] = None,
    item_gap: Annotated[int | None, typer.Option("--item-gap", help="Item gap (0-20)")] = None,
    reset: bool = typer.Option(False, "--reset", help="Reset to default values"),
) -> None:
    """Show or change display settings."""
    with _session(ctx) as manager:
        try:
            if reset:
                manager.reset_settings()
            elif font_size is not None or item_gap is not None:
                manager.update_settings(font_size=font_size, item_gap=item_gap)
        except ValueError as e:
            typer.echo(f"Error: {e}", err=True)
            raise typer.Exit(1) from e
        typer.echo(json.dumps(manager.settings.to_record()))


@app.command()
def serve() -> None:
    """Start the MCP server (stdio transport)."""
    from bookmark_tree.mcp.server import run_mcp_server

    run_mcp_server()
