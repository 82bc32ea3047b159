"""MCP server exposing bookmark search, browsing and editing tools."""

import asyncio
import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from loguru import logger
from mcp.server.fastmcp import Context, FastMCP

from bookmark_tree.config import DATABASE_FILENAME, resolve_data_directory
from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.core.database.schema import SqliteKeyValueStore
from bookmark_tree.core.tree.markdown import render_subtree_as_markdown
from bookmark_tree.errors import BookmarkError, PersistenceFailure
from bookmark_tree.manager import BookmarkManager
from bookmark_tree.models.node import ROOT_ID, Link, Node

_ROOT_REFS = {"", "/", "root"}


def _serialize(manager: BookmarkManager, node: Node) -> dict[str, Any]:
    entry: dict[str, Any] = {"id": node.id, "name": node.name, "type": node.type}
    if isinstance(node, Link):
        entry["url"] = node.url
        entry["last_access"] = (
            datetime.fromtimestamp(node.access_time / 1000, tz=UTC).isoformat()
            if node.access_time
            else None
        )
    crumbs = [manager.store.get_by_id(a) for a in reversed(manager.tree.ancestors(node.id))]
    entry["breadcrumbs"] = " > ".join(c.name for c in crumbs if c is not None)
    return entry


def _resolve_folder(manager: BookmarkManager, ref: str | None) -> str | None:
    """Map a folder reference to an id, or None if it does not exist."""
    if ref is None or ref.strip() in _ROOT_REFS:
        return ROOT_ID
    node = manager.resolve(ref)
    return node.id if node is not None and node.is_folder else None


def _error(message: str) -> dict[str, Any]:
    return {"success": False, "error": message}


# --- Core functions (testable without MCP context) ---


def bookmarks_search(manager: BookmarkManager, *, query: str, limit: int = 20) -> dict[str, Any]:
    """Search bookmark and folder names, most recently used first.

    Args:
        query: Text to look for (case-insensitive substring).
        limit: Max results (1-100, default 20).
    """
    if not query.strip():
        return {"error": "No search query provided.", "results": [], "count": 0, "total": 0}
    limit = max(1, min(limit, 100))
    results = manager.search(query)
    serialized = [_serialize(manager, n) for n in results[:limit]]
    return {"results": serialized, "count": len(serialized), "total": len(results)}


def bookmarks_list(manager: BookmarkManager, *, folder: str | None = None) -> dict[str, Any]:
    """List the direct contents of a folder (the current folder by default)."""
    if folder is None:
        parent_id: str | None = manager.cursor.current_folder_id
    else:
        parent_id = _resolve_folder(manager, folder)
    if parent_id is None:
        return {"error": f"Folder '{folder}' not found.", "items": [], "count": 0}
    items = [_serialize(manager, n) for n in manager.children(parent_id)]
    return {"folder_id": parent_id, "items": items, "count": len(items)}


def bookmarks_tree(
    manager: BookmarkManager, *, folder: str | None = None, max_depth: int | None = None
) -> dict[str, Any]:
    """Render a folder's subtree as markdown."""
    parent_id = _resolve_folder(manager, folder)
    if parent_id is None:
        return {"error": f"Folder '{folder}' not found."}
    md = render_subtree_as_markdown(
        manager.store, node_id=parent_id, max_depth=max_depth, show_ids=True
    )
    return {"folder_id": parent_id, "content": md}


def bookmarks_add(
    manager: BookmarkManager,
    *,
    name: str = "",
    url: str | None = None,
    parent: str | None = None,
) -> dict[str, Any]:
    """Add a bookmark (when ``url`` is given) or a folder."""
    parent_id = _resolve_folder(manager, parent)
    if parent_id is None:
        return _error(f"Folder '{parent}' not found.")
    try:
        if url is None:
            node: Node = manager.add_folder(name, parent=parent_id)
        else:
            node = manager.add_link(url, name=name, parent=parent_id)
    except PersistenceFailure as e:
        return {"success": True, "node_id": e.result.id, "warning": str(e)}
    except BookmarkError as e:
        return _error(str(e))
    return {"success": True, "node_id": node.id, "name": node.name}


def bookmarks_move(
    manager: BookmarkManager,
    *,
    node_id: str,
    destination: str | None = None,
    before: str | None = None,
    onto: str | None = None,
) -> dict[str, Any]:
    """Move a node into a folder, in front of a sibling, or onto another node.

    ``onto`` behaves like a drag-and-drop: onto a folder moves inside it,
    onto a sibling reorders, onto a link elsewhere joins that link's folder.
    """
    node = manager.resolve(node_id)
    if node is None:
        return _error(f"Node '{node_id}' not found.")
    try:
        if before is not None or onto is not None:
            ref = before if before is not None else onto
            target = manager.resolve(ref)
            if target is None:
                return _error(f"Node '{ref}' not found.")
            if before is not None:
                manager.reorder(node.id, target.id)
            else:
                manager.drop(node.id, target.id)
        else:
            parent_id = _resolve_folder(manager, destination)
            if parent_id is None:
                return _error(f"Folder '{destination}' not found.")
            manager.move(node.id, parent_id)
    except PersistenceFailure as e:
        return {"success": True, "node_id": node.id, "warning": str(e)}
    except BookmarkError as e:
        return _error(str(e))
    moved = manager.get(node.id)
    parent_id = manager.store.parent_of(moved) if moved is not None else ROOT_ID
    return {"success": True, "node_id": node.id, "parent_id": parent_id}


def bookmarks_navigate(manager: BookmarkManager, *, folder: str) -> dict[str, Any]:
    """Open a folder, go up with "..", or return to the top level with "/".

    The current folder is remembered between sessions and is what
    bookmarks_list shows when no folder is given.
    """
    ref = folder.strip()
    warning: str | None = None
    try:
        if ref in _ROOT_REFS:
            manager.navigate_root()
        elif ref == "..":
            manager.navigate_up()
        else:
            node = manager.resolve(ref)
            if node is None:
                return _error(f"Folder '{folder}' not found.")
            if manager.navigate(node.id) is None:
                return _error(f"'{node.name}' is not a folder.")
    except PersistenceFailure as e:
        warning = str(e)
    except BookmarkError as e:
        return _error(str(e))
    result: dict[str, Any] = {
        "success": True,
        "path": "/" + "/".join(c.name for c in manager.cursor.path),
        "folder_id": manager.cursor.current_folder_id,
        "items": [_serialize(manager, n) for n in manager.browse()],
    }
    if warning is not None:
        result["warning"] = warning
    return result


def bookmarks_delete(manager: BookmarkManager, *, node_id: str) -> dict[str, Any]:
    """Delete a node and its whole subtree."""
    node = manager.resolve(node_id)
    if node is None:
        return _error(f"Node '{node_id}' not found.")
    try:
        removed = manager.delete(node.id)
    except PersistenceFailure as e:
        return {"success": True, "deleted": len(e.result), "warning": str(e)}
    return {"success": True, "deleted": len(removed)}


def bookmarks_record_access(manager: BookmarkManager, *, node_id: str) -> dict[str, Any]:
    """Mark a bookmark as visited now, moving it up in search results."""
    node = manager.resolve(node_id)
    if node is None:
        return _error(f"Node '{node_id}' not found.")
    try:
        link = manager.record_access(node.id)
    except PersistenceFailure as e:
        return {"success": True, "url": e.result.url, "warning": str(e)}
    if link is None:
        return _error(f"'{node.name}' is not a bookmark.")
    return {"success": True, "url": link.url}


# --- MCP Server Setup ---


@dataclass
class ServerContext:
    """Shared resources for the MCP server lifetime."""

    conn: sqlite3.Connection
    manager: BookmarkManager
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@asynccontextmanager
async def server_lifespan(_server: FastMCP) -> AsyncIterator[ServerContext]:
    """Open database and load bookmarks on startup, close on shutdown."""
    data_dir = resolve_data_directory()
    data_dir.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(data_dir / DATABASE_FILENAME))
    try:
        manager = BookmarkManager(PersistenceGateway(SqliteKeyValueStore(conn)))
        manager.load()
        logger.info("Loaded {} bookmarks from {}", len(manager.store), data_dir)
        yield ServerContext(conn=conn, manager=manager)
    finally:
        conn.close()


mcp_server = FastMCP(
    "bookmark-tree",
    instructions="""\
A hierarchical bookmark collection: folders contain bookmarks and other folders.

- Use bookmarks_search_tool to find bookmarks by name; recently used ones come first.
- Use bookmarks_tree_tool or bookmarks_list_tool to browse folders.
- bookmarks_navigate_tool changes the current folder, which is remembered
  between sessions and listed by bookmarks_list_tool when no folder is given.
- Folders and bookmarks can be referenced by id or by a path of names like
  "Development/Stack Overflow".
- Call bookmarks_record_access_tool when a bookmark is actually opened.
""",
    lifespan=server_lifespan,
)


def _ctx(mcp_ctx: Context) -> ServerContext:
    return mcp_ctx.request_context.lifespan_context  # type: ignore[return-value]


async def _call(mcp_ctx: Context, fn: Any, **kwargs: Any) -> dict[str, Any]:
    """Run a core function under the single-mutator lock."""
    ctx = _ctx(mcp_ctx)
    async with ctx.lock:
        result: dict[str, Any] = fn(ctx.manager, **kwargs)
        ctx.manager.autosaver.maybe_save()
    return result


# --- MCP Tool Wrappers ---


@mcp_server.tool()
async def bookmarks_search_tool(ctx: Context, query: str, limit: int = 20) -> dict[str, Any]:
    """Search bookmarks and folders by name, most recently used first.

    Args:
        query: Case-insensitive text to look for in names.
        limit: Max results (1-100, default 20).
    """
    return await _call(ctx, bookmarks_search, query=query, limit=limit)


@mcp_server.tool()
async def bookmarks_list_tool(ctx: Context, folder: str | None = None) -> dict[str, Any]:
    """List the direct contents of a folder.

    Args:
        folder: Folder id or name path (default: the current folder).
    """
    return await _call(ctx, bookmarks_list, folder=folder)


@mcp_server.tool()
async def bookmarks_tree_tool(
    ctx: Context, folder: str | None = None, max_depth: int | None = None
) -> dict[str, Any]:
    """Show a folder and everything below it as markdown.

    Args:
        folder: Folder id or name path (default: top level).
        max_depth: Max levels to include (None = unlimited).
    """
    return await _call(ctx, bookmarks_tree, folder=folder, max_depth=max_depth)


@mcp_server.tool()
async def bookmarks_add_tool(
    ctx: Context, name: str = "", url: str | None = None, parent: str | None = None
) -> dict[str, Any]:
    """Add a bookmark, or a folder when no url is given.

    Args:
        name: Display name (for bookmarks, defaults to the site's domain).
        url: Bookmark URL; omit to create a folder.
        parent: Parent folder id or name path (default: top level).
    """
    return await _call(ctx, bookmarks_add, name=name, url=url, parent=parent)


@mcp_server.tool()
async def bookmarks_move_tool(
    ctx: Context,
    node_id: str,
    destination: str | None = None,
    before: str | None = None,
    onto: str | None = None,
) -> dict[str, Any]:
    """Move a node into another folder, in front of a sibling, or onto another node.

    Args:
        node_id: Node id or name path to move.
        destination: Target folder (default: top level). Ignored when before or onto is set.
        before: Sibling to place the node in front of.
        onto: Node to drop it on: a folder takes it in, a link takes it into its folder.
    """
    return await _call(
        ctx, bookmarks_move, node_id=node_id, destination=destination, before=before, onto=onto
    )


@mcp_server.tool()
async def bookmarks_navigate_tool(ctx: Context, folder: str) -> dict[str, Any]:
    """Change the current folder and list its contents.

    Args:
        folder: Folder id or name path, ".." to go up, "/" for the top level.
    """
    return await _call(ctx, bookmarks_navigate, folder=folder)


@mcp_server.tool()
async def bookmarks_delete_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Delete a bookmark, or a folder together with everything inside it.

    Args:
        node_id: Node id or name path.
    """
    return await _call(ctx, bookmarks_delete, node_id=node_id)


@mcp_server.tool()
async def bookmarks_record_access_tool(ctx: Context, node_id: str) -> dict[str, Any]:
    """Record that a bookmark was opened and return its URL.

    Args:
        node_id: Bookmark id or name path.
    """
    return await _call(ctx, bookmarks_record_access, node_id=node_id)


def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    from bookmark_tree.logging_config import configure_logging

    configure_logging(verbose=False)
    mcp_server.run(transport="stdio")
