"""Tests for MCP tool core functions."""

from bookmark_tree.manager import BookmarkManager
from bookmark_tree.mcp.server import (
    bookmarks_add,
    bookmarks_delete,
    bookmarks_list,
    bookmarks_move,
    bookmarks_navigate,
    bookmarks_record_access,
    bookmarks_search,
    bookmarks_tree,
)
from tests.unit.fakes import MemoryKeyValueStore


def test_bookmarks_search_returns_results_with_breadcrumbs(manager: BookmarkManager) -> None:
    result = bookmarks_search(manager, query="python")
    assert result["count"] == 2
    assert result["total"] == 2
    docs = next(r for r in result["results"] if r["id"] == "docs")
    assert docs["url"] == "https://docs.python.org"
    assert docs["breadcrumbs"] == "Development > Python"
    assert docs["last_access"] is None


def test_bookmarks_search_respects_limit(manager: BookmarkManager) -> None:
    result = bookmarks_search(manager, query="o", limit=2)
    assert result["count"] == 2
    assert result["total"] > 2


def test_bookmarks_search_empty_query(manager: BookmarkManager) -> None:
    result = bookmarks_search(manager, query="  ")
    assert "error" in result
    assert result["results"] == []


def test_bookmarks_list_root_and_folder(manager: BookmarkManager) -> None:
    assert [i["id"] for i in bookmarks_list(manager)["items"]] == ["g", "dev", "news"]
    result = bookmarks_list(manager, folder="Development")
    assert result["folder_id"] == "dev"
    assert [i["name"] for i in result["items"]] == ["Stack Overflow", "Python", "MDN Web Docs"]


def test_bookmarks_list_unknown_folder(manager: BookmarkManager) -> None:
    result = bookmarks_list(manager, folder="Nope")
    assert "error" in result
    assert result["count"] == 0


def test_bookmarks_tree_returns_markdown(manager: BookmarkManager) -> None:
    result = bookmarks_tree(manager, folder="dev")
    assert "- **Python/**  `py`" in result["content"]
    assert "Python Docs" in result["content"]


def test_bookmarks_add_link_and_folder(manager: BookmarkManager) -> None:
    folder = bookmarks_add(manager, name="Reading")
    assert folder["success"] is True
    link = bookmarks_add(manager, name="Book", url="https://book.test", parent="Reading")
    assert link["success"] is True
    assert manager.get(link["node_id"]).parent == folder["node_id"]  # type: ignore[union-attr]


def test_bookmarks_add_validation_error(manager: BookmarkManager) -> None:
    result = bookmarks_add(manager, name="  ")
    assert result == {"success": False, "error": "Please enter a name"}


def test_bookmarks_add_reports_persistence_warning(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    kv.fail_saves = True
    result = bookmarks_add(manager, name="Offline")
    assert result["success"] is True
    assert "Error saving bookmarks" in result["warning"]
    assert manager.get(result["node_id"]) is not None


def test_bookmarks_move_into_folder(manager: BookmarkManager) -> None:
    result = bookmarks_move(manager, node_id="g", destination="news")
    assert result["success"] is True
    assert manager.get("g").parent == "news"  # type: ignore[union-attr]


def test_bookmarks_move_before_sibling(manager: BookmarkManager) -> None:
    result = bookmarks_move(manager, node_id="mdn", before="so")
    assert result["success"] is True
    assert [n.id for n in manager.children("dev")] == ["mdn", "so", "py"]


def test_bookmarks_move_cycle_is_rejected(manager: BookmarkManager) -> None:
    result = bookmarks_move(manager, node_id="dev", destination="Development/Python")
    assert result["success"] is False
    assert "descendants" in result["error"]


def test_bookmarks_delete(manager: BookmarkManager) -> None:
    assert bookmarks_delete(manager, node_id="dev") == {"success": True, "deleted": 5}
    assert bookmarks_delete(manager, node_id="dev")["success"] is False


def test_bookmarks_record_access(manager: BookmarkManager) -> None:
    result = bookmarks_record_access(manager, node_id="so")
    assert result == {"success": True, "url": "https://stackoverflow.com"}
    assert bookmarks_search(manager, query="o")["results"][0]["id"] == "so"
    assert bookmarks_record_access(manager, node_id="dev")["success"] is False


def test_bookmarks_move_onto_folder_and_links(manager: BookmarkManager) -> None:
    result = bookmarks_move(manager, node_id="g", onto="so")
    assert result == {"success": True, "node_id": "g", "parent_id": "dev"}
    assert [n.id for n in manager.children("dev")] == ["so", "py", "mdn", "g"]

    bookmarks_move(manager, node_id="g", onto="so")
    assert [n.id for n in manager.children("dev")] == ["g", "so", "py", "mdn"]

    assert bookmarks_move(manager, node_id="g", onto="News")["parent_id"] == "news"


def test_bookmarks_move_onto_unknown_node(manager: BookmarkManager) -> None:
    result = bookmarks_move(manager, node_id="g", onto="Nope")
    assert result == {"success": False, "error": "Node 'Nope' not found."}


def test_bookmarks_navigate_changes_default_listing(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    result = bookmarks_navigate(manager, folder="Development/Python")
    assert result["path"] == "/Development/Python"
    assert [i["id"] for i in result["items"]] == ["docs"]
    assert bookmarks_list(manager)["folder_id"] == "py"
    assert "navigation" in kv.data

    assert bookmarks_navigate(manager, folder="..")["path"] == "/Development"
    assert bookmarks_navigate(manager, folder="/")["folder_id"] == ""
    assert "navigation" not in kv.data


def test_bookmarks_navigate_rejects_links_and_unknown_folders(manager: BookmarkManager) -> None:
    assert bookmarks_navigate(manager, folder="Google")["error"] == "'Google' is not a folder."
    assert bookmarks_navigate(manager, folder="Nope")["success"] is False
    assert len(manager.cursor) == 0


def test_bookmarks_navigate_reports_persistence_warning(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    kv.fail_saves = True
    result = bookmarks_navigate(manager, folder="dev")
    assert result["success"] is True
    assert "Error saving navigation" in result["warning"]
    assert result["folder_id"] == "dev"
