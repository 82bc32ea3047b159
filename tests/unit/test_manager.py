"""Tests for the BookmarkManager session facade."""

import json

import pytest

from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.errors import (
    DepthExceeded,
    FormatError,
    ImportConfirmationRequired,
    InvalidMove,
    PersistenceFailure,
)
from bookmark_tree.manager import DEFAULT_BOOKMARKS, BookmarkManager, open_manager
from bookmark_tree.models.node import ROOT_ID, Folder, Link
from bookmark_tree.models.settings import Settings
from tests.unit.fakes import FakeTitleFetcher, MemoryKeyValueStore


def _stored_ids(kv: MemoryKeyValueStore) -> list[str]:
    return [record["id"] for record in json.loads(kv.data["bookmarks"])]


def test_load_seeds_defaults_into_empty_storage(kv: MemoryKeyValueStore) -> None:
    manager = open_manager(PersistenceGateway(kv))
    assert manager.store.all_nodes() == list(DEFAULT_BOOKMARKS)
    assert _stored_ids(kv) == ["1", "2", "3", "4", "5"]


def test_load_without_seeding(kv: MemoryKeyValueStore) -> None:
    manager = open_manager(PersistenceGateway(kv), seed_defaults=False)
    assert len(manager.store) == 0
    assert "bookmarks" not in kv.data


def test_load_restores_existing_nodes(manager: BookmarkManager) -> None:
    assert [n.id for n in manager.children()] == ["g", "dev", "news"]


def test_mutations_are_persisted(manager: BookmarkManager, kv: MemoryKeyValueStore) -> None:
    folder = manager.add_folder("Reading")
    link = manager.add_link("https://book.test", name="Book", parent=folder.id)
    assert _stored_ids(kv)[-2:] == [folder.id, link.id]

    manager.delete(folder.id)
    assert folder.id not in _stored_ids(kv)
    assert link.id not in _stored_ids(kv)


def test_persistence_failure_keeps_in_memory_change(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    kv.fail_saves = True
    with pytest.raises(PersistenceFailure) as exc_info:
        manager.add_folder("Offline")
    folder = exc_info.value.result
    assert isinstance(folder, Folder)
    assert manager.get(folder.id) == folder


def test_rejected_move_is_not_persisted(manager: BookmarkManager, kv: MemoryKeyValueStore) -> None:
    saves = len(kv.saves)
    with pytest.raises(InvalidMove):
        manager.move("dev", "py")
    assert len(kv.saves) == saves


def test_add_link_uses_fetched_title(gateway: PersistenceGateway) -> None:
    fetcher = FakeTitleFetcher({"https://rust.test": "The Rust Language"})
    manager = BookmarkManager(gateway, title_fetcher=fetcher)
    manager.load(seed_defaults=False)
    assert manager.add_link("https://rust.test").name == "The Rust Language"
    assert fetcher.requested == ["https://rust.test"]


def test_add_link_falls_back_to_domain(gateway: PersistenceGateway) -> None:
    manager = BookmarkManager(gateway, title_fetcher=FakeTitleFetcher())
    manager.load(seed_defaults=False)
    assert manager.add_link("https://www.example.com/a").name == "Example.com"


def test_add_link_keeps_given_name(gateway: PersistenceGateway) -> None:
    fetcher = FakeTitleFetcher({"https://rust.test": "Ignored"})
    manager = BookmarkManager(gateway, title_fetcher=fetcher)
    manager.load(seed_defaults=False)
    assert manager.add_link("https://rust.test", name="Rust").name == "Rust"
    assert fetcher.requested == []


def test_resolve_by_id_and_path(manager: BookmarkManager) -> None:
    assert manager.resolve("docs").id == "docs"  # type: ignore[union-attr]
    assert manager.resolve("Development/Python/Python Docs").id == "docs"  # type: ignore[union-attr]
    assert manager.resolve("/Development/").id == "dev"  # type: ignore[union-attr]
    assert manager.resolve("Development/Nope") is None


def test_navigation_persists_cursor(manager: BookmarkManager, kv: MemoryKeyValueStore) -> None:
    manager.navigate("dev")
    manager.navigate("py")
    assert [n.id for n in manager.browse()] == ["docs"]
    assert json.loads(kv.data["navigation"]) == {
        "path": [{"id": "dev", "name": "Development"}, {"id": "py", "name": "Python"}]
    }

    manager.navigate_up()
    assert manager.cursor.current_folder_id == "dev"
    manager.navigate_root()
    assert manager.cursor.current_folder_id == ROOT_ID


def test_navigate_to_link_is_ignored(manager: BookmarkManager) -> None:
    assert manager.navigate("g") is None
    assert len(manager.cursor) == 0


def test_navigate_past_max_depth(gateway: PersistenceGateway) -> None:
    nodes = [Folder(id="f1", name="F1"), Folder(id="f2", name="F2", parent="f1")]
    gateway.save_nodes(nodes)
    manager = BookmarkManager(gateway, max_depth=2)
    manager.load()
    manager.navigate("f1")
    with pytest.raises(DepthExceeded):
        manager.navigate("f2")
    assert manager.cursor.current_folder_id == "f1"


def test_cursor_survives_reload(manager: BookmarkManager, gateway: PersistenceGateway) -> None:
    manager.navigate("dev")
    reloaded = open_manager(gateway)
    assert reloaded.cursor.current_folder_id == "dev"


def test_delete_prunes_cursor(manager: BookmarkManager, kv: MemoryKeyValueStore) -> None:
    manager.navigate("dev")
    manager.navigate("py")
    manager.delete("dev")
    assert len(manager.cursor) == 0
    assert json.loads(kv.data["navigation"]) == {"path": []}


def test_unchanged_cursor_is_not_rewritten(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    manager.navigate("dev")
    saves = len(kv.saves)
    assert manager.autosaver.maybe_save(0.0) is True
    assert len(kv.saves) == saves


def test_autosave_retries_failed_navigation_save(
    manager: BookmarkManager, kv: MemoryKeyValueStore
) -> None:
    kv.fail_saves = True
    with pytest.raises(PersistenceFailure):
        manager.navigate("dev")
    assert "navigation" not in kv.data

    kv.fail_saves = False
    assert manager.autosaver.maybe_save(0.0) is True
    assert json.loads(kv.data["navigation"]) == {"path": [{"id": "dev", "name": "Development"}]}


def test_navigate_root_clears_stored_cursor(
    manager: BookmarkManager, gateway: PersistenceGateway, kv: MemoryKeyValueStore
) -> None:
    manager.navigate("dev")
    manager.navigate_root()
    assert "navigation" not in kv.data
    assert open_manager(gateway).cursor.current_folder_id == ROOT_ID

    manager.navigate("dev")
    kv.fail_saves = True
    with pytest.raises(PersistenceFailure, match="Error clearing navigation state"):
        manager.navigate_root()
    assert manager.cursor.current_folder_id == ROOT_ID


def test_record_access_ranks_search(manager: BookmarkManager) -> None:
    manager.record_access("docs")
    assert manager.search("o")[0].id == "docs"
    assert manager.record_access("dev") is None


def test_import_requires_confirmation_when_not_empty(manager: BookmarkManager) -> None:
    before = manager.store.all_nodes()
    with pytest.raises(ImportConfirmationRequired):
        manager.import_text("[]")
    assert manager.store.all_nodes() == before


def test_import_replaces_everything(manager: BookmarkManager, kv: MemoryKeyValueStore) -> None:
    manager.navigate("dev")
    html = '<DL><DT><H3>Dev</H3><DL><DT><A HREF="https://x.test">X</A></DL></DL>'
    result = manager.import_text(html, replace_existing=True)

    assert result.format == "html"
    assert len(manager.store) == 2
    assert len(_stored_ids(kv)) == 2
    # The old folder is gone, so the cursor falls back to the root.
    assert manager.cursor.current_folder_id == ROOT_ID


def test_import_failure_leaves_store_untouched(manager: BookmarkManager) -> None:
    before = manager.store.all_nodes()
    with pytest.raises(FormatError):
        manager.import_text("{not json", replace_existing=True)
    assert manager.store.all_nodes() == before


def test_import_into_empty_store_needs_no_confirmation(gateway: PersistenceGateway) -> None:
    manager = open_manager(gateway, seed_defaults=False)
    manager.import_text(json.dumps([{"id": "a", "name": "A", "url": "https://a.test"}]))
    assert isinstance(manager.get("a"), Link)


def test_export_matches_store(manager: BookmarkManager) -> None:
    records = json.loads(manager.export_text())
    assert [r["id"] for r in records] == [n.id for n in manager.store.all_nodes()]


@pytest.mark.parametrize("filename", [None, "bookmarks.json"])
def test_export_then_import_restores_store(
    manager: BookmarkManager, filename: str | None
) -> None:
    manager.add_link(
        "https://developer.mozilla.org/docs/Web/HTML/Element/dl",
        name="HTML <dl> element",
        parent="dev",
    )
    manager.record_access("so")
    before = manager.store.all_nodes()

    result = manager.import_text(manager.export_text(), filename=filename, replace_existing=True)

    assert result.format == "json"
    assert manager.store.all_nodes() == before


def test_update_and_reset_settings(manager: BookmarkManager, gateway: PersistenceGateway) -> None:
    manager.update_settings(font_size=18)
    assert gateway.load_settings() == Settings(font_size=18, item_gap=8)
    with pytest.raises(ValueError):
        manager.update_settings(item_gap=50)
    assert manager.settings == Settings(font_size=18, item_gap=8)
    manager.reset_settings()
    assert gateway.load_settings() == Settings()
