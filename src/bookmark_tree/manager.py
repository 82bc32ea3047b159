"""Session facade: owns the node store, cursor and persistence for one mutator."""

from typing import TypeVar

from loguru import logger

from bookmark_tree.config import MAX_DEPTH
from bookmark_tree.core.autosave import CursorAutosaver
from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.core.importer.json_reader import export_native
from bookmark_tree.core.importer.loader import ImportResult, parse_import_text
from bookmark_tree.core.search.searcher import record_access, search_nodes
from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.core.tree.navigation import NavigationCursor
from bookmark_tree.core.tree.operations import BookmarkTree
from bookmark_tree.enrichment import guess_title_from_url
from bookmark_tree.errors import ImportConfirmationRequired, PersistenceFailure
from bookmark_tree.models.node import ROOT_ID, Folder, FolderChoice, Link, Node
from bookmark_tree.models.settings import Settings
from bookmark_tree.protocols import TitleFetcherProtocol

T = TypeVar("T")

DEFAULT_BOOKMARKS: tuple[Node, ...] = (
    Link(id="1", name="Google", url="https://www.google.com", order=0),
    Link(id="2", name="GitHub", url="https://www.github.com", order=1),
    Folder(id="3", name="Development", order=2),
    Link(id="4", name="Stack Overflow", url="https://stackoverflow.com", parent="3", order=0),
    Link(id="5", name="MDN Web Docs", url="https://developer.mozilla.org", parent="3", order=1),
)


class BookmarkManager:
    """Single entry point for commands coming from a front end.

    Every successful mutation re-serializes the whole store. If that write
    fails the in-memory change is kept and PersistenceFailure is raised with
    the operation's return value attached.
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        *,
        title_fetcher: TitleFetcherProtocol | None = None,
        max_depth: int = MAX_DEPTH,
    ) -> None:
        self.gateway = gateway
        self.title_fetcher = title_fetcher
        self.store = NodeStore()
        self.tree = BookmarkTree(self.store, max_depth=max_depth)
        self.cursor = NavigationCursor(max_depth=max_depth)
        self.settings = Settings()
        self.autosaver = CursorAutosaver(self.save_cursor)
        # Cursor text as last written to storage, None if nothing is stored.
        self._saved_cursor_text: str | None = None

    # --- lifecycle ---

    def load(self, *, seed_defaults: bool = True) -> None:
        """Load nodes, settings and the navigation cursor from storage."""
        self.store.replace_all(self.gateway.load_nodes())
        self.settings = self.gateway.load_settings()
        self._saved_cursor_text = self.gateway.load_cursor_text()
        self.cursor = NavigationCursor.from_json(
            self._saved_cursor_text, self.store, max_depth=self.tree.max_depth
        )
        logger.debug("Loaded {} bookmarks, cursor depth {}", len(self.store), len(self.cursor))

        if not self.store and seed_defaults:
            self.store.replace_all(DEFAULT_BOOKMARKS)
            self._persist(None)
            logger.info("Added default bookmarks")

    def _persist(self, result: T) -> T:
        try:
            self.gateway.save_nodes(self.store.all_nodes())
        except PersistenceFailure as e:
            logger.warning("{}", e)
            raise PersistenceFailure(str(e), result=result) from e
        return result

    def save_cursor(self) -> None:
        """Write the cursor unless storage already holds the same path.

        A failed write leaves the cursor marked unsaved, so the autosaver
        retries it later.
        """
        text = self.cursor.to_json()
        if text == self._saved_cursor_text:
            return
        self.gateway.save_cursor_text(text)
        self._saved_cursor_text = text

    def _persist_cursor(self, result: T) -> T:
        try:
            self.save_cursor()
        except PersistenceFailure as e:
            logger.warning("{}", e)
            raise PersistenceFailure(str(e), result=result) from e
        return result

    def _after_structure_change(self, result: T) -> T:
        """Persist nodes, then the cursor if it lost folders."""
        self._persist(result)
        if self.cursor.prune(self.store):
            self._persist_cursor(result)
        return result

    # --- lookups ---

    def get(self, node_id: str) -> Node | None:
        return self.store.get_by_id(node_id)

    def resolve(self, ref: str) -> Node | None:
        """Find a node by id, or by a slash-separated path of names from the root."""
        node = self.store.get_by_id(ref)
        if node is not None:
            return node
        parent_id = ROOT_ID
        found: Node | None = None
        for part in (p.strip() for p in ref.strip("/").split("/")):
            found = next((n for n in self.store.children_of(parent_id) if n.name == part), None)
            if found is None:
                return None
            parent_id = found.id
        return found

    def children(self, parent_id: str = ROOT_ID) -> list[Node]:
        return self.store.children_of(parent_id)

    def search(self, query: str) -> list[Node]:
        return search_nodes(self.store, query)

    def folder_choices(self, editing_id: str | None = None) -> list[FolderChoice]:
        return self.tree.folder_choices(editing_id)

    # --- mutations ---

    def add_folder(self, name: str, *, parent: str = ROOT_ID) -> Folder:
        return self._persist(self.tree.add_folder(name, parent=parent))

    def _title_for(self, url: str) -> str:
        if self.title_fetcher is not None:
            title = self.title_fetcher.fetch_title(url)
            if title:
                return title
        return guess_title_from_url(url) or "Untitled Bookmark"

    def add_link(self, url: str, *, name: str = "", parent: str = ROOT_ID) -> Link:
        """Add a link; a blank name is filled from the page title or the domain."""
        if not name.strip() and url.strip():
            name = self._title_for(url.strip())
        return self._persist(self.tree.add_link(name, url, parent=parent))

    def edit(
        self,
        node_id: str,
        *,
        name: str | None = None,
        url: str | None = None,
        parent: str | None = None,
    ) -> Node | None:
        node = self.tree.edit(node_id, name=name, url=url, parent=parent)
        if node is None:
            return None
        return self._persist(node)

    def move(self, node_id: str, new_parent: str) -> Node | None:
        node = self.tree.move(node_id, new_parent)
        if node is None:
            return None
        return self._persist(node)

    def reorder(self, node_id: str, target_id: str) -> list[Node]:
        siblings = self.tree.reorder(node_id, target_id)
        if not siblings:
            return siblings
        return self._persist(siblings)

    def drop(self, node_id: str, target_id: str) -> Node | None:
        node = self.tree.drop(node_id, target_id)
        if node is None:
            return None
        return self._persist(node)

    def delete(self, node_id: str) -> list[str]:
        removed = self.tree.delete(node_id)
        if not removed:
            return removed
        return self._after_structure_change(removed)

    def record_access(self, link_id: str) -> Link | None:
        link = record_access(self.store, link_id)
        if link is None:
            return None
        return self._persist(link)

    # --- import / export ---

    def import_text(
        self,
        text: str,
        *,
        filename: str | None = None,
        replace_existing: bool = False,
        allow_empty: bool = False,
    ) -> ImportResult:
        """Replace the whole collection with the contents of an import file.

        Raises:
            ImportConfirmationRequired: The store is not empty and
                ``replace_existing`` was not given.
            FormatError / EmptyImportError: The text could not be used; the
                store is left untouched.
        """
        result = parse_import_text(text, filename=filename, allow_empty=allow_empty)
        if self.store and not replace_existing:
            msg = "This will replace all existing bookmarks"
            raise ImportConfirmationRequired(msg)
        self.store.replace_all(result.nodes)
        logger.info("Imported {} items ({})", len(result.nodes), result.format)
        return self._after_structure_change(result)

    def export_text(self) -> str:
        return export_native(self.store.all_nodes())

    # --- navigation ---

    def navigate(self, folder_id: str, *, at_depth: int | None = None) -> Folder | None:
        """Open a folder from the pane at ``at_depth`` (default: the deepest open pane).

        Returns None without changing anything if the id is not a folder.
        """
        folder = self.store.get_by_id(folder_id)
        if not isinstance(folder, Folder):
            return None
        self.cursor.descend_into(folder, len(self.cursor) + 1 if at_depth is None else at_depth)
        return self._persist_cursor(folder)

    def navigate_up(self) -> None:
        self.cursor.pop()
        self._persist_cursor(None)

    def navigate_root(self) -> None:
        """Close every folder and drop the stored navigation state."""
        self.cursor.reset()
        try:
            self.gateway.clear_cursor()
        except PersistenceFailure as e:
            logger.warning("{}", e)
            raise
        self._saved_cursor_text = None

    def browse(self) -> list[Node]:
        """Children of the folder the cursor points at."""
        return self.store.children_of(self.cursor.current_folder_id)

    # --- settings ---

    def update_settings(
        self, *, font_size: int | None = None, item_gap: int | None = None
    ) -> Settings:
        settings = Settings(
            font_size=self.settings.font_size if font_size is None else font_size,
            item_gap=self.settings.item_gap if item_gap is None else item_gap,
        )
        self.settings = settings
        self.gateway.save_settings(settings)
        return settings

    def reset_settings(self) -> Settings:
        self.settings = Settings()
        self.gateway.save_settings(self.settings)
        return self.settings


def open_manager(
    gateway: PersistenceGateway,
    *,
    title_fetcher: TitleFetcherProtocol | None = None,
    seed_defaults: bool = True,
) -> BookmarkManager:
    """Create a manager and load its state."""
    manager = BookmarkManager(gateway, title_fetcher=title_fetcher)
    manager.load(seed_defaults=seed_defaults)
    return manager
