"""Navigation cursor: the remembered folder drill-down path."""

import json

from loguru import logger

from bookmark_tree.config import MAX_DEPTH
from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.errors import DepthExceeded
from bookmark_tree.models.node import ROOT_ID, Breadcrumb, Folder


class NavigationCursor:
    """Ordered (folder id, name) path of the currently opened folders.

    Pane 1 always shows the root, so a cursor of length ``n`` means ``n + 1``
    panes are open. The cursor is independent of the tree and is reconciled
    against it on restore.
    """

    def __init__(self, path: list[Breadcrumb] | None = None, *, max_depth: int = MAX_DEPTH) -> None:
        self.max_depth = max_depth
        self._path: list[Breadcrumb] = list(path or [])[: max_depth - 1]

    def __len__(self) -> int:
        return len(self._path)

    @property
    def path(self) -> tuple[Breadcrumb, ...]:
        return tuple(self._path)

    @property
    def current_folder_id(self) -> str:
        """Id of the deepest opened folder, or the root sentinel."""
        return self._path[-1].folder_id if self._path else ROOT_ID

    def descend_into(self, folder: Folder, at_depth: int) -> None:
        """Open ``folder`` from the pane at ``at_depth`` (1 = root pane).

        Entries below that pane are discarded. Raises DepthExceeded without
        touching the cursor when no deeper pane is available.
        """
        if at_depth >= self.max_depth:
            msg = f"Maximum depth of {self.max_depth} levels reached"
            raise DepthExceeded(msg)
        self._path = self._path[: max(at_depth - 1, 0)]
        self._path.append(Breadcrumb(folder_id=folder.id, name=folder.name))

    def pop(self) -> Breadcrumb | None:
        """Go up one level."""
        return self._path.pop() if self._path else None

    def reset(self) -> None:
        self._path = []

    def prune(self, store: NodeStore) -> bool:
        """Drop entries that no longer resolve to folders. Returns True if changed."""
        restored = _resolve(store, [(c.folder_id, c.name) for c in self._path], self.max_depth)
        changed = restored != self._path
        self._path = restored
        return changed

    def to_json(self) -> str:
        return json.dumps({"path": [{"id": c.folder_id, "name": c.name} for c in self._path]})

    @classmethod
    def from_json(
        cls, text: str | None, store: NodeStore, *, max_depth: int = MAX_DEPTH
    ) -> "NavigationCursor":
        """Rebuild a cursor from stored text against the live store.

        The path is cut at the first entry whose folder was deleted or is no
        longer a folder, since everything below it lost its context.
        """
        if not text:
            return cls(max_depth=max_depth)
        try:
            data = json.loads(text)
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable navigation state")
            return cls(max_depth=max_depth)

        raw_path = data.get("path") if isinstance(data, dict) else None
        if not isinstance(raw_path, list):
            return cls(max_depth=max_depth)

        entries = [
            (str(item.get("id", "")), str(item.get("name", "")))
            for item in raw_path
            if isinstance(item, dict)
        ]
        return cls(_resolve(store, entries, max_depth), max_depth=max_depth)


def _resolve(
    store: NodeStore, entries: list[tuple[str, str]], max_depth: int
) -> list[Breadcrumb]:
    path: list[Breadcrumb] = []
    for folder_id, stored_name in entries[: max_depth - 1]:
        folder = store.get_by_id(folder_id)
        if not isinstance(folder, Folder):
            logger.debug("Navigation path cut at stale folder {!r}", folder_id)
            break
        path.append(Breadcrumb(folder_id=folder.id, name=folder.name or stored_name))
    return path
