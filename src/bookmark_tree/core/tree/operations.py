"""Structural tree operations: add, edit, reparent, reorder, cascade delete."""

import random
import string
import time
from dataclasses import replace

from loguru import logger

from bookmark_tree.config import MAX_DEPTH
from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.errors import DepthExceeded, InvalidMove, NotFoundError, ValidationError
from bookmark_tree.models.node import ROOT_ID, Folder, FolderChoice, Link, Node

_ID_ALPHABET = string.digits + string.ascii_lowercase


def new_node_id() -> str:
    """Return an id made of the current epoch milliseconds and 9 random base36 chars."""
    suffix = "".join(random.choices(_ID_ALPHABET, k=9))
    return f"{int(time.time() * 1000)}-{suffix}"


class BookmarkTree:
    """Enforces the structural invariants of the bookmark forest.

    Every check (ancestry, depth, parent type) runs before the store is
    touched, so a rejected operation leaves no partial state behind.
    """

    def __init__(self, store: NodeStore, *, max_depth: int = MAX_DEPTH) -> None:
        self.store = store
        self.max_depth = max_depth

    # --- ids and lookups ---

    def generate_id(self) -> str:
        """Return a fresh id combining a millisecond timestamp and a random part."""
        while True:
            node_id = new_node_id()
            if node_id not in self.store:
                return node_id

    def _require_folder(self, parent_id: str) -> None:
        if parent_id == ROOT_ID:
            return
        parent = self.store.get_by_id(parent_id)
        if parent is None:
            msg = f"Folder {parent_id!r} not found"
            raise NotFoundError(msg)
        if not parent.is_folder:
            msg = f"{parent.name!r} is not a folder"
            raise InvalidMove(msg)

    # --- ancestry and depth ---

    def ancestors(self, node_id: str) -> list[str]:
        """Return the ids of the node's ancestors, nearest first."""
        result: list[str] = []
        seen = {node_id}
        node = self.store.get_by_id(node_id)
        while node is not None:
            parent_id = self.store.parent_of(node)
            if parent_id == ROOT_ID or parent_id in seen:
                break
            seen.add(parent_id)
            result.append(parent_id)
            node = self.store.get_by_id(parent_id)
        return result

    def is_descendant(self, candidate_id: str, node_id: str) -> bool:
        """Return True if ``node_id`` is on ``candidate_id``'s parent chain."""
        return node_id in self.ancestors(candidate_id)

    def depth_of(self, node_id: str) -> int:
        """Depth of a node: 1 at root level, 0 for the root itself."""
        if node_id == ROOT_ID:
            return 0
        return len(self.ancestors(node_id)) + 1

    def subtree_height(self, node_id: str) -> int:
        """Number of levels in the subtree rooted at the node (1 for a leaf)."""
        height = 0
        level = [node_id]
        seen: set[str] = set()
        while level:
            height += 1
            seen.update(level)
            level = [
                child.id
                for parent_id in level
                for child in self.store.children_of(parent_id)
                if child.id not in seen
            ]
        return height

    def _check_depth(self, parent_id: str, height: int) -> None:
        depth = self.depth_of(parent_id) + height
        if depth > self.max_depth:
            msg = f"Maximum depth of {self.max_depth} levels reached"
            raise DepthExceeded(msg)

    # --- add / edit ---

    def add_folder(self, name: str, *, parent: str = ROOT_ID) -> Folder:
        """Create a folder appended at the end of ``parent``'s children."""
        name = name.strip()
        if not name:
            msg = "Please enter a name"
            raise ValidationError(msg)
        self._require_folder(parent)
        self._check_depth(parent, 1)

        folder = Folder(
            id=self.generate_id(),
            name=name,
            parent=parent,
            order=len(self.store.children_of(parent)),
        )
        self.store.upsert(folder)
        logger.debug("Added folder {} ({})", folder.name, folder.id)
        return folder

    def add_link(self, name: str, url: str, *, parent: str = ROOT_ID) -> Link:
        """Create a never-visited link appended at the end of ``parent``'s children."""
        name = name.strip()
        url = url.strip()
        if not url:
            msg = "Please enter a URL"
            raise ValidationError(msg)
        if not name:
            msg = "Please enter a name"
            raise ValidationError(msg)
        self._require_folder(parent)
        self._check_depth(parent, 1)

        link = Link(
            id=self.generate_id(),
            name=name,
            url=url,
            parent=parent,
            order=len(self.store.children_of(parent)),
            access_time=0,
        )
        self.store.upsert(link)
        logger.debug("Added link {} ({})", link.name, link.id)
        return link

    def edit(
        self,
        node_id: str,
        *,
        name: str | None = None,
        url: str | None = None,
        parent: str | None = None,
    ) -> Node | None:
        """Update name/url in place, optionally reparenting in the same call.

        ``None`` leaves a field unchanged. Returns None if the node is missing.
        """
        node = self.store.get_by_id(node_id)
        if node is None:
            return None

        changes: dict[str, str] = {}
        if name is not None:
            name = name.strip()
            if not name:
                msg = "Please enter a name"
                raise ValidationError(msg)
            changes["name"] = name
        if url is not None and isinstance(node, Link):
            url = url.strip()
            if not url:
                msg = "Please enter a URL"
                raise ValidationError(msg)
            changes["url"] = url

        # Validate the move before writing anything.
        new_parent = parent if parent != self.store.parent_of(node) else None
        if new_parent is not None:
            self._check_move(node, new_parent)

        updated = replace(node, **changes) if changes else node
        if changes:
            self.store.upsert(updated)
        if new_parent is not None:
            updated = self._apply_move(updated, new_parent)
        return updated

    # --- reparent / reorder ---

    def _check_move(self, node: Node, new_parent: str) -> None:
        if new_parent == node.id:
            msg = "Cannot move a folder into itself"
            raise InvalidMove(msg)
        self._require_folder(new_parent)
        if new_parent != ROOT_ID and self.is_descendant(new_parent, node.id):
            msg = "Cannot move a folder into itself or its descendants"
            raise InvalidMove(msg)
        self._check_depth(new_parent, self.subtree_height(node.id))

    def _apply_move(self, node: Node, new_parent: str) -> Node:
        siblings = [n for n in self.store.children_of(new_parent) if n.id != node.id]
        last = max((n.order for n in siblings), default=-1)
        moved = replace(node, parent=new_parent, order=last + 1)
        self.store.upsert(moved)
        logger.debug("Moved {} under {!r}", node.id, new_parent)
        return moved

    def move(self, node_id: str, new_parent: str) -> Node | None:
        """Reparent a node, appending it after its new siblings.

        Returns None if the node is missing; moving to the node's effective
        parent is a no-op.
        """
        node = self.store.get_by_id(node_id)
        if node is None:
            return None
        if new_parent == self.store.parent_of(node):
            return node
        self._check_move(node, new_parent)
        return self._apply_move(node, new_parent)

    def reorder(self, node_id: str, target_id: str) -> list[Node]:
        """Place a node immediately before a sibling and re-index all siblings.

        Returns the new sibling sequence (empty if either node is missing).
        """
        node = self.store.get_by_id(node_id)
        target = self.store.get_by_id(target_id)
        if node is None or target is None:
            return []
        parent_id = self.store.parent_of(node)
        if self.store.parent_of(target) != parent_id:
            msg = "Can only reorder items that share a parent"
            raise InvalidMove(msg)
        if node_id == target_id:
            return self.store.children_of(parent_id)

        siblings = [n for n in self.store.children_of(parent_id) if n.id != node_id]
        index = next(i for i, n in enumerate(siblings) if n.id == target_id)
        siblings.insert(index, node)

        for order, sibling in enumerate(siblings):
            if sibling.order != order:
                self.store.upsert(replace(sibling, order=order))
        return self.store.children_of(parent_id)

    def drop(self, node_id: str, target_id: str) -> Node | None:
        """Apply a drag-and-drop of one node onto another.

        Dropping onto a folder moves into it; dropping onto a sibling link
        reorders; dropping onto a link elsewhere moves into that link's folder.
        """
        node = self.store.get_by_id(node_id)
        target = self.store.get_by_id(target_id)
        if node is None or target is None or node_id == target_id:
            return node
        if target.is_folder:
            return self.move(node_id, target_id)
        target_parent = self.store.parent_of(target)
        if self.store.parent_of(node) == target_parent:
            self.reorder(node_id, target_id)
            return self.store.get_by_id(node_id)
        return self.move(node_id, target_parent)

    # --- delete ---

    def collect_subtree(self, node_id: str) -> list[str]:
        """Return the ids of every transitive child of a node (not the node itself)."""
        collected: list[str] = []
        seen = {node_id}
        stack = [node_id]
        while stack:
            current = stack.pop()
            for child in self.store.children_of(current):
                if child.id in seen:
                    continue
                seen.add(child.id)
                collected.append(child.id)
                stack.append(child.id)
        return collected

    def delete(self, node_id: str) -> list[str]:
        """Remove a node and its whole subtree in one batch.

        Returns the removed ids, or an empty list if the node is missing.
        """
        if node_id not in self.store:
            return []
        doomed = [node_id, *self.collect_subtree(node_id)]
        self.store.remove_many(doomed)
        logger.debug("Deleted {} node(s) under {}", len(doomed), node_id)
        return doomed

    # --- edit form helpers ---

    def folder_choices(self, editing_id: str | None = None) -> list[FolderChoice]:
        """List folders as possible parents, disabling the edited node's subtree."""
        choices: list[FolderChoice] = []

        def visit(parent_id: str, prefix: str) -> None:
            for child in self.store.children_of(parent_id):
                if not isinstance(child, Folder):
                    continue
                disabled = editing_id is not None and (
                    child.id == editing_id or self.is_descendant(child.id, editing_id)
                )
                choices.append(
                    FolderChoice(folder=child, label=prefix + child.name, disabled=disabled)
                )
                visit(child.id, f"{prefix}{child.name} / ")

        visit(ROOT_ID, "")
        return choices
