"""In-memory id -> node mapping that every tree component works through."""

from collections.abc import Iterable, Iterator

from bookmark_tree.models.node import ROOT_ID, Node


class NodeStore:
    """Flat, insertion-ordered mapping of node id to node.

    Children are never stored on nodes; they are computed by filtering on
    ``parent``. Lookups of missing ids return None instead of raising.
    """

    def __init__(self, nodes: Iterable[Node] = ()) -> None:
        self._nodes: dict[str, Node] = {}
        self.replace_all(nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[Node]:
        return iter(list(self._nodes.values()))

    def all_nodes(self) -> list[Node]:
        """Return every node in insertion order."""
        return list(self._nodes.values())

    def get_by_id(self, node_id: str) -> Node | None:
        return self._nodes.get(node_id)

    def parent_of(self, node: Node) -> str:
        """Return the node's effective parent id.

        A parent that does not exist in the store (or is not a folder) is
        treated as root for traversal. The stored value is left untouched.
        """
        if node.parent == ROOT_ID:
            return ROOT_ID
        parent = self._nodes.get(node.parent)
        if parent is None or not parent.is_folder:
            return ROOT_ID
        return node.parent

    def children_of(self, parent_id: str) -> list[Node]:
        """Return direct children of a parent, ordered by (order, insertion index)."""
        indexed = [
            (node.order, index, node)
            for index, node in enumerate(self._nodes.values())
            if self.parent_of(node) == parent_id and node.id != parent_id
        ]
        indexed.sort(key=lambda item: (item[0], item[1]))
        return [node for _order, _index, node in indexed]

    def replace_all(self, nodes: Iterable[Node]) -> None:
        """Drop everything and load the given nodes (later duplicates win)."""
        self._nodes = {}
        for node in nodes:
            self._nodes[node.id] = node

    def upsert(self, node: Node) -> None:
        """Insert a new node at the end, or replace an existing one in place."""
        self._nodes[node.id] = node

    def remove_by_id(self, node_id: str) -> bool:
        """Remove a node. Returns False if it was not present."""
        return self._nodes.pop(node_id, None) is not None

    def remove_many(self, node_ids: Iterable[str]) -> int:
        """Remove a batch of ids, returning how many were present."""
        return sum(1 for node_id in list(node_ids) if self.remove_by_id(node_id))
