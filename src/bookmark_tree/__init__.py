"""Hierarchical bookmark manager."""

from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.core.tree.navigation import NavigationCursor
from bookmark_tree.core.tree.operations import BookmarkTree
from bookmark_tree.manager import BookmarkManager
from bookmark_tree.protocols import KeyValueStoreProtocol, TitleFetcherProtocol

__all__ = [
    "BookmarkManager",
    "BookmarkTree",
    "KeyValueStoreProtocol",
    "NavigationCursor",
    "NodeStore",
    "PersistenceGateway",
    "TitleFetcherProtocol",
]
