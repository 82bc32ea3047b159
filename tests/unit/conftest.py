"""Shared test fixtures."""

import pytest

from bookmark_tree.core.database.gateway import PersistenceGateway
from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.core.tree.operations import BookmarkTree
from bookmark_tree.manager import BookmarkManager
from bookmark_tree.models.node import Folder, Link, Node
from tests.unit.fakes import MemoryKeyValueStore

# Root
# ├── Google            (g)
# ├── Development/      (dev)
# │   ├── Stack Overflow  (so)
# │   ├── Python/         (py)
# │   │   └── Python Docs   (docs)
# │   └── MDN Web Docs    (mdn)
# └── News/             (news, empty)
SAMPLE_NODES: list[Node] = [
    Link(id="g", name="Google", url="https://www.google.com", order=0),
    Folder(id="dev", name="Development", order=1),
    Link(id="so", name="Stack Overflow", url="https://stackoverflow.com", parent="dev", order=0),
    Folder(id="py", name="Python", parent="dev", order=1),
    Link(id="docs", name="Python Docs", url="https://docs.python.org", parent="py", order=0),
    Link(id="mdn", name="MDN Web Docs", url="https://developer.mozilla.org", parent="dev", order=2),
    Folder(id="news", name="News", order=2),
]


@pytest.fixture
def store() -> NodeStore:
    """Node store populated with the sample tree."""
    return NodeStore(SAMPLE_NODES)


@pytest.fixture
def tree(store: NodeStore) -> BookmarkTree:
    return BookmarkTree(store)


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def gateway(kv: MemoryKeyValueStore) -> PersistenceGateway:
    return PersistenceGateway(kv)


@pytest.fixture
def manager(gateway: PersistenceGateway) -> BookmarkManager:
    """Manager loaded with the sample tree and persisted once."""
    gateway.save_nodes(SAMPLE_NODES)
    m = BookmarkManager(gateway)
    m.load()
    return m
