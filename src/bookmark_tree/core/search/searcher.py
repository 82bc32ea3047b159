"""Name search ranked by recency of use."""

import locale
import time
from dataclasses import replace

from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.models.node import Link, Node

_HOUR_MS = 60 * 60 * 1000
_DAY_MS = 24 * _HOUR_MS

# (upper bound of age in ms, bucket name), checked in order.
_RECENCY_WINDOWS: tuple[tuple[int, str], ...] = (
    (_HOUR_MS, "hour"),
    (_DAY_MS, "day"),
    (7 * _DAY_MS, "week"),
    (30 * _DAY_MS, "month"),
)

RECENCY_ICONS: dict[str, str] = {
    "never": "🔗",
    "hour": "🔥",
    "day": "⭐",
    "week": "✨",
    "month": "📌",
    "older": "🔗",
}


def now_ms() -> int:
    return int(time.time() * 1000)


def access_time_of(node: Node) -> int:
    """Folders and never-visited links rank as 0."""
    return node.access_time if isinstance(node, Link) else 0


def _name_key(name: str) -> tuple[str, str]:
    return locale.strxfrm(name.casefold()), name


def search_nodes(store: NodeStore, query: str) -> list[Node]:
    """Return nodes whose name contains ``query``, case-insensitively.

    Search is flat across folders and links. Results are ordered by last
    access (most recent first), then by name. A blank query returns nothing.
    """
    needle = query.strip().casefold()
    if not needle:
        return []

    matches = [node for node in store if needle in node.name.casefold()]
    # Two stable sorts: secondary key first, then the primary key.
    matches.sort(key=lambda node: _name_key(node.name))
    matches.sort(key=access_time_of, reverse=True)
    return matches


def record_access(store: NodeStore, link_id: str, *, at: int | None = None) -> Link | None:
    """Stamp a link as visited now. The only writer of ``access_time``.

    Returns the updated link, or None if the id is missing or not a link.
    """
    node = store.get_by_id(link_id)
    if not isinstance(node, Link):
        return None
    updated = replace(node, access_time=now_ms() if at is None else at)
    store.upsert(updated)
    return updated


def recency_bucket(access_time: int, now: int | None = None) -> str:
    """Classify a last-access timestamp for display."""
    if not access_time:
        return "never"
    age = (now_ms() if now is None else now) - access_time
    for bound, name in _RECENCY_WINDOWS:
        if age < bound:
            return name
    return "older"
