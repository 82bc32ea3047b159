"""Render bookmark subtrees as markdown."""

import io

from bookmark_tree.core.store.node_store import NodeStore
from bookmark_tree.models.node import ROOT_ID, Link


def render_subtree_as_markdown(
    store: NodeStore,
    *,
    node_id: str = ROOT_ID,
    max_depth: int | None = None,
    show_ids: bool = False,
) -> str:
    """Render a folder's descendants as an indented markdown list.

    Args:
        store: Node store to read from.
        node_id: Folder to start from (root by default). The folder itself is
            not rendered, only its contents.
        max_depth: Max levels below the start folder to include (None = unlimited).
        show_ids: Append each node's id, for commands that take ids.

    Returns:
        Markdown string with bullet-list hierarchy, or "" if the start node is
        missing or has no children.
    """
    if node_id != ROOT_ID and node_id not in store:
        return ""

    out = io.StringIO()
    seen: set[str] = {node_id}

    def walk(parent_id: str, depth: int) -> None:
        for child in store.children_of(parent_id):
            if child.id in seen:
                continue
            seen.add(child.id)
            indent = "    " * depth
            suffix = f"  `{child.id}`" if show_ids else ""
            if isinstance(child, Link):
                out.write(f"{indent}- [{child.name}]({child.url}){suffix}\n")
                continue

            out.write(f"{indent}- **{child.name}/**{suffix}\n")
            if max_depth is not None and depth + 1 >= max_depth:
                # Truncation indicator when children are cut off by max_depth
                child_count = len(store.children_of(child.id))
                if child_count:
                    noun = "item" if child_count == 1 else "items"
                    out.write(f"{indent}    - ... ({child_count} more {noun})\n")
                continue
            walk(child.id, depth + 1)

    walk(node_id, 0)
    return out.getvalue()
