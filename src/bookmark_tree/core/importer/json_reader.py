"""Read and write the native bookmark JSON format."""

import json
from collections.abc import Iterable
from typing import Any

from loguru import logger

from bookmark_tree.errors import FormatError
from bookmark_tree.models.node import ROOT_ID, Folder, Link, Node


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value)
    return default


def node_from_record(record: dict[str, Any], *, index: int) -> Node:
    """Decode one native record, filling missing fields with their defaults.

    Args:
        record: Raw record as found in the JSON array.
        index: Position in the array, used as ``order`` when none is stored.
    """
    node_type = record.get("type")
    if node_type is None:
        node_type = "bookmark" if record.get("url") else "folder"

    node_id = str(record.get("id", ""))
    name = str(record.get("name") or "")
    parent = record.get("parent") or ROOT_ID
    order = _as_int(record.get("order"), index)

    if node_type == "folder":
        return Folder(id=node_id, name=name, parent=str(parent), order=order)
    return Link(
        id=node_id,
        name=name,
        url=str(record.get("url") or ""),
        parent=str(parent),
        order=order,
        access_time=_as_int(record.get("accessTime"), 0),
    )


def node_to_record(node: Node) -> dict[str, Any]:
    """Encode a node as a native record."""
    record: dict[str, Any] = {
        "id": node.id,
        "name": node.name,
        "type": node.type,
        "parent": node.parent,
    }
    if isinstance(node, Link):
        record["url"] = node.url
        record["accessTime"] = node.access_time
    record["order"] = node.order
    return record


def parse_native(text: str) -> list[Node]:
    """Parse a native export (a JSON array of node records).

    Only the outer shape is validated; entries that are not objects are
    skipped, and missing fields get their documented defaults.

    Raises:
        FormatError: The text is not JSON or not a JSON array.
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        msg = f"Invalid bookmark file format: {e}"
        raise FormatError(msg) from e
    if not isinstance(data, list):
        msg = "Invalid bookmark file format: expected a list of bookmarks"
        raise FormatError(msg)

    nodes: list[Node] = []
    for index, record in enumerate(data):
        if not isinstance(record, dict):
            logger.warning("Skipping record {}: not an object", index)
            continue
        nodes.append(node_from_record(record, index=index))
    return nodes


def export_native(nodes: Iterable[Node]) -> str:
    """Serialize nodes to the canonical native JSON text."""
    return json.dumps([node_to_record(n) for n in nodes], indent=2, ensure_ascii=False)
