"""Parse Netscape bookmark HTML (the format browsers export) into nodes."""

from collections import Counter
from collections.abc import Callable
from itertools import count

from bs4 import BeautifulSoup, Tag

from bookmark_tree.core.tree.operations import new_node_id
from bookmark_tree.errors import FormatError
from bookmark_tree.models.node import ROOT_ID, Folder, Link, Node

# Marks a list whose heading was skipped; its contents are dropped with it.
_SKIP = object()


def _default_id_factory() -> Callable[[], str]:
    counter = count(1)
    return lambda: f"{new_node_id()}-{next(counter)}"


def _leads_entry(el: Tag) -> bool:
    """True for a heading or anchor that is the first element of its <dt>.

    Anchors inside <DD> descriptions or later in a <DT> are not entries.
    """
    parent = el.parent
    return (
        parent is not None
        and parent.name == "dt"
        and parent.find(True, recursive=False) is el
    )


def _entries(dl: Tag) -> list[Tag]:
    """Entry headings, entry anchors and lists that belong directly to ``dl``.

    Exports leave <DT>, <DD> and <p> unclosed, so html.parser nests sibling
    entries inside each other. </DL> is always explicit though, so the
    nearest enclosing <dl> is a reliable owner.
    """
    return [
        el
        for el in dl.find_all(["h3", "a", "dl"])
        if el.find_parent("dl") is dl and (el.name == "dl" or _leads_entry(el))
    ]


def parse_netscape(text: str, *, id_factory: Callable[[], str] | None = None) -> list[Node]:
    """Convert a Netscape bookmark document into nodes in document order.

    A heading (<H3>) becomes a folder whose contents are the list (<DL>)
    that follows it; an anchor (<A HREF>) becomes a never-visited link.
    Entries with an empty label or no href are skipped.

    Args:
        text: Raw HTML text.
        id_factory: Callable producing fresh ids (defaults to time + random + counter).

    Returns:
        Nodes with parents and sibling order assigned; may be empty.

    Raises:
        FormatError: The document has no bookmark list at all.
    """
    soup = BeautifulSoup(text, "html.parser")
    main_dl = soup.find("dl")
    if not isinstance(main_dl, Tag):
        msg = "No bookmark list (<DL>) found in HTML file"
        raise FormatError(msg)

    make_id = id_factory or _default_id_factory()
    result: list[Node] = []
    emitted: Counter[str] = Counter()

    def process(dl: Tag, parent_id: str) -> None:
        pending: object = None
        for el in _entries(dl):
            if el.name == "h3":
                name = el.get_text().strip()
                if not name:
                    pending = _SKIP
                    continue
                folder = Folder(id=make_id(), name=name, parent=parent_id, order=emitted[parent_id])
                emitted[parent_id] += 1
                result.append(folder)
                pending = folder.id
            elif el.name == "a":
                pending = None
                href = el.get("href")
                name = el.get_text().strip()
                if not isinstance(href, str) or not href.strip() or not name:
                    continue
                result.append(
                    Link(
                        id=make_id(),
                        name=name,
                        url=href.strip(),
                        parent=parent_id,
                        order=emitted[parent_id],
                        access_time=0,
                    )
                )
                emitted[parent_id] += 1
            else:
                if pending is not _SKIP:
                    process(el, pending if isinstance(pending, str) else parent_id)
                pending = None

    process(main_dl, ROOT_ID)
    return result
