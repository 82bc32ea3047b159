"""Detect the format of import text and parse it into a replacement node list."""

import json
import re
from dataclasses import dataclass
from typing import Literal

from bs4 import UnicodeDammit
from loguru import logger

from bookmark_tree.core.importer.json_reader import parse_native
from bookmark_tree.core.importer.netscape import parse_netscape
from bookmark_tree.errors import EmptyImportError, FormatError
from bookmark_tree.models.node import Folder, Node

ImportFormat = Literal["html", "json"]

_MARKUP_RE = re.compile(r"<dt>|<dl>", re.IGNORECASE)

# Encodings tried in order before any guessing.
_IMPORT_ENCODINGS = ["utf-8", "windows-1252"]


@dataclass(frozen=True)
class ImportResult:
    """Outcome of parsing an import file."""

    format: ImportFormat
    nodes: tuple[Node, ...]

    @property
    def folder_count(self) -> int:
        return sum(1 for n in self.nodes if isinstance(n, Folder))

    @property
    def link_count(self) -> int:
        return len(self.nodes) - self.folder_count


def decode_import_bytes(data: bytes) -> str:
    """Decode a raw import file, falling back from UTF-8 to cp1252.

    Raises:
        FormatError: None of the encodings could decode the file.
    """
    dammit = UnicodeDammit(data, _IMPORT_ENCODINGS)
    if dammit.unicode_markup is None:
        msg = "Could not decode bookmark file: unknown text encoding"
        raise FormatError(msg)
    if dammit.original_encoding not in (None, "utf-8", "ascii"):
        logger.debug("Decoded import file as {}", dammit.original_encoding)
    return dammit.unicode_markup


def _is_native_array(text: str) -> bool:
    try:
        return isinstance(json.loads(text), list)
    except json.JSONDecodeError:
        return False


def detect_format(text: str, *, filename: str | None = None) -> ImportFormat:
    """Guess the format from the file name, then from the content.

    Text that parses as a JSON array is native even if a bookmark name
    contains list markup.
    """
    if filename:
        lowered = filename.lower()
        if lowered.endswith((".html", ".htm")):
            return "html"
        if lowered.endswith(".json"):
            return "json"
    if _is_native_array(text):
        return "json"
    stripped = text.lstrip()
    if stripped[:9].upper() == "<!DOCTYPE" or _MARKUP_RE.search(text):
        return "html"
    return "json"


def parse_import_text(
    text: str,
    *,
    filename: str | None = None,
    allow_empty: bool = False,
) -> ImportResult:
    """Parse import text in either supported format.

    This is a pure function; replacing the store is up to the caller.

    Args:
        text: Raw file contents.
        filename: Original file name, used as a format hint.
        allow_empty: Accept a bookmark document that contains no entries.

    Raises:
        FormatError: Neither format could be recognized.
        EmptyImportError: A bookmark HTML document was found but had no entries.
    """
    fmt = detect_format(text, filename=filename)
    if fmt == "html":
        nodes = parse_netscape(text)
        if not nodes and not allow_empty:
            msg = "No bookmarks found in HTML file"
            raise EmptyImportError(msg)
    else:
        nodes = parse_native(text)

    result = ImportResult(format=fmt, nodes=tuple(nodes))
    logger.debug(
        "Parsed {} import: {} folders, {} links", fmt, result.folder_count, result.link_count
    )
    return result
