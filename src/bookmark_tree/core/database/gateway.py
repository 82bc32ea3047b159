"""Persistence gateway: the only component that talks to the key-value store."""

import json
import sqlite3
from collections.abc import Iterable

from loguru import logger

from bookmark_tree.config import BOOKMARKS_KEY, NAVIGATION_KEY, SETTINGS_KEY
from bookmark_tree.core.importer.json_reader import export_native, parse_native
from bookmark_tree.errors import FormatError, PersistenceFailure
from bookmark_tree.models.node import Node
from bookmark_tree.models.settings import Settings
from bookmark_tree.protocols import KeyValueStoreProtocol


class PersistenceGateway:
    """Serialize nodes, settings and the navigation cursor to a key-value store.

    Reads are tolerant: unreadable data is logged and treated as absent.
    Writes raise PersistenceFailure so callers can warn that a change may
    not survive a reload.
    """

    def __init__(self, kv: KeyValueStoreProtocol) -> None:
        self.kv = kv

    def _load(self, key: str) -> str | None:
        try:
            return self.kv.load(key)
        except (sqlite3.Error, OSError):
            logger.exception("Failed to read {!r} from storage", key)
            return None

    def _save(self, key: str, text: str) -> None:
        try:
            self.kv.save(key, text)
        except (sqlite3.Error, OSError) as e:
            msg = f"Error saving {key}. Storage may be full or unavailable: {e}"
            raise PersistenceFailure(msg) from e

    def load_nodes(self) -> list[Node]:
        text = self._load(BOOKMARKS_KEY)
        if not text:
            return []
        try:
            return parse_native(text)
        except FormatError:
            logger.exception("Error loading bookmarks from storage")
            return []

    def save_nodes(self, nodes: Iterable[Node]) -> None:
        self._save(BOOKMARKS_KEY, export_native(nodes))

    def load_cursor_text(self) -> str | None:
        return self._load(NAVIGATION_KEY)

    def save_cursor_text(self, text: str) -> None:
        self._save(NAVIGATION_KEY, text)

    def clear_cursor(self) -> None:
        try:
            self.kv.remove(NAVIGATION_KEY)
        except (sqlite3.Error, OSError) as e:
            msg = f"Error clearing navigation state: {e}"
            raise PersistenceFailure(msg) from e

    def load_settings(self) -> Settings:
        text = self._load(SETTINGS_KEY)
        if not text:
            return Settings()
        try:
            return Settings.from_record(json.loads(text))
        except json.JSONDecodeError:
            logger.warning("Ignoring unreadable settings, using defaults")
            return Settings()

    def save_settings(self, settings: Settings) -> None:
        self._save(SETTINGS_KEY, json.dumps(settings.to_record()))
