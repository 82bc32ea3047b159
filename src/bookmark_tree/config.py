"""Configuration constants for bookmark-tree."""

import os
from pathlib import Path

# Deepest pane a folder drill-down may open. Root-level nodes live at depth 1.
MAX_DEPTH: int = 10

# Logical keys in the key-value store.
BOOKMARKS_KEY: str = "bookmarks"
SETTINGS_KEY: str = "settings"
NAVIGATION_KEY: str = "navigation"

# Seconds between best-effort navigation cursor saves.
CURSOR_AUTOSAVE_INTERVAL: int = 5

# Seconds before a page title / favicon request is abandoned.
TITLE_FETCH_TIMEOUT: float = 5.0

DATABASE_FILENAME: str = "bookmarks.db"
DEFAULT_EXPORT_FILENAME: str = "bookmarks.json"

# Environment variable overriding the data directory.
DATA_DIR_ENV: str = "BOOKMARK_TREE_DATA_DIR"

# Directory with data. First directory which is found is used.
DATA_DIRECTORIES: list[Path] = [
    Path("~/.local/share/bookmark-tree").expanduser(),
    Path("~/.bookmark-tree").expanduser(),
    Path("~/.config/bookmark-tree").expanduser(),
]


def resolve_data_directory() -> Path:
    """Return the data directory to use.

    The environment override wins; otherwise the first existing candidate,
    falling back to the first candidate (created on demand by the caller).
    """
    override = os.environ.get(DATA_DIR_ENV)
    if override:
        return Path(override).expanduser()
    for candidate in DATA_DIRECTORIES:
        if candidate.is_dir():
            return candidate
    return DATA_DIRECTORIES[0]
