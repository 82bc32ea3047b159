"""Periodic best-effort saving of the navigation cursor."""

import time
from collections.abc import Callable

from loguru import logger

from bookmark_tree.config import CURSOR_AUTOSAVE_INTERVAL
from bookmark_tree.errors import PersistenceFailure


class CursorAutosaver:
    """Save the navigation cursor at most once per interval.

    This is a crash-recovery safety net on top of the saves done after each
    navigation, so failures are logged and never raised.
    """

    def __init__(
        self,
        save: Callable[[], None],
        *,
        interval: float = CURSOR_AUTOSAVE_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._save = save
        self.interval = interval
        self._clock = clock
        self.last_saved_at: float | None = None

    def is_save_needed(self, now: float | None = None) -> bool:
        """Check if the interval has elapsed since the last save."""
        if self.last_saved_at is None:
            return True
        now = self._clock() if now is None else now
        return (now - self.last_saved_at) >= self.interval

    def maybe_save(self, now: float | None = None) -> bool:
        """Save if the interval has elapsed. Returns True if a save succeeded."""
        now = self._clock() if now is None else now
        if not self.is_save_needed(now):
            return False
        # Reset the cooldown even on failure to prevent retry storms.
        self.last_saved_at = now
        try:
            self._save()
        except PersistenceFailure as e:
            logger.warning("Periodic navigation save failed: {}", e)
            return False
        return True
