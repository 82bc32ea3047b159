"""Exception taxonomy for bookmark tree operations."""

from typing import Any


class BookmarkError(Exception):
    """Base class for all bookmark-tree errors."""


class NotFoundError(BookmarkError):
    """A referenced node (e.g. a target parent folder) does not exist."""


class InvalidMove(BookmarkError):
    """A reparent or reorder would break the tree structure."""


class DepthExceeded(BookmarkError):
    """Navigation or a structural change would go past the maximum depth."""


class ValidationError(BookmarkError, ValueError):
    """A required field is blank or malformed."""


class FormatError(BookmarkError):
    """Import text is not a recognizable bookmark document."""


class EmptyImportError(BookmarkError):
    """Import text was recognized but contained no bookmarks."""


class ImportConfirmationRequired(BookmarkError):
    """Import would replace a non-empty collection without confirmation."""


class PersistenceFailure(BookmarkError):
    """Writing to the key-value store failed.

    The in-memory change has already been applied; ``result`` holds whatever
    the operation returned so callers can keep going after warning the user.
    """

    def __init__(self, message: str, *, result: Any = None) -> None:
        super().__init__(message)
        self.result = result
