"""Protocols for dependency injection at the external seams."""

from typing import Protocol, runtime_checkable


@runtime_checkable
class KeyValueStoreProtocol(Protocol):
    """Opaque persistent key-value store holding serialized state."""

    def load(self, key: str) -> str | None:
        """Return the stored text, or None if the key is absent."""
        ...

    def save(self, key: str, text: str) -> None:
        """Store text under a key, replacing any previous value."""
        ...

    def remove(self, key: str) -> None:
        """Delete a key if present."""
        ...


@runtime_checkable
class TitleFetcherProtocol(Protocol):
    """Best-effort page metadata lookup."""

    def fetch_title(self, url: str) -> str | None:
        """Return the page title, or None if it cannot be fetched."""
        ...

    def favicon_url(self, url: str) -> str | None:
        """Return a favicon reference for the page, or None."""
        ...
