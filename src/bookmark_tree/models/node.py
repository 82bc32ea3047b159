"""Domain models for the bookmark tree."""

from dataclasses import dataclass
from typing import Literal

ROOT_ID = ""

NodeType = Literal["folder", "bookmark"]


@dataclass(frozen=True)
class Folder:
    """A folder. Its children are derived from the store, never stored."""

    id: str
    name: str
    parent: str = ROOT_ID
    order: int = 0

    @property
    def type(self) -> NodeType:
        return "folder"

    @property
    def is_folder(self) -> bool:
        return True


@dataclass(frozen=True)
class Link:
    """A bookmarked URL."""

    id: str
    name: str
    url: str
    parent: str = ROOT_ID
    order: int = 0
    # Epoch milliseconds of the last visit, 0 means never visited.
    access_time: int = 0

    @property
    def type(self) -> NodeType:
        return "bookmark"

    @property
    def is_folder(self) -> bool:
        return False


Node = Folder | Link


@dataclass(frozen=True)
class Breadcrumb:
    """A single folder in the navigation path."""

    folder_id: str
    name: str


@dataclass(frozen=True)
class FolderChoice:
    """A folder offered as a possible parent in an edit form."""

    folder: Folder
    label: str
    disabled: bool = False
