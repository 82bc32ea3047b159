"""Display settings stored alongside the bookmarks."""

from dataclasses import dataclass
from typing import Any

FONT_SIZE_RANGE = (10, 24)
ITEM_GAP_RANGE = (0, 20)


@dataclass(frozen=True)
class Settings:
    """User display preferences."""

    font_size: int = 16
    item_gap: int = 8

    def __post_init__(self) -> None:
        low, high = FONT_SIZE_RANGE
        if not low <= self.font_size <= high:
            msg = f"Font size must be between {low} and {high} pixels"
            raise ValueError(msg)
        low, high = ITEM_GAP_RANGE
        if not low <= self.item_gap <= high:
            msg = f"Item gap must be between {low} and {high} pixels"
            raise ValueError(msg)

    def to_record(self) -> dict[str, int]:
        return {"fontSize": self.font_size, "itemGap": self.item_gap}

    @classmethod
    def from_record(cls, data: Any) -> "Settings":
        """Build settings from a stored record, falling back to defaults."""
        if not isinstance(data, dict):
            return cls()
        defaults = cls()
        try:
            return cls(
                font_size=int(data.get("fontSize", defaults.font_size)),
                item_gap=int(data.get("itemGap", defaults.item_gap)),
            )
        except (TypeError, ValueError):
            return defaults
