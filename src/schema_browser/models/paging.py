"""
Sort and page state for table browsing
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class SortDirection(Enum):
    """Sort directions"""
    ASCENDING = "ASC"
    DESCENDING = "DESC"
    NONE = "NONE"

    @classmethod
    def parse(cls, direction: Union["SortDirection", str, bool, None]) -> "SortDirection":
        """
        Interpret a direction reported by the UI

        Accepts a SortDirection, "asc"/"ascending", "desc"/"descending",
        or None/False/"" meaning the sort is cleared.
        """
        if isinstance(direction, SortDirection):
            return direction
        if direction is None or direction is False or direction == "":
            return cls.NONE
        if isinstance(direction, str):
            normalized = direction.strip().lower()
            if normalized in ("asc", "ascending"):
                return cls.ASCENDING
            if normalized in ("desc", "descending"):
                return cls.DESCENDING
            if normalized == "none":
                return cls.NONE
        raise ValueError(f"Unknown sort direction: {direction!r}")


@dataclass(frozen=True)
class SortState:
    """Active sort column and direction. NONE direction always means no column."""
    column: Optional[str] = None
    direction: SortDirection = SortDirection.NONE

    def __post_init__(self):
        if (self.direction == SortDirection.NONE) != (self.column is None):
            raise ValueError("Sort column must be set exactly when a direction is active")

    @property
    def is_active(self) -> bool:
        return self.direction != SortDirection.NONE

    def toggled(self, column: Optional[str],
                direction: Union[SortDirection, str, bool, None]) -> "SortState":
        """Return the state after a "sort toggled" event"""
        parsed = SortDirection.parse(direction)
        if parsed == SortDirection.NONE or not column:
            return SortState()
        return SortState(column=column, direction=parsed)


@dataclass
class PageState:
    """1-based page window"""
    page: int = 1
    page_size: int = 50

    def __post_init__(self):
        self._validate(self.page, self.page_size)

    @staticmethod
    def _validate(page: int, page_size: int) -> None:
        if page < 1:
            raise ValueError(f"Page must be >= 1, got {page}")
        if page_size < 1:
            raise ValueError(f"Page size must be positive, got {page_size}")

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def go_to(self, page: int) -> None:
        self._validate(page, self.page_size)
        self.page = page

    def resize(self, page_size: int) -> None:
        """Change the page size, returning to the first page"""
        self._validate(1, page_size)
        self.page_size = page_size
        self.page = 1

    def reset(self) -> None:
        self.page = 1

    def total_pages(self, total_rows: int) -> int:
        """Number of pages for a row count (at least 1)"""
        if total_rows <= 0:
            return 1
        return (total_rows + self.page_size - 1) // self.page_size
