"""
Paginated, sorted read query construction
"""
import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from schema_browser.models.paging import PageState, SortDirection, SortState
from schema_browser.utils.dialect import SqlDialect, get_dialect

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PagedQuery:
    """Count and data requests for one page"""
    count_query: str
    data_query: str


class PagedQueryBuilder:
    """Combines table, sort state and page window into read queries"""

    def __init__(self, dialect: Union[SqlDialect, str, None] = None, page_size: int = 50):
        if not isinstance(dialect, SqlDialect):
            dialect = get_dialect(dialect)
        self.dialect = dialect
        self.sort = SortState()
        self.page = PageState(page=1, page_size=page_size)

    def apply_sort(self, column: Optional[str],
                   direction: Union[SortDirection, str, bool, None],
                   columns: Optional[Sequence[str]] = None) -> SortState:
        """
        Apply a "sort toggled" event

        Any sort change returns to the first page. A rejected column leaves
        sort and page untouched.

        Args:
            column: Column the UI sorted on
            direction: Requested direction, or None/False to clear
            columns: Catalog column names the sort column must be one of

        Returns:
            The new SortState

        Raises:
            ValueError: If the sort column is not in columns
        """
        sort = self.sort.toggled(column, direction)
        if sort.is_active and columns is not None and sort.column not in columns:
            raise ValueError(f"Sort column {sort.column} is not a known column")
        self.sort = sort
        self.page.reset()
        logger.debug(f"Sort is now {self.sort.column} {self.sort.direction.value}")
        return self.sort

    def drop_missing_sort(self, columns: Sequence[str]) -> bool:
        """
        Clear the sort if its column is no longer in columns

        Returns:
            True if the sort was cleared (the page is back to 1)
        """
        if not self.sort.is_active or self.sort.column in columns:
            return False
        logger.info(f"Sort column {self.sort.column} no longer exists, clearing sort")
        self.reset()
        return True

    def set_page(self, page: int) -> None:
        self.page.go_to(page)

    def set_page_size(self, page_size: int) -> None:
        self.page.resize(page_size)

    def reset(self) -> None:
        """Clear the sort and return to page 1, keeping the page size"""
        self.sort = SortState()
        self.page.reset()

    def total_pages(self, total_rows: int) -> int:
        return self.page.total_pages(total_rows)

    def count_query(self, table: str, database: Optional[str] = None) -> str:
        return f"SELECT COUNT(*) AS total FROM {self.dialect.qualify(table, database)}"

    def data_query(self, table: str, columns: Sequence[str],
                   database: Optional[str] = None) -> str:
        """
        Build the page data query

        Without an active sort the ORDER BY clause is omitted and row order
        across pages is whatever the store returns.

        Raises:
            ValueError: If the sort column is not one of the table's columns
        """
        query = f"SELECT * FROM {self.dialect.qualify(table, database)}"

        if self.sort.is_active:
            if self.sort.column not in columns:
                raise ValueError(f"Sort column {self.sort.column} is not a column of {table}")
            query += (f" ORDER BY {self.dialect.quote_identifier(self.sort.column)}"
                      f" {self.sort.direction.value}")

        query += f" LIMIT {self.page.page_size} OFFSET {self.page.offset}"
        return query

    def build(self, table: str, columns: Sequence[str],
              database: Optional[str] = None) -> PagedQuery:
        """
        Build count and data requests for the current page

        Args:
            table: Table name (from the catalog)
            columns: Catalog column names, used to validate and quote the sort column
            database: Optional database/schema qualifier

        Returns:
            PagedQuery with count and data statements
        """
        return PagedQuery(
            count_query=self.count_query(table, database),
            data_query=self.data_query(table, columns, database)
        )
