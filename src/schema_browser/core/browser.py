"""
Table browser: wires catalog, query construction, presentation and edits
to one connector
"""
import itertools
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from schema_browser.connectors.base import BaseConnector
from schema_browser.core.errors import CatalogFetchError, QueryGenerationError
from schema_browser.core.query_generator import QueryGenerator
from schema_browser.handlers.alter_handler import AlterOperationBuilder
from schema_browser.handlers.mutation_handler import MutationBuilder
from schema_browser.handlers.query_builder import PagedQueryBuilder
from schema_browser.handlers.schema_handler import SchemaCatalog
from schema_browser.models.alter import AlterOperation
from schema_browser.models.paging import SortState
from schema_browser.models.schema import TableInfo
from schema_browser.models.value import Value, to_row
from schema_browser.utils.presenter import Presentation, present_row

logger = logging.getLogger(__name__)


@dataclass
class PageResult:
    """One loaded page of the selected table"""
    rows: List[Dict[str, Value]]
    total: int
    page: int
    page_size: int
    total_pages: int
    sort: SortState = field(default_factory=SortState)

    def presented(self) -> List[Dict[str, Presentation]]:
        return [present_row(row) for row in self.rows]


class TableBrowser:
    """
    Control flow for browsing and editing one table at a time

    Selecting a table reloads the catalog and then the first page. Every
    successful edit reloads catalog and data; nothing is updated in place.
    Each data load takes a request token and its result is dropped if a
    newer load started in the meantime.
    """

    def __init__(self, connector: BaseConnector, page_size: int = 50,
                 max_page_size: int = 1000, generator: Optional[QueryGenerator] = None):
        self.connector = connector
        self.catalog = SchemaCatalog(connector)
        self.queries = PagedQueryBuilder(connector.dialect, page_size=page_size)
        self.mutations = MutationBuilder(self.catalog)
        self.alterations = AlterOperationBuilder(self.catalog)
        self.generator = generator
        self.max_page_size = max_page_size

        self.table: Optional[str] = None
        self.database: Optional[str] = None
        self.current_page: Optional[PageResult] = None
        self.loading = {'schema': False, 'data': False, 'mutation': False}

        self._tokens = itertools.count(1)
        self._latest_token = 0
        self._token_lock = threading.Lock()

    def list_databases(self) -> List[str]:
        return self.connector.get_databases()

    def list_tables(self, database: Optional[str] = None) -> List[TableInfo]:
        return self.connector.get_tables(database)

    def select_table(self, table: str, database: Optional[str] = None) -> Optional[PageResult]:
        """
        Switch to a table: clear sort and page, load its catalog, then page 1

        Raises:
            CatalogFetchError: If the schema cannot be loaded; no data is
                requested in that case
        """
        logger.info(f"Selecting table {table}" + (f" in {database}" if database else ""))
        self.table = table
        self.database = database
        self.current_page = None
        self.queries.reset()
        self.mutations.qualifier = self.connector.table_qualifier(database)

        self.reload_schema()
        return self.refresh_data()

    def reload_schema(self) -> None:
        """Reload the catalog, clearing a sort whose column no longer exists"""
        self._require_table()
        with self._loading('schema'):
            self.catalog.load(self.table, self.database)
        self.queries.drop_missing_sort(self.catalog.column_names)

    def refresh_data(self) -> Optional[PageResult]:
        """
        Load the current page of the selected table

        Returns:
            The page, or None when a newer load superseded this one

        Raises:
            CatalogFetchError: If the table's schema is not loaded
        """
        self._require_catalog()
        token = self._next_token()

        with self._loading('data'):
            if self.connector.supports_sql:
                result = self._load_sql_page()
            else:
                result = self._load_key_page()

        if not self._is_current(token):
            logger.debug(f"Discarding stale page load {token} for {self.table}")
            return None

        self.current_page = result
        return result

    def set_sort(self, column: Optional[str], direction: Any) -> Optional[PageResult]:
        self._require_catalog()
        self.queries.apply_sort(column, direction, self.catalog.column_names)
        return self.refresh_data()

    def set_page(self, page: int) -> Optional[PageResult]:
        self._require_catalog()
        self.queries.set_page(page)
        return self.refresh_data()

    def set_page_size(self, page_size: int) -> Optional[PageResult]:
        self._require_catalog()
        if page_size > self.max_page_size:
            raise ValueError(f"Page size {page_size} exceeds the maximum of {self.max_page_size}")
        self.queries.set_page_size(page_size)
        return self.refresh_data()

    def insert_row(self, row: Dict[str, Any]) -> Optional[PageResult]:
        return self._mutate(self.mutations.insert(row))

    def update_row(self, row: Dict[str, Any]) -> Optional[PageResult]:
        return self._mutate(self.mutations.update(row))

    def delete_row(self, pk_value: Any) -> Optional[PageResult]:
        return self._mutate(self.mutations.delete(pk_value))

    def alter(self, operations: Sequence[AlterOperation]) -> Optional[PageResult]:
        """
        Apply alter operations in order, then reload schema and data

        If an operation fails, the ones before it stay applied; the reload
        still happens before the error propagates. A failed reload is logged
        and the store's error is raised unchanged.

        Raises:
            ExecutionError: If the store rejects an operation
        """
        table_ref = self.mutations.table_ref
        applied = 0
        try:
            with self._loading('mutation'):
                for operation in operations:
                    logger.info(f"Applying {operation.describe()} on {table_ref}")
                    self.connector.alter_table(table_ref, operation)
                    applied += 1
        except Exception:
            if applied:
                self._reload_after_failed_alter()
            raise

        if not applied:
            return self.current_page
        self.reload_schema()
        return self.refresh_data()

    def run_query(self, query: str) -> List[Dict[str, Value]]:
        """Execute free-form query text and return the rows as tagged values"""
        return [to_row(raw) for raw in self.connector.execute_query(query)]

    def generate_query(self, request: str) -> str:
        """
        Turn a natural-language request into a query for the selected table

        Raises:
            QueryGenerationError: If no generator is configured or it fails
        """
        if self.generator is None:
            raise QueryGenerationError("Query generation is not configured")
        schema_text = self.catalog.describe()
        return self.generator.generate(self.connector.db_type, schema_text, request)

    def _mutate(self, statement: str) -> Optional[PageResult]:
        with self._loading('mutation'):
            logger.info(f"Executing: {statement}")
            self.connector.execute_query(statement)
        self.reload_schema()
        return self.refresh_data()

    def _load_sql_page(self) -> PageResult:
        qualifier = self.connector.table_qualifier(self.database)
        paged = self.queries.build(self.table, self.catalog.column_names, qualifier)

        count_rows = self.connector.execute_query(paged.count_query)
        total = _first_int(count_rows)
        rows = [to_row(raw) for raw in self.connector.execute_query(paged.data_query)]

        page = self.queries.page
        return PageResult(
            rows=rows,
            total=total,
            page=page.page,
            page_size=page.page_size,
            total_pages=page.total_pages(total),
            sort=self.queries.sort
        )

    def _load_key_page(self) -> PageResult:
        info = self.connector.get_key_value(self.table, self.database)
        return PageResult(
            rows=[{'value': Value.of(info.value)}],
            total=1,
            page=1,
            page_size=self.queries.page.page_size,
            total_pages=1
        )

    def _next_token(self) -> int:
        with self._token_lock:
            self._latest_token = next(self._tokens)
            return self._latest_token

    def _is_current(self, token: int) -> bool:
        with self._token_lock:
            return token == self._latest_token

    def _reload_after_failed_alter(self) -> None:
        try:
            self.reload_schema()
        except CatalogFetchError as e:
            logger.error(f"Catalog reload after failed alter on {self.table} failed: {e}")

    def _require_table(self) -> None:
        if self.table is None:
            raise CatalogFetchError("No table selected")

    def _require_catalog(self) -> None:
        self._require_table()
        if not self.catalog.is_loaded:
            raise CatalogFetchError(f"Schema of {self.table} is not loaded")

    @contextmanager
    def _loading(self, name: str):
        self.loading[name] = True
        try:
            yield
        finally:
            self.loading[name] = False


def _first_int(rows: List[Dict[str, Any]]) -> int:
    """Total from a COUNT(*) result"""
    if not rows:
        return 0
    value = next(iter(rows[0].values()), 0)
    return int(value or 0)
