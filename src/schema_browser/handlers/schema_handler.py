"""
Schema catalog: runtime-fetched column and index metadata for one table
"""
import logging
from typing import List, Optional, Tuple

from schema_browser.connectors.base import BaseConnector
from schema_browser.core.errors import CatalogFetchError
from schema_browser.models.schema import ColumnDefinition, IndexDefinition

logger = logging.getLogger(__name__)


class SchemaCatalog:
    """Holds the column and index definitions of the currently selected table"""

    def __init__(self, connector: BaseConnector):
        self.connector = connector
        self.table: Optional[str] = None
        self.database: Optional[str] = None
        self.columns: List[ColumnDefinition] = []
        self.indexes: List[IndexDefinition] = []
        self._loaded = False

    def load(self, table: str, database: Optional[str] = None
             ) -> Tuple[List[ColumnDefinition], List[IndexDefinition]]:
        """
        Fetch the catalog for a table, replacing whatever was held before

        The previous catalog is dropped before the fetch starts, so a failed
        load leaves no schema rather than a stale one.

        Args:
            table: Name of the table
            database: Optional database the table lives in

        Returns:
            Tuple of (columns, indexes)

        Raises:
            CatalogFetchError: If the connector cannot provide the metadata
        """
        self.clear()
        logger.info(f"Loading catalog for {database + '.' if database else ''}{table}")

        try:
            columns = list(self.connector.get_columns(table, database))
            indexes = list(self.connector.get_indexes(table, database))
        except CatalogFetchError:
            raise
        except Exception as e:
            logger.error(f"Failed to load catalog for {table}: {e}")
            raise CatalogFetchError(str(e)) from e

        self.table = table
        self.database = database
        self.columns = columns
        self.indexes = indexes
        self._loaded = True

        logger.debug(f"Catalog for {table}: {len(columns)} columns, {len(indexes)} indexes, "
                     f"primary key {self.primary_key()}")
        return self.columns, self.indexes

    def clear(self) -> None:
        """Forget the current catalog"""
        self.table = None
        self.database = None
        self.columns = []
        self.indexes = []
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]

    def primary_key(self) -> Optional[str]:
        """Name of the first primary-key column in catalog order, if any"""
        for col in self.columns:
            if col.is_pk:
                return col.name
        return None

    def get_column(self, name: str) -> Optional[ColumnDefinition]:
        """Get column by name"""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def get_index(self, name: str) -> Optional[IndexDefinition]:
        """Get index by name"""
        for idx in self.indexes:
            if idx.name == name:
                return idx
        return None

    def describe(self) -> str:
        """
        Plain-text description of the table, used as context for query generation

        Returns:
            Multi-line text listing columns with type, key, nullability,
            default and comment, followed by the indexes
        """
        if not self._loaded:
            return ""

        lines = [f"Table: {self.table}"]
        lines.append("Columns:")
        for col in self.columns:
            parts = [f"  - {col.name} {col.type_name}"]
            if col.is_pk:
                parts.append("PRIMARY KEY")
            if not col.is_nullable:
                parts.append("NOT NULL")
            if col.default_value is not None:
                parts.append(f"DEFAULT {col.default_value}")
            if col.comment:
                parts.append(f"-- {col.comment}")
            lines.append(" ".join(parts))

        if self.indexes:
            lines.append("Indexes:")
            for idx in self.indexes:
                kind = "PRIMARY" if idx.is_pk else ("UNIQUE" if idx.is_unique else "INDEX")
                lines.append(f"  - {idx.name} {kind} ({', '.join(idx.columns)})")

        return "\n".join(lines)
