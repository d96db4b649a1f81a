"""
Base connector interface: the executor contract of the data access core
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from schema_browser.core.errors import ExecutionError
from schema_browser.models.alter import AlterOperation
from schema_browser.models.schema import ColumnDefinition, IndexDefinition, TableInfo
from schema_browser.utils.dialect import SqlDialect, get_dialect

logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """Abstract base class for store connectors"""

    db_type = "generic"
    supports_sql = True

    def __init__(self, config: Dict[str, Any]):
        self.config = config
        self.connection = None

    @property
    def dialect(self) -> SqlDialect:
        return get_dialect(self.db_type)

    @abstractmethod
    def connect(self) -> "BaseConnector":
        """Establish connection to the store"""
        pass

    @abstractmethod
    def disconnect(self) -> None:
        """Close the connection"""
        pass

    @abstractmethod
    def get_databases(self) -> List[str]:
        """
        List the databases visible to the configured user

        Raises:
            ExecutionError: If the listing fails
        """
        pass

    @abstractmethod
    def get_tables(self, database: Optional[str] = None) -> List[TableInfo]:
        """
        List tables with size statistics

        Args:
            database: Database to list, defaults to the configured one

        Raises:
            ExecutionError: If the listing fails
        """
        pass

    @abstractmethod
    def get_columns(self, table: str, database: Optional[str] = None) -> List[ColumnDefinition]:
        """
        Get column definitions in display order

        Args:
            table: Name of the table
            database: Optional database the table lives in

        Returns:
            List of ColumnDefinition

        Raises:
            CatalogFetchError: If the metadata cannot be fetched
        """
        pass

    @abstractmethod
    def get_indexes(self, table: str, database: Optional[str] = None) -> List[IndexDefinition]:
        """
        Get index definitions of a table

        Raises:
            CatalogFetchError: If the metadata cannot be fetched
        """
        pass

    @abstractmethod
    def execute_query(self, query: str) -> List[Dict[str, Any]]:
        """
        Execute a raw query or command

        Args:
            query: Statement text

        Returns:
            Result rows as dictionaries (empty for statements without a result set)

        Raises:
            ExecutionError: With the store's message, verbatim
        """
        pass

    @abstractmethod
    def render_alter(self, table: str, operation: AlterOperation) -> List[str]:
        """
        Render one alter operation as the statements that implement it

        Raises:
            ValueError: If the operation is incomplete or unsupported
        """
        pass

    def table_qualifier(self, database: Optional[str]) -> Optional[str]:
        """Prefix for table references in generated statements, if the store needs one"""
        return None

    def alter_table(self, table: str, operation: AlterOperation) -> None:
        """
        Apply one alter operation

        Raises:
            ExecutionError: If rendering fails or the store rejects a statement
        """
        try:
            statements = self.render_alter(table, operation)
        except ValueError as e:
            raise ExecutionError(str(e)) from e

        for statement in statements:
            logger.info(f"Altering {table}: {statement}")
            self.execute_query(statement)

    def __enter__(self):
        """Context manager entry"""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()
        return False
