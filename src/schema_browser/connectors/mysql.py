"""
MySQL connector implementation
"""
import logging
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import Error as MySQLError

from schema_browser.connectors.base import BaseConnector
from schema_browser.core.errors import CatalogFetchError, ExecutionError
from schema_browser.models.alter import AlterOperation, AlterOpType
from schema_browser.models.schema import ColumnDefinition, IndexDefinition, TableInfo
from schema_browser.utils.literals import quote_string

logger = logging.getLogger(__name__)


def _text(value: Any) -> Optional[str]:
    """information_schema values may come back as bytes depending on server collation"""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    return str(value)


class MySQLConnector(BaseConnector):
    """MySQL database connector"""

    db_type = "mysql"

    def connect(self) -> 'MySQLConnector':
        """Establish connection to MySQL in autocommit mode"""
        params = {
            'host': self.config['host'],
            'port': self.config['port'],
            'user': self.config.get('username'),
            'password': self.config.get('password'),
            'autocommit': True,
        }
        if self.config.get('database'):
            params['database'] = self.config['database']

        try:
            self.connection = mysql.connector.connect(**params)
            logger.info(f"Connected to MySQL at {self.config['host']}:{self.config['port']}")
            return self
        except MySQLError as e:
            logger.error(f"Failed to connect to MySQL: {e}")
            raise ExecutionError(str(e)) from e

    def disconnect(self) -> None:
        """Close MySQL connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from MySQL")

    def table_qualifier(self, database: Optional[str]) -> Optional[str]:
        """MySQL reaches other databases on the same connection as <database>.<table>"""
        return database or None

    def _cursor(self, dictionary: bool = False):
        if self.connection is None:
            self.connect()
        return self.connection.cursor(dictionary=dictionary)

    def get_databases(self) -> List[str]:
        """List databases"""
        cursor = None
        try:
            cursor = self._cursor()
            cursor.execute("SHOW DATABASES")
            return [_text(row[0]) for row in cursor.fetchall()]
        except MySQLError as e:
            logger.error(f"Failed to list databases: {e}")
            raise ExecutionError(str(e)) from e
        finally:
            if cursor:
                cursor.close()

    def get_tables(self, database: Optional[str] = None) -> List[TableInfo]:
        """List tables with size statistics"""
        query = """
            SELECT TABLE_NAME, DATA_LENGTH, INDEX_LENGTH, TABLE_ROWS, TABLE_COMMENT
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE())
            ORDER BY TABLE_NAME
        """
        cursor = None
        try:
            cursor = self._cursor()
            cursor.execute(query, (database or self.config.get('database') or None,))
            tables = []
            for name, data_len, index_len, rows, comment in cursor.fetchall():
                data_size = int(data_len) if data_len is not None else None
                index_size = int(index_len) if index_len is not None else None
                tables.append(TableInfo(
                    name=_text(name),
                    data_size=data_size,
                    index_size=index_size,
                    total_size=(data_size or 0) + (index_size or 0),
                    row_count=int(rows) if rows is not None else None,
                    comment=_text(comment) or None
                ))
            return tables
        except MySQLError as e:
            logger.error(f"Failed to list tables: {e}")
            raise ExecutionError(str(e)) from e
        finally:
            if cursor:
                cursor.close()

    def get_columns(self, table: str, database: Optional[str] = None) -> List[ColumnDefinition]:
        """Get column definitions; COLUMN_TYPE keeps the full type, e.g. VARCHAR(255)"""
        query = """
            SELECT COLUMN_NAME, COLUMN_TYPE, COLUMN_KEY, IS_NULLABLE, COLUMN_DEFAULT, COLUMN_COMMENT
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE()) AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
        """
        cursor = None
        try:
            cursor = self._cursor()
            cursor.execute(query, (database or self.config.get('database') or None, table))
            return [
                ColumnDefinition(
                    name=_text(name),
                    type_name=_text(column_type) or '',
                    is_pk=_text(column_key) == 'PRI',
                    is_nullable=_text(nullable) == 'YES',
                    default_value=_text(default),
                    comment=_text(comment) or None
                )
                for name, column_type, column_key, nullable, default, comment in cursor.fetchall()
            ]
        except MySQLError as e:
            logger.error(f"Failed to fetch columns for {table}: {e}")
            raise CatalogFetchError(str(e)) from e
        finally:
            if cursor:
                cursor.close()

    def get_indexes(self, table: str, database: Optional[str] = None) -> List[IndexDefinition]:
        """Get indexes, one STATISTICS row per indexed column grouped by index name"""
        query = """
            SELECT INDEX_NAME, COLUMN_NAME, NON_UNIQUE, INDEX_COMMENT
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = COALESCE(%s, DATABASE()) AND TABLE_NAME = %s
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
        """
        cursor = None
        try:
            cursor = self._cursor()
            cursor.execute(query, (database or self.config.get('database') or None, table))
            indexes: List[IndexDefinition] = []
            for index_name, column_name, non_unique, comment in cursor.fetchall():
                index_name = _text(index_name)
                if indexes and indexes[-1].name == index_name:
                    indexes[-1].columns.append(_text(column_name))
                    continue
                indexes.append(IndexDefinition(
                    name=index_name,
                    columns=[_text(column_name)],
                    is_unique=int(non_unique) == 0,
                    is_pk=index_name == 'PRIMARY',
                    comment=_text(comment) or None
                ))
            return indexes
        except MySQLError as e:
            logger.error(f"Failed to fetch indexes for {table}: {e}")
            raise CatalogFetchError(str(e)) from e
        finally:
            if cursor:
                cursor.close()

    def execute_query(self, query: str) -> List[Dict[str, Any]]:
        """Execute raw query"""
        cursor = None
        try:
            cursor = self._cursor(dictionary=True)
            cursor.execute(query)
            if not cursor.with_rows:
                return []
            return [dict(row) for row in cursor.fetchall()]
        except MySQLError as e:
            logger.error(f"Query failed: {e}")
            raise ExecutionError(str(e)) from e
        finally:
            if cursor:
                cursor.close()

    def render_alter(self, table: str, operation: AlterOperation) -> List[str]:
        op = operation.op_type

        if op in (AlterOpType.ADD, AlterOpType.MODIFY):
            col = operation.require_column_def()
            parts = [col.name, col.type_name, "NULL" if col.is_nullable else "NOT NULL"]
            if col.default_value is not None:
                parts.append(f"DEFAULT {col.default_value}")
            if op == AlterOpType.ADD and col.is_pk:
                parts.append("PRIMARY KEY")
            if col.comment is not None:
                parts.append(f"COMMENT {quote_string(col.comment)}")
            verb = "ADD COLUMN" if op == AlterOpType.ADD else "MODIFY COLUMN"
            return [f"ALTER TABLE {table} {verb} {' '.join(parts)}"]

        if op == AlterOpType.DROP:
            return [f"ALTER TABLE {table} DROP COLUMN {operation.require_column_name()}"]

        if op == AlterOpType.RENAME:
            return [f"ALTER TABLE {table} RENAME COLUMN {operation.require_column_name()} "
                    f"TO {operation.require_new_name()}"]

        if op == AlterOpType.ADD_INDEX:
            idx = operation.require_index_def()
            unique = "UNIQUE " if idx.is_unique else ""
            statement = f"CREATE {unique}INDEX {idx.name} ON {table} ({', '.join(idx.columns)})"
            if idx.comment:
                statement += f" COMMENT {quote_string(idx.comment)}"
            return [statement]

        if op == AlterOpType.DROP_INDEX:
            return [f"DROP INDEX {operation.require_index_name()} ON {table}"]

        raise ValueError(f"Unknown operation: {op}")
