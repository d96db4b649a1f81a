"""
PostgreSQL connector implementation
"""
import logging
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2.extras import RealDictCursor

from schema_browser.connectors.base import BaseConnector
from schema_browser.core.errors import CatalogFetchError, ExecutionError
from schema_browser.models.alter import AlterOperation, AlterOpType
from schema_browser.models.schema import ColumnDefinition, IndexDefinition, TableInfo
from schema_browser.utils.literals import quote_string

logger = logging.getLogger(__name__)


class PostgreSQLConnector(BaseConnector):
    """PostgreSQL database connector"""

    db_type = "postgresql"

    def __init__(self, config: Dict[str, Any]):
        super().__init__(config)
        self.current_database: Optional[str] = config.get('database')

    @property
    def schema(self) -> str:
        return self.config.get('schema') or 'public'

    def connect(self) -> 'PostgreSQLConnector':
        """Establish connection to PostgreSQL in autocommit mode"""
        try:
            self.connection = psycopg2.connect(
                host=self.config['host'],
                port=self.config['port'],
                database=self.current_database or 'postgres',
                user=self.config.get('username'),
                password=self.config.get('password'),
                sslmode=self.config.get('ssl_mode') or 'prefer'
            )
            self.connection.autocommit = True
            logger.info(f"Connected to PostgreSQL at {self.config['host']}:{self.config['port']}"
                        f"/{self.current_database or 'postgres'}")
            return self
        except psycopg2.Error as e:
            logger.error(f"Failed to connect to PostgreSQL: {e}")
            raise ExecutionError(str(e)) from e

    def disconnect(self) -> None:
        """Close PostgreSQL connection"""
        if self.connection:
            self.connection.close()
            self.connection = None
            logger.info("Disconnected from PostgreSQL")

    def use_database(self, database: Optional[str]) -> None:
        """Reconnect when a different database is requested; PostgreSQL cannot switch in place"""
        if not database or database == self.current_database:
            return
        logger.info(f"Switching PostgreSQL database to {database}")
        self.disconnect()
        self.current_database = database
        self.connect()

    def _cursor(self, dict_rows: bool = False):
        if self.connection is None:
            self.connect()
        if dict_rows:
            return self.connection.cursor(cursor_factory=RealDictCursor)
        return self.connection.cursor()

    def get_databases(self) -> List[str]:
        """List non-template databases"""
        query = "SELECT datname FROM pg_database WHERE datistemplate = false ORDER BY datname"
        try:
            with self._cursor() as cursor:
                cursor.execute(query)
                return [row[0] for row in cursor.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Failed to list databases: {e}")
            raise ExecutionError(str(e)) from e

    def get_tables(self, database: Optional[str] = None) -> List[TableInfo]:
        """List ordinary tables of the configured schema with size statistics"""
        query = """
            SELECT
                c.relname,
                pg_relation_size(c.oid),
                pg_indexes_size(c.oid),
                pg_total_relation_size(c.oid),
                CAST(c.reltuples AS BIGINT),
                obj_description(c.oid, 'pg_class')
            FROM pg_class c
            JOIN pg_namespace n ON n.oid = c.relnamespace
            WHERE n.nspname = %s AND c.relkind = 'r'
            ORDER BY c.relname
        """
        try:
            self.use_database(database)
            with self._cursor() as cursor:
                cursor.execute(query, (self.schema,))
                return [
                    TableInfo(
                        name=name,
                        data_size=data_size,
                        index_size=index_size,
                        total_size=total_size,
                        row_count=row_count,
                        comment=comment
                    )
                    for name, data_size, index_size, total_size, row_count, comment
                    in cursor.fetchall()
                ]
        except psycopg2.Error as e:
            logger.error(f"Failed to list tables: {e}")
            raise ExecutionError(str(e)) from e

    def get_columns(self, table: str, database: Optional[str] = None) -> List[ColumnDefinition]:
        """Get column definitions with primary-key flags and comments"""
        query = """
            SELECT
                c.column_name,
                c.data_type,
                c.character_maximum_length,
                c.numeric_precision,
                c.numeric_scale,
                c.is_nullable,
                c.column_default,
                EXISTS (
                    SELECT 1
                    FROM information_schema.table_constraints tc
                    JOIN information_schema.key_column_usage kcu
                        ON kcu.constraint_name = tc.constraint_name
                        AND kcu.table_schema = tc.table_schema
                    WHERE tc.constraint_type = 'PRIMARY KEY'
                    AND tc.table_schema = c.table_schema
                    AND tc.table_name = c.table_name
                    AND kcu.column_name = c.column_name
                ) AS is_pk,
                pg_catalog.col_description(
                    (quote_ident(c.table_schema) || '.' || quote_ident(c.table_name))::regclass,
                    c.ordinal_position
                ) AS comment
            FROM information_schema.columns c
            WHERE c.table_schema = %s AND c.table_name = %s
            ORDER BY c.ordinal_position
        """
        try:
            self.use_database(database)
            with self._cursor(dict_rows=True) as cursor:
                cursor.execute(query, (self.schema, table))
                columns = []

                for row in cursor.fetchall():
                    type_name = row['data_type']
                    if row['character_maximum_length']:
                        type_name = f"{type_name}({row['character_maximum_length']})"
                    elif row['data_type'] == 'numeric' and row['numeric_precision']:
                        type_name = f"{type_name}({row['numeric_precision']},{row['numeric_scale'] or 0})"

                    columns.append(ColumnDefinition(
                        name=row['column_name'],
                        type_name=type_name,
                        is_pk=bool(row['is_pk']),
                        is_nullable=row['is_nullable'] == 'YES',
                        default_value=row['column_default'],
                        comment=row['comment']
                    ))
                return columns
        except psycopg2.Error as e:
            logger.error(f"Failed to fetch columns for {table}: {e}")
            raise CatalogFetchError(str(e)) from e

    def get_indexes(self, table: str, database: Optional[str] = None) -> List[IndexDefinition]:
        """Get indexes with columns in key order"""
        query = """
            SELECT
                i.relname,
                string_agg(a.attname, ',' ORDER BY array_position(ix.indkey::smallint[], a.attnum)),
                ix.indisunique,
                ix.indisprimary,
                obj_description(i.oid, 'pg_class')
            FROM pg_class t
            JOIN pg_namespace n ON n.oid = t.relnamespace
            JOIN pg_index ix ON t.oid = ix.indrelid
            JOIN pg_class i ON i.oid = ix.indexrelid
            JOIN pg_attribute a ON a.attrelid = t.oid AND a.attnum = ANY(ix.indkey)
            WHERE t.relkind = 'r' AND n.nspname = %s AND t.relname = %s
            GROUP BY i.relname, i.oid, ix.indisunique, ix.indisprimary
            ORDER BY i.relname
        """
        try:
            self.use_database(database)
            with self._cursor() as cursor:
                cursor.execute(query, (self.schema, table))
                return [
                    IndexDefinition(
                        name=name,
                        columns=columns.split(','),
                        is_unique=is_unique,
                        is_pk=is_primary,
                        comment=comment
                    )
                    for name, columns, is_unique, is_primary, comment in cursor.fetchall()
                ]
        except psycopg2.Error as e:
            logger.error(f"Failed to fetch indexes for {table}: {e}")
            raise CatalogFetchError(str(e)) from e

    def execute_query(self, query: str) -> List[Dict[str, Any]]:
        """Execute raw query"""
        try:
            with self._cursor(dict_rows=True) as cursor:
                cursor.execute(query)
                if cursor.description is None:
                    return []
                return [dict(row) for row in cursor.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Query failed: {e}")
            raise ExecutionError(str(e)) from e

    def render_alter(self, table: str, operation: AlterOperation) -> List[str]:
        """
        PostgreSQL has no inline column comments, so ADD and MODIFY append a
        COMMENT ON COLUMN statement when the definition carries a comment
        """
        op = operation.op_type

        if op == AlterOpType.ADD:
            col = operation.require_column_def()
            col_def = f"{col.name} {col.type_name}"
            if not col.is_nullable:
                col_def += " NOT NULL"
            if col.default_value is not None:
                col_def += f" DEFAULT {col.default_value}"
            if col.is_pk:
                col_def += " PRIMARY KEY"
            statements = [f"ALTER TABLE {table} ADD COLUMN {col_def}"]
            if col.comment:
                statements.append(self._comment_statement(table, col))
            return statements

        if op == AlterOpType.MODIFY:
            col = operation.require_column_def()
            statements = [
                f"ALTER TABLE {table} ALTER COLUMN {col.name} TYPE {col.type_name}",
                f"ALTER TABLE {table} ALTER COLUMN {col.name} "
                f"{'DROP NOT NULL' if col.is_nullable else 'SET NOT NULL'}",
            ]
            if col.default_value is not None:
                statements.append(
                    f"ALTER TABLE {table} ALTER COLUMN {col.name} SET DEFAULT {col.default_value}")
            else:
                statements.append(f"ALTER TABLE {table} ALTER COLUMN {col.name} DROP DEFAULT")
            if col.comment is not None:
                statements.append(self._comment_statement(table, col))
            return statements

        if op == AlterOpType.DROP:
            return [f"ALTER TABLE {table} DROP COLUMN {operation.require_column_name()}"]

        if op == AlterOpType.RENAME:
            return [f"ALTER TABLE {table} RENAME COLUMN {operation.require_column_name()} "
                    f"TO {operation.require_new_name()}"]

        if op == AlterOpType.ADD_INDEX:
            idx = operation.require_index_def()
            unique = "UNIQUE " if idx.is_unique else ""
            return [f"CREATE {unique}INDEX {idx.name} ON {table} ({', '.join(idx.columns)})"]

        if op == AlterOpType.DROP_INDEX:
            return [f"DROP INDEX {operation.require_index_name()}"]

        raise ValueError(f"Unknown operation: {op}")

    @staticmethod
    def _comment_statement(table: str, col: ColumnDefinition) -> str:
        comment = quote_string(col.comment) if col.comment else "NULL"
        return f"COMMENT ON COLUMN {table}.{col.name} IS {comment}"
