"""
Pytest configuration and shared fixtures
"""
import pytest
from unittest.mock import Mock
from pathlib import Path
import tempfile

from schema_browser.core.config import (
    Config, ConnectionConfig, BrowserConfig, AIConfig, LoggingConfig
)
from schema_browser.handlers.schema_handler import SchemaCatalog
from schema_browser.models.schema import ColumnDefinition, IndexDefinition
from schema_browser.utils.dialect import POSTGRESQL


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_postgres_config():
    """Sample PostgreSQL configuration"""
    return ConnectionConfig(
        type="postgresql",
        host="localhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
        schema="public"
    )


@pytest.fixture
def sample_mysql_config():
    """Sample MySQL configuration"""
    return ConnectionConfig(
        type="mysql",
        host="localhost",
        port=3306,
        database="testdb",
        username="testuser",
        password="testpass"
    )


@pytest.fixture
def sample_redis_config():
    """Sample Redis configuration"""
    return ConnectionConfig(
        type="redis",
        host="localhost",
        port=6379,
        password="secret",
        database="db2 (15)"
    )


@pytest.fixture
def sample_full_config(sample_postgres_config, temp_dir):
    """Complete configuration for testing"""
    return Config(
        connection=sample_postgres_config,
        browser=BrowserConfig(page_size=50, max_page_size=500),
        ai=AIConfig(api_key="sk-test"),
        logging=LoggingConfig(file=str(temp_dir / "test.log"))
    )


@pytest.fixture
def users_columns():
    """Columns of the users table: id (pk), name, age"""
    return [
        ColumnDefinition(name="id", type_name="integer", is_pk=True, is_nullable=False),
        ColumnDefinition(name="name", type_name="character varying(100)"),
        ColumnDefinition(name="age", type_name="integer"),
    ]


@pytest.fixture
def users_indexes():
    """Indexes of the users table"""
    return [
        IndexDefinition(name="users_pkey", columns=["id"], is_unique=True, is_pk=True),
        IndexDefinition(name="idx_users_name", columns=["name"]),
    ]


@pytest.fixture
def mock_connector(users_columns, users_indexes):
    """Mock PostgreSQL-flavoured connector serving the users table"""
    connector = Mock()
    connector.db_type = "postgresql"
    connector.supports_sql = True
    connector.dialect = POSTGRESQL
    connector.config = {
        'type': 'postgresql',
        'host': 'localhost',
        'port': 5432,
        'database': 'testdb'
    }
    connector.table_qualifier = Mock(return_value=None)
    connector.get_columns = Mock(return_value=users_columns)
    connector.get_indexes = Mock(return_value=users_indexes)
    connector.execute_query = Mock(return_value=[])
    connector.alter_table = Mock()
    return connector


@pytest.fixture
def users_catalog(mock_connector):
    """Catalog loaded with the users table"""
    catalog = SchemaCatalog(mock_connector)
    catalog.load("users")
    return catalog


@pytest.fixture
def no_pk_catalog(mock_connector):
    """Catalog of a log table without a primary key"""
    mock_connector.get_columns.return_value = [
        ColumnDefinition(name="message", type_name="text"),
        ColumnDefinition(name="created_at", type_name="timestamp without time zone"),
    ]
    mock_connector.get_indexes.return_value = []
    catalog = SchemaCatalog(mock_connector)
    catalog.load("event_log")
    return catalog
