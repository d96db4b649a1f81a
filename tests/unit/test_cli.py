"""
Unit tests for the command line entry point
"""
import pytest
import yaml
from unittest.mock import MagicMock, patch

from schema_browser.__main__ import build_parser, format_rows, main
from schema_browser.core.errors import ExecutionError
from schema_browser.models.schema import TableInfo
from schema_browser.models.value import to_row
from schema_browser.utils.dialect import POSTGRESQL


@pytest.fixture
def config_file(temp_dir):
    """YAML configuration pointing at a PostgreSQL database"""
    path = temp_dir / "config.yaml"
    path.write_text(yaml.safe_dump({
        'connection': {'type': 'postgresql', 'host': 'db', 'database': 'testdb'},
        'browser': {'page_size': 2},
    }))
    return str(path)


@pytest.fixture
def cli_connector(users_columns, users_indexes):
    """Connector usable as a context manager"""
    connector = MagicMock()
    connector.__enter__.return_value = connector
    connector.__exit__.return_value = False
    connector.db_type = "postgresql"
    connector.supports_sql = True
    connector.dialect = POSTGRESQL
    connector.table_qualifier.return_value = None
    connector.get_columns.return_value = users_columns
    connector.get_indexes.return_value = users_indexes
    return connector


class TestParser:
    """Test argument parsing"""

    def test_browse_arguments(self):
        """Test browse options"""
        args = build_parser().parse_args(
            ['browse', 'users', '--page', '3', '--sort', 'age', '--desc'])
        assert args.command == 'browse'
        assert args.page == 3
        assert args.sort == 'age'
        assert args.desc is True

    def test_command_required(self):
        """Test a subcommand must be given"""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestFormatRows:
    """Test row rendering"""

    def test_previews(self):
        """Test cells are rendered with their previews"""
        rows = [to_row({'id': 1, 'note': None, 'meta': {'a': 1}})]
        assert format_rows(rows) == "id\tnote\tmeta\n1\tNULL\t{\"a\":1}"

    def test_empty(self):
        """Test empty results"""
        assert format_rows([]) == "(no rows)"


class TestMain:
    """Test command execution"""

    @patch('schema_browser.__main__.setup_logging')
    @patch('schema_browser.__main__.ConnectorFactory.create_connector')
    def test_tables(self, mock_create, mock_logging, cli_connector, config_file, capsys):
        """Test listing tables"""
        mock_create.return_value = cli_connector
        cli_connector.get_tables.return_value = [TableInfo(name="orders"), TableInfo(name="users")]

        assert main(['--config', config_file, 'tables']) == 0

        assert capsys.readouterr().out == "orders\nusers\n"
        assert mock_create.call_args.args[0] == "postgresql"
        assert mock_create.call_args.args[1]['port'] == 5432

    @patch('schema_browser.__main__.setup_logging')
    @patch('schema_browser.__main__.ConnectorFactory.create_connector')
    def test_browse(self, mock_create, mock_logging, cli_connector, config_file, capsys):
        """Test browsing prints the page and its footer"""
        mock_create.return_value = cli_connector
        cli_connector.execute_query.side_effect = lambda q: (
            [{'total': 3}] if q.startswith("SELECT COUNT") else [{'id': 1, 'name': 'Ann', 'age': 30}]
        )

        assert main(['--config', config_file, 'browse', 'users']) == 0

        out = capsys.readouterr().out
        assert "id\tname\tage" in out
        assert "Page 1/2, 3 rows, 2 per page" in out

    @patch('schema_browser.__main__.setup_logging')
    @patch('schema_browser.__main__.ConnectorFactory.create_connector')
    def test_error_exit_code(self, mock_create, mock_logging, cli_connector, config_file, capsys):
        """Test store errors are reported on stderr"""
        mock_create.return_value = cli_connector
        cli_connector.execute_query.side_effect = ExecutionError("syntax error at or near")

        assert main(['--config', config_file, 'query', 'SELEC 1']) == 1
        assert "syntax error" in capsys.readouterr().err

    def test_missing_config(self, temp_dir, capsys):
        """Test a missing configuration file"""
        assert main(['--config', str(temp_dir / "none.yaml"), 'tables']) == 1
        assert "Configuration file not found" in capsys.readouterr().err
