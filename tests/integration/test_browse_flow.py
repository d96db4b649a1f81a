"""
Integration tests for the browse and edit flow

A mocked connector stands in for the store: it keeps the users table in
memory and answers the statements the browser generates.
"""
import re
import threading

import pytest
from unittest.mock import Mock

from schema_browser.core.browser import TableBrowser
from schema_browser.core.errors import (
    CatalogFetchError, ExecutionError, NoPrimaryKeyError, QueryGenerationError
)
from schema_browser.models.alter import AlterOpType
from schema_browser.models.paging import SortDirection, SortState
from schema_browser.models.schema import ColumnDefinition, RedisKeyInfo
from schema_browser.utils.presenter import PresentationKind


# Mark all tests in this module as integration tests
pytestmark = pytest.mark.integration

LIMIT_RE = re.compile(r"LIMIT (\d+) OFFSET (\d+)$")
DELETE_RE = re.compile(r"DELETE FROM users WHERE id = (\d+)$")


@pytest.fixture
def users_store(mock_connector):
    """Connector answering queries against 120 in-memory users"""
    rows = [{'id': i, 'name': f"user{i}", 'age': 20 + i % 50} for i in range(1, 121)]

    def execute(query):
        if query.startswith("SELECT COUNT(*)"):
            return [{'total': len(rows)}]
        if query.startswith("SELECT * FROM"):
            limit, offset = (int(n) for n in LIMIT_RE.search(query).groups())
            ordered = rows
            if "ORDER BY age DESC" in query:
                ordered = sorted(rows, key=lambda r: -r['age'])
            return [dict(r) for r in ordered[offset:offset + limit]]
        match = DELETE_RE.match(query)
        if match:
            rows[:] = [r for r in rows if r['id'] != int(match.group(1))]
            return []
        return []

    mock_connector.execute_query.side_effect = execute
    mock_connector.rows = rows
    return mock_connector


class TestBrowseFlow:
    """Table selection, paging and sorting"""

    def test_select_table_loads_schema_then_first_page(self, users_store):
        """Test selecting a table fetches the catalog before any data"""
        browser = TableBrowser(users_store, page_size=50)

        result = browser.select_table("users")

        assert browser.catalog.primary_key() == "id"
        assert result.total == 120
        assert result.total_pages == 3
        assert len(result.rows) == 50
        assert result.rows[0]['id'].data == 1
        queries = [c.args[0] for c in users_store.execute_query.call_args_list]
        assert queries == [
            "SELECT COUNT(*) AS total FROM users",
            "SELECT * FROM users LIMIT 50 OFFSET 0",
        ]

    def test_sort_resets_page(self, users_store):
        """Test sort A, sort B, clear each land on page 1"""
        browser = TableBrowser(users_store, page_size=50)
        browser.select_table("users")

        browser.set_page(3)
        assert browser.set_sort("name", "asc").page == 1
        browser.set_page(2)
        result = browser.set_sort("age", "desc")
        assert result.page == 1
        assert result.sort == SortState("age", SortDirection.DESCENDING)
        browser.set_page(2)
        result = browser.set_sort("age", None)
        assert result.page == 1
        assert result.sort == SortState()

    def test_third_page_sorted_desc(self, users_store):
        """Test the generated data query for page 3"""
        users_store.get_columns.return_value = [
            ColumnDefinition(name="id", type_name="integer", is_pk=True),
            ColumnDefinition(name="created_at", type_name="timestamp"),
        ]
        browser = TableBrowser(users_store, page_size=50)
        browser.select_table("events")
        browser.set_sort("created_at", SortDirection.DESCENDING)
        browser.set_page(3)

        last_query = users_store.execute_query.call_args_list[-1].args[0]
        assert last_query == "SELECT * FROM events ORDER BY created_at DESC LIMIT 50 OFFSET 100"

    def test_selecting_table_resets_sort(self, users_store):
        """Test the sort does not carry over to another table"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        browser.set_sort("age", "desc")

        result = browser.select_table("users_archive")

        assert result.sort == SortState()
        assert result.page == 1

    def test_page_size_limit(self, users_store):
        """Test the page size cannot exceed the configured maximum"""
        browser = TableBrowser(users_store, max_page_size=100)
        browser.select_table("users")
        with pytest.raises(ValueError, match="exceeds the maximum"):
            browser.set_page_size(500)
        assert browser.set_page_size(100).total_pages == 2

    def test_catalog_failure_stops_data_load(self, users_store):
        """Test no data is requested when the schema cannot be fetched"""
        users_store.get_columns.side_effect = CatalogFetchError("table vanished")
        browser = TableBrowser(users_store)

        with pytest.raises(CatalogFetchError):
            browser.select_table("users")
        with pytest.raises(CatalogFetchError, match="not loaded"):
            browser.set_page(2)
        with pytest.raises(CatalogFetchError):
            browser.set_sort("age", "asc")
        with pytest.raises(CatalogFetchError):
            browser.set_page_size(10)
        with pytest.raises(CatalogFetchError):
            browser.refresh_data()

        users_store.execute_query.assert_not_called()
        assert not browser.catalog.is_loaded
        assert browser.queries.page.page == 1

    def test_rejected_sort_keeps_browsing(self, users_store):
        """Test an unknown sort column is refused without sticking"""
        browser = TableBrowser(users_store, page_size=50)
        browser.select_table("users")
        users_store.execute_query.reset_mock()

        with pytest.raises(ValueError, match="not a known column"):
            browser.set_sort("bogus", "asc")
        users_store.execute_query.assert_not_called()

        result = browser.set_page(2)
        assert result.page == 2
        assert result.sort == SortState()
        assert users_store.execute_query.call_args.args[0] == "SELECT * FROM users LIMIT 50 OFFSET 50"

    def test_presented_rows(self, users_store):
        """Test rows pass through the presenter"""
        browser = TableBrowser(users_store)
        result = browser.select_table("users")
        presented = result.presented()
        assert presented[0]['name'].kind == PresentationKind.LITERAL
        assert presented[0]['name'].preview == "user1"

    def test_qualified_by_connector(self, users_store):
        """Test the connector decides how tables in other databases are referenced"""
        users_store.table_qualifier.return_value = "shop"
        browser = TableBrowser(users_store)
        browser.select_table("users", "shop")

        queries = [c.args[0] for c in users_store.execute_query.call_args_list]
        assert queries[0] == "SELECT COUNT(*) AS total FROM shop.users"
        users_store.get_columns.assert_called_with("users", "shop")


class TestEditFlow:
    """Row edits and schema changes"""

    def test_delete_then_refetch(self, users_store):
        """Test a deleted row is gone from the reloaded page"""
        browser = TableBrowser(users_store, page_size=50)
        browser.select_table("users")
        users_store.get_columns.reset_mock()

        result = browser.delete_row(7)

        assert all(row['id'].data != 7 for row in result.rows)
        assert result.total == 119
        users_store.get_columns.assert_called_once_with("users", None)

    def test_update_scenario(self, users_store):
        """Test the generated UPDATE reaches the connector"""
        browser = TableBrowser(users_store)
        browser.select_table("users")

        browser.update_row({"id": 7, "name": "O'Brien", "age": None})

        users_store.execute_query.assert_any_call(
            "UPDATE users SET name = 'O''Brien', age = NULL WHERE id = 7"
        )

    def test_insert_row(self, users_store):
        """Test inserts skip empty values"""
        browser = TableBrowser(users_store)
        browser.select_table("users")

        browser.insert_row({"id": "", "name": "Zoe", "age": 30})

        users_store.execute_query.assert_any_call(
            "INSERT INTO users (name, age) VALUES ('Zoe', 30)"
        )

    def test_no_primary_key_never_executes(self, users_store):
        """Test update and delete without a key stop before the connector"""
        users_store.get_columns.return_value = [
            ColumnDefinition(name="message", type_name="text"),
        ]
        users_store.get_indexes.return_value = []
        browser = TableBrowser(users_store)
        browser.select_table("event_log")
        users_store.execute_query.reset_mock()

        with pytest.raises(NoPrimaryKeyError):
            browser.update_row({"message": "x"})
        with pytest.raises(NoPrimaryKeyError):
            browser.delete_row("x")

        users_store.execute_query.assert_not_called()

    def test_execution_error_skips_reload(self, users_store):
        """Test a rejected statement propagates and nothing is reloaded"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        users_store.get_columns.reset_mock()
        users_store.execute_query.side_effect = ExecutionError("duplicate key value")

        with pytest.raises(ExecutionError, match="duplicate key value"):
            browser.insert_row({"id": 1, "name": "dup"})

        users_store.get_columns.assert_not_called()
        assert browser.loading['mutation'] is False

    def test_rename_and_modify_applied_in_order(self, users_store):
        """Test column edits are applied as emitted and followed by a reload"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        users_store.get_columns.reset_mock()

        editor = browser.alterations.open_edit_column("age")
        editor.working.name = "years"
        editor.working.type_name = "bigint"
        browser.alter(editor.submit())

        applied = [c.args for c in users_store.alter_table.call_args_list]
        assert [op.op_type for _, op in applied] == [AlterOpType.RENAME, AlterOpType.MODIFY]
        assert all(table == "users" for table, _ in applied)
        users_store.get_columns.assert_called_once()

    def test_failed_alter_still_reloads(self, users_store):
        """Test the schema is reloaded when a later operation fails"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        users_store.get_columns.reset_mock()
        users_store.alter_table.side_effect = [None, ExecutionError("type mismatch")]

        editor = browser.alterations.open_edit_column("age")
        editor.working.name = "years"
        with pytest.raises(ExecutionError, match="type mismatch"):
            browser.alter(editor.submit())

        users_store.get_columns.assert_called_once()

    def test_failed_reload_keeps_alter_error(self, users_store):
        """Test the store's error propagates when the reload after it fails too"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        users_store.alter_table.side_effect = [None, ExecutionError("type mismatch")]
        users_store.get_columns.side_effect = CatalogFetchError("connection lost")

        editor = browser.alterations.open_edit_column("age")
        editor.working.name = "years"
        with pytest.raises(ExecutionError, match="type mismatch"):
            browser.alter(editor.submit())

    def test_drop_sorted_column_clears_sort(self, users_store, users_columns):
        """Test dropping the sorted column succeeds and later edits still reload"""
        browser = TableBrowser(users_store, page_size=50)
        browser.select_table("users")
        browser.set_sort("age", "desc")
        browser.set_page(2)

        def drop(table, operation):
            users_store.get_columns.return_value = [c for c in users_columns if c.name != "age"]

        users_store.alter_table.side_effect = drop
        result = browser.alter([browser.alterations.drop_column("age")])

        assert result.sort == SortState()
        assert result.page == 1
        assert users_store.execute_query.call_args.args[0] == "SELECT * FROM users LIMIT 50 OFFSET 0"

        result = browser.delete_row(5)
        assert result.total == 119
        users_store.execute_query.assert_any_call("DELETE FROM users WHERE id = 5")

    def test_rename_sorted_column_clears_sort(self, users_store, users_columns):
        """Test renaming the sorted column does not break the reload"""
        browser = TableBrowser(users_store)
        browser.select_table("users")
        browser.set_sort("age", "asc")

        def rename(table, operation):
            users_store.get_columns.return_value = [
                users_columns[0], users_columns[1],
                ColumnDefinition(name="years", type_name="integer"),
            ]

        users_store.alter_table.side_effect = rename
        editor = browser.alterations.open_edit_column("age")
        editor.working.name = "years"

        result = browser.alter(editor.submit())

        assert result.sort == SortState()
        assert browser.catalog.column_names == ["id", "name", "years"]


class TestRequestTokens:
    """Stale page loads are discarded"""

    def test_superseded_load_is_discarded(self, users_store):
        """Test a load that finishes after a newer one started returns None"""
        browser = TableBrowser(users_store)
        browser.select_table("users")

        first_started = threading.Event()
        release_first = threading.Event()
        original = users_store.execute_query.side_effect

        def slow_execute(query):
            if "OFFSET 0" in query and not first_started.is_set():
                first_started.set()
                release_first.wait(timeout=5)
            return original(query)

        users_store.execute_query.side_effect = slow_execute
        results = {}

        def load_first():
            results['first'] = browser.refresh_data()

        worker = threading.Thread(target=load_first)
        worker.start()
        assert first_started.wait(timeout=5)

        browser.queries.set_page(2)
        results['second'] = browser.refresh_data()
        release_first.set()
        worker.join(timeout=5)

        assert results['first'] is None
        assert results['second'].page == 2
        assert browser.current_page is results['second']


class TestKeyValueFlow:
    """Browsing a store without SQL"""

    def test_redis_key_as_single_row(self):
        """Test a key's value is shown as one row"""
        connector = Mock()
        connector.db_type = "redis"
        connector.supports_sql = False
        connector.dialect = None
        connector.table_qualifier = Mock(return_value=None)
        connector.get_columns.return_value = [
            ColumnDefinition(name="value", type_name="hash", is_nullable=False)
        ]
        connector.get_indexes.return_value = []
        connector.get_key_value.return_value = RedisKeyInfo(
            key="user:1", key_type="hash", ttl=-1, value='{\n  "name": "Ann"\n}', length=1
        )
        browser = TableBrowser(connector)

        result = browser.select_table("user:1", "db0 (3)")

        assert result.total == 1
        assert result.presented()[0]['value'].kind == PresentationKind.STRUCTURED_PREVIEW
        connector.get_key_value.assert_called_once_with("user:1", "db0 (3)")
        connector.execute_query.assert_not_called()


class TestQueryGeneration:
    """Natural-language query generation"""

    def test_generate_uses_catalog_description(self, users_store):
        """Test the schema description is handed to the generator"""
        generator = Mock()
        generator.generate.return_value = "SELECT * FROM users WHERE age > 30"
        browser = TableBrowser(users_store, generator=generator)
        browser.select_table("users")

        assert browser.generate_query("users older than 30") == "SELECT * FROM users WHERE age > 30"
        db_type, schema_text, request = generator.generate.call_args.args
        assert db_type == "postgresql"
        assert schema_text.startswith("Table: users")
        assert request == "users older than 30"

    def test_generate_without_generator(self, users_store):
        """Test generation is unavailable without configuration"""
        browser = TableBrowser(users_store)
        with pytest.raises(QueryGenerationError):
            browser.generate_query("anything")
