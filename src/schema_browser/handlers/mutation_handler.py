"""
Insert/update/delete statement construction from row mappings
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from schema_browser.core.errors import CatalogFetchError, NoPrimaryKeyError
from schema_browser.handlers.schema_handler import SchemaCatalog
from schema_browser.models.value import Value
from schema_browser.utils.literals import render_literal

logger = logging.getLogger(__name__)


class MutationBuilder:
    """
    Builds row-level statements for the catalog's table

    Identifiers are interpolated as they appear in the catalog; values go
    through render_literal. Update and delete address the row by the first
    primary-key column and are refused when the table has none.
    """

    def __init__(self, catalog: SchemaCatalog, qualifier: Optional[str] = None):
        self.catalog = catalog
        self.qualifier = qualifier

    @property
    def table_ref(self) -> str:
        self._require_catalog()
        if self.qualifier:
            return f"{self.qualifier}.{self.catalog.table}"
        return self.catalog.table

    def insert(self, row: Dict[str, Any]) -> str:
        """
        Build an INSERT for the non-empty entries of a row

        Entries that are NULL or the empty string are left out so the store
        applies the column default.

        Args:
            row: Column name to value mapping

        Returns:
            INSERT statement

        Raises:
            ValueError: If no entry is left to insert
        """
        entries = [(name, value) for name, value in self._known_entries(row)
                   if not value.is_empty()]
        if not entries:
            raise ValueError(f"Nothing to insert into {self.catalog.table}: every value is empty")

        columns = ", ".join(name for name, _ in entries)
        literals = ", ".join(render_literal(value) for _, value in entries)
        return f"INSERT INTO {self.table_ref} ({columns}) VALUES ({literals})"

    def update(self, row: Dict[str, Any]) -> str:
        """
        Build an UPDATE setting every non-key column of a row

        The WHERE clause uses the primary-key value held in the row itself.

        Raises:
            NoPrimaryKeyError: If the table has no primary key
            ValueError: If the row lacks the key or has nothing else to set
        """
        pk = self._require_primary_key()
        entries = self._known_entries(row)

        pk_value = None
        assignments = []
        for name, value in entries:
            if name == pk:
                pk_value = value
            else:
                assignments.append(f"{name} = {render_literal(value)}")

        if pk_value is None or pk_value.is_null:
            raise ValueError(f"Row has no value for primary key {pk}")
        if not assignments:
            raise ValueError(f"Row has no columns to update besides primary key {pk}")

        return (f"UPDATE {self.table_ref} SET {', '.join(assignments)} "
                f"WHERE {pk} = {render_literal(pk_value)}")

    def delete(self, pk_value: Any) -> str:
        """
        Build a DELETE for the row with the given primary-key value

        Raises:
            NoPrimaryKeyError: If the table has no primary key
        """
        pk = self._require_primary_key()
        if Value.of(pk_value).is_null:
            raise ValueError(f"Cannot delete from {self.catalog.table} by a NULL primary key")
        return f"DELETE FROM {self.table_ref} WHERE {pk} = {render_literal(pk_value)}"

    def _require_catalog(self) -> None:
        if not self.catalog.is_loaded:
            raise CatalogFetchError("No schema loaded; row mutations are disabled")

    def _require_primary_key(self) -> str:
        self._require_catalog()
        pk = self.catalog.primary_key()
        if pk is None:
            logger.warning(f"Refusing row mutation on {self.catalog.table}: no primary key")
            raise NoPrimaryKeyError(self.catalog.table)
        return pk

    def _known_entries(self, row: Dict[str, Any]) -> List[Tuple[str, Value]]:
        """Row entries for catalog columns, in row order"""
        self._require_catalog()
        entries = []
        for name, raw in row.items():
            if self.catalog.get_column(name) is None:
                logger.debug(f"Ignoring {name}: not a column of {self.catalog.table}")
                continue
            entries.append((name, Value.of(raw)))
        return entries
