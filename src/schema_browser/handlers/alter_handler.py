"""
Schema alteration: column and index editors emitting AlterOperations
"""
import logging
from enum import Enum
from typing import List, Optional

from schema_browser.core.errors import CatalogFetchError
from schema_browser.handlers.schema_handler import SchemaCatalog
from schema_browser.models.alter import AlterOperation
from schema_browser.models.schema import ColumnDefinition, IndexDefinition

logger = logging.getLogger(__name__)


class EditorMode(Enum):
    """Editor modes, fixed when the editor is opened"""
    ADD = "add"
    EDIT = "edit"


class ColumnEditor:
    """
    Working copy of one column definition

    In EDIT mode the column's name at open time is kept in original_name and
    compared with the working name once, at submit.
    """

    def __init__(self, mode: EditorMode, working: ColumnDefinition,
                 original_name: Optional[str] = None,
                 existing_names: Optional[List[str]] = None):
        if mode == EditorMode.EDIT and not original_name:
            raise ValueError("Edit mode requires the column's original name")
        self.mode = mode
        self.working = working
        self.original_name = original_name
        self._existing_names = list(existing_names or [])

    @property
    def working_name(self) -> str:
        return self.working.name

    @property
    def is_renamed(self) -> bool:
        return self.mode == EditorMode.EDIT and self.working.name != self.original_name

    def submit(self) -> List[AlterOperation]:
        """
        Turn the edit into operations, in the order they must be applied

        Returns:
            [Add] in ADD mode; [Rename, Modify] in EDIT mode when the name
            changed (Modify addresses the column by its new name);
            [Modify] otherwise

        Raises:
            ValueError: If the name or type is empty, or the name collides
                with another column
        """
        column = self.working.copy()
        column.name = column.name.strip()
        column.type_name = column.type_name.strip()

        if not column.name:
            raise ValueError("Column name is required")
        if not column.type_name:
            raise ValueError(f"Column {column.name} needs a type")

        if self.mode == EditorMode.ADD:
            if column.name in self._existing_names:
                raise ValueError(f"Column {column.name} already exists")
            return [AlterOperation.add(column)]

        operations = []
        if column.name != self.original_name:
            if column.name in self._existing_names:
                raise ValueError(f"Cannot rename {self.original_name} to {column.name}: "
                                 f"column already exists")
            operations.append(AlterOperation.rename(self.original_name, column.name))
        operations.append(AlterOperation.modify(column.name, column))
        return operations


class IndexEditor:
    """Working copy of a new index definition"""

    def __init__(self, working: IndexDefinition, known_columns: Optional[List[str]] = None):
        self.mode = EditorMode.ADD
        self.working = working
        self._known_columns = list(known_columns or [])

    def submit(self) -> List[AlterOperation]:
        """
        Raises:
            ValueError: If the name is empty, no column is chosen, or a column
                is not part of the table
        """
        index = self.working.copy()
        index.name = index.name.strip()
        index.is_pk = False

        if not index.name:
            raise ValueError("Index name is required")
        if not index.columns:
            raise ValueError(f"Index {index.name} needs at least one column")
        unknown = [col for col in index.columns if col not in self._known_columns]
        if self._known_columns and unknown:
            raise ValueError(f"Unknown columns for index {index.name}: {', '.join(unknown)}")

        return [AlterOperation.add_index(index)]


class AlterOperationBuilder:
    """Opens editors against the current catalog and builds drop operations"""

    def __init__(self, catalog: SchemaCatalog):
        self.catalog = catalog

    def open_add_column(self) -> ColumnEditor:
        """Editor in ADD mode, starting from an empty definition"""
        self._require_catalog()
        return ColumnEditor(
            EditorMode.ADD,
            ColumnDefinition(name="", type_name=""),
            existing_names=self.catalog.column_names
        )

    def open_edit_column(self, name: str) -> ColumnEditor:
        """Editor in EDIT mode, preloaded with the column's current definition"""
        column = self._require_column(name)
        others = [n for n in self.catalog.column_names if n != name]
        return ColumnEditor(EditorMode.EDIT, column.copy(), original_name=name,
                            existing_names=others)

    def drop_column(self, name: str) -> AlterOperation:
        self._require_column(name)
        return AlterOperation.drop(name)

    def open_add_index(self) -> IndexEditor:
        self._require_catalog()
        return IndexEditor(IndexDefinition(name=""), known_columns=self.catalog.column_names)

    def drop_index(self, name: str) -> AlterOperation:
        """
        Raises:
            ValueError: If the index does not exist or backs the primary key
        """
        self._require_catalog()
        index = self.catalog.get_index(name)
        if index is None:
            raise ValueError(f"Index {name} does not exist on {self.catalog.table}")
        if index.is_pk:
            raise ValueError(f"Index {name} backs the primary key and cannot be dropped")
        return AlterOperation.drop_index(name)

    def _require_catalog(self) -> None:
        if not self.catalog.is_loaded:
            raise CatalogFetchError("No schema loaded; schema changes are disabled")

    def _require_column(self, name: str) -> ColumnDefinition:
        self._require_catalog()
        column = self.catalog.get_column(name)
        if column is None:
            raise ValueError(f"Column {name} does not exist on {self.catalog.table}")
        return column
