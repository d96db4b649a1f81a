"""
Schema alteration operation models
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from schema_browser.models.schema import ColumnDefinition, IndexDefinition


class AlterOpType(Enum):
    """Schema change operation types"""
    ADD = "add"
    DROP = "drop"
    MODIFY = "modify"
    RENAME = "rename"
    ADD_INDEX = "add_index"
    DROP_INDEX = "drop_index"


@dataclass(frozen=True)
class AlterOperation:
    """One structured schema-change intent sent to a connector"""
    op_type: AlterOpType
    column_name: Optional[str] = None
    new_name: Optional[str] = None
    column_def: Optional[ColumnDefinition] = None
    index_def: Optional[IndexDefinition] = None
    index_name: Optional[str] = None

    @classmethod
    def add(cls, column: ColumnDefinition) -> "AlterOperation":
        return cls(AlterOpType.ADD, column_name=column.name, column_def=column)

    @classmethod
    def drop(cls, column_name: str) -> "AlterOperation":
        return cls(AlterOpType.DROP, column_name=column_name)

    @classmethod
    def modify(cls, column_name: str, column: ColumnDefinition) -> "AlterOperation":
        return cls(AlterOpType.MODIFY, column_name=column_name, column_def=column)

    @classmethod
    def rename(cls, old_name: str, new_name: str) -> "AlterOperation":
        return cls(AlterOpType.RENAME, column_name=old_name, new_name=new_name)

    @classmethod
    def add_index(cls, index: IndexDefinition) -> "AlterOperation":
        return cls(AlterOpType.ADD_INDEX, index_def=index, index_name=index.name)

    @classmethod
    def drop_index(cls, index_name: str) -> "AlterOperation":
        return cls(AlterOpType.DROP_INDEX, index_name=index_name)

    def require_column_def(self) -> ColumnDefinition:
        if self.column_def is None:
            raise ValueError("Missing column definition")
        return self.column_def

    def require_column_name(self) -> str:
        if not self.column_name:
            raise ValueError("Missing column name")
        return self.column_name

    def require_new_name(self) -> str:
        if not self.new_name:
            raise ValueError("Missing new name")
        return self.new_name

    def require_index_def(self) -> IndexDefinition:
        if self.index_def is None:
            raise ValueError("Missing index definition")
        return self.index_def

    def require_index_name(self) -> str:
        if not self.index_name:
            raise ValueError("Missing index name")
        return self.index_name

    def describe(self) -> str:
        """Short human-readable summary for logs"""
        if self.op_type == AlterOpType.RENAME:
            return f"rename {self.column_name} -> {self.new_name}"
        if self.op_type in (AlterOpType.ADD_INDEX, AlterOpType.DROP_INDEX):
            return f"{self.op_type.value} {self.index_name}"
        return f"{self.op_type.value} {self.column_name}"
